"""
Platform Capabilities
=====================

What the command system needs from a chat-platform client, and nothing
more. The real network client (gateway connection, REST transport, rate
limiting) lives outside this package; an adapter for it subclasses
Client and answers the handful of directory questions below.

    Client.self_id()            who am I (for ignoring our own messages)
    Client.user(id)             user by numeric id
    Client.channel(id)          channel by numeric id
    Client.guild(id)            guild record, carries the owner id
    Client.member(guild, user)  guild membership, carries role ids
    Client.role(guild, role)    role record, carries permission bits

Every lookup returns None when the entity does not exist, and raises
DirectoryError when the directory could not answer at all (network
down, missing intent, ...). Callers decide which of the two matters.

Identifiers are strings, the way platforms hand out snowflakes.

MemoryClient is a complete in-process Client backed by dicts. The demo
and the test-suite run against it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntFlag
from typing import Optional


class DirectoryError(Exception):
    """The platform directory could not answer a lookup."""


class Permissions(IntFlag):
    """Guild permission bits, as carried by roles."""
    CREATE_INSTANT_INVITE = 1 << 0
    KICK_MEMBERS = 1 << 1
    BAN_MEMBERS = 1 << 2
    ADMINISTRATOR = 1 << 3
    MANAGE_CHANNELS = 1 << 4
    MANAGE_GUILD = 1 << 5
    ADD_REACTIONS = 1 << 6
    VIEW_AUDIT_LOG = 1 << 7
    VIEW_CHANNEL = 1 << 10
    SEND_MESSAGES = 1 << 11
    MANAGE_MESSAGES = 1 << 13
    MENTION_EVERYONE = 1 << 17
    MUTE_MEMBERS = 1 << 22
    MANAGE_NICKNAMES = 1 << 27
    MANAGE_ROLES = 1 << 28


# ─── Entities ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class User:
    id: str
    username: str = ""
    bot: bool = False

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"


@dataclass(frozen=True)
class Channel:
    id: str
    name: str = ""
    guild_id: str = ""

    @property
    def mention(self) -> str:
        return f"<#{self.id}>"


@dataclass(frozen=True)
class Role:
    id: str
    name: str = ""
    permissions: int = 0


@dataclass(frozen=True)
class Member:
    guild_id: str
    user_id: str
    roles: tuple[str, ...] = ()


@dataclass(frozen=True)
class Guild:
    id: str
    owner_id: str
    name: str = ""


@dataclass(frozen=True)
class MessageEvent:
    """One received text message."""
    author: User
    content: str
    guild_id: str = ""
    channel_id: str = ""


# ─── Client capability ──────────────────────────────────────────────

class Client(ABC):
    """An authenticated connection to the chat platform."""

    @abstractmethod
    def self_id(self) -> str:
        """Id of the account this client is logged in as."""
        ...

    @abstractmethod
    def user(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    def channel(self, channel_id: str) -> Optional[Channel]:
        ...

    @abstractmethod
    def guild(self, guild_id: str) -> Optional[Guild]:
        ...

    @abstractmethod
    def member(self, guild_id: str, user_id: str) -> Optional[Member]:
        ...

    @abstractmethod
    def role(self, guild_id: str, role_id: str) -> Optional[Role]:
        ...


class MemoryClient(Client):
    """A Client whose whole directory lives in process memory.

    Set ``available = False`` to make every directory lookup raise
    DirectoryError, which is how an unreachable platform looks from
    the command system's point of view.
    """

    def __init__(self, me: User):
        self.me = me
        self.available = True
        self.users: dict[str, User] = {me.id: me}
        self.channels: dict[str, Channel] = {}
        self.guilds: dict[str, Guild] = {}
        self.members: dict[tuple[str, str], Member] = {}
        self.roles: dict[tuple[str, str], Role] = {}

    # Population helpers

    def add_user(self, user: User) -> User:
        self.users[user.id] = user
        return user

    def add_channel(self, channel: Channel) -> Channel:
        self.channels[channel.id] = channel
        return channel

    def add_guild(self, guild: Guild) -> Guild:
        self.guilds[guild.id] = guild
        return guild

    def add_role(self, guild_id: str, role: Role) -> Role:
        self.roles[(guild_id, role.id)] = role
        return role

    def add_member(self, member: Member) -> Member:
        self.members[(member.guild_id, member.user_id)] = member
        return member

    # Client capability

    def _check(self):
        if not self.available:
            raise DirectoryError("directory unavailable")

    def self_id(self) -> str:
        return self.me.id

    def user(self, user_id: str) -> Optional[User]:
        self._check()
        return self.users.get(user_id)

    def channel(self, channel_id: str) -> Optional[Channel]:
        self._check()
        return self.channels.get(channel_id)

    def guild(self, guild_id: str) -> Optional[Guild]:
        self._check()
        return self.guilds.get(guild_id)

    def member(self, guild_id: str, user_id: str) -> Optional[Member]:
        self._check()
        return self.members.get((guild_id, user_id))

    def role(self, guild_id: str, role_id: str) -> Optional[Role]:
        self._check()
        return self.roles.get((guild_id, role_id))
