"""
Command Predicates
==================

Describes in which conditions a command may be executed.

A Predicate carries a permission bitmask and an optional custom check.
With a zero bitmask and no custom check, everyone may run the command.

With a nonzero bitmask the invoking user must either own the guild the
message was sent in, or hold at least one role whose permission bits
intersect the mask. A directory that cannot answer counts as "no".

The custom check runs last. Note the polarity: a custom check that
returns True DENIES the command, whatever the bitmask decided. Think
of it as "is this user blocked?" rather than "is this user allowed?".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from chatbot_commands.platform import Client, DirectoryError, MessageEvent

logger = logging.getLogger(__name__)

PredicateFunc = Callable[[Client, MessageEvent, "Predicate"], bool]


def member_has_permissions(client: Client, guild_id: str, user_id: str, permission: int) -> bool:
    """Check whether a guild member holds a role intersecting ``permission``.

    Roles are examined one at a time and the first intersecting role
    settles it.

    Raises DirectoryError if the member or one of the roles examined
    cannot be looked up.
    """
    member = client.member(guild_id, user_id)
    if member is None:
        raise DirectoryError(f"no member {user_id} in guild {guild_id}")

    for role_id in member.roles:
        role = client.role(guild_id, role_id)
        if role is None:
            raise DirectoryError(f"no role {role_id} in guild {guild_id}")
        if role.permissions & permission:
            return True

    return False


def is_owner(client: Client, guild_id: str, user_id: str) -> bool:
    """Check whether ``user_id`` owns guild ``guild_id``.

    Raises DirectoryError if the guild cannot be looked up.
    """
    guild = client.guild(guild_id)
    if guild is None:
        raise DirectoryError(f"no guild {guild_id}")
    return guild.owner_id == user_id


def _passes(check, *args) -> bool:
    try:
        return check(*args)
    except DirectoryError as e:
        logger.debug(f"{check.__name__} could not be answered: {e}")
        return False


@dataclass(frozen=True)
class Predicate:
    """Permission bitmask plus optional custom check.

    Attributes
    ----------
    permissions : int
        Permission bits, any of which grants access. 0 = unrestricted.
    custom : callable or None
        ``custom(client, event, predicate) -> bool``. Returning True
        denies the command.
    """
    permissions: int = 0
    custom: Optional[PredicateFunc] = None

    def validate(self, client: Client, event: MessageEvent) -> bool:
        """Verify whether message ``event`` satisfies the predicate."""
        if self.permissions != 0:
            guild_id, user_id = event.guild_id, event.author.id
            owner = _passes(is_owner, client, guild_id, user_id)
            if not owner and not _passes(member_has_permissions, client, guild_id, user_id, self.permissions):
                return False
        if self.custom is not None and self.custom(client, event, self):
            return False
        return True


UNRESTRICTED = Predicate()
