"""
Command Registry
================

Maps command names to Command instances, and alias names to command
names.

    registry = CommandRegistry()
    registry.register("ping", command(ping, "ping - Are you there?"))
    registry.alias("p", "ping")

    registry.lookup("p")        → the ping command
    registry.canonicalize("p")  → "ping"

Or, in one step, with the decorator:

    @registry.command("roll", "roll <sides> - Roll a die", aliases=["r"])
    def roll(client: Client, event: MessageEvent, sides: uint16):
        ...

Rules
-----
- A name that already resolves (as a command or as an alias) cannot
  be registered again: RegistryConflict.
- An alias needs an existing destination (UnknownCommand) and a free
  name (RegistryConflict).
- Aliases do not chain. An alias of an alias is stored pointing at
  the command the destination resolved to.
- There is no removal.

Thread Safety
-------------
Registration happens at startup, before any dispatching begins.
After that the registry is only read, and lookups are safe to call
from any number of event handler threads.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Optional

from chatbot_commands.command import Command, ErrorHandler, command
from chatbot_commands.dispatcher import dispatch, make_handler
from chatbot_commands.errors import RegistryConflict, UnknownCommand
from chatbot_commands.platform import Client, MessageEvent
from chatbot_commands.predicate import Predicate


class CommandRegistry:
    """Command names, aliases and the dispatch entry point."""

    def __init__(self):
        self.commands: Dict[str, Command] = {}
        self.aliases: Dict[str, str] = {}
        self.logger = logging.getLogger(__name__)

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def __len__(self) -> int:
        return len(self.commands)

    def canonicalize(self, name: str) -> str:
        """Return the canonical name of a command (one alias hop)."""
        return self.aliases.get(name, name)

    def lookup(self, name: str) -> Optional[Command]:
        """Return the command ``name`` resolves to, or None.

        ``name`` might be a canonical name or an alias.
        """
        return self.commands.get(self.canonicalize(name))

    def register(self, name: str, cmd: Command) -> Command:
        """Register ``cmd`` under canonical name ``name``.

        Raises
        ------
        RegistryConflict
            If ``name`` already resolves to a command.
        """
        if self.lookup(name) is not None:
            raise RegistryConflict(name)
        self.commands[name] = cmd
        self.logger.debug(f"Registered command: {name}")
        return cmd

    def alias(self, name: str, destination: str) -> None:
        """Make ``name`` resolve to the command ``destination`` resolves to.

        Raises
        ------
        UnknownCommand
            If ``destination`` does not resolve.
        RegistryConflict
            If ``name`` already resolves.
        """
        if self.lookup(destination) is None:
            raise UnknownCommand(destination)
        if self.lookup(name) is not None:
            raise RegistryConflict(name)
        self.aliases[name] = self.canonicalize(destination)
        self.logger.debug(f"Registered alias: {name} -> {self.aliases[name]}")

    def command(
        self,
        name: str,
        help_text: str = "",
        aliases: Iterable[str] = (),
        predicate: Optional[Predicate] = None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> Callable:
        """Decorator: validate a function, register it, add its aliases.

        The function itself is returned unchanged so it stays callable
        (and testable) directly. All names are checked before anything
        is registered, so a conflict leaves the registry untouched.
        """
        aliases = list(aliases)

        def decorator(fn):
            cmd = command(fn, help_text, predicate, error_handler)
            taken = set()
            for candidate in [name] + aliases:
                if candidate in taken or self.lookup(candidate) is not None:
                    raise RegistryConflict(candidate)
                taken.add(candidate)

            self.register(name, cmd)
            for alias in aliases:
                self.alias(alias, name)
            return fn
        return decorator

    def list_commands(self) -> list[tuple[str, str]]:
        """Return (name, help_text) for all registered commands.

        Aliases are not listed. Sorted alphabetically by name.
        """
        return sorted((name, cmd.help_text) for name, cmd in self.commands.items())

    def aliases_of(self, name: str) -> list[str]:
        """Return the aliases pointing at command ``name``, sorted."""
        canonical = self.canonicalize(name)
        return sorted(alias for alias, dest in self.aliases.items() if dest == canonical)

    # ─── Dispatch entry points ──────────────────────────────────────

    def handle(
        self,
        client: Client,
        event: MessageEvent,
        prefix: str,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        """Handle one incoming message in the context of this registry.

        See chatbot_commands.dispatcher.dispatch().
        """
        dispatch(self, client, event, prefix, error_handler)

    def handler(
        self,
        prefix: str,
        error_handler: Optional[ErrorHandler] = None,
    ) -> Callable[[Client, MessageEvent], None]:
        """Return a ``(client, event)`` callback bound to this registry.

        Suitable for registering directly as a client library's
        message-created event handler.
        """
        return make_handler(self, prefix, error_handler)
