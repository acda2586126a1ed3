"""
Command Dispatcher
==================

The routing layer between the chat client's message events and the
registered commands.

    Someone types: "!kick <@!1234> spamming links"
                  ↓
    Author is not the bot itself, content starts with "!"
                  ↓
    Split on spaces → ["!kick", "<@!1234>", "spamming", "links"]
                  ↓
    Strip the prefix → "kick", look it up in the registry → found!
                  ↓
    Invoke the command with ["<@!1234>", "spamming", "links"]
                  ↓
    Error? → command's own error handler, else the fallback handler

    Someone types: "hello everyone"
                  ↓
    No prefix → ignored

Design Decisions
----------------
- Messages from the bot's own account are never dispatched, whatever
  they contain.
- If the client cannot say who it is (DirectoryError from self_id),
  the event is dropped.
- Unrecognized commands (e.g. "!foo") are ignored, not reported. In a
  shared chat channel the prefix is used by other bots too, and
  answering every miss with an error is noise.
- Tokens are split on single spaces. There is no quoting: an argument
  cannot contain a space. A trailing sequence parameter is the way to
  take free text.
- Errors are best effort: with no per-command handler and no fallback
  handler they are dropped (and logged at DEBUG).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, List, Optional

from chatbot_commands.platform import Client, DirectoryError, MessageEvent

if TYPE_CHECKING:
    from chatbot_commands.command import ErrorHandler
    from chatbot_commands.registry import CommandRegistry

logger = logging.getLogger(__name__)


def tokenize(content: str) -> List[str]:
    """Split message content on single spaces.

    Consecutive spaces produce empty tokens, exactly like str.split(" ").
    """
    return content.split(" ")


def dispatch(
    registry: CommandRegistry,
    client: Client,
    event: MessageEvent,
    prefix: str,
    error_handler: Optional[ErrorHandler] = None,
) -> None:
    """Handle one incoming message event.

    Parameters
    ----------
    registry : CommandRegistry
        Where command names are looked up.
    client : Client
        The client the event arrived on; passed through to commands.
    event : MessageEvent
        The incoming message.
    prefix : str
        Command prefix, e.g. "!". Messages not starting with it are
        ignored.
    error_handler : callable or None
        Fallback ``handler(client, event, error)`` for commands that
        have none of their own.
    """
    try:
        self_id = client.self_id()
    except DirectoryError as e:
        logger.debug(f"Cannot tell own messages apart, ignoring event: {e}")
        return
    if event.author.id == self_id:
        return
    if not event.content.startswith(prefix):
        return

    tokens = tokenize(event.content)
    name = tokens[0].replace(prefix, "", 1)
    cmd = registry.lookup(name)
    if cmd is None:
        logger.debug(f"Ignoring unknown command {name!r}")
        return

    err = cmd.invoke(client, event, tokens[1:])
    if err is None:
        return

    handler = cmd.error_handler or error_handler
    if handler is None:
        logger.debug(f"Dropping error from {name!r}: {err}")
        return

    try:
        handler(client, event, err)
    except Exception as e:
        logger.error(f"Error handler for {name!r} failed: {e}", exc_info=True)


def make_handler(
    registry: CommandRegistry,
    prefix: str,
    error_handler: Optional[ErrorHandler] = None,
) -> Callable[[Client, MessageEvent], None]:
    """Bind dispatch() to a registry, prefix and fallback handler."""
    def on_message(client: Client, event: MessageEvent) -> None:
        dispatch(registry, client, event, prefix, error_handler)
    return on_message
