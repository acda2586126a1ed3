"""
Commands
========

A Command is anything that can be invoked with a client handle, the
incoming message event and the list of argument tokens that followed
the command name. The dispatcher only ever talks to this interface.

FunctionCommand is the Command everybody actually uses: it wraps a
plain Python callable whose parameters are annotated with supported
types, and converts tokens into those types on every invocation.

    def kick(client: Client, event: MessageEvent, who: User, *reason: str):
        ...

    cmd = predicated_command(
        kick,
        "kick <user> [reason...] - Kick a member",
        Predicate(permissions=Permissions.KICK_MEMBERS),
    )

Signature Rules
---------------
- The first parameter must be annotated exactly ``Client``.
- The second must be annotated exactly ``MessageEvent``.
- Every further parameter must be a supported type (see params.py).
- A sequence (``list[T]``, ``Sequence[T]`` or ``*args: T``) may only
  appear last, and behaves as if the command was variadic.

Violations raise SignatureError from command()/predicated_command().
must_command()/must_predicated_command() abort the process instead,
for startup code where a bad signature is a programming error.

Invocation
----------
invoke() never raises. It returns None on success or the CommandError
describing what went wrong: AccessDenied, ArgCountMismatch, an
UnmarshalError for a bad token, the CommandError the body raised
itself, or InvocationError wrapping anything else the body raised.
"""

from __future__ import annotations

import inspect
import logging
import typing
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Sequence

from chatbot_commands.convert import convert
from chatbot_commands.errors import (
    AccessDenied,
    ArgCountMismatch,
    CommandError,
    InvocationError,
    SignatureError,
)
from chatbot_commands.params import ParamSpec, param_spec, variadic_spec
from chatbot_commands.platform import Client, MessageEvent
from chatbot_commands.predicate import UNRESTRICTED, Predicate

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[Client, MessageEvent, CommandError], None]


class Command(ABC):
    """Base class for anything the dispatcher can invoke."""

    help_text: str = ""

    @abstractmethod
    def invoke(self, client: Client, event: MessageEvent, args: Sequence[str]) -> Optional[CommandError]:
        """Run the command with the argument tokens ``args``.

        ``args`` does not contain the command name, and may be empty.
        Returns None on success, the error otherwise. Never raises.
        """
        ...

    @property
    def error_handler(self) -> Optional[ErrorHandler]:
        """Per-command error handler, overriding the dispatcher's."""
        return None


class FunctionCommand(Command):
    """A command backed by an annotated Python callable.

    Built by command() and friends; the constructor assumes ``params``
    was produced by the signature validator for ``fn``.
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        help_text: str,
        params: Sequence[ParamSpec],
        predicate: Predicate = UNRESTRICTED,
        error_handler: Optional[ErrorHandler] = None,
        spread_last: bool = False,
    ):
        self.fn = fn
        self.help_text = help_text
        self.params = tuple(params)
        self.predicate = predicate
        self._error_handler = error_handler
        self._spread_last = spread_last
        self.logger = logging.getLogger(__name__)

    @property
    def error_handler(self) -> Optional[ErrorHandler]:
        return self._error_handler

    @property
    def variadic(self) -> bool:
        return bool(self.params) and self.params[-1].is_sequence

    def __repr__(self) -> str:
        name = getattr(self.fn, "__qualname__", repr(self.fn))
        params = ", ".join(str(p) for p in self.params)
        return f"<FunctionCommand {name}({params})>"

    def convert_args(self, client: Client, args: Sequence[str]) -> List[Any]:
        """Convert argument tokens into call values, in declaration order.

        Raises ArgCountMismatch or UnmarshalError.
        """
        expected = len(self.params)
        actual = len(args)
        if self.variadic:
            if actual < expected - 1:
                raise ArgCountMismatch(expected, actual)
        elif actual != expected:
            raise ArgCountMismatch(expected, actual)

        values: List[Any] = []
        for position, spec in enumerate(self.params):
            if spec.is_sequence:
                values.append([convert(client, spec.element, token) for token in args[position:]])
            else:
                values.append(convert(client, spec, args[position]))
        return values

    def invoke(self, client: Client, event: MessageEvent, args: Sequence[str]) -> Optional[CommandError]:
        try:
            if not self.predicate.validate(client, event):
                return AccessDenied()

            values = self.convert_args(client, args)
            if self._spread_last:
                values = values[:-1] + values[-1]

            self.fn(client, event, *values)
            return None

        except CommandError as e:
            return e
        except Exception as e:
            self.logger.error(f"Error invoking {self!r}: {e}", exc_info=True)
            return InvocationError(e)


# ─── Signature validation ───────────────────────────────────────────

def _type_hints(fn: Callable[..., Any]) -> dict:
    target = fn
    if not (inspect.isfunction(fn) or inspect.ismethod(fn)) and hasattr(fn, "__call__"):
        target = getattr(fn, "__call__")
    try:
        return typing.get_type_hints(target, include_extras=True)
    except Exception as e:
        raise SignatureError(f"Command: cannot resolve annotations of {fn!r}: {e}") from e


def command(
    fn: Callable[..., Any],
    help_text: str = "",
    predicate: Optional[Predicate] = None,
    error_handler: Optional[ErrorHandler] = None,
) -> FunctionCommand:
    """Create a command from function ``fn``.

    Parameters
    ----------
    fn : callable
        ``fn(client: Client, event: MessageEvent, ...)``. Later
        parameters are command parameters and are converted from
        tokens upon invocation.
    help_text : str
        One-line usage description.
    predicate : Predicate or None
        Who may run the command. None means everyone.
    error_handler : callable or None
        ``handler(client, event, error)`` for this command only.

    Raises
    ------
    SignatureError
        If ``fn`` is not a valid command body. Nothing is built.
    """
    if not callable(fn):
        raise SignatureError(f"Command: expected a callable, got {type(fn).__name__}")

    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError) as e:
        raise SignatureError(f"Command: cannot inspect {fn!r}: {e}") from e

    formal = list(signature.parameters.values())
    if len(formal) < 2:
        raise SignatureError("Command: not enough arguments")

    hints = _type_hints(fn)

    def annotation(parameter: inspect.Parameter) -> Any:
        return hints.get(parameter.name, inspect.Parameter.empty)

    if annotation(formal[0]) is not Client:
        raise SignatureError("Command: fn's first argument is not a Client", 0, "client")
    if annotation(formal[1]) is not MessageEvent:
        raise SignatureError("Command: fn's second argument is not a MessageEvent", 1, "event")
    for position, parameter in enumerate(formal[:2]):
        if parameter.kind not in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD):
            raise SignatureError(f"argument {position} ({parameter.name}): must be positional", position, "keyword")

    params: List[ParamSpec] = []
    spread_last = False
    last = len(formal) - 1
    for position in range(2, len(formal)):
        parameter = formal[position]
        if parameter.kind is parameter.VAR_POSITIONAL:
            if position != last:
                raise SignatureError(
                    f"argument {position} (*{parameter.name}): sequence can only be the last argument",
                    position, "sequence",
                )
            params.append(variadic_spec(parameter.name, annotation(parameter), position))
            spread_last = True
        elif parameter.kind in (parameter.KEYWORD_ONLY, parameter.VAR_KEYWORD):
            raise SignatureError(
                f"argument {position} ({parameter.name}): keyword parameters not supported",
                position, "keyword",
            )
        else:
            params.append(param_spec(parameter.name, annotation(parameter), position, position == last))

    cmd = FunctionCommand(fn, help_text, params, predicate or UNRESTRICTED, error_handler, spread_last)
    logger.debug(f"Built {cmd!r}")
    return cmd


def predicated_command(
    fn: Callable[..., Any],
    help_text: str,
    predicate: Predicate,
    error_handler: Optional[ErrorHandler] = None,
) -> FunctionCommand:
    """Same as command(), with the predicate up front.

    Predicates limit commands to users with certain permissions, or
    perform additional validation before executing a command.
    """
    return command(fn, help_text, predicate, error_handler)


def must_command(
    fn: Callable[..., Any],
    help_text: str = "",
    predicate: Optional[Predicate] = None,
    error_handler: Optional[ErrorHandler] = None,
) -> FunctionCommand:
    """Same as command(), but aborts the process on a bad signature."""
    try:
        return command(fn, help_text, predicate, error_handler)
    except SignatureError as e:
        logger.critical(f"Refusing to start with invalid command {fn!r}: {e}")
        raise SystemExit(f"invalid command {fn!r}: {e}") from e


def must_predicated_command(
    fn: Callable[..., Any],
    help_text: str,
    predicate: Predicate,
    error_handler: Optional[ErrorHandler] = None,
) -> FunctionCommand:
    """Same as predicated_command(), but aborts the process on a bad signature."""
    return must_command(fn, help_text, predicate, error_handler)
