"""
Command Errors
==============

Every failure the command system can report, in one place.

Errors that are supposed to be introspectable at runtime live here:
things like failure of the argument parser (because the user fed it
bad data) or a permission check that did not pass. Handlers receive
these as values and can branch on the class.

    CommandError
    ├── ValidationError        signature rejected at registration
    │   └── SignatureError
    ├── RegistryError          registration-time name problems
    │   ├── RegistryConflict
    │   └── UnknownCommand
    ├── AccessDenied           predicate said no
    ├── ArgCountMismatch       wrong number of argument tokens
    ├── UnmarshalError         token could not become a typed value
    │   ├── EntityResolutionError
    │   └── UnsupportedTypeError
    └── InvocationError        anything else the command body raised

Registration-time errors (ValidationError, RegistryError) are raised.
Runtime errors are *returned* from Command.invoke() and routed to an
error handler; they never escape the dispatcher.
"""

from __future__ import annotations


class CommandError(Exception):
    """Base class for everything the command system reports."""


# ─── Registration time ──────────────────────────────────────────────

class ValidationError(CommandError):
    """A callable cannot be turned into a command."""


class SignatureError(ValidationError):
    """The callable's parameter list is not acceptable.

    ``position`` is the formal parameter index (0 = client handle) when
    the problem is tied to one parameter, else None.
    """

    def __init__(self, message: str, position: int | None = None, category: str | None = None):
        super().__init__(message)
        self.position = position
        self.category = category


class RegistryError(CommandError):
    """A name could not be registered or aliased."""


class RegistryConflict(RegistryError):
    """The name already resolves to a registered command."""

    def __init__(self, name: str):
        super().__init__(f"{name} already exists in register")
        self.name = name


class UnknownCommand(RegistryError, LookupError):
    """An alias destination does not resolve to a command."""

    def __init__(self, name: str):
        super().__init__(f"{name} doesn't exist in register")
        self.name = name


# ─── Runtime ────────────────────────────────────────────────────────

class AccessDenied(CommandError):
    """The invoking user does not satisfy the command predicate."""

    def __init__(self):
        super().__init__("access denied")


class ArgCountMismatch(CommandError):
    """The number of argument tokens does not fit the command."""

    def __init__(self, expected: int, got: int):
        super().__init__(f"expected {expected} arguments but got {got}")
        self.expected = expected
        self.got = got

    @property
    def actual(self) -> int:
        return self.got


class UnmarshalError(CommandError):
    """Argument parser failure.

    ``why`` (probably) has more information about what actually happened.
    """

    def __init__(self, why: BaseException):
        super().__init__(f"cannot unmarshal arguments: {why}")
        self.why = why


ConversionError = UnmarshalError


class EntityResolutionError(UnmarshalError):
    """Neither the mention syntax nor the raw id resolved an entity."""

    def __init__(self, token: str, kind: str):
        super().__init__(LookupError(f"cannot resolve {kind} from {token!r}"))
        self.token = token
        self.kind = kind


class UnsupportedTypeError(UnmarshalError):
    """The conversion engine has no decoder for the target type."""

    def __init__(self, target):
        super().__init__(TypeError(f"unsupported type {target}"))
        self.target = target


class InvocationError(CommandError):
    """An uncontrolled fault raised while invoking a command."""

    def __init__(self, cause: BaseException):
        super().__init__(f"command failed: {cause!r}")
        self.cause = cause
