"""
Parameter Descriptors
=====================

The closed set of parameter types a command body may declare, and the
ParamSpec records the signature validator builds from them.

Python has one ``int`` and one ``float``. Commands that care about the
width of a numeric argument annotate with one of the markers below,
which are plain ``typing.Annotated`` aliases and therefore still read
as ``int`` / ``float`` to type checkers:

    def setvolume(client: Client, event: MessageEvent, level: uint8): ...

Unmarked ``int`` is a signed 64-bit integer and unmarked ``float`` is
a 64-bit float. ``uint`` is an unsigned 64-bit integer.

Supported kinds
---------------
    string      str
    bool        bool
    int         int, int8, int16, int32, int64
    uint        uint, uint8, uint16, uint32, uint64
    float       float, float32, float64
    user        User     (resolved from a mention or an id)
    channel     Channel  (resolved from a mention or an id)
    sequence    list[T] / Sequence[T] as the last parameter, or *args: T

Everything else (classes, dicts, callables, tuples, unions, queues,
buffers, missing annotations) is rejected at registration time with
a SignatureError naming the position and the category.
"""

from __future__ import annotations

import asyncio
import collections.abc
import inspect
import queue
import types
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Optional, Union, get_args, get_origin

from chatbot_commands.errors import SignatureError
from chatbot_commands.platform import Channel, User


class Kind(Enum):
    STRING = "string"
    BOOL = "bool"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    USER = "user"
    CHANNEL = "channel"
    SEQUENCE = "sequence"


@dataclass(frozen=True)
class Width:
    """Annotation metadata fixing the kind and bit width of a number."""
    kind: Kind
    bits: int


int8 = Annotated[int, Width(Kind.INT, 8)]
int16 = Annotated[int, Width(Kind.INT, 16)]
int32 = Annotated[int, Width(Kind.INT, 32)]
int64 = Annotated[int, Width(Kind.INT, 64)]
uint8 = Annotated[int, Width(Kind.UINT, 8)]
uint16 = Annotated[int, Width(Kind.UINT, 16)]
uint32 = Annotated[int, Width(Kind.UINT, 32)]
uint64 = Annotated[int, Width(Kind.UINT, 64)]
uint = uint64
float32 = Annotated[float, Width(Kind.FLOAT, 32)]
float64 = Annotated[float, Width(Kind.FLOAT, 64)]

# Unmarked Python types and the entity records
_PLAIN_TYPES = {
    str: (Kind.STRING, 0),
    bool: (Kind.BOOL, 0),
    int: (Kind.INT, 64),
    float: (Kind.FLOAT, 64),
    User: (Kind.USER, 0),
    Channel: (Kind.CHANNEL, 0),
}

_VALID_WIDTHS = {
    Kind.INT: (8, 16, 32, 64),
    Kind.UINT: (8, 16, 32, 64),
    Kind.FLOAT: (32, 64),
}

_UNION_TYPES = {Union, getattr(types, "UnionType", Union)}
_SEQUENCE_ORIGINS = {list, collections.abc.Sequence}
_MAP_ORIGINS = {dict, collections.abc.Mapping, collections.abc.MutableMapping}
_CHANNEL_TYPES = (queue.Queue, queue.SimpleQueue, asyncio.Queue)
_BUFFER_TYPES = (memoryview, bytearray, bytes)


@dataclass(frozen=True)
class ParamSpec:
    """One declared command parameter.

    Attributes
    ----------
    name : str
        Formal parameter name, for messages and help output.
    kind : Kind
        What the token is converted into.
    bits : int
        Width for numeric kinds, 0 otherwise.
    element : ParamSpec or None
        Element spec for Kind.SEQUENCE.
    """
    name: str
    kind: Kind
    bits: int = 0
    element: Optional[ParamSpec] = None

    @property
    def is_sequence(self) -> bool:
        return self.kind is Kind.SEQUENCE

    def bounds(self) -> tuple[int, int]:
        """Inclusive value range of an integer spec."""
        if self.kind is Kind.UINT:
            return 0, (1 << self.bits) - 1
        if self.kind is Kind.INT:
            return -(1 << (self.bits - 1)), (1 << (self.bits - 1)) - 1
        raise TypeError(f"{self} has no integer bounds")

    def __str__(self) -> str:
        if self.kind is Kind.SEQUENCE:
            return f"sequence of {self.element}"
        if self.kind in (Kind.INT, Kind.UINT, Kind.FLOAT):
            return f"{self.kind.value}{self.bits}"
        return self.kind.value


def _category(annotation: Any) -> str:
    """Name the unsupported category an annotation falls into."""
    origin = get_origin(annotation)
    base = origin or annotation
    if annotation in (inspect.Parameter.empty, Any, object):
        return "dynamically typed"
    if origin in _UNION_TYPES:
        return "union"
    if base in _MAP_ORIGINS:
        return "map"
    if base is collections.abc.Callable or inspect.isfunction(annotation):
        return "function"
    if base is tuple:
        return "fixed-size array"
    if isinstance(base, type) and issubclass(base, _BUFFER_TYPES):
        return "raw memory address"
    if isinstance(base, type) and issubclass(base, _CHANNEL_TYPES):
        return "channel"
    if isinstance(base, type):
        return "struct"
    return f"unsupported annotation {annotation!r}"


def _scalar(name: str, annotation: Any) -> Optional[ParamSpec]:
    """ParamSpec for a non-sequence annotation, or None if unsupported."""
    if get_origin(annotation) is Annotated:
        base, *metadata = get_args(annotation)
        for meta in metadata:
            if isinstance(meta, Width) and meta.bits in _VALID_WIDTHS.get(meta.kind, ()):
                expected = float if meta.kind is Kind.FLOAT else int
                if base is expected:
                    return ParamSpec(name, meta.kind, meta.bits)
                return None
        annotation = base
    try:
        plain = _PLAIN_TYPES.get(annotation)
    except TypeError:
        # unhashable annotation objects
        return None
    if plain is None:
        return None
    kind, bits = plain
    return ParamSpec(name, kind, bits)


def _unwrap_annotated(annotation: Any) -> Any:
    if get_origin(annotation) is Annotated:
        return get_args(annotation)[0]
    return annotation


def param_spec(name: str, annotation: Any, position: int, last: bool) -> ParamSpec:
    """Build the ParamSpec for formal parameter ``position``.

    Raises SignatureError when the annotation is not supported, or when
    a sequence shows up anywhere but the last position.
    """
    spec = _scalar(name, annotation)
    if spec is not None:
        return spec

    bare = _unwrap_annotated(annotation)
    if bare is list or get_origin(bare) in _SEQUENCE_ORIGINS:
        if not last:
            raise SignatureError(
                f"argument {position} ({name}): sequence can only be the last argument",
                position, "sequence",
            )
        args = get_args(bare)
        element_annotation = args[0] if args else Any
        element = _scalar(name, element_annotation)
        if element is None:
            category = _category(element_annotation)
            if get_origin(_unwrap_annotated(element_annotation)) in _SEQUENCE_ORIGINS:
                category = "sequence"
            raise SignatureError(
                f"argument {position} ({name}): sequence element of kind {category} not supported",
                position, category,
            )
        return ParamSpec(name, Kind.SEQUENCE, element=element)

    category = _category(annotation)
    raise SignatureError(
        f"argument {position} ({name}): argument of kind {category} not supported",
        position, category,
    )


def variadic_spec(name: str, annotation: Any, position: int) -> ParamSpec:
    """ParamSpec for a ``*args: T`` parameter (a sequence of T)."""
    element = _scalar(name, annotation)
    if element is None:
        category = _category(annotation)
        raise SignatureError(
            f"argument {position} (*{name}): sequence element of kind {category} not supported",
            position, category,
        )
    return ParamSpec(name, Kind.SEQUENCE, element=element)
