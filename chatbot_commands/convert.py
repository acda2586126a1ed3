"""
Argument Conversion
===================

Turns one text token into one typed value, given the ParamSpec it is
headed for. This is the only place user-typed text becomes data.

    token "42"        + uint8    →  42
    token "-1"        + uint8    →  UnmarshalError (out of range)
    token "<@!1234>"  + user     →  User(id="1234", ...)
    token "1234"      + channel  →  Channel(id="1234", ...)

Numbers and booleans are decoded as JSON literals, then checked
against the target kind and width. That keeps the accepted syntax
small and predictable: "true" but not "yes", "4.5" but not "4,5",
"3" is a valid float but "3.0" is not a valid int.

Entities are resolved in two phases. First the token is matched
against the mention syntax for the entity kind and the embedded id
is looked up. If that fails, the raw token is tried as an id. There
is no search by name.

Sequences are not converted here. The invoker converts each trailing
token against the element spec and collects the list.

Every failure is raised as UnmarshalError (ConversionError is the
same class) wrapping the underlying cause.
"""

from __future__ import annotations

import json
import logging
import math
import re
import struct
from typing import Any, Callable, Dict, Optional

from chatbot_commands.errors import EntityResolutionError, UnmarshalError, UnsupportedTypeError
from chatbot_commands.params import Kind, ParamSpec
from chatbot_commands.platform import Client, DirectoryError

logger = logging.getLogger(__name__)

USER_MENTION = re.compile(r'<@!?(\d+)>')
CHANNEL_MENTION = re.compile(r'<#(\d+)>')


# ─── JSON literals ──────────────────────────────────────────────────

def _reject_constant(name: str):
    raise ValueError(f"{name} is not a valid number")


def _decode(token: str) -> Any:
    return json.loads(token, parse_constant=_reject_constant)


def _decode_bool(client: Client, spec: ParamSpec, token: str) -> bool:
    value = _decode(token)
    if not isinstance(value, bool):
        raise TypeError(f"cannot unmarshal {token!r} into {spec}")
    return value


def _decode_int(client: Client, spec: ParamSpec, token: str) -> int:
    value = _decode(token)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"cannot unmarshal {token!r} into {spec}")
    low, high = spec.bounds()
    if not low <= value <= high:
        raise OverflowError(f"{token} overflows {spec}")
    return value


def _decode_float(client: Client, spec: ParamSpec, token: str) -> float:
    value = _decode(token)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"cannot unmarshal {token!r} into {spec}")
    value = float(value)
    if math.isinf(value):
        raise OverflowError(f"{token} overflows {spec}")
    if spec.bits == 32:
        # struct raises OverflowError past the single precision range
        value = struct.unpack('<f', struct.pack('<f', value))[0]
    return value


def _decode_string(client: Client, spec: ParamSpec, token: str) -> str:
    return token


# ─── Entities ───────────────────────────────────────────────────────

def _lookup(fetch: Callable[[str], Any], entity_id: str) -> Any:
    try:
        return fetch(entity_id)
    except DirectoryError as e:
        logger.debug(f"Directory lookup for {entity_id!r} failed: {e}")
        return None


def _resolve(client: Client, spec: ParamSpec, token: str) -> Any:
    if spec.kind is Kind.USER:
        pattern, fetch = USER_MENTION, client.user
    else:
        pattern, fetch = CHANNEL_MENTION, client.channel

    entity = None
    match = pattern.fullmatch(token)
    if match is not None:
        entity = _lookup(fetch, match.group(1))
    if entity is None:
        entity = _lookup(fetch, token)
    if entity is None:
        raise EntityResolutionError(token, spec.kind.value)
    return entity


# ─── Decoder table ──────────────────────────────────────────────────

DECODERS: Dict[Kind, Callable[[Client, ParamSpec, str], Any]] = {
    Kind.STRING: _decode_string,
    Kind.BOOL: _decode_bool,
    Kind.INT: _decode_int,
    Kind.UINT: _decode_int,
    Kind.FLOAT: _decode_float,
    Kind.USER: _resolve,
    Kind.CHANNEL: _resolve,
}


def convert(client: Optional[Client], spec: ParamSpec, token: str) -> Any:
    """Convert ``token`` into a value of the type ``spec`` describes.

    Parameters
    ----------
    client : Client or None
        Used for entity lookups only; scalar kinds never touch it.
    spec : ParamSpec
        Target type. Sequence specs are not accepted; convert their
        elements one by one instead.
    token : str
        One whitespace-free argument token.

    Raises
    ------
    UnmarshalError
        On any failure, including EntityResolutionError and
        UnsupportedTypeError.
    """
    decoder = DECODERS.get(spec.kind)
    if decoder is None:
        raise UnsupportedTypeError(spec)
    try:
        return decoder(client, spec, token)
    except UnmarshalError:
        raise
    except Exception as e:
        raise UnmarshalError(e) from e
