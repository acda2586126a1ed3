"""
Tests for argument conversion.

Run with:  python -m pytest chatbot_commands/test_convert.py -v
"""

import json

import pytest

from chatbot_commands.convert import convert
from chatbot_commands.errors import (
    ConversionError,
    EntityResolutionError,
    UnmarshalError,
    UnsupportedTypeError,
)
from chatbot_commands.params import Kind, ParamSpec
from chatbot_commands.platform import Channel, MemoryClient, User


def spec(kind, bits=0):
    return ParamSpec("value", kind, bits)


@pytest.fixture
def client():
    c = MemoryClient(User("1", "bot", bot=True))
    c.add_user(User("1001", "alice"))
    c.add_channel(Channel("2000", "general", "500"))
    return c


# ============================================================
# Scalars
# ============================================================

class TestScalars:
    """Tests for string, boolean and numeric tokens."""

    @pytest.mark.parametrize("token, target, expected", [
        ("8192", spec(Kind.UINT, 64), 8192),
        ("-3", spec(Kind.INT, 64), -3),
        ("yes", spec(Kind.STRING), "yes"),
        ("true", spec(Kind.BOOL), True),
        ("false", spec(Kind.BOOL), False),
        ("2.3", spec(Kind.FLOAT, 64), 2.3),
        ("3.1415926", spec(Kind.FLOAT, 64), 3.1415926),
        ("4.5", spec(Kind.FLOAT, 32), 4.5),
    ])
    def test_valid_tokens(self, token, target, expected):
        value = convert(None, target, token)
        assert value == expected
        assert type(value) is type(expected)

    def test_string_is_passed_through_untouched(self):
        assert convert(None, spec(Kind.STRING), "<@!1001>") == "<@!1001>"
        assert convert(None, spec(Kind.STRING), "") == ""

    def test_integer_token_is_a_valid_float(self):
        value = convert(None, spec(Kind.FLOAT, 64), "3")
        assert value == 3.0
        assert isinstance(value, float)

    def test_float32_rounds_to_single_precision(self):
        value = convert(None, spec(Kind.FLOAT, 32), "2.3")
        assert value != 2.3
        assert value == pytest.approx(2.3, rel=1e-6)

    @pytest.mark.parametrize("token, target", [
        ("abc", spec(Kind.INT, 64)),
        ("3.0", spec(Kind.INT, 64)),
        ("1e2", spec(Kind.INT, 64)),
        ("true", spec(Kind.INT, 64)),
        ("\"3\"", spec(Kind.INT, 64)),
        ("1", spec(Kind.BOOL)),
        ("yes", spec(Kind.BOOL)),
        ("True", spec(Kind.BOOL)),
        ("false", spec(Kind.FLOAT, 64)),
        ("NaN", spec(Kind.FLOAT, 64)),
        ("Infinity", spec(Kind.FLOAT, 64)),
        ("4,5", spec(Kind.FLOAT, 64)),
        ("", spec(Kind.INT, 64)),
    ])
    def test_malformed_tokens(self, token, target):
        with pytest.raises(UnmarshalError):
            convert(None, target, token)

    def test_error_wraps_underlying_cause(self):
        with pytest.raises(UnmarshalError) as excinfo:
            convert(None, spec(Kind.INT, 64), "abc")
        assert isinstance(excinfo.value.why, json.JSONDecodeError)
        assert "cannot unmarshal arguments" in str(excinfo.value)

    def test_conversion_error_is_unmarshal_error(self):
        assert ConversionError is UnmarshalError


# ============================================================
# Integer widths
# ============================================================

class TestWidths:
    """In-range tokens convert exactly; out-of-range tokens fail."""

    @pytest.mark.parametrize("kind, bits, token", [
        (Kind.INT, 8, "127"),
        (Kind.INT, 8, "-128"),
        (Kind.INT, 16, "-32768"),
        (Kind.INT, 32, "2147483647"),
        (Kind.INT, 64, "-9223372036854775808"),
        (Kind.UINT, 8, "255"),
        (Kind.UINT, 8, "0"),
        (Kind.UINT, 16, "65535"),
        (Kind.UINT, 64, "18446744073709551615"),
    ])
    def test_in_range(self, kind, bits, token):
        assert convert(None, spec(kind, bits), token) == int(token)

    @pytest.mark.parametrize("kind, bits, token", [
        (Kind.INT, 8, "128"),
        (Kind.INT, 8, "-129"),
        (Kind.INT, 32, "2147483648"),
        (Kind.INT, 64, "9223372036854775808"),
        (Kind.UINT, 8, "256"),
        (Kind.UINT, 8, "-1"),
        (Kind.UINT, 64, "18446744073709551616"),
    ])
    def test_out_of_range(self, kind, bits, token):
        with pytest.raises(ConversionError) as excinfo:
            convert(None, spec(kind, bits), token)
        assert isinstance(excinfo.value.why, OverflowError)

    def test_float64_overflow(self):
        with pytest.raises(ConversionError) as excinfo:
            convert(None, spec(Kind.FLOAT, 64), "1e400")
        assert isinstance(excinfo.value.why, OverflowError)

    def test_float32_overflow(self):
        with pytest.raises(ConversionError) as excinfo:
            convert(None, spec(Kind.FLOAT, 32), "1e39")
        assert isinstance(excinfo.value.why, OverflowError)

    def test_float32_max_fits(self):
        assert convert(None, spec(Kind.FLOAT, 32), "3.0e38") == pytest.approx(3.0e38, rel=1e-6)


# ============================================================
# Entities
# ============================================================

class RecordingClient(MemoryClient):
    """MemoryClient that remembers every user id it was asked for."""

    def __init__(self, me):
        super().__init__(me)
        self.asked = []

    def user(self, user_id):
        self.asked.append(user_id)
        return super().user(user_id)


class TestEntities:
    """Tests for mention and id resolution."""

    @pytest.mark.parametrize("token", ["<@!1001>", "<@1001>", "1001"])
    def test_user(self, client, token):
        user = convert(client, spec(Kind.USER), token)
        assert user == User("1001", "alice")

    @pytest.mark.parametrize("token", ["<#2000>", "2000"])
    def test_channel(self, client, token):
        channel = convert(client, spec(Kind.CHANNEL), token)
        assert channel.name == "general"

    @pytest.mark.parametrize("kind, token", [
        (Kind.USER, "<@!1001>\n"),
        (Kind.USER, " <@1001>"),
        (Kind.USER, "<@1001>x"),
        (Kind.CHANNEL, "<#2000>\n"),
    ])
    def test_mention_must_be_the_whole_token(self, client, kind, token):
        with pytest.raises(EntityResolutionError):
            convert(client, spec(kind), token)

    def test_user_mention_is_not_a_channel(self, client):
        with pytest.raises(EntityResolutionError):
            convert(client, spec(Kind.CHANNEL), "<@!2000>")

    def test_unknown_user(self, client):
        with pytest.raises(EntityResolutionError) as excinfo:
            convert(client, spec(Kind.USER), "<@!999>")
        assert excinfo.value.token == "<@!999>"
        assert excinfo.value.kind == "user"
        assert isinstance(excinfo.value, UnmarshalError)

    def test_no_name_search(self, client):
        with pytest.raises(EntityResolutionError) as excinfo:
            convert(client, spec(Kind.USER), "alice")
        assert excinfo.value.kind == "user"

    def test_unknown_channel_names_kind(self, client):
        with pytest.raises(EntityResolutionError) as excinfo:
            convert(client, spec(Kind.CHANNEL), "#general")
        assert excinfo.value.kind == "channel"
        assert excinfo.value.token == "#general"

    def test_mention_then_raw_token(self):
        client = RecordingClient(User("1"))
        with pytest.raises(EntityResolutionError):
            convert(client, spec(Kind.USER), "<@!999>")
        assert client.asked == ["999", "<@!999>"]

    def test_raw_token_only_when_not_a_mention(self):
        client = RecordingClient(User("1"))
        client.add_user(User("42", "zaphod"))
        assert convert(client, spec(Kind.USER), "42").username == "zaphod"
        assert client.asked == ["42"]

    def test_directory_outage_is_a_resolution_error(self, client):
        client.available = False
        with pytest.raises(EntityResolutionError):
            convert(client, spec(Kind.USER), "<@!1001>")


# ============================================================
# Unsupported targets
# ============================================================

class TestUnsupported:

    def test_sequence_spec_is_not_converted_directly(self):
        target = ParamSpec("words", Kind.SEQUENCE, element=spec(Kind.STRING))
        with pytest.raises(UnsupportedTypeError):
            convert(None, target, "hello")
