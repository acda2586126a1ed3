"""
Tests for the command registry and the message dispatcher.

Run with:  python -m pytest chatbot_commands/test_dispatcher.py -v
"""

import logging

import pytest

from chatbot_commands.command import Command
from chatbot_commands.dispatcher import dispatch, make_handler, tokenize
from chatbot_commands.errors import (
    AccessDenied,
    ArgCountMismatch,
    RegistryConflict,
    SignatureError,
    UnknownCommand,
    UnmarshalError,
)
from chatbot_commands.platform import (
    Client,
    DirectoryError,
    Guild,
    MemoryClient,
    MessageEvent,
    Permissions,
    User,
)
from chatbot_commands.predicate import Predicate
from chatbot_commands.registry import CommandRegistry

BOT = User("1", "bot", bot=True)
ALICE = User("1001", "alice")


class FakeCommand(Command):
    """Records invocations and returns a canned result."""

    def __init__(self, result=None, handler=None, help_text=""):
        self.calls = []
        self.result = result
        self.handler = handler
        self.help_text = help_text

    def invoke(self, client, event, args):
        self.calls.append(list(args))
        return self.result

    @property
    def error_handler(self):
        return self.handler


class HandlerSpy:
    def __init__(self):
        self.errors = []

    def __call__(self, client, event, error):
        self.errors.append(error)


@pytest.fixture
def client():
    c = MemoryClient(BOT)
    c.add_user(ALICE)
    c.add_guild(Guild("500", owner_id="1000"))
    return c


@pytest.fixture
def registry():
    return CommandRegistry()


def said(content, author=ALICE):
    return MessageEvent(author=author, content=content, guild_id="500")


# ============================================================
# Registry
# ============================================================

class TestRegistry:
    """Tests for names, aliases and lookups."""

    def test_register_and_lookup(self, registry):
        ping = FakeCommand()
        assert registry.register("ping", ping) is ping
        assert registry.lookup("ping") is ping
        assert registry.lookup("pong") is None
        assert "ping" in registry
        assert len(registry) == 1

    def test_duplicate_name(self, registry):
        first = FakeCommand()
        registry.register("ping", first)
        with pytest.raises(RegistryConflict, match="ping already exists in register"):
            registry.register("ping", FakeCommand())
        assert registry.lookup("ping") is first

    def test_name_taken_by_alias(self, registry):
        registry.register("ping", FakeCommand())
        registry.alias("p", "ping")
        with pytest.raises(RegistryConflict):
            registry.register("p", FakeCommand())

    def test_alias(self, registry):
        ping = FakeCommand()
        registry.register("ping", ping)
        registry.alias("p", "ping")
        assert registry.lookup("p") is ping
        assert registry.canonicalize("p") == "ping"
        assert registry.canonicalize("ping") == "ping"
        assert registry.canonicalize("nothing") == "nothing"

    def test_alias_unknown_destination(self, registry):
        with pytest.raises(UnknownCommand):
            registry.alias("p", "ping")
        assert "p" not in registry

    def test_alias_name_taken(self, registry):
        registry.register("ping", FakeCommand())
        registry.register("pong", FakeCommand())
        with pytest.raises(RegistryConflict):
            registry.alias("pong", "ping")
        registry.alias("p", "ping")
        with pytest.raises(RegistryConflict):
            registry.alias("p", "pong")
        assert registry.canonicalize("p") == "ping"

    def test_alias_of_alias_points_at_command(self, registry):
        ping = FakeCommand()
        registry.register("ping", ping)
        registry.alias("p", "ping")
        registry.alias("pp", "p")
        assert registry.aliases["pp"] == "ping"
        assert registry.canonicalize("pp") == "ping"
        assert registry.lookup("pp") is ping

    def test_list_commands_skips_aliases(self, registry):
        registry.register("roll", FakeCommand(help_text="roll a die"))
        registry.register("add", FakeCommand(help_text="add numbers"))
        registry.alias("r", "roll")
        assert registry.list_commands() == [("add", "add numbers"), ("roll", "roll a die")]
        assert len(registry) == 2

    def test_aliases_of(self, registry):
        registry.register("roll", FakeCommand())
        registry.alias("r", "roll")
        registry.alias("dice", "r")
        assert registry.aliases_of("roll") == ["dice", "r"]
        assert registry.aliases_of("r") == ["dice", "r"]
        assert registry.aliases_of("missing") == []


class TestDecorator:
    """Tests for @registry.command."""

    def test_registers_and_returns_function(self, registry):
        @registry.command("add", "add <a> <b>", aliases=["plus", "+"])
        def add(client: Client, event: MessageEvent, a: int, b: int):
            return a + b

        assert add(None, None, 2, 3) == 5
        assert registry.lookup("add").help_text == "add <a> <b>"
        assert registry.lookup("plus") is registry.lookup("add")
        assert registry.aliases_of("add") == ["+", "plus"]

    def test_bad_signature_registers_nothing(self, registry):
        with pytest.raises(SignatureError):
            @registry.command("bad")
            def bad(client: Client, event: MessageEvent, options: dict):
                pass

        assert "bad" not in registry

    def test_predicate_is_attached(self, registry):
        predicate = Predicate(permissions=Permissions.KICK_MEMBERS)

        @registry.command("kick", predicate=predicate)
        def kick(client: Client, event: MessageEvent, who: User):
            pass

        assert registry.lookup("kick").predicate is predicate

    def test_alias_conflict_registers_nothing(self, registry):
        registry.register("x", FakeCommand())

        def add(client: Client, event: MessageEvent, a: int, b: int):
            pass

        with pytest.raises(RegistryConflict):
            registry.command("add", aliases=["plus", "x"])(add)
        assert "add" not in registry
        assert "plus" not in registry

        registry.command("add", aliases=["plus"])(add)
        assert registry.lookup("plus") is registry.lookup("add")

    def test_alias_equal_to_name(self, registry):
        with pytest.raises(RegistryConflict):
            @registry.command("add", aliases=["add"])
            def add(client: Client, event: MessageEvent):
                pass

        assert "add" not in registry

    def test_duplicate_aliases(self, registry):
        with pytest.raises(RegistryConflict):
            @registry.command("add", aliases=["plus", "plus"])
            def add(client: Client, event: MessageEvent):
                pass

        assert len(registry) == 0
        assert registry.aliases == {}


# ============================================================
# Dispatch
# ============================================================

class TestTokenize:

    def test_single_spaces(self):
        assert tokenize("!add 1 2") == ["!add", "1", "2"]

    def test_consecutive_spaces_give_empty_tokens(self):
        assert tokenize("!add  1") == ["!add", "", "1"]

    def test_no_quoting(self):
        assert tokenize('!say "hello world"') == ["!say", '"hello', 'world"']


class TestDispatch:
    """Tests for routing message events to commands."""

    def test_dispatches_arguments(self, registry, client):
        ping = registry.register("ping", FakeCommand())
        dispatch(registry, client, said("!ping a b"), "!")
        assert ping.calls == [["a", "b"]]

    def test_no_arguments(self, registry, client):
        ping = registry.register("ping", FakeCommand())
        dispatch(registry, client, said("!ping"), "!")
        assert ping.calls == [[]]

    def test_own_messages_are_ignored(self, registry, client):
        ping = registry.register("ping", FakeCommand())
        dispatch(registry, client, said("!ping", author=BOT), "!")
        assert ping.calls == []

    def test_self_id_failure_drops_event(self, registry, caplog):
        class NoIdentity(MemoryClient):
            def self_id(self):
                raise DirectoryError("gateway down")

        ping = registry.register("ping", FakeCommand())
        with caplog.at_level(logging.DEBUG, logger="chatbot_commands.dispatcher"):
            registry.handler("!")(NoIdentity(BOT), said("!ping"))
        assert ping.calls == []
        assert "ignoring event" in caplog.text

    def test_messages_without_prefix_are_ignored(self, registry, client):
        ping = registry.register("ping", FakeCommand())
        dispatch(registry, client, said("ping"), "!")
        dispatch(registry, client, said(" !ping"), "!")
        assert ping.calls == []

    def test_unknown_command_is_silent(self, registry, client):
        spy = HandlerSpy()
        dispatch(registry, client, said("!nothing here"), "!", spy)
        assert spy.errors == []

    def test_alias_dispatch(self, registry, client):
        roll = registry.register("roll", FakeCommand())
        registry.alias("r", "roll")
        dispatch(registry, client, said("!r 20"), "!")
        assert roll.calls == [["20"]]

    def test_multi_character_prefix(self, registry, client):
        ping = registry.register("ping", FakeCommand())
        dispatch(registry, client, said("bot, ping"), "bot,")
        dispatch(registry, client, said("bot,ping x"), "bot,")
        assert ping.calls == [["x"]]

    def test_only_first_prefix_occurrence_is_stripped(self, registry, client):
        weird = registry.register("a!b", FakeCommand())
        dispatch(registry, client, said("!a!b"), "!")
        assert weird.calls == [[]]

    def test_fallback_handler(self, registry, client):
        err = AccessDenied()
        registry.register("ping", FakeCommand(result=err))
        spy = HandlerSpy()
        dispatch(registry, client, said("!ping"), "!", spy)
        assert spy.errors == [err]

    def test_command_handler_takes_precedence(self, registry, client):
        own, fallback = HandlerSpy(), HandlerSpy()
        err = AccessDenied()
        registry.register("ping", FakeCommand(result=err, handler=own))
        dispatch(registry, client, said("!ping"), "!", fallback)
        assert own.errors == [err]
        assert fallback.errors == []

    def test_success_reaches_no_handler(self, registry, client):
        spy = HandlerSpy()
        registry.register("ping", FakeCommand(handler=spy))
        dispatch(registry, client, said("!ping"), "!", spy)
        assert spy.errors == []

    def test_error_without_handler_is_dropped(self, registry, client, caplog):
        registry.register("ping", FakeCommand(result=AccessDenied()))
        with caplog.at_level(logging.DEBUG, logger="chatbot_commands.dispatcher"):
            dispatch(registry, client, said("!ping"), "!")
        assert "Dropping error" in caplog.text

    def test_failing_handler_is_contained(self, registry, client, caplog):
        def broken(client, event, error):
            raise RuntimeError("handler broke")

        registry.register("ping", FakeCommand(result=AccessDenied()))
        with caplog.at_level(logging.ERROR, logger="chatbot_commands.dispatcher"):
            dispatch(registry, client, said("!ping"), "!", broken)
        assert "handler broke" in caplog.text


class TestEndToEnd:
    """Real FunctionCommands behind the dispatcher."""

    def test_typed_command(self, registry, client):
        results = []

        @registry.command("add", aliases=["plus"])
        def add(client: Client, event: MessageEvent, a: int, b: int):
            results.append(a + b)

        dispatch(registry, client, said("!plus 2 40"), "!")
        assert results == [42]

    def test_conversion_error_goes_to_handler(self, registry, client):
        spy = HandlerSpy()

        @registry.command("add")
        def add(client: Client, event: MessageEvent, a: int, b: int):
            pass

        dispatch(registry, client, said("!add 300 x"), "!", spy)
        assert len(spy.errors) == 1
        assert isinstance(spy.errors[0], UnmarshalError)

    def test_consecutive_spaces_count_as_arguments(self, registry, client):
        spy = HandlerSpy()

        @registry.command("add")
        def add(client: Client, event: MessageEvent, a: int, b: int):
            pass

        dispatch(registry, client, said("!add 1  2"), "!", spy)
        err = spy.errors[0]
        assert isinstance(err, ArgCountMismatch)
        assert (err.expected, err.got) == (2, 3)

    def test_per_command_error_handler(self, registry, client):
        own, fallback = HandlerSpy(), HandlerSpy()

        @registry.command(
            "kick", predicate=Predicate(permissions=Permissions.KICK_MEMBERS), error_handler=own,
        )
        def kick(client: Client, event: MessageEvent, who: User):
            pass

        dispatch(registry, client, said("!kick <@!1001>"), "!", fallback)
        assert [type(e) for e in own.errors] == [AccessDenied]
        assert fallback.errors == []

    def test_mention_argument(self, registry, client):
        seen = []

        @registry.command("whois")
        def whois(client: Client, event: MessageEvent, who: User):
            seen.append(who.username)

        dispatch(registry, client, said("!whois <@!1001>"), "!")
        assert seen == ["alice"]

    def test_make_handler(self, registry, client):
        results = []

        @registry.command("echo")
        def echo(client: Client, event: MessageEvent, *words: str):
            results.append(words)

        on_message = make_handler(registry, "?")
        on_message(client, said("?echo hi there"))
        registry.handler("?")(client, said("?echo"))
        registry.handle(client, said("?echo again"), "?")
        assert results == [("hi", "there"), (), ("again",)]
