"""
Chatbot Command System
======================

A command dispatch framework for chat-platform bots. Write a command
as an ordinary Python function with annotated parameters; the
framework checks the signature once at startup, and on every message
turns the text after the command name into the declared types,
checks permissions, and calls the function.

Architecture Overview
---------------------
    ┌─────────────────┐     ┌──────────────┐     ┌───────────────────┐
    │  Chat client     │────►│  Dispatcher  │────►│  CommandRegistry  │
    │  message event   │     │  (prefix,    │     │  name / alias     │
    └─────────────────┘     │   tokenize)  │     └─────────┬─────────┘
                            └──────────────┘               │
                                                   ┌───────▼────────┐
                                                   │ FunctionCommand│
                                                   │  predicate     │
                                                   │  convert args  │
                                                   │  call body     │
                                                   └───────┬────────┘
                                                           │ error?
                                                   ┌───────▼────────┐
                                                   │ error handler  │
                                                   └────────────────┘

Key design principle: nothing a user types can crash the bot. Bad
arguments, missing permissions and exceptions inside a command body
all come back as CommandError values and go to an error handler.

Quick Start
-----------
    from chatbot_commands import (
        Client, CommandRegistry, MessageEvent, User, uint8,
    )

    registry = CommandRegistry()

    @registry.command("volume", "volume <0-255> - Set the volume", aliases=["vol"])
    def volume(client: Client, event: MessageEvent, level: uint8):
        ...

    @registry.command("whois", "whois <user> - Describe a user")
    def whois(client: Client, event: MessageEvent, who: User):
        ...

    def report(client, event, error):
        print(f"{event.author.username}: {error}")

    # Hook into the chat client's message-created event:
    on_message = registry.handler("!", report)

The chat client itself is outside this package. Wrap it in a Client
subclass (see platform.py) that answers the directory lookups.

Module Structure
----------------
    chatbot_commands/
    ├── __init__.py      ← This file. Public API.
    ├── errors.py        ← CommandError and the error taxonomy.
    ├── platform.py      ← Client capability, entities, MemoryClient.
    ├── params.py        ← Supported parameter types, ParamSpec.
    ├── convert.py       ← Token → typed value.
    ├── predicate.py     ← Permission checks.
    ├── command.py       ← Command, FunctionCommand, signature validation.
    ├── registry.py      ← CommandRegistry: names and aliases.
    ├── dispatcher.py    ← dispatch(): the message event entry point.
    └── demo.py          ← Interactive demo against a MemoryClient.

Configuration (prefix, console verbosity) lives in the top-level
config_manager module.

Dependencies
------------
The package itself is standard library only.
Uses: abc, dataclasses, enum, inspect, json, logging, re, struct, typing.
The demo reads its settings through config_manager, which needs PyYAML.

License
-------
GPL 3.0
"""

from chatbot_commands.command import (
    Command,
    FunctionCommand,
    command,
    must_command,
    must_predicated_command,
    predicated_command,
)
from chatbot_commands.convert import convert
from chatbot_commands.dispatcher import dispatch, make_handler, tokenize
from chatbot_commands.errors import (
    AccessDenied,
    ArgCountMismatch,
    CommandError,
    ConversionError,
    EntityResolutionError,
    InvocationError,
    RegistryConflict,
    RegistryError,
    SignatureError,
    UnknownCommand,
    UnmarshalError,
    UnsupportedTypeError,
    ValidationError,
)
from chatbot_commands.params import (
    Kind,
    ParamSpec,
    float32,
    float64,
    int8,
    int16,
    int32,
    int64,
    uint,
    uint8,
    uint16,
    uint32,
    uint64,
)
from chatbot_commands.platform import (
    Channel,
    Client,
    DirectoryError,
    Guild,
    Member,
    MemoryClient,
    MessageEvent,
    Permissions,
    Role,
    User,
)
from chatbot_commands.predicate import Predicate
from chatbot_commands.registry import CommandRegistry

__all__ = [
    'AccessDenied', 'ArgCountMismatch', 'Channel', 'Client', 'Command',
    'CommandError', 'CommandRegistry', 'ConversionError', 'DirectoryError',
    'EntityResolutionError', 'FunctionCommand', 'Guild', 'InvocationError',
    'Kind', 'Member', 'MemoryClient', 'MessageEvent', 'ParamSpec',
    'Permissions', 'Predicate', 'RegistryConflict', 'RegistryError', 'Role',
    'SignatureError', 'UnknownCommand', 'UnmarshalError',
    'UnsupportedTypeError', 'User', 'ValidationError', 'command', 'convert',
    'dispatch', 'float32', 'float64', 'int8', 'int16', 'int32', 'int64',
    'make_handler', 'must_command', 'must_predicated_command',
    'predicated_command', 'tokenize', 'uint', 'uint8', 'uint16', 'uint32',
    'uint64',
]
