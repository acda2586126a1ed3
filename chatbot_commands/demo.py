#!/usr/bin/env python3
"""
Chatbot Command System: Interactive Demo

This simulates a chat channel with an in-memory client. Every line you
type is delivered as a message from "operator". Try:

    !help
    !add 2 40
    !whois <@!1001>
    !whois 1002
    !echo the rest of the line
    !r 20
    !kick <@!1002> being rude     (operator owns the guild, so allowed)
    !add 300 x
    hello this is normal chat
    /quit

Run with:  python -m chatbot_commands.demo [--prefix ?] [-v]
"""

import random

from config_manager import configure_logging, setup_configuration
from chatbot_commands import (
    Channel,
    Client,
    CommandRegistry,
    Guild,
    Member,
    MemoryClient,
    MessageEvent,
    Permissions,
    Predicate,
    Role,
    User,
    uint16,
)

GUILD_ID = "500"


def build_client() -> tuple[MemoryClient, User]:
    """A small guild: the bot, its operator, and one ordinary member."""
    client = MemoryClient(User("1", "demobot", bot=True))
    operator = client.add_user(User("1000", "operator"))
    client.add_user(User("1001", "alice"))
    client.add_user(User("1002", "bob"))
    client.add_channel(Channel("2000", "general", GUILD_ID))
    client.add_guild(Guild(GUILD_ID, owner_id=operator.id, name="demo guild"))
    client.add_role(GUILD_ID, Role("3000", "moderator", Permissions.KICK_MEMBERS))
    client.add_member(Member(GUILD_ID, "1001", roles=("3000",)))
    client.add_member(Member(GUILD_ID, "1002"))
    return client, operator


def build_registry() -> CommandRegistry:
    registry = CommandRegistry()

    @registry.command("help", "help - List commands")
    def help_(client: Client, event: MessageEvent):
        for name, help_text in registry.list_commands():
            aliases = registry.aliases_of(name)
            suffix = f"  (aliases: {', '.join(aliases)})" if aliases else ""
            print(f"  {help_text or name}{suffix}")

    @registry.command("add", "add <a> <b> - Add two integers")
    def add(client: Client, event: MessageEvent, a: int, b: int):
        print(f"  {a} + {b} = {a + b}")

    @registry.command("whois", "whois <user> - Describe a user")
    def whois(client: Client, event: MessageEvent, who: User):
        print(f"  {who.username} (id {who.id}{', bot' if who.bot else ''})")

    @registry.command("echo", "echo <words...> - Repeat the words back")
    def echo(client: Client, event: MessageEvent, *words: str):
        print(f"  {' '.join(words)}")

    @registry.command("roll", "roll <sides> - Roll one die", aliases=["r"])
    def roll(client: Client, event: MessageEvent, sides: uint16):
        print(f"  \U0001f3b2 d{sides} → {random.randint(1, max(sides, 1))}")

    @registry.command(
        "kick", "kick <user> [reason...] - Kick a member (moderators)",
        predicate=Predicate(permissions=Permissions.KICK_MEMBERS),
    )
    def kick(client: Client, event: MessageEvent, who: User, reason: list[str]):
        why = " ".join(reason) or "no reason given"
        print(f"  {event.author.username} kicked {who.username}: {why}")

    return registry


def report(client, event, error):
    print(f"  [error] {type(error).__name__}: {error}")


def main(argv=None):
    config, should_exit, _ = setup_configuration(argv)
    if should_exit:
        return
    configure_logging(config)

    client, operator = build_client()
    registry = build_registry()
    on_message = registry.handler(config.dispatch.prefix, report)

    print("=" * 60)
    print(f"  {config.name}: Command System Demo")
    print(f"  Type {config.dispatch.prefix}help for commands, /quit to exit")
    print("=" * 60)
    print()

    while True:
        try:
            line = input("you> ").rstrip("\n")
        except (EOFError, KeyboardInterrupt):
            print("\nbye!")
            break

        if not line:
            continue

        if line.lower() == "/quit":
            print("bye!")
            break

        event = MessageEvent(author=operator, content=line, guild_id=GUILD_ID, channel_id="2000")
        if not line.startswith(config.dispatch.prefix):
            print(f"  [chat] {line}")
            continue
        on_message(client, event)


if __name__ == "__main__":
    main()
