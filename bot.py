"""
TagBot — Emoji Tagging and Countdown Deletion Bot (Main Entry Point)

This file initializes and runs TagBot.

Responsibilities of this file ONLY:
- Load configuration and environment variables (fatal on any error)
- Configure logging and the audit log file
- Create the Discord client/bot instance
- Build the countdown registry and wire collaborators into the dispatcher
- Explicitly register listeners and commands from modules
- Start the bot

IMPORTANT ARCHITECTURE RULES:
- Modules do NOT self-register.
- All listener and command registration is explicit and occurs here.
- All behavior logic lives in modules, not in this file.

TagBot watches the server's channels. A user holding the tag role reacts
to a message with a configured custom emoji; the bot cites the message in
the emoji's destination channel and deletes the original once enough
further messages have been posted in its channel.
"""

from __future__ import annotations

import logging

import discord
from discord.ext import commands

from config.settings import BotConfig, load_config
from countdown import commands as countdown_commands
from events import dispatcher as event_dispatcher
from safety.logging import configure_audit_logger
from safety.permissions import DiscordPermissionChecker
from state.registry import CountdownRegistry
from transport.discord_transport import DiscordTransport

COMMAND_PREFIX = "!tag "

logger = logging.getLogger("tagbot")


def _build_intents() -> discord.Intents:
    intents = discord.Intents.default()
    intents.message_content = True
    return intents


def _build_bot() -> commands.Bot:
    intents = _build_intents()
    # `!tag help` is answered by the countdown driver, not the commands extension.
    return commands.Bot(command_prefix=COMMAND_PREFIX, intents=intents, help_command=None)


def _register_modules(bot: commands.Bot, config: BotConfig, registry: CountdownRegistry) -> None:
    dispatcher = event_dispatcher.EventDispatcher(
        registry=registry,
        rules=config.rules,
        transport=DiscordTransport(bot),
        permissions=DiscordPermissionChecker(bot),
        tag_role_id=config.roles.tag,
    )
    event_dispatcher.register(bot, dispatcher)
    countdown_commands.register(bot, registry, config.roles.console)


def main() -> None:
    config = load_config()

    logging.basicConfig(level=config.log_level)
    configure_audit_logger(config.log_file)
    logger.info("Starting tag-bot.")
    logger.info("Loaded configuration file %s with %s tag rules.", config.source, len(config.rules))

    bot = _build_bot()
    registry = CountdownRegistry()

    _register_modules(bot, config, registry)

    @bot.event
    async def on_ready() -> None:
        logger.info("Connected to server as %s", bot.user)

    @bot.event
    async def on_command_error(ctx: commands.Context, error: commands.CommandError) -> None:
        if isinstance(error, (commands.CommandNotFound, commands.CheckFailure)):
            logger.debug("Ignored command %r: %s", ctx.message.content, error)
            return
        logger.error("Command %r failed", ctx.message.content, exc_info=error)

    logger.info("Connecting to Discord API.")
    bot.run(config.token, log_handler=None)


if __name__ == "__main__":
    main()
