"""
Countdown Commands — Operator Inspection of Pending Tags

THIS MODULE DEFINES OPERATOR COMMANDS.

Commands in this module:
- pending: List the tagged messages waiting for deletion in this channel
  (console role only)

The command message is an ordinary channel message, so it also ticks the
channel's countdowns like any other message.

Registered explicitly via `register(bot, registry, console_role_id)`.
"""

from __future__ import annotations

from typing import Sequence

from discord.ext import commands

from safety.logging import LogContext, log_action
from safety.permissions import has_role_check
from state.registry import CountdownRegistry, PendingEntry
from utils.text import DISCORD_MESSAGE_LIMIT, safe_truncate


def format_pending(entries: Sequence[PendingEntry]) -> str:
    if not entries:
        return "Nothing pending in this channel."
    listed = ", ".join(f"{entry.message_id} ({entry.remaining} left)" for entry in entries)
    return safe_truncate(f"Pending in this channel: {listed}", DISCORD_MESSAGE_LIMIT)


def register(bot: commands.Bot, registry: CountdownRegistry, console_role_id: int) -> None:
    @bot.command(name="pending")
    @has_role_check(console_role_id)
    async def pending_cmd(ctx: commands.Context) -> None:
        entries = await registry.snapshot(ctx.channel.id)
        await ctx.reply(format_pending(entries), mention_author=False)
        log_action(
            "Listed pending tags",
            context=LogContext(actor_id=ctx.author.id, channel_id=ctx.channel.id, command="pending"),
            action="pending",
            count=len(entries),
        )
