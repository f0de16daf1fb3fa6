"""
Safety Permissions — Role Checks for Tagging and Operator Commands

THIS MODULE DEFINES NO COMMANDS.

Responsibilities:
- Answer "does this user hold this role in this guild" for the tagging engine
- Provide the command check guarding operator-only commands

A user that is no longer a guild member simply lacks the role. Any other
API failure is raised as TransportError so the caller decides (the tagging
engine treats it as a denial).
"""

from __future__ import annotations

from typing import Optional

import discord
from discord.ext import commands

from transport.ports import TransportError


def member_has_role(member: Optional[discord.Member], role_id: int) -> bool:
    if member is None:
        return False
    roles = getattr(member, "roles", None)
    if not roles:
        return False
    return any(role.id == role_id for role in roles)


class DiscordPermissionChecker:
    """PermissionChecker backed by the discord.py client cache and REST API."""

    def __init__(self, client: discord.Client) -> None:
        self._client = client

    async def _resolve_guild(self, guild_id: int) -> discord.Guild:
        guild = self._client.get_guild(guild_id)
        if guild is not None:
            return guild
        return await self._client.fetch_guild(guild_id)

    async def has_role(self, user_id: int, guild_id: int, role_id: int) -> bool:
        try:
            guild = await self._resolve_guild(guild_id)
            member = guild.get_member(user_id)
            if member is None:
                member = await guild.fetch_member(user_id)
        except discord.NotFound:
            return False
        except (discord.HTTPException, discord.ClientException) as exc:
            raise TransportError("has_role", exc) from exc
        return member_has_role(member, role_id)


def has_role_check(role_id: int):
    """commands.check allowing only guild members holding role_id."""

    async def predicate(ctx: commands.Context) -> bool:
        if ctx.guild is None:
            return False
        # A plain User (no roles attribute) is denied.
        return member_has_role(ctx.author, role_id)

    return commands.check(predicate)
