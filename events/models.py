"""
Event Models — Typed Gateway Events

THIS MODULE DEFINES NO COMMANDS.

Plain value objects the dispatcher routes. They carry ids only, so handlers
never depend on discord.py objects or the client cache.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class Emoji:
    name: Optional[str]
    id: Optional[int] = None
    custom: bool = False


@dataclass(frozen=True)
class MessagePosted:
    channel_id: int
    message_id: int
    content: str
    author_id: int
    guild_id: Optional[int] = None


@dataclass(frozen=True)
class ReactionAdded:
    channel_id: int
    message_id: int
    emoji: Emoji
    reacting_user_id: int
    guild_id: Optional[int] = None


Event = Union[MessagePosted, ReactionAdded]
