"""
Discord Transport — discord.py Adapters

THIS MODULE DEFINES NO COMMANDS.

Responsibilities:
- Implement MessageTransport on top of a discord.py client
- Translate discord.py failures into TransportError
- Map gateway payloads to the typed events the dispatcher understands

Only ids cross this boundary; partial messageables are used so no call
depends on the client cache being warm.
"""

from __future__ import annotations

from typing import Optional

import discord

from events.models import Emoji, MessagePosted, ReactionAdded
from transport.ports import FetchedMessage, TransportError, UserRef

_TRANSPORT_ERRORS = (discord.HTTPException, discord.ClientException)


def user_ref(user: discord.abc.User) -> UserRef:
    return UserRef(id=user.id, name=str(user))


def fetched_message(message: discord.Message) -> FetchedMessage:
    return FetchedMessage(
        id=message.id,
        channel_id=message.channel.id,
        author=user_ref(message.author),
        content=message.content or "",
        attachment_urls=tuple(attachment.url for attachment in message.attachments),
    )


def message_event(message: discord.Message) -> MessagePosted:
    guild_id: Optional[int] = message.guild.id if message.guild else None
    return MessagePosted(
        channel_id=message.channel.id,
        message_id=message.id,
        content=message.content or "",
        author_id=message.author.id,
        guild_id=guild_id,
    )


def reaction_event(payload: discord.RawReactionActionEvent) -> ReactionAdded:
    emoji = payload.emoji
    return ReactionAdded(
        channel_id=payload.channel_id,
        message_id=payload.message_id,
        emoji=Emoji(name=emoji.name, id=emoji.id, custom=emoji.is_custom_emoji()),
        reacting_user_id=payload.user_id,
        guild_id=payload.guild_id,
    )


class DiscordTransport:
    """MessageTransport backed by a discord.py client."""

    def __init__(self, client: discord.Client) -> None:
        self._client = client

    def _channel(self, channel_id: int) -> discord.PartialMessageable:
        return self._client.get_partial_messageable(channel_id)

    async def send(self, channel_id: int, text: str) -> int:
        try:
            sent = await self._channel(channel_id).send(
                text,
                allowed_mentions=discord.AllowedMentions.none(),
            )
        except _TRANSPORT_ERRORS as exc:
            raise TransportError("send", exc) from exc
        return sent.id

    async def delete(self, channel_id: int, message_id: int) -> None:
        try:
            await self._channel(channel_id).get_partial_message(message_id).delete()
        except _TRANSPORT_ERRORS as exc:
            raise TransportError("delete", exc) from exc

    async def react(self, channel_id: int, message_id: int, emoji: str) -> None:
        try:
            await self._channel(channel_id).get_partial_message(message_id).add_reaction(emoji)
        except _TRANSPORT_ERRORS as exc:
            raise TransportError("react", exc) from exc

    async def fetch_message(self, channel_id: int, message_id: int) -> FetchedMessage:
        try:
            message = await self._channel(channel_id).fetch_message(message_id)
        except _TRANSPORT_ERRORS as exc:
            raise TransportError("fetch_message", exc) from exc
        return fetched_message(message)

    async def fetch_user(self, user_id: int) -> UserRef:
        user = self._client.get_user(user_id)
        if user is not None:
            return user_ref(user)
        try:
            user = await self._client.fetch_user(user_id)
        except _TRANSPORT_ERRORS as exc:
            raise TransportError("fetch_user", exc) from exc
        return user_ref(user)
