from __future__ import annotations

import asyncio
from types import SimpleNamespace

import discord
import pytest

from events.models import Emoji
from safety.permissions import DiscordPermissionChecker, member_has_role
from transport.discord_transport import DiscordTransport, message_event, reaction_event
from transport.ports import TransportError


def _http_error(cls=discord.HTTPException, status: int = 500):
    return cls(SimpleNamespace(status=status, reason="error"), "failed")


class FakePartialMessage:
    def __init__(self, channel: "FakeChannel", message_id: int) -> None:
        self.channel = channel
        self.id = message_id

    async def delete(self) -> None:
        if self.channel.error:
            raise self.channel.error
        self.channel.deleted.append(self.id)

    async def add_reaction(self, emoji: str) -> None:
        if self.channel.error:
            raise self.channel.error
        self.channel.reactions.append((self.id, emoji))


class FakeChannel:
    def __init__(self, channel_id: int) -> None:
        self.id = channel_id
        self.error = None
        self.sent = []
        self.deleted = []
        self.reactions = []

    async def send(self, text: str, **kwargs):
        if self.error:
            raise self.error
        self.sent.append((text, kwargs))
        return SimpleNamespace(id=555)

    def get_partial_message(self, message_id: int) -> FakePartialMessage:
        return FakePartialMessage(self, message_id)

    async def fetch_message(self, message_id: int):
        if self.error:
            raise self.error
        return SimpleNamespace(
            id=message_id,
            channel=self,
            author=SimpleNamespace(id=1, name="author"),
            content="original",
            attachments=[SimpleNamespace(url="https://cdn.example/a.png")],
        )


class FakeClient:
    def __init__(self) -> None:
        self.channels = {}
        self.guild = None

    def get_partial_messageable(self, channel_id: int) -> FakeChannel:
        return self.channels.setdefault(channel_id, FakeChannel(channel_id))

    def get_user(self, user_id: int):
        return None

    async def fetch_user(self, user_id: int):
        raise _http_error(discord.NotFound, 404)

    def get_guild(self, guild_id: int):
        return self.guild


def test_reaction_event_maps_custom_emoji() -> None:
    payload = SimpleNamespace(
        channel_id=1,
        message_id=2,
        user_id=3,
        guild_id=4,
        emoji=discord.PartialEmoji(name="archive", id=99),
    )

    event = reaction_event(payload)

    assert event.emoji == Emoji(name="archive", id=99, custom=True)
    assert (event.channel_id, event.message_id, event.reacting_user_id, event.guild_id) == (1, 2, 3, 4)


def test_reaction_event_maps_unicode_emoji() -> None:
    payload = SimpleNamespace(
        channel_id=1, message_id=2, user_id=3, guild_id=None, emoji=discord.PartialEmoji(name="✅")
    )

    assert reaction_event(payload).emoji == Emoji(name="✅", id=None, custom=False)


def test_message_event_maps_ids_and_content() -> None:
    message = SimpleNamespace(
        id=7,
        channel=SimpleNamespace(id=8),
        guild=SimpleNamespace(id=9),
        author=SimpleNamespace(id=10),
        content="!tag help",
    )

    event = message_event(message)

    assert (event.channel_id, event.message_id, event.author_id, event.guild_id) == (8, 7, 10, 9)
    assert event.content == "!tag help"


def test_send_returns_id_and_suppresses_pings() -> None:
    client = FakeClient()
    transport = DiscordTransport(client)

    assert asyncio.run(transport.send(1, "hello")) == 555
    text, kwargs = client.channels[1].sent[0]
    assert text == "hello"
    assert kwargs["allowed_mentions"].users is False


def test_delete_and_react_use_partial_messages() -> None:
    client = FakeClient()
    transport = DiscordTransport(client)

    asyncio.run(transport.delete(1, 42))
    asyncio.run(transport.react(1, 42, "✅"))

    assert client.channels[1].deleted == [42]
    assert client.channels[1].reactions == [(42, "✅")]


@pytest.mark.parametrize("operation", ["send", "delete", "react"])
def test_discord_errors_become_transport_errors(operation: str) -> None:
    client = FakeClient()
    client.get_partial_messageable(1).error = _http_error(discord.Forbidden, 403)
    transport = DiscordTransport(client)
    calls = {
        "send": lambda: transport.send(1, "x"),
        "delete": lambda: transport.delete(1, 42),
        "react": lambda: transport.react(1, 42, "✅"),
    }

    with pytest.raises(TransportError) as excinfo:
        asyncio.run(calls[operation]())

    assert excinfo.value.operation == operation
    assert isinstance(excinfo.value.cause, discord.Forbidden)


def test_fetch_user_failure_becomes_transport_error() -> None:
    with pytest.raises(TransportError):
        asyncio.run(DiscordTransport(FakeClient()).fetch_user(5))


class FakeGuild:
    def __init__(self, member=None, error=None) -> None:
        self._member = member
        self._error = error

    def get_member(self, user_id: int):
        return None

    async def fetch_member(self, user_id: int):
        if self._error:
            raise self._error
        return self._member


def _member(*role_ids: int):
    return SimpleNamespace(roles=[SimpleNamespace(id=role_id) for role_id in role_ids])


def test_permission_checker_reads_member_roles() -> None:
    client = FakeClient()
    client.guild = FakeGuild(member=_member(1, 77))
    checker = DiscordPermissionChecker(client)

    assert asyncio.run(checker.has_role(5, 900, 77))
    assert not asyncio.run(checker.has_role(5, 900, 78))


def test_permission_checker_non_member_lacks_role() -> None:
    client = FakeClient()
    client.guild = FakeGuild(error=_http_error(discord.NotFound, 404))

    assert not asyncio.run(DiscordPermissionChecker(client).has_role(5, 900, 77))


def test_permission_checker_api_failure_raises() -> None:
    client = FakeClient()
    client.guild = FakeGuild(error=_http_error(discord.HTTPException, 503))

    with pytest.raises(TransportError):
        asyncio.run(DiscordPermissionChecker(client).has_role(5, 900, 77))


def test_member_has_role_handles_missing_member() -> None:
    assert not member_has_role(None, 77)
    assert member_has_role(_member(77), 77)


def test_fetch_message_maps_attachments() -> None:
    fetched = asyncio.run(DiscordTransport(FakeClient()).fetch_message(1, 42))

    assert (fetched.id, fetched.channel_id, fetched.author.id) == (42, 1, 1)
    assert fetched.content == "original"
    assert fetched.attachment_urls == ("https://cdn.example/a.png",)
