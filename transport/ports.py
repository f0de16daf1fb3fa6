"""
Transport Ports — Collaborator Contracts Used by the Core

THIS MODULE DEFINES NO COMMANDS.

The tagging engine and countdown driver only talk to Discord through these
protocols, so both can be exercised with in-memory fakes. The discord.py
implementations live in `transport.discord_transport`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, Tuple


class TransportError(Exception):
    """A network or API call to the chat platform failed."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None) -> None:
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Error communicating with Discord API during {operation}{detail}")


@dataclass(frozen=True)
class UserRef:
    id: int
    name: str

    @property
    def mention(self) -> str:
        return f"<@{self.id}>"


@dataclass(frozen=True)
class FetchedMessage:
    id: int
    channel_id: int
    author: UserRef
    content: str
    attachment_urls: Tuple[str, ...] = field(default_factory=tuple)


class MessageTransport(Protocol):
    """Message operations required by the core."""

    async def send(self, channel_id: int, text: str) -> int:
        """Post text and return the new message id."""
        ...

    async def delete(self, channel_id: int, message_id: int) -> None:
        ...

    async def react(self, channel_id: int, message_id: int, emoji: str) -> None:
        ...

    async def fetch_message(self, channel_id: int, message_id: int) -> FetchedMessage:
        ...

    async def fetch_user(self, user_id: int) -> UserRef:
        ...


class PermissionChecker(Protocol):
    """Role lookup required by the tagging engine."""

    async def has_role(self, user_id: int, guild_id: int, role_id: int) -> bool:
        ...
