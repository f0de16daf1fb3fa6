"""
Countdown Registry — Pending Tagged Messages Per Channel

THIS MODULE DEFINES NO COMMANDS.

The registry is the only shared mutable state of the bot. It tracks, per
source channel, the tagged messages still waiting to be deleted and how
many further channel messages each one survives.

Responsibilities:
- Keep one ordered sequence of pending entries per channel (insertion order)
- Guarantee a (channel, message) pair is pending at most once
- Track in-flight tags so two concurrent reactions cannot both cite a message
- Hold evicted ids until their deletion finishes so they cannot be re-tagged
- Decrement and evict entries when a new message arrives in the channel

Every operation runs under the channel's asyncio lock. Callers never hold a
lock across network I/O. Nothing here talks to Discord and nothing is
persisted across restarts.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set

logger = logging.getLogger(__name__)


@dataclass
class PendingEntry:
    message_id: int
    remaining: int


@dataclass
class ChannelEntries:
    """Entry sequence for one channel plus the lock that guards it."""

    channel_id: int
    entries: List[PendingEntry] = field(default_factory=list)
    claims: Set[int] = field(default_factory=set)
    evicting: Set[int] = field(default_factory=set)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def find(self, message_id: int) -> Optional[PendingEntry]:
        return next((entry for entry in self.entries if entry.message_id == message_id), None)

    def tick(self) -> List[int]:
        # Entries already at zero are evicted before they could underflow.
        evicted: List[int] = []
        kept: List[PendingEntry] = []
        for entry in self.entries:
            if entry.remaining == 0:
                evicted.append(entry.message_id)
            else:
                entry.remaining -= 1
                kept.append(entry)
        self.entries = kept
        self.evicting.update(evicted)
        return evicted


class CountdownRegistry:
    def __init__(self) -> None:
        self._channels: Dict[int, ChannelEntries] = {}

    def get_or_create(self, channel_id: int) -> ChannelEntries:
        """Return the channel's entry sequence, creating an empty one on first access.

        Mutating the returned handle is only safe while holding ``handle.lock``.
        """
        channel = self._channels.get(channel_id)
        if channel is None:
            channel = ChannelEntries(channel_id=channel_id)
            self._channels[channel_id] = channel
        return channel

    async def claim(self, channel_id: int, message_id: int) -> bool:
        """Reserve a message for tagging.

        False if it is pending, already being tagged, or evicted and awaiting deletion.
        """
        channel = self.get_or_create(channel_id)
        async with channel.lock:
            if message_id in channel.claims or message_id in channel.evicting:
                return False
            if channel.find(message_id) is not None:
                return False
            channel.claims.add(message_id)
            return True

    async def release(self, channel_id: int, message_id: int) -> None:
        channel = self.get_or_create(channel_id)
        async with channel.lock:
            channel.claims.discard(message_id)

    async def insert(self, channel_id: int, message_id: int, initial_countdown: int) -> bool:
        """Append a pending entry. Duplicates are ignored and logged; returns False for them."""
        if initial_countdown < 0:
            raise ValueError("initial_countdown must be >= 0")
        channel = self.get_or_create(channel_id)
        async with channel.lock:
            channel.claims.discard(message_id)
            existing = channel.find(message_id)
            if existing is not None:
                logger.info(
                    "Ignoring duplicate tag of message %s in channel %s (%s left)",
                    message_id,
                    channel_id,
                    existing.remaining,
                )
                return False
            channel.entries.append(PendingEntry(message_id=message_id, remaining=initial_countdown))
            return True

    async def tick_and_evict(self, channel_id: int) -> List[int]:
        """Advance the channel's countdowns by one message.

        Returns the ids of entries that were already at zero, in insertion
        order. Those entries are removed; every other entry loses one.
        """
        channel = self._channels.get(channel_id)
        if channel is None:
            return []
        async with channel.lock:
            return channel.tick()

    async def finish_eviction(self, channel_id: int, message_ids: List[int]) -> None:
        """Forget evicted ids once their deletion has been attempted."""
        channel = self._channels.get(channel_id)
        if channel is None:
            return
        async with channel.lock:
            channel.evicting.difference_update(message_ids)

    async def snapshot(self, channel_id: int) -> List[PendingEntry]:
        channel = self._channels.get(channel_id)
        if channel is None:
            return []
        async with channel.lock:
            return [PendingEntry(entry.message_id, entry.remaining) for entry in channel.entries]

    async def contains(self, channel_id: int, message_id: int) -> bool:
        channel = self._channels.get(channel_id)
        if channel is None:
            return False
        async with channel.lock:
            return channel.find(message_id) is not None

    def channel_ids(self) -> Iterator[int]:
        return iter(list(self._channels.keys()))
