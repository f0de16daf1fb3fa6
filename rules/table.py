"""
Tag Rules — Emoji to Destination Lookup

THIS MODULE DEFINES NO COMMANDS.

A tag rule says: when a privileged user reacts with this custom emoji,
cite the message into this channel and delete the original after this
many further messages in its channel.

The table is built once at startup and is read-only afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TagRule:
    emoji_name: str
    destination_channel_id: int
    initial_countdown: int

    def __post_init__(self) -> None:
        if not self.emoji_name:
            raise ValueError("emoji_name must not be empty")
        if self.initial_countdown < 0:
            raise ValueError("initial_countdown must be >= 0")


class TagRuleTable:
    """Immutable lookup of tag rules keyed by emoji name. First match wins."""

    def __init__(self, rules: Iterable[TagRule]) -> None:
        self._rules: List[TagRule] = list(rules)
        self._by_emoji: Dict[str, TagRule] = {}
        for rule in self._rules:
            if rule.emoji_name in self._by_emoji:
                logger.warning(
                    "Duplicate tag rule for emoji %r ignored (first rule targets channel %s)",
                    rule.emoji_name,
                    self._by_emoji[rule.emoji_name].destination_channel_id,
                )
                continue
            self._by_emoji[rule.emoji_name] = rule

    def lookup(self, emoji_name: Optional[str]) -> Optional[TagRule]:
        if not emoji_name:
            return None
        return self._by_emoji.get(emoji_name)

    def __iter__(self) -> Iterator[TagRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)
