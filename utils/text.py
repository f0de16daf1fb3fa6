"""
Text Utilities — Shared Message Formatting Helpers

THIS MODULE DEFINES NO COMMANDS.

Provides reusable helpers for:
- Quoting message content as a Discord block quote
- Safe truncation to Discord's message length limit

Used by the citation builder and command replies.
"""

from __future__ import annotations

from typing import List

__all__ = [
    "DISCORD_MESSAGE_LIMIT",
    "quote_block",
    "safe_truncate",
]

DISCORD_MESSAGE_LIMIT = 2000


def quote_block(text: str) -> str:
    """
    Prefix every line with "> " so multi-line content stays inside the quote.
    Empty text still yields a single quote marker.
    """
    lines: List[str] = text.splitlines() or [""]
    return "\n".join(f"> {line}" for line in lines)


def safe_truncate(text: str, max_length: int, *, ellipsis: str = "…") -> str:
    """
    Truncate text to max_length, appending ellipsis if truncation occurs.
    If max_length is too small for ellipsis, returns a clipped ellipsis.
    """
    if max_length < 0:
        raise ValueError("max_length must be non-negative")
    if len(text) <= max_length:
        return text
    if max_length == 0:
        return ""
    if len(ellipsis) >= max_length:
        return ellipsis[:max_length]
    return text[: max_length - len(ellipsis)] + ellipsis
