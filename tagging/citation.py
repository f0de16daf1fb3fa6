"""
Citation Builder — Text of the Re-posted Message

THIS MODULE DEFINES NO COMMANDS.

Layout:
    <@author> says (tagged by <@tagger>)
    > first line of the original
    > second line of the original
    https://attachment/one
"""

from __future__ import annotations

from typing import List

from transport.ports import FetchedMessage, UserRef
from utils.text import DISCORD_MESSAGE_LIMIT, quote_block, safe_truncate


def build_citation(
    message: FetchedMessage,
    tagger: UserRef,
    *,
    max_length: int = DISCORD_MESSAGE_LIMIT,
) -> str:
    header = f"{message.author.mention} says (tagged by {tagger.mention})"
    budget = max(0, max_length - len(header) - 1)

    # Urls are kept whole, in order, while they fit; the quoted content gives way first.
    footer: List[str] = []
    for url in message.attachment_urls:
        if len(url) + 1 > budget:
            break
        footer.append(url)
        budget -= len(url) + 1
    quoted = safe_truncate(quote_block(message.content), budget)

    return "\n".join([header, quoted, *footer])
