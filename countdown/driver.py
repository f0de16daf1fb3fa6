"""
Countdown Driver — Message-Driven Eviction

THIS MODULE DEFINES AUTONOMOUS TRIGGERS AND THE HELP REPLY.

Every message posted in a channel (the bot's own included) advances the
countdown of that channel's tagged messages by one. Entries whose countdown
had already reached zero are deleted.

Behavior:
- One delete request per evicted message
- A failed delete is logged and never stops the remaining deletes
- The exact text `!tag help` also gets the static help reply, and still ticks
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from events.models import MessagePosted
from safety.logging import LogContext, log_action, log_error
from state.registry import CountdownRegistry
from transport.ports import MessageTransport, TransportError

HELP_COMMAND = "!tag help"
HELP_MESSAGE = (
    "How to tag a message: \n \n"
    " 1. React with the appropriate emoji. \n"
    " 2. Wait for me to move it \n"
    " 3. ??? \n"
    " 4. Profit!"
)


@dataclass
class CountdownResult:
    evicted: List[int] = field(default_factory=list)
    failures: Dict[int, TransportError] = field(default_factory=dict)
    help_sent: bool = False

    @property
    def deleted(self) -> List[int]:
        return [message_id for message_id in self.evicted if message_id not in self.failures]


async def _send_help(event: MessagePosted, transport: MessageTransport) -> bool:
    try:
        await transport.send(event.channel_id, HELP_MESSAGE)
    except TransportError as exc:
        log_error(
            "Could not send help message",
            context=LogContext(actor_id=event.author_id, channel_id=event.channel_id, command=HELP_COMMAND),
            error=exc,
        )
        return False
    log_action(
        "Served help message",
        context=LogContext(actor_id=event.author_id, channel_id=event.channel_id, command=HELP_COMMAND),
        action="help",
    )
    return True


async def evict(
    channel_id: int,
    message_ids: List[int],
    transport: MessageTransport,
) -> Dict[int, TransportError]:
    failures: Dict[int, TransportError] = {}
    for message_id in message_ids:
        context = LogContext(channel_id=channel_id, message_id=message_id)
        try:
            await transport.delete(channel_id, message_id)
        except TransportError as exc:
            failures[message_id] = exc
            log_error("Could not delete tagged message", context=context, error=exc)
            continue
        log_action(f"Deleted tagged post {message_id}", context=context, action="evict")
    return failures


async def on_message_posted(
    event: MessagePosted,
    registry: CountdownRegistry,
    transport: MessageTransport,
    *,
    help_command: Optional[str] = HELP_COMMAND,
) -> CountdownResult:
    # Tick before any network call so ticks keep the order messages arrived in.
    result = CountdownResult(evicted=await registry.tick_and_evict(event.channel_id))
    if help_command is not None and event.content == help_command:
        result.help_sent = await _send_help(event, transport)

    if result.evicted:
        try:
            result.failures = await evict(event.channel_id, result.evicted, transport)
        finally:
            await registry.finish_eviction(event.channel_id, result.evicted)
    return result
