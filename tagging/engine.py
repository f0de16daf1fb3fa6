"""
Tagging Engine — Reaction-Driven Citation

THIS MODULE DEFINES AUTONOMOUS TRIGGERS (NO USER COMMANDS).

When a privileged user reacts to a message with a custom emoji that has a
tag rule, the message is cited into the rule's destination channel,
acknowledged with a checkmark, and registered for deferred deletion.

Rules enforced here:
- Unicode reactions never tag
- Unknown emoji and unprivileged users are silent no-ops
- A permission lookup that fails counts as a denial
- A message is registered only after its citation was actually sent
- A message already pending (or being tagged right now) is not cited twice

Transport failures while fetching or citing propagate as TransportError;
the dispatcher logs them and drops the event.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from events.models import ReactionAdded
from rules.table import TagRule, TagRuleTable
from safety.logging import LogContext, log_action, log_denied, log_error
from state.registry import CountdownRegistry
from tagging.citation import build_citation
from transport.ports import MessageTransport, PermissionChecker, TransportError

ACK_EMOJI = "✅"


class TagOutcome(str, Enum):
    IGNORED = "ignored"
    NO_RULE = "no_rule"
    DENIED = "denied"
    DUPLICATE = "duplicate"
    TAGGED = "tagged"


@dataclass(frozen=True)
class TagResult:
    outcome: TagOutcome
    rule: Optional[TagRule] = None
    citation_id: Optional[int] = None
    acknowledged: bool = False


def _context(event: ReactionAdded) -> LogContext:
    return LogContext(
        actor_id=event.reacting_user_id,
        guild_id=event.guild_id,
        channel_id=event.channel_id,
        message_id=event.message_id,
        extra={"emoji": event.emoji.name},
    )


async def _is_permitted(
    event: ReactionAdded,
    permissions: PermissionChecker,
    role_id: int,
) -> bool:
    if event.guild_id is None:
        return False
    try:
        return bool(await permissions.has_role(event.reacting_user_id, event.guild_id, role_id))
    except TransportError as exc:
        log_error("Permission check failed; treating as denied", context=_context(event), error=exc)
        return False


async def on_reaction_added(
    event: ReactionAdded,
    rules: TagRuleTable,
    registry: CountdownRegistry,
    transport: MessageTransport,
    permissions: PermissionChecker,
    *,
    tag_role_id: int,
) -> TagResult:
    if not event.emoji.custom:
        return TagResult(TagOutcome.IGNORED)

    rule = rules.lookup(event.emoji.name)
    if rule is None:
        return TagResult(TagOutcome.NO_RULE)

    if not await _is_permitted(event, permissions, tag_role_id):
        log_denied("Tag refused: missing tag role", context=_context(event), reason="permission")
        return TagResult(TagOutcome.DENIED, rule=rule)

    if not await registry.claim(event.channel_id, event.message_id):
        log_denied("Tag ignored: message already tagged", context=_context(event), reason="duplicate")
        return TagResult(TagOutcome.DUPLICATE, rule=rule)

    registered = False
    try:
        tagger = await transport.fetch_user(event.reacting_user_id)
        message = await transport.fetch_message(event.channel_id, event.message_id)
        citation_id = await transport.send(rule.destination_channel_id, build_citation(message, tagger))

        acknowledged = True
        try:
            await transport.react(event.channel_id, event.message_id, ACK_EMOJI)
        except TransportError as exc:
            acknowledged = False
            log_error("Could not acknowledge tagged message", context=_context(event), error=exc)

        registered = await registry.insert(event.channel_id, event.message_id, rule.initial_countdown)
    finally:
        if not registered:
            await registry.release(event.channel_id, event.message_id)

    log_action(
        f"User {tagger.name} tagged post {event.message_id}",
        context=_context(event),
        action="tag",
        destination_channel_id=rule.destination_channel_id,
        countdown=rule.initial_countdown,
    )
    return TagResult(TagOutcome.TAGGED, rule=rule, citation_id=citation_id, acknowledged=acknowledged)
