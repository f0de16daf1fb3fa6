"""
Event Dispatcher — Routes Gateway Events to Handlers

THIS MODULE DEFINES EVENT LISTENERS (NO USER COMMANDS).

Responsibilities:
- Hold the collaborators every handler needs (registry, rules, transport, permissions)
- Route MessagePosted to the countdown driver and ReactionAdded to the tagging engine
- Contain per-event failures: log them and drop the event

discord.py runs every listener call in its own task, so a slow event never
holds up delivery for other channels.

Registered explicitly via `register(bot, dispatcher)`.
"""

from __future__ import annotations

from typing import Union

import discord
from discord.ext import commands

from countdown import driver
from countdown.driver import CountdownResult
from events.models import Event, MessagePosted, ReactionAdded
from rules.table import TagRuleTable
from safety.logging import LogContext, log_error
from state.registry import CountdownRegistry
from tagging import engine
from tagging.engine import TagResult
from transport.discord_transport import message_event, reaction_event
from transport.ports import MessageTransport, PermissionChecker, TransportError

HandlerResult = Union[CountdownResult, TagResult, None]


class EventDispatcher:
    def __init__(
        self,
        *,
        registry: CountdownRegistry,
        rules: TagRuleTable,
        transport: MessageTransport,
        permissions: PermissionChecker,
        tag_role_id: int,
    ) -> None:
        self.registry = registry
        self.rules = rules
        self.transport = transport
        self.permissions = permissions
        self.tag_role_id = tag_role_id

    async def handle(self, event: Event) -> HandlerResult:
        """Run the handler for event and return its result. Errors propagate."""
        if isinstance(event, MessagePosted):
            return await driver.on_message_posted(event, self.registry, self.transport)
        if isinstance(event, ReactionAdded):
            return await engine.on_reaction_added(
                event,
                self.rules,
                self.registry,
                self.transport,
                self.permissions,
                tag_role_id=self.tag_role_id,
            )
        raise TypeError(f"Unsupported event type: {type(event).__name__}")

    async def dispatch(self, event: Event) -> HandlerResult:
        """Run the handler for event; failures are logged and the event dropped."""
        try:
            return await self.handle(event)
        except TransportError as exc:
            log_error(
                f"Dropped {type(event).__name__} after transport failure",
                context=LogContext(channel_id=event.channel_id, message_id=event.message_id),
                error=exc,
                operation=exc.operation,
            )
        except Exception as exc:
            log_error(
                f"Unexpected error handling {type(event).__name__}",
                context=LogContext(
                    channel_id=getattr(event, "channel_id", None),
                    message_id=getattr(event, "message_id", None),
                ),
                error=exc,
            )
        return None


def register(bot: commands.Bot, dispatcher: EventDispatcher) -> None:
    @bot.listen("on_message")
    async def countdown_listener(message: discord.Message) -> None:
        await dispatcher.dispatch(message_event(message))

    @bot.listen("on_raw_reaction_add")
    async def tagging_listener(payload: discord.RawReactionActionEvent) -> None:
        await dispatcher.dispatch(reaction_event(payload))
