from __future__ import annotations

import asyncio

import pytest

from countdown.driver import CountdownResult
from events.dispatcher import EventDispatcher
from fakes import ARCHIVE, GENERAL, TAG_ROLE, FakePermissions, FakeTransport, posted, reaction
from rules.table import TagRule, TagRuleTable
from state.registry import CountdownRegistry
from tagging.engine import TagOutcome, TagResult
from transport.ports import TransportError, UserRef


def _dispatcher(transport: FakeTransport) -> EventDispatcher:
    transport.users[5] = UserRef(id=5, name="tagger")
    return EventDispatcher(
        registry=CountdownRegistry(),
        rules=TagRuleTable([TagRule("archive", ARCHIVE, 1)]),
        transport=transport,
        permissions=FakePermissions({5}),
        tag_role_id=TAG_ROLE,
    )


def test_routes_reactions_to_tagging_engine() -> None:
    transport = FakeTransport()
    transport.add_message(GENERAL, 42)
    dispatcher = _dispatcher(transport)

    result = asyncio.run(dispatcher.dispatch(reaction(42)))

    assert isinstance(result, TagResult)
    assert result.outcome is TagOutcome.TAGGED


def test_routes_messages_to_countdown_driver() -> None:
    transport = FakeTransport()
    dispatcher = _dispatcher(transport)
    asyncio.run(dispatcher.registry.insert(GENERAL, 42, 0))

    result = asyncio.run(dispatcher.dispatch(posted(1)))

    assert isinstance(result, CountdownResult)
    assert transport.deleted == [(GENERAL, 42)]


def test_transport_failure_is_dropped() -> None:
    transport = FakeTransport()
    dispatcher = _dispatcher(transport)

    result = asyncio.run(dispatcher.dispatch(reaction(404)))

    assert result is None
    assert asyncio.run(dispatcher.registry.snapshot(GENERAL)) == []


def test_handle_propagates_transport_errors() -> None:
    dispatcher = _dispatcher(FakeTransport())

    with pytest.raises(TransportError):
        asyncio.run(dispatcher.handle(reaction(404)))


def test_unexpected_errors_are_contained() -> None:
    transport = FakeTransport()
    dispatcher = _dispatcher(transport)

    async def broken(*args, **kwargs):
        raise RuntimeError("unexpected")

    transport.fetch_user = broken  # type: ignore[assignment]

    transport.add_message(GENERAL, 42)
    assert asyncio.run(dispatcher.dispatch(reaction(42))) is None
    # The claim taken before the failure was released.
    assert asyncio.run(dispatcher.registry.claim(GENERAL, 42))


def test_unknown_event_type_rejected_by_handle() -> None:
    dispatcher = _dispatcher(FakeTransport())

    with pytest.raises(TypeError):
        asyncio.run(dispatcher.handle(object()))  # type: ignore[arg-type]
