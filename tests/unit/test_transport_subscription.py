# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from orchestrator.events import Event, Transcript
from transport.base import TransportEventName
from transport.subscription import TransportSubscription

from conftest import FakeTransport


@pytest.mark.asyncio
async def test_acquire_registers_one_listener_per_event(
    transport: FakeTransport,
) -> None:
    received: list[Event] = []

    async def sink(event: Event) -> None:
        received.append(event)

    sub = TransportSubscription(transport=transport, attempt_id=3, sink=sink)
    sub.acquire()
    sub.acquire()

    assert sub.active
    assert transport.listener_count() == len(TransportEventName)

    await transport.emit("transcript", {"text": "hi"})

    assert len(received) == 1
    assert isinstance(received[0], Transcript)
    assert received[0].attempt_id == 3


@pytest.mark.asyncio
async def test_release_removes_listeners_and_drops_late_deliveries(
    transport: FakeTransport,
) -> None:
    received: list[Event] = []

    async def sink(event: Event) -> None:
        received.append(event)

    sub = TransportSubscription(transport=transport, attempt_id=1, sink=sink)
    sub.acquire()
    stale = transport.listeners["transcript"][0]

    sub.release()
    sub.release()
    await stale({"text": "late"})

    assert not sub.active
    assert transport.listener_count() == 0
    assert received == []
