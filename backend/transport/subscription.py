"""
Owned transport event subscription.

One TransportSubscription == one connection attempt's set of listeners.

The runtime holds at most one subscription at a time; re-subscribing is
always "release current, acquire new", never an incremental add, so a
single agent utterance can never be delivered twice.
"""

from __future__ import annotations

import time
from typing import Any, Awaitable, Callable

from observability.logger import log_event
from orchestrator.events import Event
from transport.base import TransportEventName, TransportListener, TransportProtocol
from transport.translate import translate


EventSink = Callable[[Event], Awaitable[None]]


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class TransportSubscription:
    """
    Listener set registered against a transport for one attempt.

    Every delivery is translated and tagged with attempt_id before it
    reaches the sink. Deliveries after release() are dropped even if the
    transport still calls a listener it captured earlier.
    """

    def __init__(
        self,
        *,
        transport: TransportProtocol,
        attempt_id: int,
        sink: EventSink,
    ) -> None:
        self._transport = transport
        self._attempt_id = attempt_id
        self._sink = sink
        self._listeners: dict[str, TransportListener] = {}
        self._active = False

    @property
    def attempt_id(self) -> int:
        return self._attempt_id

    @property
    def active(self) -> bool:
        return self._active

    def acquire(self) -> None:
        """Register one listener per known event name. Idempotent."""
        if self._active:
            return
        for name in TransportEventName:
            listener = self._make_listener(name.value)
            self._listeners[name.value] = listener
            self._transport.on(name.value, listener)
        self._active = True

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "transport_subscription_acquired",
            "attempt_id": self._attempt_id,
            "listeners": len(self._listeners),
        })

    def release(self) -> None:
        """Unregister every listener this subscription added. Idempotent."""
        if not self._active:
            return
        self._active = False
        for name, listener in self._listeners.items():
            self._transport.off(name, listener)
        self._listeners.clear()

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "transport_subscription_released",
            "attempt_id": self._attempt_id,
        })

    def _make_listener(self, name: str) -> TransportListener:
        async def _listener(payload: Any = None) -> None:
            if not self._active:
                return
            await self._sink(
                translate(
                    name,
                    payload,
                    attempt_id=self._attempt_id,
                    ts_ms=_now_ms(),
                )
            )

        return _listener
