# pylint: disable=missing-module-docstring,missing-function-docstring,missing-class-docstring

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any

import pytest

from observability import logger
from orchestrator.enums.mode import CallMode
from orchestrator.errors import GatewayError
from orchestrator.state_dataclass import AccessGrant
from transport.base import TransportListener


# ---------------------------------------------------------------------
# In-memory capabilities
# ---------------------------------------------------------------------

class FakeTransport:
    """
    Records every call and lets tests deliver events to registered listeners.

    Failures are injected per operation via `fail`, e.g.
    transport.fail["mute"] = RuntimeError("device busy").
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.listeners: dict[str, list[TransportListener]] = defaultdict(list)
        self.fail: dict[str, Exception] = {}
        # Events emitted from inside start_session(), in order.
        self.on_start: list[tuple[str, Any]] = []
        # When set, stop_session() suspends until the event is set.
        self.stop_gate: asyncio.Event | None = None

    def _record(self, name: str, arg: Any = None) -> None:
        self.calls.append((name, arg))
        if name in self.fail:
            raise self.fail[name]

    def called(self, name: str) -> list[Any]:
        return [arg for call, arg in self.calls if call == name]

    async def start_session(self, *, access_token: str, mode: str, host: str) -> None:
        self._record(
            "start_session", {"access_token": access_token, "mode": mode, "host": host}
        )
        for name, payload in self.on_start:
            await self.emit(name, payload)

    async def stop_session(self) -> None:
        self._record("stop_session")
        if self.stop_gate is not None:
            await self.stop_gate.wait()

    async def start_audio_playback(self) -> None:
        self._record("start_audio_playback")

    async def mute(self) -> None:
        self._record("mute")

    async def unmute(self) -> None:
        self._record("unmute")

    async def send_text_message(self, text: str) -> None:
        self._record("send_text_message", text)

    def on(self, event: str, listener: TransportListener) -> None:
        self.listeners[event].append(listener)

    def off(self, event: str, listener: TransportListener) -> None:
        if listener in self.listeners[event]:
            self.listeners[event].remove(listener)

    def listener_count(self) -> int:
        return sum(len(v) for v in self.listeners.values())

    async def emit(self, event: str, payload: Any = None) -> None:
        for listener in list(self.listeners[event]):
            if payload is None:
                await listener()
            else:
                await listener(payload)


class FakeGateway:
    def __init__(
        self,
        grant: AccessGrant | None = None,
        error: Exception | None = None,
    ) -> None:
        self.grant = grant or AccessGrant(token="tok-123", host="wss://agent.example")
        self.error = error
        self.requests: list[dict[str, Any]] = []

    async def request_grant(
        self, *, agent_id: str, api_key: str, mode: CallMode
    ) -> AccessGrant:
        self.requests.append({"agent_id": agent_id, "api_key": api_key, "mode": mode})
        if self.error is not None:
            raise self.error
        return self.grant


# ---------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------

@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def failing_gateway() -> FakeGateway:
    return FakeGateway(error=GatewayError("Failed to get access token: nope", 401))


@pytest.fixture
def captured_logs(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    lines: list[str] = []
    monkeypatch.setattr(logger, "_print", lines.append)
    return lines
