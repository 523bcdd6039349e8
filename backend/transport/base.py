"""
Transport capability contract.

This module defines the *interface only*: the operations the orchestrator
consumes from a real-time transport SDK and the fixed event vocabulary it
recognizes. No audio, networking, or orchestration lives here.

Key invariants:
- Every call may raise; the runtime converts failures into events.
- Events may arrive in any order after start_session().
- session_ended always ends the session, regardless of prior events.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Awaitable, Callable, Protocol, runtime_checkable


TransportListener = Callable[..., Awaitable[None]]


class TransportEventName(str, Enum):
    """Event names emitted by the transport, verbatim."""

    SESSION_STARTED = "session_started"
    SESSION_ENDED = "session_ended"
    AGENT_CONNECTED = "agent_connected"
    AGENT_SPEAKING_STARTED = "agent_speaking_started"
    AGENT_SPEAKING_STOPPED = "agent_speaking_stopped"
    TRANSCRIPT = "transcript"
    MICROPHONE_PERMISSION_GRANTED = "microphone_permission_granted"
    MICROPHONE_PERMISSION_ERROR = "microphone_permission_error"
    MICROPHONE_ACCESS_FAILED = "microphone_access_failed"
    ERROR = "error"


@runtime_checkable
class TransportProtocol(Protocol):
    """
    Real-time transport surface consumed by the orchestrator.

    Listeners are async callables. Events with a payload are delivered as
    listener(payload); payload-less events as listener().
    """

    async def start_session(
        self,
        *,
        access_token: str,
        mode: str,
        host: str,
    ) -> None: ...

    async def stop_session(self) -> None: ...

    async def start_audio_playback(self) -> None: ...

    async def mute(self) -> None: ...

    async def unmute(self) -> None: ...

    async def send_text_message(self, text: str) -> None: ...

    def on(self, event: str, listener: TransportListener) -> Any: ...

    def off(self, event: str, listener: TransportListener) -> Any: ...
