"""
Transport payload translation.

Converts a raw (event name, payload) delivery from the transport into a
typed reducer event tagged with the attempt whose subscription received it.

Payload shapes follow the transport vocabulary:
- transcript:                  {"text": str, ...}
- microphone_permission_error: {"error": str, "canRetry": bool}
- microphone_access_failed:    {"error": str}
- error:                       str (or {"error"/"message": str})

Malformed payloads degrade to empty strings rather than raising; the
reducer decides what an event means.
"""

from __future__ import annotations

from typing import Any

from orchestrator.events import (
    AgentConnected,
    AgentSpeakingStarted,
    AgentSpeakingStopped,
    EventType,
    MicrophoneAccessFailed,
    MicrophonePermissionError,
    MicrophonePermissionGranted,
    SessionEnded,
    SessionStarted,
    Transcript,
    TransportError,
    TransportEvent,
    UnrecognizedTransportEvent,
)
from transport.base import TransportEventName


def _field(payload: Any, key: str) -> Any:
    if isinstance(payload, dict):
        return payload.get(key)
    return getattr(payload, key, None)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _error_text(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    for key in ("error", "message"):
        value = _field(payload, key)
        if value is not None:
            return _text(value)
    return _text(payload)


def translate(
    name: str,
    payload: Any,
    *,
    attempt_id: int,
    ts_ms: int,
) -> TransportEvent:
    """Map one transport delivery onto the reducer's event vocabulary."""
    try:
        known = TransportEventName(name)
    except ValueError:
        return UnrecognizedTransportEvent(
            event_type=EventType.UNRECOGNIZED_TRANSPORT_EVENT,
            ts_ms=ts_ms,
            attempt_id=attempt_id,
            name=name,
        )

    if known is TransportEventName.SESSION_STARTED:
        return SessionStarted(
            event_type=EventType.SESSION_STARTED, ts_ms=ts_ms, attempt_id=attempt_id
        )
    if known is TransportEventName.SESSION_ENDED:
        return SessionEnded(
            event_type=EventType.SESSION_ENDED, ts_ms=ts_ms, attempt_id=attempt_id
        )
    if known is TransportEventName.AGENT_CONNECTED:
        return AgentConnected(
            event_type=EventType.AGENT_CONNECTED, ts_ms=ts_ms, attempt_id=attempt_id
        )
    if known is TransportEventName.AGENT_SPEAKING_STARTED:
        return AgentSpeakingStarted(
            event_type=EventType.AGENT_SPEAKING_STARTED,
            ts_ms=ts_ms,
            attempt_id=attempt_id,
        )
    if known is TransportEventName.AGENT_SPEAKING_STOPPED:
        return AgentSpeakingStopped(
            event_type=EventType.AGENT_SPEAKING_STOPPED,
            ts_ms=ts_ms,
            attempt_id=attempt_id,
        )
    if known is TransportEventName.TRANSCRIPT:
        return Transcript(
            event_type=EventType.TRANSCRIPT,
            ts_ms=ts_ms,
            attempt_id=attempt_id,
            text=_text(_field(payload, "text")),
            payload=payload if isinstance(payload, dict) else None,
        )
    if known is TransportEventName.MICROPHONE_PERMISSION_GRANTED:
        return MicrophonePermissionGranted(
            event_type=EventType.MICROPHONE_PERMISSION_GRANTED,
            ts_ms=ts_ms,
            attempt_id=attempt_id,
        )
    if known is TransportEventName.MICROPHONE_PERMISSION_ERROR:
        return MicrophonePermissionError(
            event_type=EventType.MICROPHONE_PERMISSION_ERROR,
            ts_ms=ts_ms,
            attempt_id=attempt_id,
            error=_error_text(payload),
            can_retry=bool(_field(payload, "canRetry")),
        )
    if known is TransportEventName.MICROPHONE_ACCESS_FAILED:
        return MicrophoneAccessFailed(
            event_type=EventType.MICROPHONE_ACCESS_FAILED,
            ts_ms=ts_ms,
            attempt_id=attempt_id,
            error=_error_text(payload),
        )

    return TransportError(
        event_type=EventType.TRANSPORT_ERROR,
        ts_ms=ts_ms,
        attempt_id=attempt_id,
        reason=_error_text(payload),
    )
