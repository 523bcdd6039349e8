"""
Unified event definitions for the session reducer.

Rules:
- Events describe facts that have occurred (or caller requests).
- Events carry data only (no behavior).
- All reducer decisions are based on these events.
- No clocks, no timers, no async, no side effects.

Events produced on behalf of a connection attempt (gateway results,
transport command results, transport deliveries, timers) carry the
attempt_id that produced them so the reducer can drop stale ones.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from orchestrator.enums.mode import CallMode


# =============================================================================
# Event Type Enumeration
# =============================================================================

class EventType(str, Enum):
    """
    Canonical event types understood by the reducer.

    Every (phase, event_type) pair must be explicitly handled
    or explicitly ignored by the reducer.
    """

    # ------------------------------------------------------------------
    # Caller commands
    # ------------------------------------------------------------------
    CONNECT_REQUESTED = "CONNECT_REQUESTED"
    DISCONNECT_REQUESTED = "DISCONNECT_REQUESTED"
    TOGGLE_MUTE_REQUESTED = "TOGGLE_MUTE_REQUESTED"
    SEND_TEXT_REQUESTED = "SEND_TEXT_REQUESTED"
    MODE_CHANGE_REQUESTED = "MODE_CHANGE_REQUESTED"
    CREDENTIALS_UPDATED = "CREDENTIALS_UPDATED"
    PENDING_TEXT_UPDATED = "PENDING_TEXT_UPDATED"

    # ------------------------------------------------------------------
    # Gateway
    # ------------------------------------------------------------------
    GRANT_RECEIVED = "GRANT_RECEIVED"
    GRANT_FAILED = "GRANT_FAILED"

    # ------------------------------------------------------------------
    # Transport command results
    # ------------------------------------------------------------------
    TRANSPORT_STARTED = "TRANSPORT_STARTED"
    TRANSPORT_START_FAILED = "TRANSPORT_START_FAILED"
    TRANSPORT_STOPPED = "TRANSPORT_STOPPED"
    MUTE_FAILED = "MUTE_FAILED"

    # ------------------------------------------------------------------
    # Transport deliveries
    # ------------------------------------------------------------------
    SESSION_STARTED = "SESSION_STARTED"
    SESSION_ENDED = "SESSION_ENDED"
    AGENT_CONNECTED = "AGENT_CONNECTED"
    AGENT_SPEAKING_STARTED = "AGENT_SPEAKING_STARTED"
    AGENT_SPEAKING_STOPPED = "AGENT_SPEAKING_STOPPED"
    TRANSCRIPT = "TRANSCRIPT"
    MICROPHONE_PERMISSION_GRANTED = "MICROPHONE_PERMISSION_GRANTED"
    MICROPHONE_PERMISSION_ERROR = "MICROPHONE_PERMISSION_ERROR"
    MICROPHONE_ACCESS_FAILED = "MICROPHONE_ACCESS_FAILED"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    UNRECOGNIZED_TRANSPORT_EVENT = "UNRECOGNIZED_TRANSPORT_EVENT"

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------
    ERROR_RESET_TIMEOUT = "ERROR_RESET_TIMEOUT"


# =============================================================================
# Base Event
# =============================================================================

@dataclass(frozen=True)
class Event:
    """
    Base event type.

    All events must specify:
    - event_type: discriminant
    - ts_ms: timestamp provided by the source (or fake in tests)
    """

    event_type: EventType
    ts_ms: int


@dataclass(frozen=True)
class AttemptEvent(Event):
    """
    Base class for events produced on behalf of one connection attempt.

    The reducer MUST ignore events whose attempt_id does not match the
    current attempt.
    """

    attempt_id: int


@dataclass(frozen=True)
class TransportEvent(AttemptEvent):
    """
    Base class for events delivered by the transport's event emitter.

    attempt_id is the attempt whose subscription delivered the event.
    """


# =============================================================================
# Caller Commands
# =============================================================================

@dataclass(frozen=True)
class ConnectRequested(Event):
    """Caller asked to start a session with the current credentials and mode."""


@dataclass(frozen=True)
class DisconnectRequested(Event):
    """Caller asked to end the session."""


@dataclass(frozen=True)
class ToggleMuteRequested(Event):
    """Caller asked to flip the microphone mute state."""


@dataclass(frozen=True)
class SendTextRequested(Event):
    """
    Caller asked to send a text message.

    text=None means "send the pending draft".
    """
    text: str | None = None


@dataclass(frozen=True)
class ModeChangeRequested(Event):
    """Caller selected a conversation mode."""
    mode: CallMode


@dataclass(frozen=True)
class CredentialsUpdated(Event):
    """Caller edited the agent id / API key inputs."""
    agent_id: str
    api_key: str


@dataclass(frozen=True)
class PendingTextUpdated(Event):
    """Caller edited the text draft."""
    text: str


# =============================================================================
# Gateway Events
# =============================================================================

@dataclass(frozen=True)
class GrantReceived(AttemptEvent):
    """Relay returned an access grant."""
    token: str
    host: str


@dataclass(frozen=True)
class GrantFailed(AttemptEvent):
    """Access-token exchange failed. Never retried."""
    reason: str
    status_code: int | None = None


# =============================================================================
# Transport Command Results
# =============================================================================

@dataclass(frozen=True)
class TransportStarted(AttemptEvent):
    """start_session() (and audio playback, for voice calls) returned."""


@dataclass(frozen=True)
class TransportStartFailed(AttemptEvent):
    """start_session() or start_audio_playback() raised."""
    reason: str


@dataclass(frozen=True)
class TransportStopped(AttemptEvent):
    """
    stop_session() returned or raised.

    A raised stop is expected once the transport already considers the
    session over; failed records it for observability only.
    """
    failed: bool = False


@dataclass(frozen=True)
class MuteFailed(AttemptEvent):
    """mute()/unmute() raised; muted is the value that was requested."""
    muted: bool
    reason: str


# =============================================================================
# Transport Deliveries
# =============================================================================

@dataclass(frozen=True)
class SessionStarted(TransportEvent):
    """Transport session is up; the agent has not joined yet."""


@dataclass(frozen=True)
class SessionEnded(TransportEvent):
    """Transport session is over. Always ends the session."""


@dataclass(frozen=True)
class AgentConnected(TransportEvent):
    """The remote agent joined the session."""


@dataclass(frozen=True)
class AgentSpeakingStarted(TransportEvent):
    """The agent started speaking."""


@dataclass(frozen=True)
class AgentSpeakingStopped(TransportEvent):
    """The agent stopped speaking."""


@dataclass(frozen=True)
class Transcript(TransportEvent):
    """
    Agent utterance text.

    payload is the raw transport payload, forwarded to on_transcript.
    """
    text: str
    payload: dict[str, Any] | None = None


@dataclass(frozen=True)
class MicrophonePermissionGranted(TransportEvent):
    """Microphone access was granted."""


@dataclass(frozen=True)
class MicrophonePermissionError(TransportEvent):
    """Microphone permission was denied."""
    error: str
    can_retry: bool = False


@dataclass(frozen=True)
class MicrophoneAccessFailed(TransportEvent):
    """The microphone device could not be opened."""
    error: str


@dataclass(frozen=True)
class TransportError(TransportEvent):
    """Fatal transport error after the session started."""
    reason: str


@dataclass(frozen=True)
class UnrecognizedTransportEvent(TransportEvent):
    """An event name outside the known vocabulary. Always ignored."""
    name: str


# =============================================================================
# Timer Events
# =============================================================================

@dataclass(frozen=True)
class ErrorResetTimeout(AttemptEvent):
    """Grace window after a surfaced error elapsed."""
