"""
Side-effect command definitions for the session orchestrator.

Rules:
- Commands are declarative requests for side effects.
- Commands are emitted by the reducer and executed by the runtime.
- No behavior, no async, no I/O, no clocks.
- Reducer logic remains pure and deterministic.
Invariant:
    - All concrete Command subclasses MUST be frozen dataclasses.
    - Commands are immutable value objects emitted by the reducer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from orchestrator.enums.error_kind import ErrorKind
from orchestrator.enums.mode import CallMode
from orchestrator.events import EventType

# =============================================================================
# Command Type Enumeration
# =============================================================================

class CommandType(str, Enum):
    """
    Canonical command types emitted by the reducer.

    These are stable discriminants used for logging and runtime dispatch.
    """

    # Gateway
    REQUEST_GRANT = "REQUEST_GRANT"

    # Transport
    ACQUIRE_SUBSCRIPTION = "ACQUIRE_SUBSCRIPTION"
    RELEASE_SUBSCRIPTION = "RELEASE_SUBSCRIPTION"
    START_TRANSPORT = "START_TRANSPORT"
    STOP_TRANSPORT = "STOP_TRANSPORT"
    START_AUDIO_PLAYBACK = "START_AUDIO_PLAYBACK"
    MUTE = "MUTE"
    UNMUTE = "UNMUTE"
    SEND_TRANSPORT_TEXT = "SEND_TRANSPORT_TEXT"

    # Conversation log
    CLEAR_CONVERSATION = "CLEAR_CONVERSATION"
    APPEND_MESSAGE = "APPEND_MESSAGE"

    # Caller callbacks
    REPORT_ERROR = "REPORT_ERROR"
    NOTIFY_TRANSCRIPT = "NOTIFY_TRANSCRIPT"

    # Timers
    START_TIMER = "START_TIMER"
    CANCEL_TIMER = "CANCEL_TIMER"

    # Observability
    LOG_EVENT = "LOG_EVENT"


# =============================================================================
# Base Command
# =============================================================================

class Command:
    """
    Base command type.

    command_type is an explicit discriminant and must never be inferred
    from Python type identity.
    """

    command_type: CommandType


# =============================================================================
# Gateway Commands
# =============================================================================

@dataclass(frozen=True)
class RequestGrant(Command):
    """
    Request an access grant from the relay.

    The runtime must answer with exactly one GrantReceived or GrantFailed
    carrying the same attempt_id.
    """
    attempt_id: int
    agent_id: str
    api_key: str
    mode: CallMode
    command_type: CommandType = CommandType.REQUEST_GRANT


# =============================================================================
# Transport Commands
# =============================================================================

@dataclass(frozen=True)
class AcquireSubscription(Command):
    """
    Subscribe to transport events on behalf of attempt_id.

    The runtime releases the currently held subscription first.
    """
    attempt_id: int
    command_type: CommandType = CommandType.ACQUIRE_SUBSCRIPTION


@dataclass(frozen=True)
class ReleaseSubscription(Command):
    """Release the currently held transport subscription, if any."""
    command_type: CommandType = CommandType.RELEASE_SUBSCRIPTION


@dataclass(frozen=True)
class StartTransport(Command):
    """
    Start a transport session with the obtained grant.

    Answered by TransportStarted or TransportStartFailed.
    """
    attempt_id: int
    access_token: str
    host: str
    mode: CallMode
    command_type: CommandType = CommandType.START_TRANSPORT


@dataclass(frozen=True)
class StartAudioPlayback(Command):
    """
    Start audio playback for a voice call.

    Emitted once start_session() has returned. Failure is answered with
    TransportStartFailed.
    """
    attempt_id: int
    command_type: CommandType = CommandType.START_AUDIO_PLAYBACK


@dataclass(frozen=True)
class StopTransport(Command):
    """Best-effort stop; failures are expected and swallowed."""
    attempt_id: int
    command_type: CommandType = CommandType.STOP_TRANSPORT


@dataclass(frozen=True)
class Mute(Command):
    """Mute the microphone."""
    attempt_id: int
    command_type: CommandType = CommandType.MUTE


@dataclass(frozen=True)
class Unmute(Command):
    """Unmute the microphone."""
    attempt_id: int
    command_type: CommandType = CommandType.UNMUTE


@dataclass(frozen=True)
class SendTransportText(Command):
    """Forward a user text message to the agent."""
    attempt_id: int
    text: str
    command_type: CommandType = CommandType.SEND_TRANSPORT_TEXT


# =============================================================================
# Conversation Log Commands
# =============================================================================

@dataclass(frozen=True)
class ClearConversation(Command):
    """Empty the conversation log (new connection attempt only)."""
    command_type: CommandType = CommandType.CLEAR_CONVERSATION


@dataclass(frozen=True)
class AppendMessage(Command):
    """Append one message to the conversation log."""
    sender: Literal["user", "agent"]
    text: str
    command_type: CommandType = CommandType.APPEND_MESSAGE


# =============================================================================
# Caller Callback Commands
# =============================================================================

@dataclass(frozen=True)
class ReportError(Command):
    """Invoke the caller's on_error callback."""
    kind: ErrorKind
    message: str
    command_type: CommandType = CommandType.REPORT_ERROR


@dataclass(frozen=True)
class NotifyTranscript(Command):
    """Invoke the caller's on_transcript callback."""
    text: str
    payload: dict[str, Any] | None = None
    command_type: CommandType = CommandType.NOTIFY_TRANSCRIPT


# =============================================================================
# Timer Commands
# =============================================================================

@dataclass(frozen=True)
class StartTimer(Command):
    """
    Request to start (or replace) a named timer.

    On expiration, the runtime must inject the specified timeout event
    tagged with attempt_id.
    """
    timer_id: str
    duration_ms: int
    timeout_event_type: EventType
    attempt_id: int
    command_type: CommandType = CommandType.START_TIMER


@dataclass(frozen=True)
class CancelTimer(Command):
    """Request to cancel a previously scheduled timer."""
    timer_id: str
    command_type: CommandType = CommandType.CANCEL_TIMER


# =============================================================================
# Observability Commands
# =============================================================================

@dataclass(frozen=True)
class LogEvent(Command):
    """Request to emit a structured observability event."""
    event: dict[str, Any]
    command_type: CommandType = CommandType.LOG_EVENT
