# pylint: disable=missing-module-docstring,missing-function-docstring

from dataclasses import replace

from constants import STATUS_READY
from orchestrator.commands import (
    CancelTimer,
    Command,
    LogEvent,
    ReleaseSubscription,
    ReportError,
    RequestGrant,
    StartTimer,
    StopTransport,
)
from orchestrator.enums.error_kind import ErrorKind
from orchestrator.enums.mode import CallMode
from orchestrator.enums.phase import Phase
from orchestrator.events import (
    ConnectRequested,
    DisconnectRequested,
    ErrorResetTimeout,
    EventType,
    GrantFailed,
    MicrophoneAccessFailed,
    MicrophonePermissionError,
    Transcript,
    TransportError,
    TransportStartFailed,
)
from orchestrator.reducer import TIMER_ERROR_RESET, reduce
from orchestrator.state_dataclass import AccessGrant, SessionState


# ---------------------------------------------------------------------
# Event helpers
# ---------------------------------------------------------------------

def connect() -> ConnectRequested:
    return ConnectRequested(event_type=EventType.CONNECT_REQUESTED, ts_ms=0)


def disconnect() -> DisconnectRequested:
    return DisconnectRequested(event_type=EventType.DISCONNECT_REQUESTED, ts_ms=0)


def grant_failed(attempt_id: int, reason: str = "Failed to get access token: 401"):
    return GrantFailed(
        event_type=EventType.GRANT_FAILED,
        ts_ms=0,
        attempt_id=attempt_id,
        reason=reason,
        status_code=401,
    )


def start_failed(attempt_id: int, reason: str = "socket closed"):
    return TransportStartFailed(
        event_type=EventType.TRANSPORT_START_FAILED,
        ts_ms=0,
        attempt_id=attempt_id,
        reason=reason,
    )


def mic_denied(attempt_id: int, error: str = "Permission denied"):
    return MicrophonePermissionError(
        event_type=EventType.MICROPHONE_PERMISSION_ERROR,
        ts_ms=0,
        attempt_id=attempt_id,
        error=error,
        can_retry=True,
    )


def mic_failed(attempt_id: int, error: str = "no device"):
    return MicrophoneAccessFailed(
        event_type=EventType.MICROPHONE_ACCESS_FAILED,
        ts_ms=0,
        attempt_id=attempt_id,
        error=error,
    )


def transport_error(attempt_id: int, reason: str = "network lost"):
    return TransportError(
        event_type=EventType.TRANSPORT_ERROR,
        ts_ms=0,
        attempt_id=attempt_id,
        reason=reason,
    )


def reset_timeout(attempt_id: int) -> ErrorResetTimeout:
    return ErrorResetTimeout(
        event_type=EventType.ERROR_RESET_TIMEOUT, ts_ms=0, attempt_id=attempt_id
    )


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def of_type(commands: tuple[Command, ...], cls: type) -> list[Command]:
    return [c for c in commands if isinstance(c, cls)]


def decisions(commands: tuple[Command, ...]) -> list[str]:
    return [c.event["decision"] for c in commands if isinstance(c, LogEvent)]


def connecting() -> SessionState:
    state = SessionState(agent_id="agent-1", api_key="key-1", error_reset_delay_ms=50)
    state, _ = reduce(state, connect())
    return state


def agent_ready() -> SessionState:
    return replace(
        connecting(),
        phase=Phase.AGENT_CONNECTED,
        grant=AccessGrant(token="tok", host="wss://h"),
        is_muted=True,
    )


# ---------------------------------------------------------------------
# 1. Gateway failures
# ---------------------------------------------------------------------

def test_gateway_failure_resets_to_idle_with_error_status():
    new_state, commands = reduce(connecting(), grant_failed(1))

    assert new_state.phase is Phase.IDLE
    assert new_state.status_message == (
        "Connection failed: Failed to get access token: 401"
    )
    assert new_state.error_pending
    assert new_state.last_error is not None
    assert new_state.last_error.kind is ErrorKind.GATEWAY

    assert of_type(commands, ReportError) == [
        ReportError(kind=ErrorKind.GATEWAY, message="Failed to get access token: 401")
    ]
    timers = of_type(commands, StartTimer)
    assert len(timers) == 1
    assert timers[0].timer_id == TIMER_ERROR_RESET
    assert timers[0].duration_ms == 50
    assert timers[0].attempt_id == 1
    # No grant was obtained, so there is no session to stop.
    assert not of_type(commands, StopTransport)


def test_error_status_restored_after_grace_delay():
    state, _ = reduce(connecting(), grant_failed(1))

    new_state, _ = reduce(state, reset_timeout(1))

    assert new_state.phase is Phase.IDLE
    assert new_state.status_message == STATUS_READY
    assert not new_state.error_pending
    assert new_state.last_error is None


def test_connect_during_grace_window_cancels_reset_timer():
    state, _ = reduce(connecting(), grant_failed(1))

    new_state, commands = reduce(state, connect())

    assert new_state.phase is Phase.CONNECTING
    assert new_state.attempt_id == 2
    assert not new_state.error_pending
    assert CancelTimer(timer_id=TIMER_ERROR_RESET) in commands
    assert of_type(commands, RequestGrant)


def test_stale_reset_timer_does_not_touch_new_attempt():
    state, _ = reduce(connecting(), grant_failed(1))
    state, _ = reduce(state, connect())

    new_state, commands = reduce(state, reset_timeout(1))

    assert new_state == state
    assert "ignore" in decisions(commands)


# ---------------------------------------------------------------------
# 2. Transport start failures
# ---------------------------------------------------------------------

def test_transport_start_failure_stops_and_resets():
    state = replace(connecting(), grant=AccessGrant(token="tok", host="wss://h"))

    new_state, commands = reduce(state, start_failed(1))

    assert new_state.phase is Phase.IDLE
    assert new_state.status_message == "Connection failed: socket closed"
    assert new_state.grant is None
    assert of_type(commands, StopTransport) == [StopTransport(attempt_id=1)]
    assert of_type(commands, ReleaseSubscription)
    assert of_type(commands, StartTimer)


# ---------------------------------------------------------------------
# 3. Microphone errors
# ---------------------------------------------------------------------

def test_microphone_permission_error_resets_and_keeps_status_until_timer():
    state = agent_ready()

    state, commands = reduce(state, mic_denied(1))

    assert state.status_message == "Microphone error: Permission denied"
    assert state.error_pending
    assert state.phase is Phase.IDLE
    assert not state.is_muted
    assert of_type(commands, ReportError) == [
        ReportError(kind=ErrorKind.MICROPHONE, message="Permission denied")
    ]
    assert of_type(commands, StopTransport)
    assert of_type(commands, ReleaseSubscription)

    state, _ = reduce(state, reset_timeout(1))

    assert state.phase is Phase.IDLE
    assert state.status_message == STATUS_READY
    assert not state.error_pending


def test_microphone_access_failed_status():
    new_state, _ = reduce(agent_ready(), mic_failed(1))

    assert new_state.status_message == "Microphone access failed: no device"


def test_microphone_error_reported_exactly_once():
    state, first = reduce(agent_ready(), mic_denied(1))

    _, second = reduce(state, mic_failed(1))

    assert len(of_type(first, ReportError)) == 1
    assert not of_type(second, ReportError)


def test_events_after_microphone_error_are_ignored():
    state, _ = reduce(agent_ready(), mic_denied(1))

    new_state, commands = reduce(
        state,
        Transcript(
            event_type=EventType.TRANSCRIPT, ts_ms=0, attempt_id=1, text="late"
        ),
    )

    assert new_state == state
    assert "ignore" in decisions(commands)


def test_connect_after_microphone_error_starts_new_attempt():
    state, _ = reduce(agent_ready(), mic_denied(1))

    new_state, commands = reduce(state, connect())

    assert new_state.phase is Phase.CONNECTING
    assert new_state.attempt_id == 2
    assert not new_state.error_pending
    assert new_state.last_error is None
    assert CancelTimer(timer_id=TIMER_ERROR_RESET) in commands
    assert of_type(commands, RequestGrant)

    stale_state, stale_commands = reduce(new_state, reset_timeout(1))

    assert stale_state == new_state
    assert "ignore" in decisions(stale_commands)


def test_disconnect_cancels_pending_reset_after_microphone_error():
    state, _ = reduce(agent_ready(), mic_denied(1))

    new_state, commands = reduce(state, disconnect())

    assert new_state.phase is Phase.DISCONNECTING
    assert not new_state.error_pending
    assert CancelTimer(timer_id=TIMER_ERROR_RESET) in commands


# ---------------------------------------------------------------------
# 4. Transport runtime errors
# ---------------------------------------------------------------------

def test_transport_error_resets_immediately_and_restores_status_later():
    state, commands = reduce(agent_ready(), transport_error(1))

    assert state.phase is Phase.IDLE
    assert state.status_message == "Error: network lost"
    assert not state.is_muted
    assert of_type(commands, StopTransport)
    assert of_type(commands, ReportError) == [
        ReportError(kind=ErrorKind.TRANSPORT_RUNTIME, message="network lost")
    ]

    state, _ = reduce(state, reset_timeout(1))

    assert state.status_message == STATUS_READY


def test_transport_error_from_stale_attempt_is_ignored():
    state = replace(agent_ready(), attempt_id=3)

    new_state, commands = reduce(state, transport_error(2))

    assert new_state == state
    assert not of_type(commands, ReportError)


def test_error_path_keeps_mode_and_credentials():
    state = replace(agent_ready(), mode=CallMode.TEXT_CHAT)

    new_state, _ = reduce(state, transport_error(1))

    assert new_state.mode is CallMode.TEXT_CHAT
    assert new_state.agent_id == "agent-1"
    assert new_state.api_key == "key-1"
