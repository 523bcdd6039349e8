"""
Pure session reducer.

(state, event) -> (new_state, commands)

Rules:
- Pure: no side effects, no IO, no clocks.
- Deterministic: output depends only on inputs.
- Total: every (phase, event) pair is handled or explicitly ignored (logged).
"""

# Reducer owns timer semantics; runtime must not cancel timers implicitly.

from __future__ import annotations

from dataclasses import replace
from typing import Any

from constants import (
    STATUS_AGENT_READY,
    STATUS_AGENT_SPEAKING,
    STATUS_CONNECTING_TEMPLATE,
    STATUS_CONNECTION_FAILED_TEMPLATE,
    STATUS_DISCONNECTING,
    STATUS_FETCHING_TOKEN,
    STATUS_MIC_ACCESS_FAILED_TEMPLATE,
    STATUS_MIC_PERMISSION_ERROR_TEMPLATE,
    STATUS_MISSING_CREDENTIALS,
    STATUS_READY,
    STATUS_TRANSPORT_ERROR_TEMPLATE,
    STATUS_WAITING_FOR_AGENT,
)
from orchestrator.commands import (
    AcquireSubscription,
    AppendMessage,
    CancelTimer,
    ClearConversation,
    Command,
    LogEvent,
    Mute,
    NotifyTranscript,
    ReleaseSubscription,
    ReportError,
    RequestGrant,
    SendTransportText,
    StartAudioPlayback,
    StartTimer,
    StartTransport,
    StopTransport,
    Unmute,
)
from orchestrator.enums.error_kind import ErrorKind
from orchestrator.enums.mode import CallMode
from orchestrator.enums.phase import Phase
from orchestrator.events import (
    AgentConnected,
    AgentSpeakingStarted,
    AgentSpeakingStopped,
    AttemptEvent,
    ConnectRequested,
    CredentialsUpdated,
    DisconnectRequested,
    ErrorResetTimeout,
    Event,
    EventType,
    GrantFailed,
    GrantReceived,
    MicrophoneAccessFailed,
    MicrophonePermissionError,
    MicrophonePermissionGranted,
    ModeChangeRequested,
    MuteFailed,
    PendingTextUpdated,
    SendTextRequested,
    SessionEnded,
    SessionStarted,
    ToggleMuteRequested,
    Transcript,
    TransportError,
    TransportEvent,
    TransportStartFailed,
    TransportStarted,
    TransportStopped,
    UnrecognizedTransportEvent,
)
from orchestrator.state_dataclass import AccessGrant, SessionState, SurfacedError


# =============================================================================
# Invariants
# =============================================================================
# - is_agent_speaking implies phase == AGENT_CONNECTED
# - phase == IDLE implies not is_muted and grant is None
# - attempt_id is bumped ONLY when a connect is accepted
# - Events tagged with a non-current attempt_id never change state

# =============================================================================
# Timer IDs
# =============================================================================

TIMER_ERROR_RESET = "error_reset"

# Phases in which a transport session is (being) established.
ACTIVE_PHASES = frozenset({Phase.CONNECTING, Phase.CONNECTED, Phase.AGENT_CONNECTED})

Result = tuple[SessionState, tuple[Command, ...]]


# =============================================================================
# Small helpers
# =============================================================================

def has_credentials(state: SessionState) -> bool:
    """True iff both agent id and API key are non-blank."""
    return bool(state.agent_id.strip()) and bool(state.api_key.strip())


def _log(
    state: SessionState,
    event: Event,
    decision: str,
    details: dict[str, Any] | None = None,
) -> LogEvent:
    return LogEvent(
        event={
            "ts_ms": event.ts_ms,
            "phase": state.phase.value,
            "mode": state.mode.value,
            "event_type": event.event_type.value,
            "decision": decision,
            "attempt_id": state.attempt_id,
            "error_pending": state.error_pending,
            "details": details or {},
        }
    )


def _state_changed(
    prev: SessionState,
    new: SessionState,
    event: Event,
    source: str,
) -> LogEvent:
    return _log(
        new,
        event,
        "state_changed",
        {
            "from_phase": prev.phase.value,
            "to_phase": new.phase.value,
            "source": source,
        },
    )


def _logs_last(commands: tuple[Command, ...]) -> tuple[Command, ...]:
    non_logs: list[Command] = []
    logs: list[Command] = []
    state_change_logs: list[Command] = []

    for command in commands:
        if isinstance(command, LogEvent):
            if command.event.get("decision") == "state_changed":
                state_change_logs.append(command)
            else:
                logs.append(command)
        else:
            non_logs.append(command)

    return tuple(non_logs + logs + state_change_logs)


def _ignore(state: SessionState, event: Event, reason: str) -> Result:
    return state, (_log(state, event, "ignore", {"reason": reason}),)


def _settle(state: SessionState) -> SessionState:
    """Project flags that are only meaningful in certain phases."""
    if state.phase is not Phase.AGENT_CONNECTED and state.is_agent_speaking:
        state = replace(state, is_agent_speaking=False)
    if state.phase is Phase.IDLE and (state.is_muted or state.grant is not None):
        state = replace(state, is_muted=False, grant=None)
    return state


def _full_reset(
    state: SessionState,
    event: Event,
    *,
    source: str,
    status: str = STATUS_READY,
    stop_transport: bool,
    cancel_timer: bool = True,
) -> Result:
    """
    Return the session to IDLE.

    Credentials, mode, attempt counter and the configured delay survive;
    everything session-scoped is discarded.
    """
    new_state = replace(
        state,
        phase=Phase.IDLE,
        is_muted=False,
        is_agent_speaking=False,
        status_message=status,
        pending_text_input="",
        grant=None,
        error_pending=False,
        last_error=None,
    )
    cmds: list[Command] = [ReleaseSubscription()]
    if stop_transport:
        cmds.append(StopTransport(attempt_id=state.attempt_id))
    if cancel_timer:
        cmds.append(CancelTimer(timer_id=TIMER_ERROR_RESET))
    cmds.append(_log(new_state, event, "session_reset", {"source": source}))
    cmds.append(_state_changed(state, new_state, event, source))
    return new_state, _logs_last(tuple(cmds))


def _surface_error(
    state: SessionState,
    event: Event,
    *,
    kind: ErrorKind,
    message: str,
    status: str,
) -> Result:
    """
    Report an error and schedule the auto-reset.

    The session returns to IDLE immediately, so a new connect() is accepted
    at once and supersedes the pending timer. The error status stays until
    the timer fires and restores the idle status.
    """
    error = SurfacedError(kind=kind, message=message)

    new_state, cmds = _full_reset(
        state,
        event,
        source=f"error:{kind.value}",
        status=status,
        stop_transport=state.grant is not None,
        cancel_timer=False,
    )
    new_state = replace(new_state, error_pending=True, last_error=error)

    # Report and arm the timer before the transport stop, which may suspend.
    more: list[Command] = [
        ReportError(kind=kind, message=message),
        StartTimer(
            timer_id=TIMER_ERROR_RESET,
            duration_ms=state.error_reset_delay_ms,
            timeout_event_type=EventType.ERROR_RESET_TIMEOUT,
            attempt_id=state.attempt_id,
        ),
        *cmds,
    ]
    more.append(
        _log(
            new_state,
            event,
            "error_surfaced",
            {"kind": kind.value, "message": message},
        )
    )
    return new_state, _logs_last(tuple(more))


# =============================================================================
# Caller commands
# =============================================================================

def _on_connect(state: SessionState, event: ConnectRequested) -> Result:
    if state.phase is not Phase.IDLE:
        return _ignore(state, event, "session_already_active")

    if not has_credentials(state):
        error = SurfacedError(
            kind=ErrorKind.VALIDATION, message=STATUS_MISSING_CREDENTIALS
        )
        new_state = replace(
            state, status_message=STATUS_MISSING_CREDENTIALS, last_error=error
        )
        return new_state, _logs_last((
            ReportError(kind=ErrorKind.VALIDATION, message=STATUS_MISSING_CREDENTIALS),
            _log(new_state, event, "connect_rejected", {"reason": "missing_credentials"}),
        ))

    attempt_id = state.attempt_id + 1
    new_state = replace(
        state,
        phase=Phase.CONNECTING,
        attempt_id=attempt_id,
        status_message=STATUS_FETCHING_TOKEN,
        grant=None,
        is_muted=False,
        is_agent_speaking=False,
        error_pending=False,
        last_error=None,
    )
    return new_state, _logs_last((
        CancelTimer(timer_id=TIMER_ERROR_RESET),
        ClearConversation(),
        RequestGrant(
            attempt_id=attempt_id,
            agent_id=state.agent_id.strip(),
            api_key=state.api_key.strip(),
            mode=state.mode,
        ),
        _log(new_state, event, "connect_accepted", {"mode": state.mode.value}),
        _state_changed(state, new_state, event, "connect"),
    ))


def _on_disconnect(state: SessionState, event: DisconnectRequested) -> Result:
    if state.phase is Phase.DISCONNECTING:
        return _ignore(state, event, "already_disconnecting")

    new_state = replace(
        state,
        phase=Phase.DISCONNECTING,
        status_message=STATUS_DISCONNECTING,
        is_agent_speaking=False,
        error_pending=False,
        last_error=None,
    )
    return new_state, _logs_last((
        CancelTimer(timer_id=TIMER_ERROR_RESET),
        ReleaseSubscription(),
        StopTransport(attempt_id=state.attempt_id),
        _state_changed(state, new_state, event, "disconnect"),
    ))


def _on_transport_stopped(state: SessionState, event: TransportStopped) -> Result:
    if state.phase is not Phase.DISCONNECTING or event.attempt_id != state.attempt_id:
        return state, (
            _log(state, event, "transport_stopped", {"failed": event.failed}),
        )

    new_state, cmds = _full_reset(
        state,
        event,
        source="disconnect",
        stop_transport=False,
        cancel_timer=False,
    )
    return new_state, cmds + (
        _log(new_state, event, "transport_stopped", {"failed": event.failed}),
    )


def _on_toggle_mute(state: SessionState, event: ToggleMuteRequested) -> Result:
    if state.mode is not CallMode.VOICE_CALL:
        return _ignore(state, event, "mute_requires_voice_call")
    if state.phase not in (Phase.CONNECTED, Phase.AGENT_CONNECTED):
        return _ignore(state, event, "no_active_session")

    muted = not state.is_muted
    new_state = replace(state, is_muted=muted)
    cmd: Command = (
        Mute(attempt_id=state.attempt_id)
        if muted
        else Unmute(attempt_id=state.attempt_id)
    )
    return new_state, _logs_last((
        cmd,
        _log(new_state, event, "mute_toggled", {"is_muted": muted}),
    ))


def _on_mute_failed(state: SessionState, event: MuteFailed) -> Result:
    if event.attempt_id != state.attempt_id or state.phase not in ACTIVE_PHASES:
        return _ignore(state, event, "stale_mute_result")
    if state.is_muted != event.muted:
        return _ignore(state, event, "mute_already_superseded")

    new_state = replace(state, is_muted=not event.muted)
    return new_state, (
        _log(
            new_state,
            event,
            "mute_reverted",
            {"requested": event.muted, "reason": event.reason},
        ),
    )


def _on_send_text(state: SessionState, event: SendTextRequested) -> Result:
    text = state.pending_text_input if event.text is None else event.text

    if not text.strip():
        return _ignore(state, event, "empty_text")
    if state.phase is not Phase.AGENT_CONNECTED:
        return _ignore(state, event, "agent_not_connected")
    if state.mode is not CallMode.TEXT_CHAT:
        return _ignore(state, event, "text_requires_text_chat")

    new_state = replace(state, pending_text_input="")
    return new_state, _logs_last((
        AppendMessage(sender="user", text=text),
        SendTransportText(attempt_id=state.attempt_id, text=text),
        _log(new_state, event, "text_sent", {"length": len(text)}),
    ))


def _on_mode_change(state: SessionState, event: ModeChangeRequested) -> Result:
    if state.phase is not Phase.IDLE:
        return _ignore(state, event, "settings_locked")
    new_state = replace(state, mode=event.mode)
    return new_state, (
        _log(new_state, event, "mode_changed", {"mode": event.mode.value}),
    )


def _on_credentials(state: SessionState, event: CredentialsUpdated) -> Result:
    if state.phase is not Phase.IDLE:
        return _ignore(state, event, "settings_locked")
    new_state = replace(state, agent_id=event.agent_id, api_key=event.api_key)
    return new_state, (
        _log(
            new_state,
            event,
            "credentials_updated",
            {"agent_id": event.agent_id, "has_api_key": bool(event.api_key.strip())},
        ),
    )


# =============================================================================
# Gateway / transport command results
# =============================================================================

def _on_grant_received(state: SessionState, event: GrantReceived) -> Result:
    if event.attempt_id != state.attempt_id or state.phase is not Phase.CONNECTING:
        return _ignore(state, event, "stale_grant")

    new_state = replace(
        state,
        grant=AccessGrant(token=event.token, host=event.host),
        status_message=STATUS_CONNECTING_TEMPLATE.format(mode=state.mode.value),
    )
    return new_state, _logs_last((
        AcquireSubscription(attempt_id=state.attempt_id),
        StartTransport(
            attempt_id=state.attempt_id,
            access_token=event.token,
            host=event.host,
            mode=state.mode,
        ),
        _log(new_state, event, "grant_received", {"host": event.host}),
    ))


def _on_grant_failed(state: SessionState, event: GrantFailed) -> Result:
    if event.attempt_id != state.attempt_id or state.phase is not Phase.CONNECTING:
        return _ignore(state, event, "stale_grant")

    return _surface_error(
        state,
        event,
        kind=ErrorKind.GATEWAY,
        message=event.reason,
        status=STATUS_CONNECTION_FAILED_TEMPLATE.format(error=event.reason),
    )


def _on_transport_started(state: SessionState, event: TransportStarted) -> Result:
    if event.attempt_id != state.attempt_id:
        return _ignore(state, event, "stale_transport_start")

    if state.phase not in ACTIVE_PHASES:
        # Session ended while start_session() was in flight.
        return state, _logs_last((
            StopTransport(attempt_id=state.attempt_id),
            _log(state, event, "late_transport_start_stopped"),
        ))

    if state.mode is CallMode.VOICE_CALL:
        return state, _logs_last((
            StartAudioPlayback(attempt_id=state.attempt_id),
            _log(state, event, "transport_started"),
        ))
    return state, (_log(state, event, "transport_started"),)


def _on_transport_start_failed(
    state: SessionState, event: TransportStartFailed
) -> Result:
    if (
        event.attempt_id != state.attempt_id
        or state.phase not in ACTIVE_PHASES
    ):
        return _ignore(state, event, "stale_transport_start")

    return _surface_error(
        state,
        event,
        kind=ErrorKind.TRANSPORT_START,
        message=event.reason,
        status=STATUS_CONNECTION_FAILED_TEMPLATE.format(error=event.reason),
    )


# =============================================================================
# Transport deliveries
# =============================================================================

def _on_transport_event(state: SessionState, event: TransportEvent) -> Result:
    if isinstance(event, UnrecognizedTransportEvent):
        return _ignore(state, event, f"unrecognized_event:{event.name}")
    if event.attempt_id != state.attempt_id:
        return _ignore(state, event, "stale_subscription")
    if state.phase not in ACTIVE_PHASES:
        return _ignore(state, event, "no_active_session")

    if isinstance(event, SessionStarted):
        if state.phase is not Phase.CONNECTING:
            return _ignore(state, event, "session_already_started")
        new_state = replace(
            state, phase=Phase.CONNECTED, status_message=STATUS_WAITING_FOR_AGENT
        )
        return new_state, (_state_changed(state, new_state, event, "session_started"),)

    if isinstance(event, AgentConnected):
        if state.phase is Phase.AGENT_CONNECTED:
            return _ignore(state, event, "agent_already_connected")
        new_state = replace(
            state, phase=Phase.AGENT_CONNECTED, status_message=STATUS_AGENT_READY
        )
        return new_state, (_state_changed(state, new_state, event, "agent_connected"),)

    if isinstance(event, (AgentSpeakingStarted, AgentSpeakingStopped)):
        if state.phase is not Phase.AGENT_CONNECTED:
            return _ignore(state, event, "agent_not_connected")
        speaking = isinstance(event, AgentSpeakingStarted)
        new_state = replace(
            state,
            is_agent_speaking=speaking,
            status_message=STATUS_AGENT_SPEAKING if speaking else STATUS_AGENT_READY,
        )
        return new_state, (
            _log(new_state, event, "agent_speaking", {"speaking": speaking}),
        )

    if isinstance(event, Transcript):
        return state, _logs_last((
            AppendMessage(sender="agent", text=event.text),
            NotifyTranscript(text=event.text, payload=event.payload),
            _log(state, event, "transcript", {"length": len(event.text)}),
        ))

    if isinstance(event, MicrophonePermissionGranted):
        return state, (_log(state, event, "microphone_granted"),)

    if isinstance(event, MicrophonePermissionError):
        return _surface_error(
            state,
            event,
            kind=ErrorKind.MICROPHONE,
            message=event.error,
            status=STATUS_MIC_PERMISSION_ERROR_TEMPLATE.format(error=event.error),
        )

    if isinstance(event, MicrophoneAccessFailed):
        return _surface_error(
            state,
            event,
            kind=ErrorKind.MICROPHONE,
            message=event.error,
            status=STATUS_MIC_ACCESS_FAILED_TEMPLATE.format(error=event.error),
        )

    if isinstance(event, TransportError):
        return _surface_error(
            state,
            event,
            kind=ErrorKind.TRANSPORT_RUNTIME,
            message=event.reason,
            status=STATUS_TRANSPORT_ERROR_TEMPLATE.format(error=event.reason),
        )

    if isinstance(event, SessionEnded):
        return _full_reset(state, event, source="session_ended", stop_transport=True)

    return _ignore(state, event, "unhandled_transport_event")


# =============================================================================
# Timers
# =============================================================================

def _on_error_reset_timeout(state: SessionState, event: ErrorResetTimeout) -> Result:
    if event.attempt_id != state.attempt_id or not state.error_pending:
        return _ignore(state, event, "stale_timer")

    # The firing timer is already gone; no CancelTimer.
    return _full_reset(
        state,
        event,
        source="error_reset_timeout",
        stop_transport=False,
        cancel_timer=False,
    )


# =============================================================================
# Reducer entrypoint
# =============================================================================

def reduce(state: SessionState, event: Event) -> Result:
    """
    Pure reducer for the session state machine.

    Given the current session state and a single event, returns:
    - the next state
    - a tuple of commands describing required side effects

    Properties:
    - Deterministic: no IO, clocks, or randomness
    - Total: every (phase, event) pair is handled or explicitly ignored
    - Attempt-safe: ignores events from superseded connection attempts
    """
    new_state, commands = _dispatch(state, event)
    return _settle(new_state), commands


def _dispatch(state: SessionState, event: Event) -> Result:
    # ------------------------------------------------------------------
    # Caller commands
    # ------------------------------------------------------------------
    if isinstance(event, ConnectRequested):
        return _on_connect(state, event)
    if isinstance(event, DisconnectRequested):
        return _on_disconnect(state, event)
    if isinstance(event, ToggleMuteRequested):
        return _on_toggle_mute(state, event)
    if isinstance(event, SendTextRequested):
        return _on_send_text(state, event)
    if isinstance(event, ModeChangeRequested):
        return _on_mode_change(state, event)
    if isinstance(event, CredentialsUpdated):
        return _on_credentials(state, event)
    if isinstance(event, PendingTextUpdated):
        return replace(state, pending_text_input=event.text), ()

    # ------------------------------------------------------------------
    # Transport deliveries
    # ------------------------------------------------------------------
    if isinstance(event, TransportEvent):
        return _on_transport_event(state, event)

    # ------------------------------------------------------------------
    # Command results
    # ------------------------------------------------------------------
    if isinstance(event, GrantReceived):
        return _on_grant_received(state, event)
    if isinstance(event, GrantFailed):
        return _on_grant_failed(state, event)
    if isinstance(event, TransportStarted):
        return _on_transport_started(state, event)
    if isinstance(event, TransportStartFailed):
        return _on_transport_start_failed(state, event)
    if isinstance(event, TransportStopped):
        return _on_transport_stopped(state, event)
    if isinstance(event, MuteFailed):
        return _on_mute_failed(state, event)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------
    if isinstance(event, ErrorResetTimeout):
        return _on_error_reset_timeout(state, event)

    if isinstance(event, AttemptEvent):
        return _ignore(state, event, "unhandled_attempt_event")
    return _ignore(state, event, "unhandled_event")
