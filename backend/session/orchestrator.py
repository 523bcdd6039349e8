"""
Session orchestrator facade.

Responsibilities:
- Owns the AgentSession lifecycle (one transport, a sequence of sessions)
- Translates caller requests into orchestrator events
- Forwards events into runtime
- Exposes state, snapshot and conversation log for observation

NOT responsible for:
- Any state machine logic (see orchestrator/reducer.py)
- Executing commands (see orchestrator/runtime.py)
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Callable
from uuid import uuid4

from constants import ERROR_RESET_DELAY_MS, STATUS_MISSING_CREDENTIALS
from observability.logger import log_event
from orchestrator.enums.mode import CallMode
from orchestrator.enums.phase import Phase
from orchestrator.errors import SessionError, ValidationError, error_for
from orchestrator.events import (
    ConnectRequested,
    CredentialsUpdated,
    DisconnectRequested,
    Event,
    EventType,
    ModeChangeRequested,
    PendingTextUpdated,
    SendTextRequested,
    ToggleMuteRequested,
)
from orchestrator.reducer import has_credentials
from orchestrator.runtime import Runtime
from orchestrator.runtime_context import GatewayProtocol, RuntimeExecutionContext
from orchestrator.state_dataclass import SessionState
from context.conversation_log import Message
from relay.client import AccessGrantClient
from session.agent_session import AgentSession
from session.snapshot import SessionSnapshot
from transport.base import TransportProtocol

if TYPE_CHECKING:
    from config import AppConfig


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _new_session_id() -> str:
    return f"sess_{uuid4().hex[:12]}"


# ------------------------------------------------------------------
# SessionOrchestrator
# ------------------------------------------------------------------

class SessionOrchestrator:
    """
    One orchestrator == one transport == a sequence of agent sessions.

    Every public operation dispatches exactly one event; all decisions
    are made by the reducer. connect() is the only operation that raises,
    and only for missing credentials.
    """

    def __init__(
        self,
        *,
        transport: TransportProtocol,
        gateway: GatewayProtocol,
        agent_id: str = "",
        api_key: str = "",
        mode: CallMode | str = CallMode.VOICE_CALL,
        error_reset_delay_ms: int = ERROR_RESET_DELAY_MS,
        on_error: Callable[[str], Any] | None = None,
        on_transcript: Callable[[str, dict[str, Any] | None], Any] | None = None,
        on_state_change: Callable[[SessionState], Any] | None = None,
        session_id: str | None = None,
    ) -> None:
        self.session = AgentSession(
            session_id=session_id or _new_session_id(),
            gateway=gateway,
            transport=transport,
            on_error=on_error,
            on_transcript=on_transcript,
            on_state_change=on_state_change,
        )

        runtime = Runtime(
            initial_state=SessionState(
                mode=CallMode(mode),
                agent_id=agent_id,
                api_key=api_key,
                error_reset_delay_ms=error_reset_delay_ms,
            ),
            context=RuntimeExecutionContext(session=self.session),
        )
        self._runtime = runtime

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "orchestrator_created",
            "session_id": self.session.session_id,
            "mode": CallMode(mode).value,
        })

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        transport: TransportProtocol,
        **kwargs: Any,
    ) -> SessionOrchestrator:
        """Build an orchestrator whose gateway is the HTTP relay client."""
        gateway = AccessGrantClient(
            base_url=config.relay_base_url,
            timeout_s=config.relay_timeout_s,
        )
        kwargs.setdefault("error_reset_delay_ms", config.error_reset_delay_ms)
        return cls(transport=transport, gateway=gateway, **kwargs)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._runtime.state

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot.from_state(self._runtime.state)

    @property
    def messages(self) -> tuple[Message, ...]:
        return self.session.conversation_log.messages

    @property
    def last_error(self) -> SessionError | None:
        """Typed exception for the most recently surfaced error, if any."""
        surfaced = self._runtime.state.last_error
        if surfaced is None:
            return None
        return error_for(surfaced.kind, surfaced.message)

    # ------------------------------------------------------------------
    # Caller operations
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """
        Start a new connection attempt.

        Ignored unless idle. Returns once the attempt has been handed to
        the transport (or failed); transport progress arrives as events.

        Raises:
            ValidationError if agent id or API key is blank.
        """
        before = self._runtime.state
        await self._dispatch(ConnectRequested(
            event_type=EventType.CONNECT_REQUESTED,
            ts_ms=_now_ms(),
        ))
        if before.phase is Phase.IDLE and not has_credentials(before):
            raise ValidationError(STATUS_MISSING_CREDENTIALS)

    async def disconnect(self) -> None:
        """End the current session and return to IDLE."""
        await self._dispatch(DisconnectRequested(
            event_type=EventType.DISCONNECT_REQUESTED,
            ts_ms=_now_ms(),
        ))

    async def toggle_mute(self) -> None:
        await self._dispatch(ToggleMuteRequested(
            event_type=EventType.TOGGLE_MUTE_REQUESTED,
            ts_ms=_now_ms(),
        ))

    async def send_text_message(self, text: str | None = None) -> None:
        """Send text (or the pending draft when text is None) to the agent."""
        await self._dispatch(SendTextRequested(
            event_type=EventType.SEND_TEXT_REQUESTED,
            ts_ms=_now_ms(),
            text=text,
        ))

    async def set_mode(self, mode: CallMode | str) -> None:
        await self._dispatch(ModeChangeRequested(
            event_type=EventType.MODE_CHANGE_REQUESTED,
            ts_ms=_now_ms(),
            mode=CallMode(mode),
        ))

    async def set_credentials(self, agent_id: str, api_key: str) -> None:
        await self._dispatch(CredentialsUpdated(
            event_type=EventType.CREDENTIALS_UPDATED,
            ts_ms=_now_ms(),
            agent_id=agent_id,
            api_key=api_key,
        ))

    async def set_pending_text(self, text: str) -> None:
        await self._dispatch(PendingTextUpdated(
            event_type=EventType.PENDING_TEXT_UPDATED,
            ts_ms=_now_ms(),
            text=text,
        ))

    async def shutdown(self) -> None:
        """Release the transport subscription and cancel pending timers."""
        await self._runtime.shutdown()
        log_event({
            "ts_ms": _now_ms(),
            "event_type": "orchestrator_shutdown",
            "session_id": self.session.session_id,
            "phase": self._runtime.state.phase.value,
        })

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _dispatch(self, event: Event) -> None:
        await self._runtime.handle_event(event)
