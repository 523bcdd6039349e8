"""
Runtime execution shell for a single agent session orchestrator.

Responsibilities:
- Own orchestrator state
- Call pure reducer
- Execute commands with side effects (gateway, transport, log, callbacks)
- Own the single transport subscription handle
- Schedule and cancel timers
- Convert timer expiry and capability results into events
"""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import TYPE_CHECKING, Any, Callable

from observability.logger import log_event
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
from orchestrator.errors import GatewayError
from orchestrator.events import (
    ErrorResetTimeout,
    Event,
    EventType,
    GrantFailed,
    GrantReceived,
    MuteFailed,
    TransportStartFailed,
    TransportStarted,
    TransportStopped,
)
from orchestrator.reducer import reduce
from orchestrator.state_dataclass import SessionState
from transport.subscription import TransportSubscription

if TYPE_CHECKING:
    from orchestrator.runtime_context import RuntimeExecutionContext


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class Runtime:
    """
    Runtime execution boundary for a single orchestrator.

    Responsibilities:
    - Own the authoritative SessionState
    - Act as the universal event sink (caller requests, gateway results,
      transport deliveries, timer events)
    - Invoke the pure reducer deterministically
    - Execute emitted commands with side effects
    - Schedule and cancel timers

    Guarantees:
    - Reducer is always called exactly once per incoming event
    - All side effects occur *after* state has been updated
    - Runtime never performs orchestration logic itself
    - Capability results and timers re-enter handle_event (single entry point)
    - At most one transport subscription is held at any time
    - A handler superseded by a newer attempt stops producing side effects
    """

    def __init__(
        self,
        *,
        initial_state: SessionState,
        context: RuntimeExecutionContext,
    ) -> None:
        self._state = initial_state
        self._ctx = context
        self._timers: dict[str, asyncio.Task[None]] = {}
        self._subscription: TransportSubscription | None = None

    @property
    def state(self) -> SessionState:
        """
        Return the current immutable session state.

        State is only replaced internally by Runtime via the reducer.
        Consumers must never modify it.
        """
        return self._state

    @property
    def subscription(self) -> TransportSubscription | None:
        return self._subscription

    async def handle_event(self, event: Event) -> None:
        """
        Process a single event through the orchestration pipeline.

        Processing steps:
        1. Pass the current state and event to the pure reducer
        2. Atomically swap in the new state
        3. Notify on_state_change if the state differs
        4. Execute all emitted commands sequentially

        Invariants:
        - State is updated before any side effects execute
        - Commands are executed in reducer-emitted order
        - Capability results are fed back through this method
        - A handler resumed after a newer attempt was accepted runs none of
          its remaining side effects; only its logs are written
        """
        prev_state = self._state
        new_state, commands = reduce(self._state, event)
        self._state = new_state
        attempt_id = new_state.attempt_id

        if new_state != prev_state:
            await self._invoke_callback(
                "on_state_change", self._ctx.on_state_change, new_state
            )

        for cmd in commands:
            if self._state.attempt_id != attempt_id and not isinstance(cmd, LogEvent):
                self._log_superseded(cmd, attempt_id)
                continue
            await self._execute_command(cmd)

    async def shutdown(self) -> None:
        """
        Clean shutdown of runtime.

        Cancels all in-flight timers, releases the transport subscription
        and waits for timer tasks to complete.
        """
        self._release_subscription()

        timers = list(self._timers.values())
        for timer_id in list(self._timers.keys()):
            self._cancel_timer(timer_id)

        if timers:
            await asyncio.gather(*timers, return_exceptions=True)

    # ------------------------------------------------------------------
    # Command execution (side effects)
    # ------------------------------------------------------------------

    def _log_superseded(self, cmd: Command, attempt_id: int) -> None:
        log_event({
            "ts_ms": _now_ms(),
            "event_type": "command_superseded",
            "command_type": cmd.command_type.value,
            "attempt_id": attempt_id,
            "current_attempt_id": self._state.attempt_id,
            **self._ctx.log_context(),
        })

    async def _execute_command(self, cmd: Command) -> None:
        """Execute a single command with side effects."""

        if isinstance(cmd, LogEvent):
            log_event({
                **cmd.event,
                **self._ctx.log_context(),
            })

        elif isinstance(cmd, RequestGrant):
            await self._request_grant(cmd)

        elif isinstance(cmd, AcquireSubscription):
            self._acquire_subscription(cmd.attempt_id)

        elif isinstance(cmd, ReleaseSubscription):
            self._release_subscription()

        elif isinstance(cmd, StartTransport):
            await self._start_transport(cmd)

        elif isinstance(cmd, StartAudioPlayback):
            await self._start_audio_playback(cmd)

        elif isinstance(cmd, StopTransport):
            await self._stop_transport(cmd)

        elif isinstance(cmd, Mute):
            await self._set_muted(cmd.attempt_id, muted=True)

        elif isinstance(cmd, Unmute):
            await self._set_muted(cmd.attempt_id, muted=False)

        elif isinstance(cmd, SendTransportText):
            await self._send_text(cmd)

        elif isinstance(cmd, ClearConversation):
            self._ctx.conversation_log.clear()

        elif isinstance(cmd, AppendMessage):
            self._ctx.conversation_log.append(cmd.sender, cmd.text)

        elif isinstance(cmd, ReportError):
            await self._invoke_callback("on_error", self._ctx.on_error, cmd.message)

        elif isinstance(cmd, NotifyTranscript):
            await self._invoke_callback(
                "on_transcript", self._ctx.on_transcript, cmd.text, cmd.payload
            )

        elif isinstance(cmd, StartTimer):
            self._start_timer(
                timer_id=cmd.timer_id,
                duration_ms=cmd.duration_ms,
                timeout_event_type=cmd.timeout_event_type,
                attempt_id=cmd.attempt_id,
            )

        elif isinstance(cmd, CancelTimer):
            self._cancel_timer(cmd.timer_id)

        else:
            raise TypeError(f"Unhandled command: {cmd.command_type}")

    # ------------------------------------------------------------------
    # Gateway
    # ------------------------------------------------------------------

    async def _request_grant(self, cmd: RequestGrant) -> None:
        gateway = self._ctx.gateway
        assert gateway is not None, "Gateway missing"

        try:
            grant = await gateway.request_grant(
                agent_id=cmd.agent_id,
                api_key=cmd.api_key,
                mode=cmd.mode,
            )
        except GatewayError as e:
            await self.handle_event(GrantFailed(
                event_type=EventType.GRANT_FAILED,
                ts_ms=_now_ms(),
                attempt_id=cmd.attempt_id,
                reason=e.message,
                status_code=e.status_code,
            ))
            return
        except Exception as e:  # pylint: disable=broad-exception-caught
            await self.handle_event(GrantFailed(
                event_type=EventType.GRANT_FAILED,
                ts_ms=_now_ms(),
                attempt_id=cmd.attempt_id,
                reason=_describe(e),
            ))
            return

        await self.handle_event(GrantReceived(
            event_type=EventType.GRANT_RECEIVED,
            ts_ms=_now_ms(),
            attempt_id=cmd.attempt_id,
            token=grant.token,
            host=grant.host,
        ))

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _acquire_subscription(self, attempt_id: int) -> None:
        transport = self._ctx.transport
        assert transport is not None, "Transport missing"

        self._release_subscription()
        subscription = TransportSubscription(
            transport=transport,
            attempt_id=attempt_id,
            sink=self.handle_event,
        )
        subscription.acquire()
        self._subscription = subscription

    def _release_subscription(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.release()

    async def _start_transport(self, cmd: StartTransport) -> None:
        transport = self._ctx.transport
        assert transport is not None, "Transport missing"

        try:
            await transport.start_session(
                access_token=cmd.access_token,
                mode=cmd.mode.value,
                host=cmd.host,
            )
        except Exception as e:  # pylint: disable=broad-exception-caught
            await self._transport_start_failed(cmd.attempt_id, e)
            return

        await self.handle_event(TransportStarted(
            event_type=EventType.TRANSPORT_STARTED,
            ts_ms=_now_ms(),
            attempt_id=cmd.attempt_id,
        ))

    async def _start_audio_playback(self, cmd: StartAudioPlayback) -> None:
        transport = self._ctx.transport
        assert transport is not None, "Transport missing"

        try:
            await transport.start_audio_playback()
        except Exception as e:  # pylint: disable=broad-exception-caught
            await self._transport_start_failed(cmd.attempt_id, e)

    async def _transport_start_failed(self, attempt_id: int, exc: Exception) -> None:
        await self.handle_event(TransportStartFailed(
            event_type=EventType.TRANSPORT_START_FAILED,
            ts_ms=_now_ms(),
            attempt_id=attempt_id,
            reason=_describe(exc),
        ))

    async def _stop_transport(self, cmd: StopTransport) -> None:
        transport = self._ctx.transport
        assert transport is not None, "Transport missing"

        failed = False
        try:
            await transport.stop_session()
        except Exception as e:  # pylint: disable=broad-exception-caught
            # Stopping an already-ended session is expected to fail.
            failed = True
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "transport_stop_failed",
                "attempt_id": cmd.attempt_id,
                "error": _describe(e),
                "expected": True,
                **self._ctx.log_context(),
            })

        await self.handle_event(TransportStopped(
            event_type=EventType.TRANSPORT_STOPPED,
            ts_ms=_now_ms(),
            attempt_id=cmd.attempt_id,
            failed=failed,
        ))

    async def _set_muted(self, attempt_id: int, *, muted: bool) -> None:
        transport = self._ctx.transport
        assert transport is not None, "Transport missing"

        try:
            if muted:
                await transport.mute()
            else:
                await transport.unmute()
        except Exception as e:  # pylint: disable=broad-exception-caught
            await self.handle_event(MuteFailed(
                event_type=EventType.MUTE_FAILED,
                ts_ms=_now_ms(),
                attempt_id=attempt_id,
                muted=muted,
                reason=_describe(e),
            ))

    async def _send_text(self, cmd: SendTransportText) -> None:
        transport = self._ctx.transport
        assert transport is not None, "Transport missing"

        try:
            await transport.send_text_message(cmd.text)
        except Exception as e:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "transport_send_text_failed",
                "attempt_id": cmd.attempt_id,
                "error": _describe(e),
                **self._ctx.log_context(),
            })

    # ------------------------------------------------------------------
    # Caller callbacks
    # ------------------------------------------------------------------

    async def _invoke_callback(
        self,
        name: str,
        callback: Callable[..., Any] | None,
        *args: Any,
    ) -> None:
        """Invoke a caller callback; sync or async. Failures are logged only."""
        if callback is None:
            return
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "callback_failed",
                "callback": name,
                "error": _describe(e),
                **self._ctx.log_context(),
            })

    # ------------------------------------------------------------------
    # Timer management
    # ------------------------------------------------------------------

    def _start_timer(
        self,
        *,
        timer_id: str,
        duration_ms: int,
        timeout_event_type: EventType,
        attempt_id: int,
    ) -> None:
        """
        Start or replace a timer that emits a timeout event.

        Timer tasks re-enter handle_event() when they expire,
        maintaining the single event entry point invariant.
        """
        self._cancel_timer(timer_id)

        async def _timer_task() -> None:
            try:
                await asyncio.sleep(duration_ms / 1000.0)
            except asyncio.CancelledError:
                return

            # Expired timers leave the table before re-entry so that a
            # CancelTimer emitted by the reducer cannot cancel this task.
            if self._timers.get(timer_id) is asyncio.current_task():
                del self._timers[timer_id]

            await self.handle_event(self._construct_timeout_event(
                timer_id=timer_id,
                timeout_event_type=timeout_event_type,
                attempt_id=attempt_id,
            ))

        self._timers[timer_id] = asyncio.create_task(_timer_task())

    def _cancel_timer(self, timer_id: str) -> None:
        """
        Cancel an in-flight timer if it exists.

        Idempotent: safe to call even if timer doesn't exist.
        """
        task = self._timers.pop(timer_id, None)
        if task is not None and not task.done():
            task.cancel()

    def _construct_timeout_event(
        self,
        *,
        timer_id: str,
        timeout_event_type: EventType,
        attempt_id: int,
    ) -> Event:
        if timeout_event_type is EventType.ERROR_RESET_TIMEOUT:
            return ErrorResetTimeout(
                event_type=EventType.ERROR_RESET_TIMEOUT,
                ts_ms=_now_ms(),
                attempt_id=attempt_id,
            )

        raise ValueError(
            f"Unknown timeout event type: {timeout_event_type} "
            f"for timer_id: {timer_id}"
        )
