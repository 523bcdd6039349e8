"""
Caller-facing session snapshot.

All UI booleans are projections of the single phase enum; none of them is
stored independently.
"""

from __future__ import annotations

from dataclasses import dataclass

from constants import HINT_AGENT_SPEAKING, HINT_SPEAK_NOW, HINT_TYPE_NOW
from orchestrator.enums.mode import CallMode
from orchestrator.enums.phase import Phase
from orchestrator.state_dataclass import SessionState


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of SessionState with derived flags."""

    phase: Phase
    mode: CallMode
    status_message: str
    is_muted: bool
    is_agent_speaking: bool
    pending_text_input: str
    error_pending: bool

    @staticmethod
    def from_state(state: SessionState) -> SessionSnapshot:
        return SessionSnapshot(
            phase=state.phase,
            mode=state.mode,
            status_message=state.status_message,
            is_muted=state.is_muted,
            is_agent_speaking=state.is_agent_speaking,
            pending_text_input=state.pending_text_input,
            error_pending=state.error_pending,
        )

    @property
    def is_connected(self) -> bool:
        return self.phase in (Phase.CONNECTED, Phase.AGENT_CONNECTED)

    @property
    def is_connecting(self) -> bool:
        return self.phase is Phase.CONNECTING

    @property
    def is_agent_connected(self) -> bool:
        return self.phase is Phase.AGENT_CONNECTED

    @property
    def can_edit_settings(self) -> bool:
        """Mode and credentials are editable only while idle."""
        return self.phase is Phase.IDLE

    @property
    def can_send_text(self) -> bool:
        return self.mode is CallMode.TEXT_CHAT and self.phase is Phase.AGENT_CONNECTED

    @property
    def can_toggle_mute(self) -> bool:
        return self.mode is CallMode.VOICE_CALL and self.is_connected

    @property
    def interaction_hint(self) -> str | None:
        """
        Short prompt shown once the agent is connected.

        None outside AGENT_CONNECTED.
        """
        if self.phase is not Phase.AGENT_CONNECTED:
            return None
        if self.is_agent_speaking:
            return HINT_AGENT_SPEAKING
        if self.mode is CallMode.VOICE_CALL:
            return HINT_SPEAK_NOW
        return HINT_TYPE_NOW
