# pylint: disable=missing-module-docstring,missing-function-docstring

from constants import HINT_AGENT_SPEAKING, HINT_SPEAK_NOW, HINT_TYPE_NOW
from orchestrator.enums.mode import CallMode
from orchestrator.enums.phase import Phase
from orchestrator.state_dataclass import SessionState
from session.snapshot import SessionSnapshot


def snap(**kwargs) -> SessionSnapshot:
    return SessionSnapshot.from_state(SessionState(**kwargs))


def test_idle_projection():
    s = snap()

    assert not s.is_connected
    assert not s.is_connecting
    assert s.can_edit_settings
    assert not s.can_toggle_mute
    assert s.interaction_hint is None


def test_connecting_projection():
    s = snap(phase=Phase.CONNECTING)

    assert s.is_connecting
    assert not s.is_connected
    assert not s.can_edit_settings


def test_connected_flags_are_projections_of_phase():
    connected = snap(phase=Phase.CONNECTED)
    agent = snap(phase=Phase.AGENT_CONNECTED)

    assert connected.is_connected and not connected.is_agent_connected
    assert agent.is_connected and agent.is_agent_connected


def test_can_send_text_requires_text_chat_and_agent():
    assert snap(phase=Phase.AGENT_CONNECTED, mode=CallMode.TEXT_CHAT).can_send_text
    assert not snap(phase=Phase.CONNECTED, mode=CallMode.TEXT_CHAT).can_send_text
    assert not snap(phase=Phase.AGENT_CONNECTED).can_send_text


def test_can_toggle_mute_voice_only():
    assert snap(phase=Phase.CONNECTED).can_toggle_mute
    assert not snap(phase=Phase.CONNECTED, mode=CallMode.TEXT_CHAT).can_toggle_mute


def test_interaction_hints():
    speaking = snap(phase=Phase.AGENT_CONNECTED, is_agent_speaking=True)
    voice = snap(phase=Phase.AGENT_CONNECTED)
    chat = snap(phase=Phase.AGENT_CONNECTED, mode=CallMode.TEXT_CHAT)

    assert speaking.interaction_hint == HINT_AGENT_SPEAKING
    assert voice.interaction_hint == HINT_SPEAK_NOW
    assert chat.interaction_hint == HINT_TYPE_NOW
