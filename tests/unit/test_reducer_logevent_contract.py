# pylint: disable=missing-module-docstring,missing-function-docstring

from orchestrator.commands import LogEvent
from orchestrator.events import ConnectRequested, EventType
from orchestrator.reducer import reduce
from orchestrator.state_dataclass import SessionState


def test_reducer_emits_logevent_with_required_fields():
    state = SessionState(agent_id="agent-1", api_key="key-1")

    event = ConnectRequested(
        event_type=EventType.CONNECT_REQUESTED,
        ts_ms=123,
    )

    _, commands = reduce(state, event)

    log_events = [c for c in commands if isinstance(c, LogEvent)]
    assert log_events, "Reducer must emit at least one LogEvent"

    payload = log_events[0].event

    assert payload["ts_ms"] == 123
    assert "phase" in payload
    assert "mode" in payload
    assert payload["event_type"] == "CONNECT_REQUESTED"
    assert "decision" in payload
    assert "attempt_id" in payload
    assert "details" in payload


def test_logevents_come_after_side_effect_commands():
    state = SessionState(agent_id="agent-1", api_key="key-1")

    _, commands = reduce(
        state, ConnectRequested(event_type=EventType.CONNECT_REQUESTED, ts_ms=0)
    )

    first_log = next(i for i, c in enumerate(commands) if isinstance(c, LogEvent))
    assert all(isinstance(c, LogEvent) for c in commands[first_log:])


def test_logevents_never_carry_credentials():
    state = SessionState(agent_id="agent-1", api_key="key-secret")

    _, commands = reduce(
        state, ConnectRequested(event_type=EventType.CONNECT_REQUESTED, ts_ms=0)
    )

    for c in commands:
        if isinstance(c, LogEvent):
            assert "key-secret" not in repr(c.event)
