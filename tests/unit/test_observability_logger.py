# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from typing import Any

import pytest

from observability import logger


def test_log_event_emits_valid_jsonl(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """
    Contract:
    - log_event emits exactly one JSONL line
    - payload is serialized as-is
    - output sink is patchable
    """
    captured: list[str] = []

    def fake_print(line: str) -> None:
        captured.append(line)

    monkeypatch.setattr(logger, "_print", fake_print)

    payload: dict[str, Any] = {
        "event_type": "TEST",
        "value": 123,
    }

    logger.log_event(payload)

    assert len(captured) == 1
    decoded = json.loads(captured[0])
    assert decoded == payload


def test_log_event_redacts_secrets_recursively(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    captured: list[str] = []
    monkeypatch.setattr(logger, "_print", captured.append)

    logger.log_event({
        "event_type": "TEST",
        "api_key": "k",
        "details": {"token": "t", "host": "wss://h"},
        "items": [{"apiKey": "k2"}],
    })

    decoded = json.loads(captured[0])
    assert decoded["api_key"] == "***"
    assert decoded["details"] == {"token": "***", "host": "wss://h"}
    assert decoded["items"] == [{"apiKey": "***"}]


def test_log_event_never_raises_on_unserializable_payload(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    captured: list[str] = []
    monkeypatch.setattr(logger, "_print", captured.append)

    logger.log_event({"ts_ms": 5, "event_type": "TEST", "obj": object()})

    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "LOGGER_SERIALIZATION_ERROR"
    assert decoded["ts_ms"] == 5
