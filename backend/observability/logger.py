"""
JSONL event logger.

- Write one JSON object per line
- Output to stdout
- No buffering, no batching
- Secrets (API keys, access tokens) never reach the sink
"""

from __future__ import annotations

import json
import sys
from typing import Any, Mapping, Callable

from constants import REDACTED_LOG_FIELDS, REDACTED_PLACEHOLDER


# ------------------------------------------------------------------
# Explicit output sink (patchable in tests)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _stdout_print


def redact(value: Any) -> Any:
    """Return a copy of value with secret fields masked, recursively."""
    if isinstance(value, Mapping):
        return {
            k: REDACTED_PLACEHOLDER if k in REDACTED_LOG_FIELDS else redact(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(v) for v in value]
    return value


def log_event(event: Mapping[str, Any]) -> None:
    """
    Write a single JSONL event to stdout.

    The caller is responsible for:
    - Supplying a fully-formed event dict
    - Including ts_ms, session_id, phase, etc.

    This function:
    - Masks secret fields
    - Serializes to JSON
    - Writes exactly one line
    - Never raises
    """
    safe = redact(event)
    try:
        line = json.dumps(safe, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        # Logging must never crash the session
        fallback: dict[str, Any] = {
            "ts_ms": safe.get("ts_ms"),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(safe),
        }
        line = json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))

    _print(line)
