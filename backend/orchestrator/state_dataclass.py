"""
Authoritative session state container.

Rules:
- This module is a pure data model.
- It contains ALL state the reducer may ever need.
- No behavior, no derived logic (see session/snapshot.py for projections).
"""
from __future__ import annotations

from dataclasses import dataclass

from constants import ERROR_RESET_DELAY_MS, STATUS_READY
from orchestrator.enums.error_kind import ErrorKind
from orchestrator.enums.mode import CallMode
from orchestrator.enums.phase import Phase


# =============================================================================
# Access Grant
# =============================================================================

@dataclass(frozen=True)
class AccessGrant:
    """
    Short-lived token + host authorizing a single transport session.

    Obtained once per connection attempt, never reused.
    """
    token: str
    host: str


# =============================================================================
# Recorded error
# =============================================================================

@dataclass(frozen=True)
class SurfacedError:
    """Last error reported to the caller."""
    kind: ErrorKind
    message: str


# =============================================================================
# Session State
# =============================================================================

@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of all orchestrator-owned state."""

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    phase: Phase = Phase.IDLE
    mode: CallMode = CallMode.VOICE_CALL

    # ------------------------------------------------------------------
    # Interaction flags
    # ------------------------------------------------------------------
    is_muted: bool = False
    is_agent_speaking: bool = False

    # ------------------------------------------------------------------
    # Caller-facing text
    # ------------------------------------------------------------------
    status_message: str = STATUS_READY
    pending_text_input: str = ""

    # ------------------------------------------------------------------
    # Credentials (in-memory only; never logged)
    # ------------------------------------------------------------------
    agent_id: str = ""
    api_key: str = ""

    # ------------------------------------------------------------------
    # Attempt tracking
    # ------------------------------------------------------------------
    # Monotonic; 0 means "no attempt yet". Never reused.
    attempt_id: int = 0
    grant: AccessGrant | None = None

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------
    # True while an error status is displayed in IDLE and its reset is scheduled.
    error_pending: bool = False
    last_error: SurfacedError | None = None
    error_reset_delay_ms: int = ERROR_RESET_DELAY_MS
