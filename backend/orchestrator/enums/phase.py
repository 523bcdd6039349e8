"""
Authoritative session phase enumeration.

Rules:
- This enum defines ONLY the session lifecycle phases.
- No behavior, no helper methods, no side effects.
- Transitions are defined exclusively in the reducer.
"""

from __future__ import annotations

from enum import Enum


class Phase(str, Enum):
    """
    Lifecycle phase of a single conversation session.

    Every UI-relevant flag (connected, connecting, agent connected)
    is a projection of this value.
    """

    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    AGENT_CONNECTED = "AGENT_CONNECTED"
    DISCONNECTING = "DISCONNECTING"
