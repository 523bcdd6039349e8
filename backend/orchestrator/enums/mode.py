"""
Conversation mode enumeration.

Modes are orthogonal to phases:
- Phase answers: "Where is the session in its lifecycle?"
- Mode answers:  "Is this a voice call or a text chat?"

Values are the wire names used by the relay and the transport.
"""

from __future__ import annotations

from enum import Enum


class CallMode(str, Enum):
    """
    Conversation mode, fixed for the duration of a session.

    VOICE_CALL:
        Microphone capture and audio playback; mute is available.

    TEXT_CHAT:
        Typed messages only; text sending is available.
    """

    VOICE_CALL = "webcall"
    TEXT_CHAT = "chat"
