"""
Error kind enumeration.

Rules:
- Identifies which failure path surfaced an error.
- Must NOT encode recovery behavior; the reducer decides that.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Category of an error surfaced to the caller."""

    VALIDATION = "VALIDATION"
    GATEWAY = "GATEWAY"
    TRANSPORT_START = "TRANSPORT_START"
    MICROPHONE = "MICROPHONE"
    TRANSPORT_RUNTIME = "TRANSPORT_RUNTIME"
