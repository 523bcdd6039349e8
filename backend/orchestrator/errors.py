"""
Session error taxonomy.

Every failure the orchestrator surfaces maps to exactly one subclass of
SessionError. Only ValidationError is ever raised to the caller; the others
are reported through the on_error callback and reflected in status_message.
"""

from __future__ import annotations

from orchestrator.enums.error_kind import ErrorKind


class SessionError(Exception):
    """Base class for session errors."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(SessionError):
    """
    Raised when connect() is called with an empty agent id or API key.

    Rejected before any network call is made.
    """

    kind = ErrorKind.VALIDATION


class GatewayError(SessionError):
    """
    Raised when the access-token exchange fails.

    Carries the upstream HTTP status when one was received
    (None for timeouts and network failures). Never retried.
    """

    kind = ErrorKind.GATEWAY

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (status {self.status_code})"


class TransportStartError(SessionError):
    """The transport failed to start a session after a valid grant."""

    kind = ErrorKind.TRANSPORT_START


class MicrophoneError(SessionError):
    """Microphone permission was denied or the device failed."""

    kind = ErrorKind.MICROPHONE


class TransportRuntimeError(SessionError):
    """The transport reported a fatal error after connecting."""

    kind = ErrorKind.TRANSPORT_RUNTIME


_ERRORS_BY_KIND: dict[ErrorKind, type[SessionError]] = {
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.GATEWAY: GatewayError,
    ErrorKind.TRANSPORT_START: TransportStartError,
    ErrorKind.MICROPHONE: MicrophoneError,
    ErrorKind.TRANSPORT_RUNTIME: TransportRuntimeError,
}


def error_for(kind: ErrorKind, message: str) -> SessionError:
    """Build the typed exception for an error recorded in session state."""
    return _ERRORS_BY_KIND[kind](message)
