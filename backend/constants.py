"""
BEHAVIOR-AS-CONSTANTS
---------------------
Single source of truth for the behavioral constants of the session client
and the token relay.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers or status strings elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Error recovery
# =============================================================================

# Grace window during which a surfaced error stays visible before the
# session returns to its initial state.
ERROR_RESET_DELAY_MS: Final[int] = 3_000

# =============================================================================
# Gateway (token relay) client
# =============================================================================

RELAY_BASE_URL_DEFAULT: Final[str] = "http://localhost:8089"
RELAY_CREATE_CALL_PATH: Final[str] = "/create-web-call"
RELAY_TIMEOUT_S_DEFAULT: Final[float] = 10.0

# =============================================================================
# Token relay service
# =============================================================================

UPSTREAM_BASE_URL_DEFAULT: Final[str] = (
    "https://atoms-api.smallest.ai/api/v1/conversation"
)
UPSTREAM_TIMEOUT_S_DEFAULT: Final[float] = 15.0
RELAY_HOST_DEFAULT: Final[str] = "0.0.0.0"
RELAY_PORT_DEFAULT: Final[int] = 8080

# =============================================================================
# Status messages
# =============================================================================

STATUS_READY: Final[str] = "Ready to connect"
STATUS_FETCHING_TOKEN: Final[str] = "Getting access token..."
STATUS_CONNECTING_TEMPLATE: Final[str] = "Connecting to {mode} session..."
STATUS_WAITING_FOR_AGENT: Final[str] = "Waiting for agent..."
STATUS_AGENT_READY: Final[str] = "Agent connected! Ready to chat."
STATUS_AGENT_SPEAKING: Final[str] = "Agent speaking..."
STATUS_DISCONNECTING: Final[str] = "Disconnecting..."
STATUS_MISSING_CREDENTIALS: Final[str] = "Agent ID and API key are required"

STATUS_CONNECTION_FAILED_TEMPLATE: Final[str] = "Connection failed: {error}"
STATUS_MIC_PERMISSION_ERROR_TEMPLATE: Final[str] = "Microphone error: {error}"
STATUS_MIC_ACCESS_FAILED_TEMPLATE: Final[str] = "Microphone access failed: {error}"
STATUS_TRANSPORT_ERROR_TEMPLATE: Final[str] = "Error: {error}"

# =============================================================================
# Interaction hints (session snapshot)
# =============================================================================

HINT_AGENT_SPEAKING: Final[str] = "Agent is speaking..."
HINT_SPEAK_NOW: Final[str] = "You can speak now"
HINT_TYPE_NOW: Final[str] = "You can type now"

# =============================================================================
# Logging
# =============================================================================

# Field names whose values never reach the log sink.
REDACTED_LOG_FIELDS: Final[frozenset[str]] = frozenset({
    "api_key",
    "apiKey",
    "token",
    "access_token",
    "accessToken",
    "authorization",
    "Authorization",
})
REDACTED_PLACEHOLDER: Final[str] = "***"
