"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No orchestration logic
- No behavioral constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from constants import (
    ERROR_RESET_DELAY_MS,
    RELAY_BASE_URL_DEFAULT,
    RELAY_HOST_DEFAULT,
    RELAY_PORT_DEFAULT,
    RELAY_TIMEOUT_S_DEFAULT,
    UPSTREAM_BASE_URL_DEFAULT,
    UPSTREAM_TIMEOUT_S_DEFAULT,
)


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the session orchestrator and the relay app factory.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str = "dev"

    # ------------------------------------------------------------------
    # Session client
    # ------------------------------------------------------------------

    relay_base_url: str = RELAY_BASE_URL_DEFAULT
    relay_timeout_s: float = RELAY_TIMEOUT_S_DEFAULT
    error_reset_delay_ms: int = ERROR_RESET_DELAY_MS

    # ------------------------------------------------------------------
    # Token relay service
    # ------------------------------------------------------------------

    upstream_base_url: str = UPSTREAM_BASE_URL_DEFAULT
    upstream_timeout_s: float = UPSTREAM_TIMEOUT_S_DEFAULT
    relay_host: str = RELAY_HOST_DEFAULT
    relay_port: int = RELAY_PORT_DEFAULT
    cors_allow_origins: tuple[str, ...] = ("*",)

    @property
    def is_dev(self) -> bool:
        return self.env == "dev"

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a numeric variable cannot be parsed.
        """
        origins = os.environ.get("CORS_ALLOW_ORIGINS", "*")
        return AppConfig(
            env=os.environ.get("ENV", "dev"),

            relay_base_url=os.environ.get("RELAY_BASE_URL", RELAY_BASE_URL_DEFAULT),
            relay_timeout_s=float(
                os.environ.get("RELAY_TIMEOUT_S", RELAY_TIMEOUT_S_DEFAULT)
            ),
            error_reset_delay_ms=int(
                os.environ.get("ERROR_RESET_DELAY_MS", ERROR_RESET_DELAY_MS)
            ),

            upstream_base_url=os.environ.get(
                "UPSTREAM_BASE_URL", UPSTREAM_BASE_URL_DEFAULT
            ),
            upstream_timeout_s=float(
                os.environ.get("UPSTREAM_TIMEOUT_S", UPSTREAM_TIMEOUT_S_DEFAULT)
            ),
            relay_host=os.environ.get("RELAY_HOST", RELAY_HOST_DEFAULT),
            relay_port=int(os.environ.get("RELAY_PORT", RELAY_PORT_DEFAULT)),
            cors_allow_origins=tuple(
                o.strip() for o in origins.split(",") if o.strip()
            ),
        )
