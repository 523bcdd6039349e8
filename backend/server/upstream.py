"""
Upstream conversation API client used by the token relay.

One call per relayed request: POST {base_url}/{mode} with {agentId},
authenticated with the caller's API key as a bearer token.
"""

from __future__ import annotations

import time
from typing import Any

import httpx

from observability.logger import log_event
from orchestrator.enums.mode import CallMode


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class UpstreamError(Exception):
    """Raised when the upstream API cannot create the conversation."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UpstreamClient:
    """
    Thin wrapper over a shared httpx.AsyncClient.

    The http client is owned by the app (created once per process and
    closed on shutdown).
    """

    def __init__(self, *, http_client: httpx.AsyncClient, base_url: str) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    async def create_conversation(
        self,
        *,
        mode: CallMode,
        agent_id: str,
        api_key: str,
    ) -> Any:
        """
        Create a web call or chat upstream and return its JSON body verbatim.

        Raises:
            UpstreamError on transport failure, non-2xx status or non-JSON body.
        """
        started_ms = _now_ms()
        url = f"{self._base_url}/{mode.value}"
        try:
            response = await self._http.post(
                url,
                json={"agentId": agent_id},
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.RequestError as e:
            self._log_failure(mode, started_ms, None, str(e) or type(e).__name__)
            raise UpstreamError(f"Upstream request failed: {e}") from e

        if not response.is_success:
            self._log_failure(mode, started_ms, response.status_code, response.text)
            raise UpstreamError(
                f"Upstream returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            self._log_failure(mode, started_ms, response.status_code, "invalid json")
            raise UpstreamError(
                "Upstream returned invalid JSON", status_code=response.status_code
            ) from e

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "upstream_conversation_created",
            "mode": mode.value,
            "status_code": response.status_code,
            "latency_ms": _now_ms() - started_ms,
        })
        return body

    def _log_failure(
        self,
        mode: CallMode,
        started_ms: int,
        status_code: int | None,
        detail: str,
    ) -> None:
        log_event({
            "ts_ms": _now_ms(),
            "event_type": "upstream_conversation_failed",
            "mode": mode.value,
            "status_code": status_code,
            "detail": detail,
            "latency_ms": _now_ms() - started_ms,
        })
