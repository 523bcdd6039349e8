"""
Access-grant gateway client.

Exchanges {agentId, apiKey} for a short-lived {token, host} pair by calling
the token relay's session-creation endpoint.

Role in the system:
- Exactly one outbound request per connection attempt.
- Raises GatewayError on any failure (non-2xx, malformed body, timeout,
  network error). The orchestrator maps it to its error path.

Architectural constraints:
- No retries: a failed token request may be rate-limited or use a
  credential that is no longer valid.
- Never logs the API key or the issued token.
"""

from __future__ import annotations

import time
from typing import Any

import httpx

from constants import RELAY_CREATE_CALL_PATH, RELAY_TIMEOUT_S_DEFAULT
from observability.logger import log_event
from orchestrator.enums.mode import CallMode
from orchestrator.errors import GatewayError
from orchestrator.state_dataclass import AccessGrant


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or "unknown error"
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return response.reason_phrase or "unknown error"


def parse_grant(body: Any) -> AccessGrant:
    """
    Extract the grant from a relay response body.

    Expected shape: {"data": {"token": str, "host": str}}.

    Raises:
        GatewayError if the body does not carry both fields.
    """
    data = body.get("data") if isinstance(body, dict) else None
    token = data.get("token") if isinstance(data, dict) else None
    host = data.get("host") if isinstance(data, dict) else None
    if not isinstance(token, str) or not token or not isinstance(host, str) or not host:
        raise GatewayError("Malformed access grant response")
    return AccessGrant(token=token, host=host)


class AccessGrantClient:
    """
    HTTP client for the token relay.

    transport may be supplied to route requests through a custom httpx
    transport (e.g. httpx.MockTransport in tests).
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_s: float = RELAY_TIMEOUT_S_DEFAULT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = base_url.rstrip("/") + RELAY_CREATE_CALL_PATH
        self._timeout_s = timeout_s
        self._transport = transport

    async def request_grant(
        self,
        *,
        agent_id: str,
        api_key: str,
        mode: CallMode,
    ) -> AccessGrant:
        """
        Request a grant for one session in the given mode.

        Raises:
            GatewayError on any failure.
        """
        started_ms = _now_ms()
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s, transport=self._transport
            ) as client:
                response = await client.post(
                    self._endpoint,
                    params={"mode": mode.value},
                    json={"agentId": agent_id, "apiKey": api_key},
                )
        except httpx.TimeoutException as e:
            self._log_failure(mode, started_ms, None, f"timeout: {e}")
            raise GatewayError("Access token request timed out") from e
        except httpx.RequestError as e:
            self._log_failure(mode, started_ms, None, str(e))
            raise GatewayError(f"Access token request failed: {e}") from e

        if not response.is_success:
            detail = _error_detail(response)
            self._log_failure(mode, started_ms, response.status_code, detail)
            raise GatewayError(
                f"Failed to get access token: {detail}",
                status_code=response.status_code,
            )

        try:
            grant = parse_grant(response.json())
        except ValueError as e:
            self._log_failure(mode, started_ms, response.status_code, "invalid json")
            raise GatewayError(
                "Malformed access grant response", status_code=response.status_code
            ) from e
        except GatewayError as e:
            self._log_failure(mode, started_ms, response.status_code, e.message)
            raise GatewayError(e.message, status_code=response.status_code) from e

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "access_grant_received",
            "mode": mode.value,
            "status_code": response.status_code,
            "host": grant.host,
            "latency_ms": _now_ms() - started_ms,
        })
        return grant

    def _log_failure(
        self,
        mode: CallMode,
        started_ms: int,
        status_code: int | None,
        detail: str,
    ) -> None:
        log_event({
            "ts_ms": _now_ms(),
            "event_type": "access_grant_failed",
            "mode": mode.value,
            "status_code": status_code,
            "detail": detail,
            "latency_ms": _now_ms() - started_ms,
        })
