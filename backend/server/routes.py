"""
Route registration for the token relay.

Responsibilities:
- Define HTTP endpoints
- Validate relay requests
- Pull dependencies from app.state
"""

from __future__ import annotations

import time
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from observability.logger import log_event
from orchestrator.enums.mode import CallMode
from server.upstream import UpstreamClient, UpstreamError


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


def _string_field(body: Any, name: str) -> str:
    value = body.get(name) if isinstance(body, dict) else None
    return value.strip() if isinstance(value, str) else ""


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""
    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    @app.post("/create-web-call")
    async def create_web_call(request: Request) -> JSONResponse: # pyright: ignore[reportUnusedFunction]
        """
        Exchange {agentId, apiKey} + ?mode= for an upstream session grant.

        Responses:
        - 201 with the upstream body verbatim
        - 400 {error} for invalid mode or blank credentials
        - 500 {error: "Failed to create <mode>"} on upstream failure
        """
        raw_mode = request.query_params.get("mode", "")
        try:
            mode = CallMode(raw_mode)
        except ValueError:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "relay_request_rejected",
                "reason": "invalid_mode",
                "mode": raw_mode,
            })
            return _bad_request(f"Invalid mode: {raw_mode or '<missing>'}")

        try:
            body = await request.json()
        except ValueError:
            body = None

        agent_id = _string_field(body, "agentId")
        api_key = _string_field(body, "apiKey")
        if not agent_id or not api_key:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "relay_request_rejected",
                "reason": "missing_credentials",
                "mode": mode.value,
            })
            return _bad_request("agentId and apiKey are required")

        upstream: UpstreamClient = app.state.upstream_client
        try:
            data = await upstream.create_conversation(
                mode=mode,
                agent_id=agent_id,
                api_key=api_key,
            )
        except UpstreamError as exc:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "relay_upstream_error",
                "mode": mode.value,
                "status_code": exc.status_code,
                "message": exc.message,
            })
            return JSONResponse(
                status_code=500,
                content={"error": f"Failed to create {mode.value}"},
            )

        return JSONResponse(status_code=201, content=data)
