"""
FastAPI app factory for the token relay.

Responsibilities:
- Create and configure FastAPI app
- Set up middleware
- Initialize shared resources (upstream HTTP client)
- Register routes
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import AppConfig

from server.routes import register_routes
from server.upstream import UpstreamClient


def create_app(
    config: AppConfig | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This is the app factory pattern that allows:
    - Testing with different configurations
    - Injecting an http client (e.g. backed by httpx.MockTransport)
    - ASGI server compatibility
    """
    config = config or AppConfig.load_from_env()

    # Create the upstream client ONCE per process
    http_client = http_client or httpx.AsyncClient(timeout=config.upstream_timeout_s)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        await http_client.aclose()

    app = FastAPI(title="Agent Session Token Relay", lifespan=lifespan)

    app.state.config = config
    app.state.upstream_client = UpstreamClient(
        http_client=http_client,
        base_url=config.upstream_base_url,
    )

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_allow_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes
    register_routes(app)

    return app
