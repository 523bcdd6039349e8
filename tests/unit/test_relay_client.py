# pylint: disable=missing-module-docstring,missing-function-docstring

import json

import httpx
import pytest

from orchestrator.enums.mode import CallMode
from orchestrator.errors import GatewayError
from orchestrator.state_dataclass import AccessGrant
from relay.client import AccessGrantClient, parse_grant


def client_for(handler) -> AccessGrantClient:
    return AccessGrantClient(
        base_url="http://relay.test/",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_request_grant_posts_credentials_and_mode():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            201, json={"data": {"token": "tok", "host": "wss://agent.example"}}
        )

    grant = await client_for(handler).request_grant(
        agent_id="agent-1", api_key="key-1", mode=CallMode.TEXT_CHAT
    )

    assert grant == AccessGrant(token="tok", host="wss://agent.example")
    assert len(seen) == 1
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/create-web-call"
    assert seen[0].url.params["mode"] == "chat"
    assert json.loads(seen[0].content) == {"agentId": "agent-1", "apiKey": "key-1"}


@pytest.mark.asyncio
async def test_non_2xx_maps_to_gateway_error_with_status():
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "Failed to create webcall"})

    with pytest.raises(GatewayError) as exc_info:
        await client_for(handler).request_grant(
            agent_id="a", api_key="k", mode=CallMode.VOICE_CALL
        )

    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Failed to get access token: Failed to create webcall"


@pytest.mark.asyncio
async def test_malformed_body_maps_to_gateway_error():
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json={"data": {"token": "tok"}})

    with pytest.raises(GatewayError) as exc_info:
        await client_for(handler).request_grant(
            agent_id="a", api_key="k", mode=CallMode.VOICE_CALL
        )

    assert exc_info.value.message == "Malformed access grant response"
    assert exc_info.value.status_code == 201


@pytest.mark.asyncio
async def test_network_error_maps_to_gateway_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayError) as exc_info:
        await client_for(handler).request_grant(
            agent_id="a", api_key="k", mode=CallMode.VOICE_CALL
        )

    assert exc_info.value.status_code is None
    assert "connection refused" in exc_info.value.message


@pytest.mark.asyncio
async def test_failures_do_not_log_api_key(captured_logs):
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "unauthorized"})

    with pytest.raises(GatewayError):
        await client_for(handler).request_grant(
            agent_id="a", api_key="very-secret", mode=CallMode.VOICE_CALL
        )

    assert captured_logs
    assert not any("very-secret" in line for line in captured_logs)


def test_parse_grant_rejects_non_dict():
    with pytest.raises(GatewayError):
        parse_grant(["token"])
