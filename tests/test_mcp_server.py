# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""Unit tests for MCPServer method dispatch"""

import pytest

from conftest import INITIALIZE_BODY, rpc


@pytest.mark.asyncio
async def test_initialize_echoes_supported_version(echo_server):
    response = await echo_server.handle_request(INITIALIZE_BODY)

    result = response["result"]
    assert response["id"] == 1
    assert result["protocolVersion"] == "2024-11-05"
    assert result["serverInfo"] == {"name": "test-server", "version": "0.1.0"}
    assert "tools" in result["capabilities"]


@pytest.mark.asyncio
async def test_initialize_unknown_version_gets_latest(echo_server):
    message = rpc("initialize", {
        "protocolVersion": "1999-01-01",
        "capabilities": {},
        "clientInfo": {"name": "t", "version": "0"}
    }, request_id=1)

    response = await echo_server.handle_request(message)
    assert response["result"]["protocolVersion"] == echo_server.supported_versions[-1]


@pytest.mark.asyncio
async def test_ping(echo_server):
    assert await echo_server.handle_request(rpc("ping")) == {"jsonrpc": "2.0", "id": 2, "result": {}}


@pytest.mark.asyncio
async def test_tools_list(echo_server):
    response = await echo_server.handle_request(rpc("tools/list"))

    names = [tool["name"] for tool in response["result"]["tools"]]
    assert names == ["echo", "boom"]


@pytest.mark.asyncio
async def test_tools_call(echo_server):
    response = await echo_server.handle_request(
        rpc("tools/call", {"name": "echo", "arguments": {"value": "hi"}})
    )
    assert response["result"]["content"][0]["text"] == "echo: hi"


@pytest.mark.asyncio
async def test_tools_call_failure_is_contained(echo_server):
    """Test a failing tool becomes an error response with its message"""
    response = await echo_server.handle_request(rpc("tools/call", {"name": "boom", "arguments": {}}))

    assert response["id"] == 2
    assert response["error"]["code"] == -32603
    assert "boom" in response["error"]["message"]


@pytest.mark.asyncio
async def test_tools_call_unknown_tool(echo_server):
    response = await echo_server.handle_request(rpc("tools/call", {"name": "nope"}))

    assert response["error"]["code"] == -32601
    assert response["error"]["message"] == "Unknown tool: nope"


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [
    {},
    {"name": 5},
    {"name": "echo", "arguments": ["value"]},
])
async def test_tools_call_invalid_params(echo_server, params):
    response = await echo_server.handle_request(rpc("tools/call", params))
    assert response["error"]["code"] == -32602


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["tools/call", "tools/list", "initialize"])
async def test_params_must_be_an_object(echo_server, method):
    """Test array params are rejected before dispatch"""
    response = await echo_server.handle_request(rpc(method, [1]))

    assert response["error"] == {"code": -32602, "message": "Invalid params: params must be an object"}


@pytest.mark.asyncio
async def test_unknown_method(echo_server):
    response = await echo_server.handle_request(rpc("resources/list"))

    assert response["error"] == {"code": -32601, "message": "Method not found: resources/list"}


@pytest.mark.asyncio
async def test_notifications_are_accepted(echo_server):
    await echo_server.handle_notification({"jsonrpc": "2.0", "method": "notifications/initialized"})
    await echo_server.handle_notification({
        "jsonrpc": "2.0",
        "method": "notifications/cancelled",
        "params": {"requestId": 3}
    })
