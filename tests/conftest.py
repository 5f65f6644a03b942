# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test Fixtures and Utilities

Provides the application under test, a FastAPI TestClient and a mocked
recruiting API (httpx.MockTransport) so no network is needed.
"""

import json
import os
import sys
from typing import Any, Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

from intern_mcp.api_client import RecruitingAPIClient
from intern_mcp.config import Config
from intern_mcp.main import create_app
from intern_mcp.mcp_server import MCPServer
from intern_mcp.tools.dispatch import ToolDispatchTable, text_result


API_BASE_URL = "http://recruiting.test"

INITIALIZE_BODY = {
    "jsonrpc": "2.0",
    "id": 1,
    "method": "initialize",
    "params": {
        "protocolVersion": "2024-11-05",
        "capabilities": {},
        "clientInfo": {"name": "t", "version": "0"}
    }
}


# ============================================================================
# Recruiting API Fixtures
# ============================================================================

@pytest.fixture
def api_requests() -> List[httpx.Request]:
    """Requests received by the mocked recruiting API"""
    return []


@pytest.fixture
def api_responder() -> Dict[str, Any]:
    """
    Mutable knobs for the mocked API.

    Set "status" to make every call fail with that status code.
    """
    return {"status": 200}


@pytest.fixture
def api_transport(api_requests, api_responder) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        api_requests.append(request)
        status = api_responder["status"]
        if status >= 400:
            return httpx.Response(status)
        body = json.loads(request.content) if request.content else None
        return httpx.Response(200, json={"success": True, "path": request.url.path, "body": body})

    return httpx.MockTransport(handler)


@pytest.fixture
def api_client(api_transport) -> RecruitingAPIClient:
    return RecruitingAPIClient(API_BASE_URL, transport=api_transport)


# ============================================================================
# Application Fixtures
# ============================================================================

@pytest.fixture
def config() -> Config:
    return Config(
        server_name="interview-scheduler",
        api_base_url=API_BASE_URL,
        stream_interval_seconds=0.0,
        stream_message_count=3,
    )


@pytest.fixture
def app(config, api_client):
    return create_app(config, api_client=api_client)


@pytest.fixture
def client(app):
    """TestClient with lifespan running"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def echo_server() -> MCPServer:
    """Protocol server with a couple of in-memory tools"""
    tools = ToolDispatchTable()

    async def echo(args: Dict[str, Any]):
        return text_result(f"echo: {args.get('value')}")

    async def boom(args: Dict[str, Any]):
        raise RuntimeError("boom")

    tools.register("echo", echo, "Echo a value", {
        "type": "object",
        "properties": {"value": {"type": "string"}},
        "required": ["value"]
    })
    tools.register("boom", boom, "Always fails", {"type": "object", "properties": {}})
    return MCPServer(name="test-server", tools=tools)


# ============================================================================
# Helper Utilities
# ============================================================================

def initialize_session(client: TestClient) -> str:
    """Run the initialize handshake and return the session id"""
    response = client.post("/mcp", json=INITIALIZE_BODY)
    assert response.status_code == 200
    return response.headers["mcp-session-id"]


def rpc(method: str, params: Dict[str, Any] = None, request_id: int = 2) -> Dict[str, Any]:
    message = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message
