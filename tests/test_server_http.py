# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
HTTP tests for the MCP endpoint
Drives the FastAPI app through TestClient with the recruiting API mocked
"""

import json

from intern_mcp.mcp_client import parse_sse_events
from intern_mcp.mcp_router import INVALID_SESSION_MESSAGE

from conftest import INITIALIZE_BODY, initialize_session, rpc


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "server": "interview-scheduler"}


def test_options_preflight(client):
    """Test the MCP endpoint advertises its CORS policy"""
    response = client.options("/mcp")

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "POST, GET, OPTIONS, DELETE"
    assert "mcp-session-id" in response.headers["access-control-allow-headers"]


def test_initialize_returns_session_header(client):
    response = client.post("/mcp", json=INITIALIZE_BODY)

    assert response.status_code == 200
    assert response.headers["mcp-session-id"]
    body = response.json()
    assert body["id"] == 1
    assert body["result"]["serverInfo"]["name"] == "interview-scheduler"


def test_list_and_call_shortlist_intern(client, api_requests):
    """Test initialize, tools/list and tools/call over one session"""
    session_id = initialize_session(client)
    headers = {"mcp-session-id": session_id}

    response = client.post("/mcp", json=rpc("tools/list"), headers=headers)
    assert response.status_code == 200
    tools = {tool["name"]: tool for tool in response.json()["result"]["tools"]}
    assert "internId" in tools["shortlist_intern"]["inputSchema"]["required"]

    response = client.post(
        "/mcp",
        json=rpc("tools/call", {"name": "shortlist_intern", "arguments": {"internId": "42"}}, request_id=3),
        headers=headers
    )
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == 3
    assert "42" in body["result"]["content"][0]["text"]
    assert api_requests[0].url.path.endswith("/shortlist")


def test_initialized_notification_gets_202(client):
    session_id = initialize_session(client)

    response = client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "method": "notifications/initialized"},
        headers={"mcp-session-id": session_id}
    )

    assert response.status_code == 202
    assert response.content == b""


def test_post_without_session_rejected(client):
    response = client.post("/mcp", json=rpc("tools/list"))

    assert response.status_code == 400
    body = response.json()
    assert body["jsonrpc"] == "2.0"
    assert body["error"]["code"] == -32000
    assert body["error"]["message"] == INVALID_SESSION_MESSAGE
    assert body["id"]


def test_post_with_unknown_session_rejected(client):
    response = client.post("/mcp", json=INITIALIZE_BODY, headers={"mcp-session-id": "unknown"})

    assert response.status_code == 400
    assert "mcp-session-id" not in response.headers


def test_get_without_valid_session_rejected(client):
    assert client.get("/mcp").status_code == 400
    assert client.get("/mcp", headers={"mcp-session-id": "unknown"}).status_code == 400


def test_malformed_json(client):
    response = client.post(
        "/mcp",
        content=b'{"jsonrpc": "2.0", ',
        headers={"content-type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == -32700


def test_tool_failure_is_contained(client, api_responder):
    """Test a failing recruiting API call leaves the session usable"""
    session_id = initialize_session(client)
    headers = {"mcp-session-id": session_id}
    api_responder["status"] = 500

    response = client.post(
        "/mcp",
        json=rpc("tools/call", {"name": "shortlist_intern", "arguments": {"internId": "42"}}),
        headers=headers
    )

    assert response.status_code == 200
    error = response.json()["error"]
    assert error["code"] == -32603
    assert error["message"] == "Failed to shortlist intern: API call failed: 500 Internal Server Error"

    assert client.post("/mcp", json=rpc("ping", request_id=4), headers=headers).json()["result"] == {}


def test_unknown_tool(client):
    session_id = initialize_session(client)

    response = client.post(
        "/mcp",
        json=rpc("tools/call", {"name": "delete_everything", "arguments": {}}),
        headers={"mcp-session-id": session_id}
    )

    assert response.json()["error"]["code"] == -32601


def test_array_params_rejected(client):
    session_id = initialize_session(client)

    response = client.post(
        "/mcp",
        json=rpc("tools/call", [1]),
        headers={"mcp-session-id": session_id}
    )

    assert response.status_code == 200
    assert response.json()["error"] == {"code": -32602, "message": "Invalid params: params must be an object"}


def test_sse_delivery(client):
    """Test a client accepting only event-stream gets an SSE answer"""
    session_id = initialize_session(client)

    response = client.post(
        "/mcp",
        json=rpc("tools/list"),
        headers={"mcp-session-id": session_id, "accept": "text/event-stream"}
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    events = parse_sse_events(response.text)
    assert len(events) == 1
    assert events[0]["event"] == "message"
    assert json.loads(events[0]["data"])["id"] == 2


def test_delete_terminates_session(client, app):
    session_id = initialize_session(client)
    headers = {"mcp-session-id": session_id}

    response = client.delete("/mcp", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "sessionId": session_id}
    assert session_id not in app.state.registry
    assert client.post("/mcp", json=rpc("ping"), headers=headers).status_code == 400
    assert client.delete("/mcp", headers=headers).status_code == 400


def test_sessions_are_independent(client, app):
    first = initialize_session(client)
    second = initialize_session(client)

    assert first != second
    assert sorted(app.state.registry.session_ids()) == sorted([first, second])
