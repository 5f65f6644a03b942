# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
JSON-RPC 2.0 Envelope Codec for MCP Protocol

Message builders for both sides of the connection, body parsing,
initialize detection and Server-Sent Events framing.
"""

import json
import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from intern_mcp.core.errors import DecodeError, SERVER_ERROR

JSONRPC_VERSION = "2.0"


class ClientInfo(BaseModel):
    """Client implementation info sent with initialize"""
    model_config = ConfigDict(extra="allow")

    name: str
    version: str


class InitializeParams(BaseModel):
    """Params of an initialize request"""
    model_config = ConfigDict(extra="allow")

    protocolVersion: str
    capabilities: Dict[str, Any]
    clientInfo: ClientInfo


class InitializeRequest(BaseModel):
    """Shape an initialize request must satisfy"""
    model_config = ConfigDict(extra="allow")

    jsonrpc: str
    id: Any
    method: str
    params: InitializeParams


def parse_body(raw: bytes) -> Any:
    """Decode a request body, raising DecodeError on malformed JSON"""
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"Parse error: {e}", cause=e)


def _is_single_initialize(message: Any) -> bool:
    if not isinstance(message, dict):
        return False
    if message.get("method") != "initialize" or message.get("jsonrpc") != JSONRPC_VERSION:
        return False
    try:
        InitializeRequest.model_validate(message)
    except ValidationError:
        return False
    return True


def is_initialize_request(body: Any) -> bool:
    """True if body, or any element of a batched body, is an initialize request"""
    if isinstance(body, list):
        return any(_is_single_initialize(message) for message in body)
    return _is_single_initialize(body)


def is_request(message: Any) -> bool:
    return isinstance(message, dict) and "method" in message and "id" in message


def is_notification(message: Any) -> bool:
    return isinstance(message, dict) and "method" in message and "id" not in message


def is_response(message: Any) -> bool:
    return isinstance(message, dict) and "method" not in message and (
        "result" in message or "error" in message
    )


# ===== Server side =====

def build_result_response(request_id: Any, result: Dict[str, Any]) -> Dict:
    """Build JSON-RPC success response"""
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "result": result
    }


def build_error(request_id: Any, code: int, message: str, data: Optional[Dict] = None) -> Dict:
    """Build JSON-RPC error response"""
    error = {"code": code, "message": message}
    if data:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


def build_error_response(message: str) -> Dict:
    """Build a protocol-level error envelope with a fresh correlation id"""
    return build_error(str(uuid.uuid4()), SERVER_ERROR, message)


def build_notification(method: str, params: Optional[Dict[str, Any]] = None) -> Dict:
    """Build JSON-RPC notification"""
    notification: Dict[str, Any] = {
        "jsonrpc": JSONRPC_VERSION,
        "method": method
    }
    if params is not None:
        notification["params"] = params
    return notification


def build_log_notification(data: Any, level: str = "info", logger_name: Optional[str] = None) -> Dict:
    """Build notifications/message frame"""
    params: Dict[str, Any] = {"level": level, "data": data}
    if logger_name:
        params["logger"] = logger_name
    return build_notification("notifications/message", params)


def encode_sse_event(message: Any, event: str = "message", event_id: Optional[str] = None) -> str:
    """Encode one JSON-RPC message as a single SSE frame"""
    lines = [f"event: {event}"]
    if event_id is not None:
        lines.append(f"id: {event_id}")
    lines.append(f"data: {json.dumps(message, separators=(',', ':'))}")
    return "\n".join(lines) + "\n\n"


# ===== Client side =====

def build_initialize_request(request_id: int, protocol_version: str, client_info: Dict[str, Any]) -> Dict:
    """Build JSON-RPC initialize request"""
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "method": "initialize",
        "params": {
            "protocolVersion": protocol_version,
            "capabilities": {},
            "clientInfo": client_info
        }
    }


def build_initialized_notification() -> Dict:
    """Build JSON-RPC initialized notification"""
    return build_notification("notifications/initialized")


def build_ping_request(request_id: int) -> Dict:
    """Build JSON-RPC ping request"""
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "method": "ping"
    }


def build_list_tools_request(request_id: int) -> Dict:
    """Build JSON-RPC tools/list request"""
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "method": "tools/list"
    }


def build_call_tool_request(request_id: int, tool_name: str, arguments: Dict) -> Dict:
    """Build JSON-RPC tools/call request"""
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "method": "tools/call",
        "params": {
            "name": tool_name,
            "arguments": arguments
        }
    }


def build_cancel_notification(request_id: int, reason: str = "Request timed out") -> Dict:
    """Build JSON-RPC cancellation notification"""
    return build_notification(
        "notifications/cancelled",
        {"requestId": request_id, "reason": reason}
    )


def as_batch(body: Any) -> List[Any]:
    """Normalize a body to a list of messages"""
    return body if isinstance(body, list) else [body]
