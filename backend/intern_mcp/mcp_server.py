# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
MCP Protocol Server
Answers JSON-RPC methods for every transport bound to it
"""
import logging
from typing import Any, Dict, List, Optional

from intern_mcp.core.errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    ToolError,
)
from intern_mcp.mcp_jsonrpc import build_error, build_result_response
from intern_mcp.tools.dispatch import ToolDispatchTable

logger = logging.getLogger(__name__)

SUPPORTED_PROTOCOL_VERSIONS = ["2024-11-05", "2025-03-26", "2025-06-18"]
LATEST_PROTOCOL_VERSION = SUPPORTED_PROTOCOL_VERSIONS[-1]


class MCPServer:
    """
    Stateless method dispatcher shared by all transports.
    Session state lives on the transport, not here.
    """

    def __init__(
        self,
        name: str,
        version: str = "0.1.0",
        tools: Optional[ToolDispatchTable] = None,
        supported_versions: Optional[List[str]] = None
    ):
        self.name = name
        self.version = version
        self.tools = tools if tools is not None else ToolDispatchTable()
        self.supported_versions = supported_versions or list(SUPPORTED_PROTOCOL_VERSIONS)
        self.server_info = {"name": name, "version": version}
        self.capabilities = {
            "tools": {"listChanged": False},
            "logging": {}
        }

    def negotiate_version(self, requested: Optional[str]) -> str:
        """Echo the client's version if supported, else offer our latest"""
        if requested in self.supported_versions:
            return requested
        return self.supported_versions[-1]

    async def handle_request(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """Answer one JSON-RPC request. Always returns a response envelope."""
        request_id = message.get("id")
        method = message.get("method")
        params = message.get("params")
        if params is None:
            params = {}
        elif not isinstance(params, dict):
            return build_error(request_id, INVALID_PARAMS, "Invalid params: params must be an object")

        try:
            if method == "initialize":
                return self._handle_initialize(request_id, params)
            elif method == "ping":
                return build_result_response(request_id, {})
            elif method == "tools/list":
                return build_result_response(request_id, {"tools": self.tools.descriptors()})
            elif method == "tools/call":
                return await self._handle_tools_call(request_id, params)
            else:
                return build_error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")
        except Exception as e:
            logger.exception(f"[{self.name}] Unhandled error in {method}")
            return build_error(request_id, INTERNAL_ERROR, f"Internal error: {e}")

    async def handle_notification(self, message: Dict[str, Any]) -> None:
        method = message.get("method")
        params = message.get("params")
        if not isinstance(params, dict):
            params = {}

        if method == "notifications/initialized":
            logger.info(f"[{self.name}] Client finished initialization")
        elif method == "notifications/cancelled":
            reason = params.get("reason", "No reason provided")
            logger.info(f"[{self.name}] Client cancelled request {params.get('requestId')}: {reason}")
        else:
            logger.debug(f"[{self.name}] Ignoring notification {method}")

    def _handle_initialize(self, request_id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        client_info = params.get("clientInfo", {})
        protocol_version = self.negotiate_version(params.get("protocolVersion"))
        logger.info(
            f"[{self.name}] Initialize from {client_info.get('name', 'unknown')} "
            f"{client_info.get('version', '')} (protocol {protocol_version})"
        )
        return build_result_response(request_id, {
            "protocolVersion": protocol_version,
            "capabilities": self.capabilities,
            "serverInfo": self.server_info
        })

    async def _handle_tools_call(self, request_id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        tool_name = params.get("name")
        arguments = params.get("arguments") or {}

        if not isinstance(tool_name, str) or not tool_name:
            return build_error(request_id, INVALID_PARAMS, "Invalid params: tool name is required")
        if not isinstance(arguments, dict):
            return build_error(request_id, INVALID_PARAMS, "Invalid params: arguments must be an object")

        try:
            result = await self.tools.call(tool_name, arguments)
        except ToolError as e:
            return e.to_jsonrpc(request_id)

        return build_result_response(request_id, result)
