# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
MCP Request Router

Decides, for each HTTP request on the MCP endpoint, whether to create a new
session, reuse an existing one, or reject the request.

    header present, registered        -> REUSE
    header absent, initialize body    -> CREATE
    anything else                     -> REJECT (HTTP 400)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from intern_mcp.core.errors import ProtocolError
from intern_mcp.core.logging import log_event
from intern_mcp.mcp_jsonrpc import is_initialize_request, parse_body
from intern_mcp.mcp_server import MCPServer
from intern_mcp.mcp_session_registry import SessionRegistry
from intern_mcp.mcp_transport import StreamableHTTPTransport, TransportResponse

logger = logging.getLogger(__name__)

INVALID_SESSION_MESSAGE = "Bad Request: invalid session ID or method"


class RouteAction(str, Enum):
    CREATE = "create"
    REUSE = "reuse"
    REJECT = "reject"


@dataclass
class RouteDecision:
    action: RouteAction
    transport: Optional[StreamableHTTPTransport] = None


class RequestRouter:
    """Routes MCP HTTP requests to per-session transports"""

    def __init__(self, server: MCPServer, registry: SessionRegistry):
        self.server = server
        self.registry = registry

    def decide(self, session_id: Optional[str], body: Any) -> RouteDecision:
        if session_id:
            # An established identity is never replaced, even by initialize
            transport = self.registry.get(session_id)
            if transport is not None:
                return RouteDecision(RouteAction.REUSE, transport)
            return RouteDecision(RouteAction.REJECT)

        if is_initialize_request(body):
            return RouteDecision(RouteAction.CREATE)

        return RouteDecision(RouteAction.REJECT)

    def create_transport(self) -> StreamableHTTPTransport:
        return StreamableHTTPTransport(self.server)

    async def route_post(
        self,
        session_id: Optional[str],
        raw_body: bytes,
        accept: Optional[str] = None
    ) -> TransportResponse:
        """
        Route a POST to the MCP endpoint.

        Raises:
            DecodeError: Body is not JSON
            ProtocolError: Unknown session, or no session and not initialize
        """
        body = parse_body(raw_body)
        decision = self.decide(session_id, body)

        if decision.action == RouteAction.REUSE:
            return await decision.transport.handle_request(body, accept)

        if decision.action == RouteAction.CREATE:
            transport = self.create_transport()
            response = await transport.handle_request(body, accept)
            if transport.session_id:
                self.registry.put(transport.session_id, transport)
                log_event(logger, "session_created", session_id=transport.session_id)
            else:
                logger.warning("Initialize did not complete, session not registered")
            return response

        log_event(logger, "request_rejected", http_method="POST", session_id=session_id)
        raise ProtocolError(INVALID_SESSION_MESSAGE)

    def resolve(self, session_id: Optional[str]) -> StreamableHTTPTransport:
        """Transport for an established session, for GET and DELETE"""
        transport = self.registry.get(session_id)
        if transport is None:
            logger.info(f"Rejected stream request (session id: {session_id or 'none'})")
            raise ProtocolError(INVALID_SESSION_MESSAGE)
        return transport

    async def terminate(self, session_id: Optional[str]) -> None:
        """Remove a session and close its transport"""
        self.resolve(session_id)
        transport = self.registry.remove(session_id)
        if transport is not None:
            await transport.close()
