# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
MCP HTTP Client
Manages MCP initialization, sessions, and JSON-RPC communication with an
MCP endpoint such as this package's server
"""

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple

import aiohttp

from intern_mcp.mcp_jsonrpc import (
    build_call_tool_request,
    build_cancel_notification,
    build_initialize_request,
    build_initialized_notification,
    build_list_tools_request,
    build_ping_request,
    is_notification,
    is_response,
)

logger = logging.getLogger(__name__)

SESSION_LOST_STATUSES = (400, 404)


class MCPInitializationError(Exception):
    """Raised when MCP initialization fails"""
    pass


class MCPSessionExpiredError(Exception):
    """Raised when the server keeps rejecting our session"""
    pass


class MCPProtocolError(Exception):
    """Raised when MCP protocol violation occurs"""
    pass


class MCPToolCallError(MCPProtocolError):
    """Raised when the server answers tools/call with a JSON-RPC error"""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


@dataclass
class MCPClientSession:
    """Represents an initialized MCP connection"""
    endpoint: str
    protocol_version: str
    session_id: Optional[str]
    server_info: Dict[str, Any]
    server_capabilities: Dict[str, Any]
    initialized_at: datetime


@dataclass(frozen=True)
class ClientTimeouts:
    """Per-operation timeouts, in seconds"""
    handshake: float = 30.0
    listing: float = 10.0
    tool_call: float = 300.0
    cancel: float = 5.0

    @classmethod
    def from_env(cls) -> "ClientTimeouts":
        return cls(
            handshake=float(os.getenv("MCP_TIMEOUT_INIT", cls.handshake)),
            listing=float(os.getenv("MCP_TIMEOUT_LIST", cls.listing)),
            tool_call=float(os.getenv("MCP_TIMEOUT_CALL", cls.tool_call)),
        )


def parse_sse_events(text: str) -> List[Dict[str, Any]]:
    """Parse an SSE body into a list of {id, event, data} dicts"""
    events: List[Dict[str, Any]] = []
    event_id: Optional[str] = None
    event_type = "message"
    data_lines: List[str] = []

    # Trailing "" dispatches an unterminated last event
    for line in text.splitlines() + [""]:
        if not line:
            if data_lines:
                events.append({"id": event_id, "event": event_type, "data": "\n".join(data_lines)})
            event_id, event_type, data_lines = None, "message", []
            continue
        if line.startswith(":"):
            continue

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "id":
            event_id = value
        elif name == "event":
            event_type = value
        elif name == "data":
            data_lines.append(value)

    return events


class MCPClient:
    """
    Client for MCP streamable HTTP endpoints.

    Keeps one initialized session per endpoint. Tool calls on an endpoint are
    serialized, and a session the server stopped recognizing (HTTP 400/404)
    is initialized again before the request is resent once.
    """

    def __init__(
        self,
        notification_handler: Optional[Callable[[Dict], None]] = None,
        client_name: str = "intern-mcp-cli",
        client_version: str = "0.1.0",
        timeouts: Optional[ClientTimeouts] = None
    ):
        self.sessions: Dict[str, MCPClientSession] = {}
        self.init_locks: Dict[str, asyncio.Lock] = {}
        self.request_locks: Dict[str, asyncio.Lock] = {}
        self.request_id_counter = 0
        self.protocol_version = "2024-11-05"
        self.client_info = {"name": client_name, "version": client_version}
        self.timeouts = timeouts or ClientTimeouts.from_env()
        self.notification_handler = notification_handler or self._log_notification

        self._http_session: Optional[aiohttp.ClientSession] = None

    @staticmethod
    def _log_notification(notification: Dict) -> None:
        params = notification.get("params", {})
        logger.info(f"Server notification {notification.get('method', 'unknown')}: {params}")

    def _next_request_id(self) -> int:
        self.request_id_counter += 1
        return self.request_id_counter

    async def _get_http_session(self) -> aiohttp.ClientSession:
        """One pooled aiohttp session, reopened if it was closed"""
        if self._http_session is None or self._http_session.closed:
            self._http_session = aiohttp.ClientSession()
        return self._http_session

    async def close(self) -> None:
        if self._http_session is not None and not self._http_session.closed:
            await self._http_session.close()
        self.sessions.clear()

    def _build_headers(self, session: Optional[MCPClientSession] = None) -> Dict[str, str]:
        headers = {
            "Accept": "application/json, text/event-stream",
            "Content-Type": "application/json",
        }
        if session is not None:
            headers["MCP-Protocol-Version"] = session.protocol_version
            if session.session_id:
                headers["MCP-Session-Id"] = session.session_id
        return headers

    async def _post(
        self,
        endpoint: str,
        message: Dict[str, Any],
        session: Optional[MCPClientSession],
        timeout: float
    ) -> Tuple[int, Any, Optional[Dict]]:
        """
        POST one JSON-RPC message.

        Returns:
            (HTTP status, response headers, decoded reply). The reply is None
            unless the status is 200.
        """
        http_session = await self._get_http_session()
        async with http_session.post(
            endpoint,
            json=message,
            headers=self._build_headers(session),
            timeout=aiohttp.ClientTimeout(total=timeout)
        ) as response:
            if response.status != 200:
                return response.status, response.headers, None
            return response.status, response.headers, await self._handle_response(response)

    async def initialize(self, endpoint: str) -> MCPClientSession:
        """Handshake: initialize, keep the session id, send notifications/initialized"""
        logger.info(f"Initializing MCP session for {endpoint}")
        request = build_initialize_request(self._next_request_id(), self.protocol_version, self.client_info)

        try:
            status, headers, reply = await self._post(endpoint, request, None, self.timeouts.handshake)
            if reply is None:
                raise MCPInitializationError(f"Initialize failed with status {status}")
            if "error" in reply:
                raise MCPInitializationError(
                    f"Initialize error: {reply['error'].get('message', 'Unknown error')}"
                )

            result = reply.get("result", {})
            session = MCPClientSession(
                endpoint=endpoint,
                protocol_version=result.get("protocolVersion") or self.protocol_version,
                session_id=headers.get("MCP-Session-Id"),
                server_info=result.get("serverInfo", {}),
                server_capabilities=result.get("capabilities", {}),
                initialized_at=datetime.now()
            )

            status, _, _ = await self._post(
                endpoint, build_initialized_notification(), session, self.timeouts.handshake
            )
            if status != 202:
                logger.warning(f"notifications/initialized answered with status {status}")
        except asyncio.TimeoutError:
            raise MCPInitializationError(f"Initialize timed out for {endpoint}")
        except aiohttp.ClientError as e:
            raise MCPInitializationError(f"Initialize failed: {e}")

        self.sessions[endpoint] = session
        logger.info(f"MCP session {session.session_id} ready for {endpoint}")
        return session

    async def get_or_initialize(self, endpoint: str) -> MCPClientSession:
        session = self.sessions.get(endpoint)
        if session is not None:
            return session

        async with self.init_locks.setdefault(endpoint, asyncio.Lock()):
            # Another task may have finished the handshake while we waited
            session = self.sessions.get(endpoint)
            if session is not None:
                return session
            return await self.initialize(endpoint)

    async def _request(
        self,
        endpoint: str,
        build: Callable[[int], Dict[str, Any]],
        timeout: float
    ) -> Dict[str, Any]:
        """
        Send the request build(request_id) on the endpoint's session.

        Raises:
            MCPSessionExpiredError: The session was rejected even after a
                fresh handshake
            MCPProtocolError: Any other non-200 answer
        """
        session = await self.get_or_initialize(endpoint)
        status, _, reply = await self._post(endpoint, build(self._next_request_id()), session, timeout)

        if status in SESSION_LOST_STATUSES:
            logger.warning(f"Session {session.session_id} rejected by {endpoint}, re-initializing")
            self.sessions.pop(endpoint, None)
            session = await self.get_or_initialize(endpoint)
            status, _, reply = await self._post(endpoint, build(self._next_request_id()), session, timeout)
            if status in SESSION_LOST_STATUSES:
                raise MCPSessionExpiredError(f"{endpoint} rejected a fresh session with status {status}")

        if reply is None:
            raise MCPProtocolError(f"Unexpected status {status} from {endpoint}")
        return reply

    async def ping(self, endpoint: str) -> bool:
        """True if the endpoint answers ping on our session"""
        reply = await self._request(endpoint, build_ping_request, self.timeouts.listing)
        return "result" in reply

    async def list_tools(self, endpoint: str) -> List[Dict]:
        try:
            reply = await self._request(endpoint, build_list_tools_request, self.timeouts.listing)
        except asyncio.TimeoutError:
            raise MCPProtocolError(f"List tools timed out for {endpoint}")

        if "error" in reply:
            raise MCPProtocolError(f"List tools error: {reply['error'].get('message')}")
        return reply.get("result", {}).get("tools", [])

    async def call_tool(
        self,
        endpoint: str,
        tool_name: str,
        arguments: Dict,
        max_retries: int = 3
    ) -> Dict:
        """
        Call a tool and return its result.

        Transport failures are retried with exponential backoff. When the
        last attempt times out the server is told to cancel the request.

        Raises:
            MCPToolCallError: The server answered with a JSON-RPC error
            MCPProtocolError: Every attempt failed
            ValueError: max_retries is below 1
        """
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {max_retries}")

        issued: List[int] = []

        def build(request_id: int) -> Dict[str, Any]:
            issued.append(request_id)
            return build_call_tool_request(request_id, tool_name, arguments)

        async with self.request_locks.setdefault(endpoint, asyncio.Lock()):
            for attempt in range(1, max_retries + 1):
                try:
                    reply = await self._request(endpoint, build, self.timeouts.tool_call)
                    break
                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    if attempt < max_retries:
                        delay = 2 ** (attempt - 1)
                        logger.warning(
                            f"{tool_name} attempt {attempt}/{max_retries} failed, retrying in {delay}s: {e}"
                        )
                        await asyncio.sleep(delay)
                        continue
                    if isinstance(e, asyncio.TimeoutError) and issued:
                        await self._send_cancel(endpoint, issued[-1])
                    raise MCPProtocolError(f"Tool call failed after {max_retries} attempts: {e}")

        if "error" in reply:
            error = reply["error"]
            raise MCPToolCallError(error.get("message", "Unknown error"), code=error.get("code"))
        return reply.get("result", {})

    async def _send_cancel(self, endpoint: str, request_id: int) -> None:
        try:
            await self._post(
                endpoint,
                build_cancel_notification(request_id),
                self.sessions.get(endpoint),
                self.timeouts.cancel
            )
            logger.info(f"Sent cancellation for request {request_id}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Failed to send cancellation for request {request_id}: {e}")

    async def terminate(self, endpoint: str) -> bool:
        """End the server-side session with DELETE"""
        session = self.sessions.pop(endpoint, None)
        if session is None or not session.session_id:
            return False

        http_session = await self._get_http_session()
        async with http_session.delete(
            endpoint,
            headers=self._build_headers(session),
            timeout=aiohttp.ClientTimeout(total=self.timeouts.listing)
        ) as response:
            return response.status == 200

    async def stream_notifications(self, endpoint: str) -> AsyncIterator[Dict]:
        """Open the GET stream and yield each notification as it arrives"""
        session = await self.get_or_initialize(endpoint)
        headers = self._build_headers(session)
        headers["Accept"] = "text/event-stream"

        http_session = await self._get_http_session()
        async with http_session.get(
            endpoint,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=None)
        ) as response:
            if response.status != 200:
                raise MCPSessionExpiredError(f"Stream rejected with status {response.status}")

            pending = ""
            async for chunk in response.content.iter_any():
                pending += chunk.decode("utf-8")
                while "\n\n" in pending:
                    raw_event, pending = pending.split("\n\n", 1)
                    for event in parse_sse_events(raw_event):
                        try:
                            yield json.loads(event["data"])
                        except json.JSONDecodeError as e:
                            logger.warning(f"Skipping undecodable SSE event: {e}")

    async def _handle_response(self, response: aiohttp.ClientResponse) -> Dict:
        """Decode a reply sent as JSON or as an SSE body"""
        if "text/event-stream" in response.headers.get("Content-Type", ""):
            return await self._read_sse_stream(response)
        return await response.json()

    async def _read_sse_stream(self, response: aiohttp.ClientResponse) -> Dict:
        """First JSON-RPC response in an SSE body; notifications before it go to the handler"""
        for event in parse_sse_events(await response.text()):
            try:
                message = json.loads(event["data"])
            except json.JSONDecodeError as e:
                logger.warning(f"Skipping undecodable SSE event: {e}")
                continue

            if is_response(message):
                return message
            if is_notification(message):
                self.notification_handler(message)

        raise MCPProtocolError("SSE stream ended without JSON-RPC response")


def describe_tool_error(tool_name: str, message: str, arguments: Optional[Dict[str, Any]] = None) -> str:
    """Turn an API failure message into something a person can act on"""
    arguments = arguments or {}
    if "API call failed:" not in message:
        return message

    detail = message.split("API call failed:")[-1].strip()
    if detail.startswith("400"):
        if tool_name == "cancel_interview":
            return "Invalid interview ID. Please provide a valid interview ID."
        return f"The request to {tool_name} was rejected. Please check the details and try again."
    if detail.startswith("404"):
        if tool_name == "cancel_interview" and "interviewId" in arguments:
            return (
                f"Interview with ID {arguments['interviewId']} was not found. "
                "Please verify the interview ID."
            )
        return f"The record needed by {tool_name} was not found. Please verify the IDs."
    if detail.startswith("5"):
        return "The recruiting service encountered an error. Please try again later."
    return f"Failed to run {tool_name}: {detail}"
