# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Streamable HTTP Transport

One transport per MCP session. It decodes JSON-RPC envelopes coming in over
HTTP, hands requests to the bound MCPServer, and delivers the answers either
as one JSON document or as a Server-Sent Events body. A GET stream attached
to the transport carries server-initiated notifications.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from intern_mcp.core.errors import INVALID_REQUEST, ProtocolError
from intern_mcp.mcp_jsonrpc import (
    JSONRPC_VERSION,
    as_batch,
    build_error,
    encode_sse_event,
    is_notification,
    is_request,
    is_response,
)
from intern_mcp.mcp_server import MCPServer

logger = logging.getLogger(__name__)

SESSION_HEADER = "mcp-session-id"
JSON_MEDIA_TYPE = "application/json"
SSE_MEDIA_TYPE = "text/event-stream"


class TransportState(str, Enum):
    UNBOUND = "unbound"
    BOUND = "bound"
    STREAMING = "streaming"
    CLOSED = "closed"


class DeliveryMode(str, Enum):
    JSON = "json"
    SSE = "sse"


def select_delivery_mode(accept: Optional[str]) -> DeliveryMode:
    """
    Pick how a POST answer is delivered.

    JSON wins whenever the client accepts it; SSE only when the client
    accepts event-stream and not JSON.
    """
    if not accept:
        return DeliveryMode.JSON
    media_types = [part.split(";")[0].strip().lower() for part in accept.split(",")]
    if JSON_MEDIA_TYPE in media_types or "*/*" in media_types or "application/*" in media_types:
        return DeliveryMode.JSON
    if SSE_MEDIA_TYPE in media_types:
        return DeliveryMode.SSE
    return DeliveryMode.JSON


@dataclass
class TransportResponse:
    """What the HTTP layer should send back for one handled request"""
    status_code: int
    mode: DeliveryMode
    payload: Any = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def has_body(self) -> bool:
        return self.payload is not None

    def sse_frames(self) -> List[str]:
        return [encode_sse_event(message) for message in as_batch(self.payload)]


class StreamableHTTPTransport:
    """Per-session transport bound to a shared MCPServer"""

    def __init__(
        self,
        server: MCPServer,
        session_id_generator: Optional[Callable[[], str]] = None
    ):
        self.server = server
        self.session_id: Optional[str] = None
        self.state = TransportState.UNBOUND
        self.request_count = 0
        self._session_id_generator = session_id_generator or (lambda: str(uuid.uuid4()))

        # Serializes frames written to the stream
        self._write_lock = asyncio.Lock()
        self._stream_queue: Optional[asyncio.Queue] = None
        self._stream_close_callbacks: List[Callable[[], Any]] = []
        self._event_counter = 0

    @property
    def is_streaming(self) -> bool:
        return self._stream_queue is not None

    def _session_headers(self) -> Dict[str, str]:
        return {SESSION_HEADER: self.session_id} if self.session_id else {}

    async def handle_request(self, body: Any, accept: Optional[str] = None) -> TransportResponse:
        """
        Handle one decoded POST body (a message or a batch).

        Args:
            body: Decoded JSON body
            accept: Value of the request's Accept header

        Returns:
            TransportResponse describing status, delivery mode and payload
        """
        if self.state == TransportState.CLOSED:
            raise ProtocolError("Bad Request: session is closed")

        mode = select_delivery_mode(accept)
        messages = as_batch(body)
        self.request_count += 1

        if not messages:
            return TransportResponse(
                status_code=400,
                mode=DeliveryMode.JSON,
                payload=build_error(None, INVALID_REQUEST, "Invalid Request: empty batch"),
                headers=self._session_headers()
            )

        pending = []
        for message in messages:
            if not isinstance(message, dict) or message.get("jsonrpc") != JSONRPC_VERSION:
                request_id = message.get("id") if isinstance(message, dict) else None
                pending.append(self._immediate(
                    build_error(request_id, INVALID_REQUEST, "Invalid Request: not a JSON-RPC 2.0 message")
                ))
            elif is_request(message):
                pending.append(self._dispatch_request(message))
            elif is_notification(message):
                await self.server.handle_notification(message)
            elif is_response(message):
                logger.debug(f"[{self.session_id}] Ignoring client response for id {message.get('id')}")
            else:
                pending.append(self._immediate(
                    build_error(message.get("id"), INVALID_REQUEST, "Invalid Request: missing method")
                ))

        if not pending:
            return TransportResponse(status_code=202, mode=mode, headers=self._session_headers())

        responses = await asyncio.gather(*pending)
        payload: Any = responses if isinstance(body, list) else responses[0]

        return TransportResponse(
            status_code=200,
            mode=mode,
            payload=payload,
            headers=self._session_headers()
        )

    async def _immediate(self, response: Dict[str, Any]) -> Dict[str, Any]:
        return response

    async def _dispatch_request(self, message: Dict[str, Any]) -> Dict[str, Any]:
        method = message.get("method")
        request_id = message.get("id")

        if method == "initialize":
            if self.state != TransportState.UNBOUND:
                return build_error(request_id, INVALID_REQUEST, "Invalid Request: server already initialized")
            response = await self.server.handle_request(message)
            if "result" in response:
                # Session id becomes visible only after a successful handshake
                self.session_id = self._session_id_generator()
                self.state = TransportState.BOUND
                logger.info(f"Session {self.session_id} initialized")
            return response

        if self.state == TransportState.UNBOUND:
            return build_error(request_id, INVALID_REQUEST, "Bad Request: server not initialized")

        return await self.server.handle_request(message)

    def open_stream(self) -> AsyncIterator[str]:
        """
        Attach a server-to-client SSE stream.

        A second call replaces the previous stream: the old one ends and its
        close callbacks run.

        Returns:
            Async iterator of encoded SSE frames, ending when the stream detaches
        """
        if self.state in (TransportState.UNBOUND, TransportState.CLOSED):
            raise ProtocolError("Bad Request: invalid session ID or method")

        if self._stream_queue is not None:
            logger.info(f"[{self.session_id}] Replacing existing notification stream")
            self._release_stream(self._stream_queue)

        queue: asyncio.Queue = asyncio.Queue()
        self._stream_queue = queue
        self.state = TransportState.STREAMING
        return self._stream_frames(queue)

    async def _stream_frames(self, queue: asyncio.Queue) -> AsyncIterator[str]:
        try:
            while True:
                frame = await queue.get()
                if frame is None:
                    break
                yield frame
        finally:
            # Client went away or stream was replaced/closed
            if self._stream_queue is queue:
                self._release_stream(queue)

    def _release_stream(self, queue: asyncio.Queue) -> None:
        queue.put_nowait(None)
        if self._stream_queue is queue:
            self._stream_queue = None
            if self.state == TransportState.STREAMING:
                self.state = TransportState.BOUND

        callbacks, self._stream_close_callbacks = self._stream_close_callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception(f"[{self.session_id}] Stream close callback failed")

    def add_stream_close_callback(self, callback: Callable[[], Any]) -> None:
        """Run callback once when the current stream detaches"""
        self._stream_close_callbacks.append(callback)

    async def send_notification(self, message: Dict[str, Any]) -> bool:
        """
        Push one JSON-RPC message over the attached stream.

        Returns:
            True if queued, False if no stream is attached
        """
        async with self._write_lock:
            queue = self._stream_queue
            if queue is None:
                logger.debug(f"[{self.session_id}] No stream attached, dropping {message.get('method')}")
                return False
            self._event_counter += 1
            queue.put_nowait(encode_sse_event(message, event_id=str(self._event_counter)))
            return True

    async def close(self) -> None:
        """End any stream and refuse further requests"""
        async with self._write_lock:
            if self._stream_queue is not None:
                self._release_stream(self._stream_queue)
            self.state = TransportState.CLOSED
        logger.info(f"Session {self.session_id} closed")
