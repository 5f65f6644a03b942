# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Notification Streamer
Pushes notifications/message frames over a transport's open SSE stream
"""

import asyncio
import logging
from typing import Optional

from intern_mcp.mcp_jsonrpc import build_log_notification
from intern_mcp.mcp_transport import StreamableHTTPTransport

logger = logging.getLogger(__name__)


class NotificationStreamer:
    """
    One "connection established" frame, then `count` updates every
    `interval` seconds, then "streaming complete". The task is cancelled
    when the stream it writes to detaches.
    """

    def __init__(
        self,
        transport: StreamableHTTPTransport,
        interval: float = 2.0,
        count: int = 3,
        logger_name: str = "intern-mcp"
    ):
        self.transport = transport
        self.interval = interval
        self.count = count
        self.logger_name = logger_name
        self.sent = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.create_task(self._run())
            self.transport.add_stream_close_callback(self.cancel)
        return self._task

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            logger.debug(f"[{self.transport.session_id}] Stream closed, cancelling streamer")
            self._task.cancel()

    async def _send(self, text: str) -> bool:
        delivered = await self.transport.send_notification(
            build_log_notification(text, level="info", logger_name=self.logger_name)
        )
        if delivered:
            self.sent += 1
        return delivered

    async def _run(self) -> None:
        if not await self._send("Notification stream connection established"):
            return

        for i in range(1, self.count + 1):
            await asyncio.sleep(self.interval)
            if not await self._send(f"Streaming update {i}/{self.count}"):
                return

        await self._send("Streaming complete")
        logger.debug(f"[{self.transport.session_id}] Streamer finished after {self.sent} frames")
