# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
MCP Session Registry
Maps session ids to their transports and expires idle sessions
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from intern_mcp.mcp_transport import StreamableHTTPTransport

logger = logging.getLogger(__name__)


@dataclass
class MCPSession:
    """Server-side session state"""
    session_id: str
    transport: StreamableHTTPTransport
    created_at: datetime = field(default_factory=datetime.now)
    last_seen_at: datetime = field(default_factory=datetime.now)

    def touch(self) -> None:
        self.last_seen_at = datetime.now()

    def idle_seconds(self, now: Optional[datetime] = None) -> float:
        return ((now or datetime.now()) - self.last_seen_at).total_seconds()


class SessionRegistry:
    """
    Session id -> transport mapping owned by the application.

    Mutations happen only between suspension points, so no lock is held.
    """

    def __init__(self, ttl_seconds: int = 3600, sweep_interval_seconds: float = 300):
        self.sessions: Dict[str, MCPSession] = {}
        self.ttl_seconds = ttl_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self._cleanup_task: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self.sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self.sessions

    def get(self, session_id: Optional[str]) -> Optional[StreamableHTTPTransport]:
        """Look up a transport, refreshing its idle clock"""
        if not session_id:
            return None
        session = self.sessions.get(session_id)
        if session is None:
            return None
        session.touch()
        return session.transport

    def put(self, session_id: str, transport: StreamableHTTPTransport) -> MCPSession:
        """Register a freshly initialized transport. Ids are never reused."""
        if session_id in self.sessions:
            raise ValueError(f"Session id already registered: {session_id}")
        session = MCPSession(session_id=session_id, transport=transport)
        self.sessions[session_id] = session
        logger.info(f"Registered session {session_id} ({len(self.sessions)} active)")
        return session

    def remove(self, session_id: str) -> Optional[StreamableHTTPTransport]:
        session = self.sessions.pop(session_id, None)
        if session is None:
            return None
        logger.info(f"Removed session {session_id} ({len(self.sessions)} active)")
        return session.transport

    def session_ids(self) -> List[str]:
        return list(self.sessions)

    async def sweep_expired(self, now: Optional[datetime] = None) -> List[str]:
        """
        Remove and close sessions idle for longer than the TTL.

        A session with an open GET stream is live: each sweep refreshes its
        idle clock instead of expiring it.
        """
        if self.ttl_seconds <= 0:
            return []

        now = now or datetime.now()
        expired = []
        for session_id, session in self.sessions.items():
            if session.transport.is_streaming:
                session.last_seen_at = now
            elif session.idle_seconds(now) > self.ttl_seconds:
                expired.append(session_id)

        for session_id in expired:
            transport = self.remove(session_id)
            if transport is not None:
                await transport.close()
            logger.info(f"Cleaned up expired session: {session_id}")

        return expired

    async def _cleanup_expired_sessions(self) -> None:
        """Periodically clean up expired sessions"""
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            try:
                await self.sweep_expired()
            except Exception:
                logger.exception("Session sweep failed")

    def start(self) -> None:
        if self._cleanup_task is None and self.ttl_seconds > 0:
            self._cleanup_task = asyncio.create_task(self._cleanup_expired_sessions())

    async def stop(self) -> None:
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None

    async def close_all(self) -> None:
        """Close every transport. Used on shutdown."""
        await self.stop()
        sessions, self.sessions = self.sessions, {}
        for session in sessions.values():
            try:
                await session.transport.close()
            except Exception:
                logger.exception(f"Failed to close session {session.session_id}")
        if sessions:
            logger.info(f"Closed {len(sessions)} session(s)")
