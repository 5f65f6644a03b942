# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
FastAPI application for the Intern MCP Server

Routes:
    GET     /health  -> liveness
    POST    /mcp     -> JSON-RPC over HTTP (JSON or SSE answer)
    GET     /mcp     -> SSE notification stream for an established session
    DELETE  /mcp     -> terminate a session
    OPTIONS /mcp     -> CORS preflight
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse

from intern_mcp.api_client import RecruitingAPIClient
from intern_mcp.config import Config, load_config
from intern_mcp.core.errors import InternalError, MCPServerError
from intern_mcp.core.logging import configure_logging
from intern_mcp.mcp_router import RequestRouter
from intern_mcp.mcp_server import MCPServer
from intern_mcp.mcp_session_registry import SessionRegistry
from intern_mcp.mcp_transport import (
    SESSION_HEADER,
    SSE_MEDIA_TYPE,
    DeliveryMode,
    TransportResponse,
)
from intern_mcp.notification_streamer import NotificationStreamer
from intern_mcp.tools.dispatch import ToolDispatchTable
from intern_mcp.tools.recruiting import register_recruiting_tools

logger = logging.getLogger(__name__)

CORS_ALLOW_METHODS = ["POST", "GET", "OPTIONS", "DELETE"]
CORS_ALLOW_HEADERS = ["Content-Type", SESSION_HEADER, "Accept", "Last-Event-ID"]
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": ", ".join(CORS_ALLOW_METHODS),
    "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
    "Access-Control-Expose-Headers": SESSION_HEADER,
}
STREAM_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


def error_response(exc: Exception) -> JSONResponse:
    """Map any failure to its HTTP status and JSON-RPC error body"""
    if isinstance(exc, MCPServerError):
        logger.info(f"Request failed: {exc.to_dict()}")
    else:
        logger.exception("Unexpected error while routing request", exc_info=exc)
        exc = InternalError("Internal server error", cause=exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_jsonrpc())


async def _iter_frames(response: TransportResponse) -> AsyncIterator[str]:
    for frame in response.sse_frames():
        yield frame


def to_http_response(response: TransportResponse) -> Response:
    if not response.has_body:
        return Response(status_code=response.status_code, headers=response.headers)

    if response.mode == DeliveryMode.SSE:
        return StreamingResponse(
            _iter_frames(response),
            status_code=response.status_code,
            media_type=SSE_MEDIA_TYPE,
            headers={**response.headers, **STREAM_HEADERS}
        )

    return JSONResponse(
        status_code=response.status_code,
        content=response.payload,
        headers=response.headers
    )


def create_app(
    config: Optional[Config] = None,
    api_client: Optional[RecruitingAPIClient] = None
) -> FastAPI:
    """Build the application and every collaborator it owns"""
    config = config or load_config()
    api_client = api_client or RecruitingAPIClient(
        config.api_base_url, timeout=config.api_timeout_seconds
    )

    tools = ToolDispatchTable()
    register_recruiting_tools(tools, api_client)
    server = MCPServer(name=config.server_name, version=config.server_version, tools=tools)
    registry = SessionRegistry(
        ttl_seconds=config.session_ttl_seconds,
        sweep_interval_seconds=config.session_sweep_interval_seconds
    )
    router = RequestRouter(server, registry)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        registry.start()
        logger.info(
            f"MCP Server {config.server_name} ready with {len(tools)} tools "
            f"(API: {config.api_base_url})"
        )
        try:
            yield
        finally:
            await registry.close_all()
            await api_client.aclose()
            logger.info(f"MCP Server {config.server_name} stopped")

    app = FastAPI(
        title=f"MCP Server: {config.server_name}",
        version=config.server_version,
        lifespan=lifespan
    )
    app.state.config = config
    app.state.server = server
    app.state.registry = registry
    app.state.router = router

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
        expose_headers=[SESSION_HEADER],
    )

    @app.get("/health")
    async def health():
        return {"status": "ok", "server": config.server_name}

    @app.post("/mcp")
    async def mcp_post(request: Request):
        """Main MCP endpoint - handles all JSON-RPC messages"""
        try:
            raw_body = await request.body()
            response = await router.route_post(
                request.headers.get(SESSION_HEADER),
                raw_body,
                request.headers.get("accept")
            )
            return to_http_response(response)
        except Exception as e:
            return error_response(e)

    @app.get("/mcp")
    async def mcp_stream(request: Request):
        """Server-to-client notification stream"""
        try:
            transport = router.resolve(request.headers.get(SESSION_HEADER))
            frames = transport.open_stream()
            NotificationStreamer(
                transport,
                interval=config.stream_interval_seconds,
                count=config.stream_message_count,
                logger_name=config.server_name
            ).start()
            return StreamingResponse(
                frames,
                media_type=SSE_MEDIA_TYPE,
                headers={SESSION_HEADER: transport.session_id, **STREAM_HEADERS}
            )
        except Exception as e:
            return error_response(e)

    @app.delete("/mcp")
    async def mcp_delete(request: Request):
        """Terminate a session"""
        try:
            session_id = request.headers.get(SESSION_HEADER)
            await router.terminate(session_id)
            return JSONResponse({"status": "ok", "sessionId": session_id})
        except Exception as e:
            return error_response(e)

    @app.options("/mcp")
    async def mcp_options():
        return Response(status_code=200, headers=CORS_HEADERS)

    return app


def run(config: Optional[Config] = None) -> None:
    """Start the MCP server"""
    load_dotenv()
    config = config or load_config()
    configure_logging(config.log_level, config.log_format)
    logger.info(f"Starting MCP Server: {config.server_name} on {config.host}:{config.port}")
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    run()
