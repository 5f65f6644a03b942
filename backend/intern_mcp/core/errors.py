# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Error kinds for the MCP server.

Every failure that can reach the HTTP boundary is one of the classes below.
They all inherit from MCPServerError so the boundary maps them to the wire
shape in exactly one place.
"""

import uuid
from typing import Any, Dict, Optional


# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_ERROR = -32000


class MCPServerError(Exception):
    """Base exception for all MCP server errors."""

    code = INTERNAL_ERROR
    status_code = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[int] = None,
        cause: Optional[BaseException] = None,
        details: Optional[dict] = None
    ):
        """
        Initialize MCP server error.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (class default if omitted)
            code: JSON-RPC error code (class default if omitted)
            cause: Underlying exception, if any
            details: Additional error details, sent as JSON-RPC error data
        """
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.cause = cause
        self.details = details or {}
        super().__init__(self.message)

    def to_jsonrpc(self, request_id: Any = None) -> Dict[str, Any]:
        """Convert error to a JSON-RPC error response."""
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            error["data"] = self.details
        return {"jsonrpc": "2.0", "id": request_id, "error": error}

    def to_dict(self) -> dict:
        """Convert error to dictionary for logs."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "details": self.details
        }


class ProtocolError(MCPServerError):
    """Bad or missing session id, or a request the session state forbids."""

    code = SERVER_ERROR
    status_code = 400

    def to_jsonrpc(self, request_id: Any = None) -> Dict[str, Any]:
        # Protocol failures are not tied to a request, so they get a fresh id
        return super().to_jsonrpc(request_id if request_id is not None else str(uuid.uuid4()))


class DecodeError(MCPServerError):
    """Request body is not valid JSON."""

    code = PARSE_ERROR
    status_code = 400


class ToolError(MCPServerError):
    """A tool handler failed. Travels inside a JSON-RPC response."""

    code = INTERNAL_ERROR
    status_code = 200

    def __init__(self, message: str, tool_name: Optional[str] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.tool_name = tool_name


class ToolNotFoundError(ToolError):
    """No handler registered under the requested name."""

    code = METHOD_NOT_FOUND

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool: {tool_name}", tool_name=tool_name)


class InternalError(MCPServerError):
    """Unexpected failure while routing a request."""

    code = INTERNAL_ERROR
    status_code = 500


def sanitize_error_for_user(error: Exception, include_type: bool = True) -> str:
    """
    Sanitize error messages for user display.
    Removes stack traces and sensitive information.

    Args:
        error: The exception to sanitize
        include_type: Whether to include exception type

    Returns:
        User-friendly error message without stack trace
    """
    error_msg = str(error).strip()

    # Limit message length
    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."

    if include_type:
        return f"{error.__class__.__name__}: {error_msg}"

    return error_msg
