# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Core infrastructure: error kinds and logging.
"""

from intern_mcp.core.errors import (
    DecodeError,
    InternalError,
    MCPServerError,
    ProtocolError,
    ToolError,
    ToolNotFoundError,
    sanitize_error_for_user,
)
from intern_mcp.core.logging import configure_logging, get_logger, log_event

__all__ = [
    "DecodeError",
    "InternalError",
    "MCPServerError",
    "ProtocolError",
    "ToolError",
    "ToolNotFoundError",
    "sanitize_error_for_user",
    "configure_logging",
    "get_logger",
    "log_event",
]
