# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
MCP tools: the dispatch table and the recruiting tool handlers.
"""

from intern_mcp.tools.dispatch import ToolDefinition, ToolDispatchTable, text_result
from intern_mcp.tools.recruiting import RecruitingTools, register_recruiting_tools

__all__ = [
    "ToolDefinition",
    "ToolDispatchTable",
    "text_result",
    "RecruitingTools",
    "register_recruiting_tools",
]
