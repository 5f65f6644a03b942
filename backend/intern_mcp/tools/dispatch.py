# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tool Dispatch Table
Maps a tool name to its handler and its wire descriptor
"""
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Union

from pydantic import BaseModel

from intern_mcp.core.errors import MCPServerError, ToolError, ToolNotFoundError

logger = logging.getLogger(__name__)

ToolResult = Dict[str, Any]
ToolHandler = Callable[[Dict[str, Any]], Union[ToolResult, Awaitable[ToolResult]]]


class ToolDefinition(BaseModel):
    """MCP Tool Definition"""
    name: str
    description: str
    input_schema: Dict[str, Any]

    def to_wire(self) -> Dict[str, Any]:
        # Internal snake_case, wire camelCase
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema
        }


def text_result(text: str) -> ToolResult:
    """Wrap text in a ToolResult content envelope"""
    return {"content": [{"type": "text", "text": text}]}


class ToolDispatchTable:
    """Static name -> handler mapping, filled at server start"""

    def __init__(self):
        self.tools: Dict[str, ToolHandler] = {}
        self.tool_definitions: List[ToolDefinition] = []

    def __contains__(self, name: str) -> bool:
        return name in self.tools

    def __len__(self) -> int:
        return len(self.tools)

    def register(
        self,
        name: str,
        handler: ToolHandler,
        description: str,
        input_schema: Dict[str, Any]
    ) -> None:
        """Register a tool. Names are unique."""
        if name in self.tools:
            raise ValueError(f"Tool already registered: {name}")
        self.tools[name] = handler
        self.tool_definitions.append(
            ToolDefinition(
                name=name,
                description=description,
                input_schema=input_schema
            )
        )
        logger.info(f"Registered tool: {name}")

    def descriptors(self) -> List[Dict[str, Any]]:
        return [tool.to_wire() for tool in self.tool_definitions]

    async def call(self, name: str, arguments: Dict[str, Any]) -> ToolResult:
        """
        Execute a tool handler.

        Raises:
            ToolNotFoundError: No tool registered under name
            ToolError: The handler raised; the message is preserved
        """
        handler = self.tools.get(name)
        if handler is None:
            raise ToolNotFoundError(name)

        try:
            # Handle both sync and async handlers
            if inspect.iscoroutinefunction(handler):
                return await handler(arguments)
            return handler(arguments)
        except ToolError:
            raise
        except MCPServerError as e:
            raise ToolError(e.message, tool_name=name, cause=e)
        except Exception as e:
            logger.warning(f"Tool {name} failed: {e}")
            raise ToolError(str(e), tool_name=name, cause=e)
