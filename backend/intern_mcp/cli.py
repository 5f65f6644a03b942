# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
intern-mcp command line

    intern-mcp serve                      run the MCP server
    intern-mcp tools                      list the server's tools
    intern-mcp call NAME --args '{...}'   call one tool
    intern-mcp watch                      print the notification stream
"""

import argparse
import asyncio
import json
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from intern_mcp.core.errors import sanitize_error_for_user
from intern_mcp.mcp_client import MCPClient, MCPToolCallError, describe_tool_error

DEFAULT_SERVER_URL = "http://localhost:3000/mcp"


async def _list_tools(url: str) -> int:
    client = MCPClient()
    try:
        tools = await client.list_tools(url)
        print("Available tools:")
        for tool in tools:
            print(f"  - {tool['name']}: {tool.get('description', '')}")
        await client.terminate(url)
        return 0
    finally:
        await client.close()


async def _call_tool(url: str, name: str, arguments: dict) -> int:
    client = MCPClient()
    try:
        try:
            result = await client.call_tool(url, name, arguments)
        except MCPToolCallError as e:
            print(describe_tool_error(name, str(e), arguments))
            return 1
        for item in result.get("content", []):
            if item.get("type") == "text":
                print(item.get("text", ""))
        await client.terminate(url)
        return 0
    finally:
        await client.close()


async def _watch(url: str) -> int:
    client = MCPClient()
    try:
        notifications = client.stream_notifications(url)
        try:
            async for notification in notifications:
                params = notification.get("params", {})
                print(f"[{params.get('level', 'info')}] {params.get('data')}")
                if params.get("data") == "Streaming complete":
                    break
        finally:
            await notifications.aclose()
        await client.terminate(url)
        return 0
    finally:
        await client.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="intern-mcp", description="Internship recruiting MCP server")
    parser.add_argument(
        "--url",
        default=os.getenv("MCP_SERVER_URL", DEFAULT_SERVER_URL),
        help="MCP endpoint URL (default: $MCP_SERVER_URL or %(default)s)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the MCP server")
    serve.add_argument("--config", help="Path to YAML config file")

    subparsers.add_parser("tools", help="List available tools")

    call = subparsers.add_parser("call", help="Call a tool")
    call.add_argument("name", help="Tool name")
    call.add_argument("--args", default="{}", help="Tool arguments as a JSON object")

    subparsers.add_parser("watch", help="Print notifications from the server stream")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        from intern_mcp.config import load_config
        from intern_mcp.main import run

        run(load_config(args.config))
        return 0

    try:
        if args.command == "tools":
            return asyncio.run(_list_tools(args.url))
        if args.command == "call":
            try:
                arguments = json.loads(args.args)
            except json.JSONDecodeError as e:
                print(f"--args is not valid JSON: {e}")
                return 2
            if not isinstance(arguments, dict):
                print("--args must be a JSON object")
                return 2
            return asyncio.run(_call_tool(args.url, args.name, arguments))
        if args.command == "watch":
            return asyncio.run(_watch(args.url))
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        print(f"Sorry, that didn't work. {sanitize_error_for_user(e, include_type=False)}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
