"""MCP stdio transport built on the MCP Python SDK."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from blockchain_mcp.context import ToolContext
from blockchain_mcp.mcp import SERVER_NAME, SERVER_VERSION, call_tool, list_tools
from blockchain_mcp.server import log_tool_result

logger = logging.getLogger(__name__)


class ToolCallError(Exception):
    """Raised from the call handler so the SDK marks the result with ``isError``."""


def _render(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, default=str)


def build_server(context: ToolContext) -> Server:
    """Register the tool registry on an SDK server bound to ``context``."""
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def handle_list_tools() -> List[Tool]:
        return [
            Tool(name=entry["name"], description=entry["description"], inputSchema=entry["inputSchema"])
            for entry in list_tools()
        ]

    @server.call_tool()
    async def handle_call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
        result = await call_tool(name, arguments, context)
        log_tool_result(name, result)
        text = _render(result)
        if isinstance(result, dict) and result.get("error"):
            raise ToolCallError(text)
        return [TextContent(type="text", text=text)]

    return server


async def serve_stdio(context: ToolContext) -> None:
    server = build_server(context)
    logger.info("Serving MCP over stdio")
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await context.aclose()
