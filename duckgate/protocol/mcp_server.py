"""MCP stdio server exposing the tool registry to an agent."""

from __future__ import annotations

from typing import Any

from loguru import logger
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent
from mcp.types import Tool as MCPTool

from duckgate.config.schema import Config
from duckgate.search.session import SessionRegistry
from duckgate.tools.factory import build_image_server, build_tool_registry
from duckgate.tools.registry import ToolRegistry

SERVER_NAME = "duckgate"
STDIO_SESSION_KEY = "stdio"


class ToolCallError(Exception):
    """Raised so the MCP layer reports the tool result with ``isError`` set."""


def list_registry_tools(registry: ToolRegistry) -> list[MCPTool]:
    tools: list[MCPTool] = []
    for definition in registry.get_definitions():
        fn = definition["function"]
        tools.append(
            MCPTool(
                name=fn["name"],
                description=fn["description"],
                inputSchema=fn["parameters"],
            )
        )
    return tools


async def call_registry_tool(
    registry: ToolRegistry,
    name: str,
    arguments: dict[str, Any] | None,
) -> list[TextContent]:
    """Run a tool; ``Error:`` results are raised as ``ToolCallError``."""
    logger.info("Tool call: {}({})", name, str(arguments or {})[:200])
    result = await registry.execute(name, dict(arguments or {}))
    if result.startswith("Error"):
        logger.warning("Tool {} returned an error: {}", name, result[:200])
        raise ToolCallError(result)
    return [TextContent(type="text", text=result)]


def create_server(registry: ToolRegistry) -> Server:
    server: Server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> list[MCPTool]:
        return list_registry_tools(registry)

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        return await call_registry_tool(registry, name, arguments)

    return server


async def run_stdio(config: Config) -> None:
    """Serve the tools over stdio until the client disconnects."""
    # one stdio process serves exactly one agent connection
    sessions = SessionRegistry()
    image_server = build_image_server(config)
    registry = build_tool_registry(
        config,
        session=sessions.get_or_create(STDIO_SESSION_KEY),
        image_server=image_server,
    )
    server = create_server(registry)

    logger.info("{} MCP server starting with tools: {}", SERVER_NAME, ", ".join(registry.tool_names))
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    finally:
        image_server.stop()
        logger.info("{} MCP server stopped", SERVER_NAME)
