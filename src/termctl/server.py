"""MCP stdio server — exposes the tool registry to an MCP client."""

from __future__ import annotations

import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from termctl import __version__
from termctl.config import TermctlConfig
from termctl.pty.manager import PTYManager
from termctl.tool.builtin import create_builtin_tools
from termctl.tool.registry import ToolRegistry

logger = logging.getLogger(__name__)


def tool_definitions(registry: ToolRegistry) -> list[Tool]:
    """Describe every registered tool in MCP form."""
    return [
        Tool(name=tool.name, description=tool.description, inputSchema=tool.input_schema())
        for tool in registry.tools()
    ]


class ToolCallFailed(Exception):
    """Raised so the MCP server marks the result with ``isError``.

    The low-level server turns any exception from a tool handler into an
    error result carrying ``str(exc)`` as its text.
    """


async def call_registry(
    registry: ToolRegistry, name: str, arguments: dict[str, Any] | None
) -> list[TextContent]:
    content, is_error = await registry.dispatch(name, arguments)
    if is_error:
        raise ToolCallFailed(content)
    return [TextContent(type="text", text=content)]


def build_server(registry: ToolRegistry, name: str = "terminal-session-mcp") -> Server:
    """Create an MCP server whose tools are served from ``registry``.

    The registry never raises; its error results are re-raised as
    ``ToolCallFailed`` only so the server flags them with ``isError``.
    """
    server = Server(name, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return tool_definitions(registry)

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        logger.debug("Tool call: %s", name)
        return await call_registry(registry, name, arguments)

    return server


def build_registry(manager: PTYManager, config: TermctlConfig) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register_many(create_builtin_tools(manager, config))
    return registry


async def serve(config: TermctlConfig) -> None:
    """Run the server on stdio until the client disconnects."""
    manager = PTYManager(config=config.pty)
    registry = build_registry(manager, config)
    server = build_server(registry, name=config.server.name)

    logger.info("Terminal MCP server running on stdio (%d tools)", len(registry))
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream, write_stream, server.create_initialization_options()
            )
    finally:
        await manager.aclose()
