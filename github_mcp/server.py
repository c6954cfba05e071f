"""MCP stdio server exposing the GitHub tool registry."""

from __future__ import annotations

import functools
import json
import logging
from typing import Any

import httpx
from anyio import to_thread
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from github_mcp.github_client import GitHubApiError, GitHubInputError
from github_mcp.tools import ToolInputError, ToolRegistry, UnknownToolError

SERVER_NAME = "github-mcp"
SERVER_VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def build_server(registry: ToolRegistry) -> Server:
    """Bind the registry's tools to an MCP server instance."""
    server: Server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return [
            Tool(
                name=definition.name,
                description=definition.description,
                inputSchema=definition.input_schema(),
            )
            for definition in registry.definitions
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        """Run one invocation off the event loop; failures become MCP error results."""
        try:
            payload = await to_thread.run_sync(
                functools.partial(registry.invoke, name, arguments)
            )
        except (UnknownToolError, ToolInputError, GitHubInputError) as error:
            logger.warning("Rejected call to tool '%s': %s", name, error)
            raise
        except GitHubApiError as error:
            logger.warning(
                "Tool '%s' failed: status=%s endpoint=%s.",
                name,
                error.status_code,
                error.endpoint,
            )
            raise
        except httpx.HTTPError as error:
            logger.warning("Tool '%s' failed: network error (%s).", name, error)
            raise
        return [TextContent(type="text", text=json.dumps(payload, indent=2))]

    return server


async def run_stdio_server(registry: ToolRegistry) -> None:
    """Serve the registry over stdin/stdout until the peer disconnects."""
    server = build_server(registry)
    async with stdio_server() as (read_stream, write_stream):
        logger.info("Serving %d GitHub tools over stdio.", len(registry.definitions))
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )
