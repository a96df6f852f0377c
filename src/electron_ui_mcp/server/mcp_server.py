"""MCP stdio server exposing the Electron automation tools."""

from __future__ import annotations

import asyncio
import json
import logging
import signal
from typing import Any, Dict, List, Optional, Union

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from .. import __version__
from ..config import ElectronUIConfig
from ..session.context import SessionManager
from ..tool.registry import ToolRegistry, get_registry

logger = logging.getLogger(__name__)

SERVER_NAME = "electron-ui-mcp"

Content = Union[types.TextContent, types.ImageContent]


class ToolCallFailed(Exception):
    """Raised from call_tool so the transport flags the result as an error."""

    def __init__(self, envelope: Dict[str, Any]) -> None:
        super().__init__(json.dumps(envelope, indent=2, default=str))
        self.envelope = envelope


def tool_definitions(registry: ToolRegistry) -> List[types.Tool]:
    tools = []
    for schema in registry.get_schemas():
        hints = schema["annotations"]
        tools.append(
            types.Tool(
                name=schema["name"],
                description=schema["description"],
                inputSchema=schema["inputSchema"],
                annotations=types.ToolAnnotations(**hints),
            )
        )
    return tools


def result_to_content(result: Dict[str, Any]) -> List[Content]:
    """Screenshots become image content; everything else is JSON text."""
    if result.get("success") and "data" in result and "mime_type" in result:
        meta = {k: v for k, v in result.items() if k != "data"}
        return [
            types.ImageContent(type="image", data=result["data"], mimeType=result["mime_type"]),
            types.TextContent(type="text", text=json.dumps(meta, indent=2, default=str)),
        ]
    return [types.TextContent(type="text", text=json.dumps(result, indent=2, default=str))]


def create_server(session: SessionManager, registry: Optional[ToolRegistry] = None) -> Server:
    registry = registry or get_registry()
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return tool_definitions(registry)

    @server.call_tool()
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[Content]:
        result = await registry.execute(name, session, arguments or {})
        if not result.get("success"):
            raise ToolCallFailed(result)
        return result_to_content(result)

    return server


async def run_server(config: ElectronUIConfig) -> None:
    """Serve over stdio until the client disconnects, then close the app."""
    session = SessionManager(config)
    server = create_server(session)
    current = asyncio.current_task()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, current.cancel)
        except (NotImplementedError, RuntimeError):
            pass

    logger.info("Starting %s (mode=%s, app_path=%s)", SERVER_NAME, config.mode, config.app_path)
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    except asyncio.CancelledError:
        logger.info("Shutdown requested")
    finally:
        await session.close()
        logger.info("%s stopped", SERVER_NAME)
