"""MCP stdio server exposing the enabled tools."""

import asyncio
from typing import Any, Dict, List, Optional

from mcp import types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server

from sqlgate.__version__ import __version__
from sqlgate.api import ToolDispatcher, to_json
from sqlgate.logging import get_logger
from sqlgate.observability import ToolCallContext

logger = get_logger(__name__)


class ToolCallFailed(Exception):
    """Carries an error envelope out of a tool handler.

    The MCP server turns exceptions raised by a tool handler into a result
    flagged ``isError`` whose text is ``str(exc)``, so the envelope is
    rendered as its JSON text.
    """

    def __init__(self, envelope: Dict[str, Any]):
        self.envelope = envelope
        super().__init__(to_json(envelope))


def build_server(dispatcher: ToolDispatcher, server_name: str = "sqlgate") -> Server:
    """Create an MCP server whose tools are served by ``dispatcher``."""
    app = Server(server_name)

    @app.list_tools()
    async def handle_list_tools() -> List[types.Tool]:
        return [
            types.Tool(name=spec.name, description=spec.description, inputSchema=spec.input_schema)
            for spec in dispatcher.list_tools()
        ]

    @app.call_tool()
    async def handle_call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        ctx = ToolCallContext.generate(tool=name)
        envelope = await asyncio.to_thread(dispatcher.dispatch, name, arguments or {}, ctx)
        if envelope.get("error"):
            raise ToolCallFailed(envelope)
        return [types.TextContent(type="text", text=to_json(envelope))]

    return app


async def serve(dispatcher: ToolDispatcher, server_name: str = "sqlgate") -> None:
    """Run the MCP server over stdio until the client disconnects."""
    app = build_server(dispatcher, server_name)
    logger.info(
        f"Serving {len(dispatcher.enabled_tools)} tool(s) over stdio",
        extra={"tools": ",".join(dispatcher.enabled_tools)},
    )

    async with stdio_server() as (read_stream, write_stream):
        await app.run(
            read_stream,
            write_stream,
            InitializationOptions(
                server_name=server_name,
                server_version=__version__,
                capabilities=app.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
            ),
        )
