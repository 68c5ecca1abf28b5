from sqlgate.server.mcp_server import ToolCallFailed, build_server, serve

__all__ = ["ToolCallFailed", "build_server", "serve"]
