from .client import MCPToolSession, DEFAULT_MCP_SERVER_URL
from .server import create_mcp_server, start_mcp_server

__all__ = [
    "MCPToolSession",
    "DEFAULT_MCP_SERVER_URL",
    "create_mcp_server",
    "start_mcp_server",
]
