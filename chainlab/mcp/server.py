"""
MCP 计算器工具服务

以 SSE 方式对外提供 calculate 工具，供 ReAct Agent 示例连接使用
"""
import logging
import threading

from mcp.server.fastmcp import FastMCP

from chainlab.tools.calculator import calculate


logger = logging.getLogger(__name__)


def create_mcp_server(host: str = "localhost", port: int = 12345) -> FastMCP:
    server = FastMCP("demo", host=host, port=port)

    @server.tool(name="calculate", description="Perform basic arithmetic operations")
    def calculate_tool(operation: str, x: float, y: float) -> str:
        """
        operation: The operation to perform (add, subtract, multiply, divide)
        x: First number
        y: Second number
        """
        return calculate(operation, x, y)

    return server


def start_mcp_server(host: str = "localhost", port: int = 12345) -> threading.Thread:
    """在后台守护线程中启动 SSE 服务，返回该线程"""
    server = create_mcp_server(host, port)

    def _serve():
        logger.info(f"MCP 服务启动: http://{host}:{port}/sse")
        try:
            server.run(transport="sse")
        except Exception as e:
            logger.error(f"MCP 服务异常退出: {e}")

    thread = threading.Thread(target=_serve, name="mcp-server", daemon=True)
    thread.start()
    return thread
