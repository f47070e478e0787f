import logging
from contextlib import AsyncExitStack
from typing import Any, Dict, List, Optional

from langchain_core.tools import BaseTool, StructuredTool
from mcp import ClientSession
from mcp.client.sse import sse_client
from mcp.types import Implementation
from pydantic import Field, create_model

from chainlab.core.exceptions import MCPError


logger = logging.getLogger(__name__)

DEFAULT_MCP_SERVER_URL = "http://localhost:12345/sse"

CLIENT_INFO = Implementation(name="chainlab-react-agent-client", version="1.0.0")


def _json_type_to_python(json_type: str):
    type_map = {
        "string": str,
        "integer": int,
        "number": float,
        "boolean": bool,
        "array": list,
        "object": dict,
    }
    return type_map.get(json_type, str)


def _result_text(result) -> str:
    content = getattr(result, "content", None) or []
    texts = [item.text for item in content if getattr(item, "text", None) is not None]
    if texts:
        return "".join(texts)
    return str(result)


class MCPToolSession:
    """
    MCP SSE 客户端会话

    进入上下文时建立连接、初始化并拉取工具列表，退出时关闭连接。

    使用示例:
        async with MCPToolSession(url) as session:
            tools = session.get_tools()
    """

    def __init__(self, url: str = DEFAULT_MCP_SERVER_URL, timeout: float = 30.0):
        self.url = url
        self.timeout = timeout
        self._stack: Optional[AsyncExitStack] = None
        self._session: Optional[ClientSession] = None
        self._tools: Dict[str, Any] = {}

    async def __aenter__(self) -> "MCPToolSession":
        self._stack = AsyncExitStack()
        try:
            read, write = await self._stack.enter_async_context(
                sse_client(self.url, timeout=self.timeout)
            )
            self._session = await self._stack.enter_async_context(
                ClientSession(read, write, client_info=CLIENT_INFO)
            )
            init_result = await self._session.initialize()
            logger.info(f"MCP 会话初始化成功: {init_result.serverInfo.name}")

            tools_response = await self._session.list_tools()
            self._tools = {tool.name: tool for tool in tools_response.tools}
            logger.info(f"加载 {len(self._tools)} 个 MCP 工具: {list(self._tools)}")
        except Exception as e:
            await self._stack.aclose()
            self._stack = None
            self._session = None
            raise MCPError("连接 MCP 服务失败", server_url=self.url, cause=e) from e
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._stack is not None:
            await self._stack.aclose()
        self._stack = None
        self._session = None

    @property
    def tool_names(self) -> List[str]:
        return list(self._tools)

    async def call_tool(self, name: str, arguments: dict) -> str:
        if self._session is None:
            raise MCPError("MCP 会话未建立", tool_name=name, server_url=self.url)
        try:
            result = await self._session.call_tool(name, arguments=arguments)
        except Exception as e:
            raise MCPError("调用 MCP 工具失败", tool_name=name, server_url=self.url, cause=e) from e
        return _result_text(result)

    def get_tools(self) -> List[BaseTool]:
        return [self._to_langchain_tool(tool) for tool in self._tools.values()]

    def _to_langchain_tool(self, mcp_tool) -> BaseTool:
        tool_name = mcp_tool.name
        input_schema = mcp_tool.inputSchema or {}
        properties = input_schema.get("properties", {})
        required = input_schema.get("required", [])

        field_definitions = {}
        for prop_name, prop_info in properties.items():
            python_type = _json_type_to_python(prop_info.get("type", "string"))
            prop_desc = prop_info.get("description", "")
            if prop_name in required:
                field_definitions[prop_name] = (python_type, Field(description=prop_desc))
            else:
                field_definitions[prop_name] = (
                    Optional[python_type],
                    Field(default=None, description=prop_desc),
                )

        args_schema = create_model(f"{tool_name}Input", **field_definitions)

        async def _run(**kwargs):
            arguments = {k: v for k, v in kwargs.items() if v is not None}
            return await self.call_tool(tool_name, arguments)

        return StructuredTool(
            name=tool_name,
            description=mcp_tool.description or "",
            args_schema=args_schema,
            coroutine=_run,
        )
