"""
chainlab

LangChain / LangGraph 编排示例：提示词、链、图、工具调用 Agent，
以及通过 HTTP/SSE 与 WebSocket 对外提供的条件查询重写工作流
"""

__version__ = "1.0.0"
