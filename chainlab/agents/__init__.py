from .react_agent import (
    DEFAULT_PERSONA,
    build_react_agent,
    build_tool_agent_chain,
    stream_agent_answer,
    build_tool_call_once_graph,
    run_tool_call_once,
)

__all__ = [
    "DEFAULT_PERSONA",
    "build_react_agent",
    "build_tool_agent_chain",
    "stream_agent_answer",
    "build_tool_call_once_graph",
    "run_tool_call_once",
]
