"""
工具调用 Agent

- ReAct Agent：基于 LangGraph 预置的 create_react_agent，工具来自 MCP 服务
- 提示词 + Agent 组合链
- 单次工具调用图：模板 -> 模型 -> (有工具调用) 工具 -> 取第一条结果
"""
import logging
from typing import Annotated, Any, AsyncIterator, List, Optional, Sequence

from langchain_core.callbacks import BaseCallbackHandler
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, AIMessageChunk, BaseMessage, ToolMessage
from langchain_core.prompt_values import PromptValue
from langchain_core.runnables import Runnable, RunnableLambda
from langchain_core.tools import BaseTool
from langgraph.graph import StateGraph, START, END
from langgraph.graph.message import add_messages
from langgraph.prebuilt import ToolNode, create_react_agent
from typing_extensions import TypedDict

from chainlab.core.exceptions import WorkflowError
from chainlab.prompts import get_tool_agent_prompt, get_user_info_prompt


logger = logging.getLogger(__name__)

DEFAULT_PERSONA = "You are a helpful assistant."


def build_react_agent(
    llm: BaseChatModel,
    tools: Sequence[BaseTool],
    persona: str = DEFAULT_PERSONA,
):
    logger.info(f"创建 ReAct Agent, 工具: {[tool.name for tool in tools]}")
    return create_react_agent(llm, list(tools), prompt=persona)


def _prompt_to_agent_input(prompt_value: PromptValue) -> dict:
    return {"messages": prompt_value.to_messages()}


def build_tool_agent_chain(llm: BaseChatModel, tools: Sequence[BaseTool]) -> Runnable:
    """提示词模板与 ReAct Agent 组合，输入 {role, query, chat_history}"""
    agent = create_react_agent(llm, list(tools))
    return get_tool_agent_prompt() | RunnableLambda(_prompt_to_agent_input) | agent


async def stream_agent_answer(
    agent,
    messages: List[BaseMessage],
    callbacks: Optional[List[BaseCallbackHandler]] = None,
) -> AsyncIterator[str]:
    """逐 token 输出 Agent 的回答，跳过工具消息"""
    config = {"callbacks": callbacks} if callbacks else None
    async for chunk, metadata in agent.astream(
        {"messages": messages},
        config=config,
        stream_mode="messages",
    ):
        if not isinstance(chunk, (AIMessageChunk, AIMessage)):
            continue
        content = chunk.content
        if isinstance(content, str) and content:
            yield content


class ToolCallOnceState(TypedDict, total=False):
    query: str
    message_histories: List[BaseMessage]
    messages: Annotated[List[BaseMessage], add_messages]
    output: BaseMessage


def build_tool_call_once_graph(llm: BaseChatModel, tools: Sequence[BaseTool]):
    """编译单次工具调用图，输出为第一条工具结果或模型的直接回答"""
    template = get_user_info_prompt()
    model = llm.bind_tools(list(tools))

    async def node_template(state: ToolCallOnceState) -> dict:
        messages = template.format_messages(
            query=state["query"],
            message_histories=state.get("message_histories", []),
        )
        return {"messages": messages}

    async def node_model(state: ToolCallOnceState) -> dict:
        response = await model.ainvoke(state["messages"])
        return {"messages": [response], "output": response}

    async def node_converter(state: ToolCallOnceState) -> dict:
        tool_messages = [m for m in state.get("messages", []) if isinstance(m, ToolMessage)]
        if not tool_messages:
            raise WorkflowError("input is empty", workflow="tool_call_once")
        return {"output": tool_messages[0]}

    def route_after_model(state: ToolCallOnceState) -> str:
        last = state["messages"][-1]
        if isinstance(last, AIMessage) and last.tool_calls:
            return "node_tools"
        return END

    graph = StateGraph(ToolCallOnceState)
    graph.add_node("node_template", node_template)
    graph.add_node("node_model", node_model)
    graph.add_node("node_tools", ToolNode(list(tools)))
    graph.add_node("node_converter", node_converter)

    graph.add_edge(START, "node_template")
    graph.add_edge("node_template", "node_model")
    graph.add_conditional_edges(
        "node_model",
        route_after_model,
        {"node_tools": "node_tools", END: END},
    )
    graph.add_edge("node_tools", "node_converter")
    graph.add_edge("node_converter", END)

    return graph.compile()


async def run_tool_call_once(graph, query: str) -> Any:
    state = await graph.ainvoke({"query": query})
    return state["output"]
