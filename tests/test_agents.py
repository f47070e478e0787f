"""
工具调用 Agent 与回调测试
"""
import json

import pytest
from langchain_core.messages import AIMessage, HumanMessage, ToolMessage
from langchain_core.runnables import RunnableLambda

from chainlab.agents.react_agent import (
    build_react_agent,
    build_tool_agent_chain,
    build_tool_call_once_graph,
    run_tool_call_once,
    stream_agent_answer,
)
from chainlab.callbacks import FileLoggerCallback
from chainlab.tools.calculator import calculator_tool
from chainlab.tools.user_info import user_info_tool
from .conftest import ToolCallingFakeChatModel


def _tool_call(name, args, call_id="call_1"):
    return AIMessage(content="", tool_calls=[{"name": name, "args": args, "id": call_id}])


class TestToolCallOnce:
    """单次工具调用图"""

    @pytest.mark.asyncio
    async def test_tool_result_is_output(self):
        llm = ToolCallingFakeChatModel(responses=[
            _tool_call("user_info", {"name": "zhangsan", "email": "zhangsan@example.com"}),
        ])
        graph = build_tool_call_once_graph(llm, [user_info_tool])
        output = await run_tool_call_once(graph, "我叫 zhangsan, 帮我推荐一处房产")

        assert isinstance(output, ToolMessage)
        info = json.loads(output.content)
        assert info["company"] == "Awesome company"
        assert info["name"] == "zhangsan"

    @pytest.mark.asyncio
    async def test_direct_answer_without_tool_call(self):
        llm = ToolCallingFakeChatModel(responses=[AIMessage(content="请提供邮箱")])
        graph = build_tool_call_once_graph(llm, [user_info_tool])
        output = await run_tool_call_once(graph, "帮我推荐一处房产")

        assert isinstance(output, AIMessage)
        assert output.content == "请提供邮箱"


class TestReactAgent:
    """ReAct Agent"""

    @pytest.mark.asyncio
    async def test_agent_calls_calculator(self):
        llm = ToolCallingFakeChatModel(responses=[
            _tool_call("calculate", {"operation": "add", "x": 123, "y": 456}),
            AIMessage(content="答案是 579.00"),
        ])
        agent = build_react_agent(llm, [calculator_tool])
        state = await agent.ainvoke({"messages": [HumanMessage(content="what is 123 + 456?")]})

        tool_messages = [m for m in state["messages"] if isinstance(m, ToolMessage)]
        assert tool_messages[0].content == "579.00"
        assert state["messages"][-1].content == "答案是 579.00"

    @pytest.mark.asyncio
    async def test_stream_agent_answer_skips_tool_messages(self):
        llm = ToolCallingFakeChatModel(responses=[
            _tool_call("calculate", {"operation": "multiply", "x": 2, "y": 3}),
            AIMessage(content="结果为 6.00"),
        ])
        agent = build_react_agent(llm, [calculator_tool])
        tokens = [
            token async for token in stream_agent_answer(
                agent, [HumanMessage(content="2 * 3 = ?")]
            )
        ]
        joined = "".join(tokens)
        assert "结果为 6.00" in joined
        assert not any(token == "6.00" for token in tokens)

    @pytest.mark.asyncio
    async def test_tool_agent_chain_formats_prompt(self):
        llm = ToolCallingFakeChatModel(responses=[AIMessage(content="无法回答")])
        chain = build_tool_agent_chain(llm, [calculator_tool])
        state = await chain.ainvoke({"role": "计算助手", "query": "1 + 1 = ?"})

        assert "你是一个计算助手" in state["messages"][0].content
        assert "1 + 1 = ?" in state["messages"][1].content
        assert state["messages"][-1].content == "无法回答"


class TestFileLoggerCallback:
    """文件日志回调"""

    def test_chain_events_written(self, tmp_path):
        path = tmp_path / "agent.log"
        chain = RunnableLambda(lambda x: x + 1)
        with FileLoggerCallback(str(path)) as cb:
            chain.invoke(1, config={"callbacks": [cb]})

        content = path.read_text(encoding="utf-8")
        assert "[OnStart]" in content
        assert "=========[OnEnd]=========" in content

    def test_tool_events_written(self, tmp_path):
        path = tmp_path / "tool.log"
        with FileLoggerCallback(str(path)) as cb:
            calculator_tool.invoke(
                {"operation": "add", "x": 1, "y": 2},
                config={"callbacks": [cb]},
            )

        content = path.read_text(encoding="utf-8")
        assert "=========[OnToolStart]=========" in content
        assert "=========[OnToolEnd]=========" in content
        assert "3.00" in content

    def test_error_written(self, tmp_path):
        path = tmp_path / "error.log"

        def fail(_):
            raise RuntimeError("boom")

        with FileLoggerCallback(str(path)) as cb:
            with pytest.raises(RuntimeError):
                RunnableLambda(fail).invoke(1, config={"callbacks": [cb]})

        assert "=========[OnError]=========" in path.read_text(encoding="utf-8")

    def test_close_is_idempotent(self, tmp_path):
        cb = FileLoggerCallback(str(tmp_path / "x.log"))
        cb.close()
        cb.close()
        cb.on_tool_end("ignored")
