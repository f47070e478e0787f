"""
编排示例测试
"""
import pytest
from langchain_core.messages import AIMessage
from langchain_core.runnables import RunnableLambda

from chainlab.workflows.demos import (
    build_role_play_chain,
    build_simple_chain,
    build_simple_graph,
    process_message_content,
    render_any_input,
    run_any_input_graph,
    run_state_graph,
    stream_characters,
)


def _echo_system_prompt():
    # 以系统提示词作为模型回复，便于断言分支选择的角色
    return RunnableLambda(lambda prompt: AIMessage(content=prompt.to_messages()[0].content))


class TestChainAndGraphs:
    """链与图"""

    @pytest.mark.asyncio
    async def test_simple_chain(self):
        result = await build_simple_chain().ainvoke("eino chain test")
        assert result == "eino chain test 由节点1处理, 由节点2处理,"

    @pytest.mark.asyncio
    async def test_simple_graph_with_subgraph(self):
        state = await build_simple_graph().ainvoke({"text": "输入"})
        assert state["text"] == "输入 由节点1处理, 由sg_node_1处理, 由节点3处理,"

    @pytest.mark.asyncio
    async def test_state_graph_records_inputs(self):
        state = await run_state_graph("eino state graph test")
        assert state["text"] == "eino state graph test 由节点1处理, 由节点2处理, 由节点3处理,"
        assert state["messages"] == [
            "eino state graph test",
            "eino state graph test 由节点1处理,",
            "eino state graph test 由节点1处理, 由节点2处理,",
        ]

    @pytest.mark.asyncio
    async def test_any_input_graph(self):
        result = await run_any_input_graph({"name": "bob", "score": 100})
        assert result == "name:bob,score:100, 由节点2处理,"

    @pytest.mark.asyncio
    async def test_any_input_graph_rejects_unsupported_type(self):
        with pytest.raises(TypeError, match="不支持的类型"):
            await run_any_input_graph({"score": 99.5})

    def test_render_any_input_rejects_bool(self):
        with pytest.raises(TypeError):
            render_any_input({"flag": True})


class TestRolePlayChain:
    """分支 + 并行角色扮演链"""

    @pytest.mark.asyncio
    async def test_branch_b1_is_cat(self):
        chain = build_role_play_chain(_echo_system_prompt(), choose_branch=lambda _: "b1")
        assert await chain.ainvoke({}) == "处理后的内容: You are a cat."

    @pytest.mark.asyncio
    async def test_branch_b2_is_dog(self):
        chain = build_role_play_chain(_echo_system_prompt(), choose_branch=lambda _: "b2")
        assert await chain.ainvoke({}) == "处理后的内容: You are a dog."

    @pytest.mark.asyncio
    async def test_with_fake_model(self, fake_llm_factory):
        chain = build_role_play_chain(fake_llm_factory("喵喵喵"))
        assert await chain.ainvoke({}) == "处理后的内容: 喵喵喵"

    def test_process_message_content(self):
        assert process_message_content("汪") == "处理后的内容: 汪"

    @pytest.mark.asyncio
    async def test_stream_characters(self):
        chars = [c async for c in stream_characters("你好ab", delay=0)]
        assert chars == ["你", "好", "a", "b"]
