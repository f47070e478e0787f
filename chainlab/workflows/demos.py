"""
编排示例

链、图、子图、任意输入图、带状态的图，以及分支 + 并行的角色扮演链
"""
import asyncio
import logging
import operator
import random
from typing import Annotated, Any, AsyncIterator, Callable, Dict, List, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_core.runnables import (
    Runnable,
    RunnableBranch,
    RunnableLambda,
    RunnableParallel,
    RunnablePassthrough,
)
from langgraph.graph import StateGraph, START, END
from typing_extensions import TypedDict

from chainlab.prompts import get_role_play_prompt


logger = logging.getLogger(__name__)

DEFAULT_ROLE = "bird"
ROLE_PLAY_QUESTION = "你的叫声是怎样的？"


def _append_marker(text: str, marker: str) -> str:
    return f"{text} 由{marker}处理,"


def build_simple_chain() -> Runnable:
    """两个节点依次处理文本的链"""
    c1 = RunnableLambda(lambda text: _append_marker(text, "节点1")).with_config(run_name="c1")
    c2 = RunnableLambda(lambda text: _append_marker(text, "节点2")).with_config(run_name="c2")
    return c1 | c2


class TextState(TypedDict):
    text: str


def _logged_node(title: str, marker: str) -> Callable[[TextState], dict]:
    def node(state: TextState) -> dict:
        logger.info(f"--- {title} ---")
        logger.info(f"输入: {state['text']}")
        output = _append_marker(state["text"], marker)
        logger.info(f"输出: {output}")
        return {"text": output}

    return node


def build_simple_graph():
    """node_1 -> node_2(子图 sg_node_1) -> node_3"""
    sub = StateGraph(TextState)
    sub.add_node("sg_node_1", _logged_node("节点 2 (子图 sg_node_1)", "sg_node_1"))
    sub.add_edge(START, "sg_node_1")
    sub.add_edge("sg_node_1", END)

    graph = StateGraph(TextState)
    graph.add_node("node_1", _logged_node("节点 1", "节点1"))
    graph.add_node("node_2", sub.compile())
    graph.add_node("node_3", _logged_node("节点 3", "节点3"))

    graph.add_edge(START, "node_1")
    graph.add_edge("node_1", "node_2")
    graph.add_edge("node_2", "node_3")
    graph.add_edge("node_3", END)
    return graph.compile()


class AnyInputState(TypedDict, total=False):
    data: Dict[str, Any]
    text: str


def render_any_input(data: Dict[str, Any]) -> str:
    """将字典渲染为 k:v, 形式，只接受 str 与 int 的值"""
    output = ""
    for key, value in data.items():
        if isinstance(value, str) or (isinstance(value, int) and not isinstance(value, bool)):
            output += f"{key}:{value},"
        else:
            raise TypeError(f"不支持的类型: {type(value).__name__}")
    return output


def build_any_input_graph():
    def node_1(state: AnyInputState) -> dict:
        return {"text": render_any_input(state.get("data") or {})}

    def node_2(state: AnyInputState) -> dict:
        return {"text": _append_marker(state["text"], "节点2")}

    graph = StateGraph(AnyInputState)
    graph.add_node("node_1", node_1)
    graph.add_node("node_2", node_2)
    graph.add_edge(START, "node_1")
    graph.add_edge("node_1", "node_2")
    graph.add_edge("node_2", END)
    return graph.compile()


async def run_any_input_graph(data: Dict[str, Any]) -> str:
    state = await build_any_input_graph().ainvoke({"data": data})
    return state["text"]


class NodeState(TypedDict):
    text: str
    messages: Annotated[List[str], operator.add]


def _stateful_node(marker: str) -> Callable[[NodeState], dict]:
    def node(state: NodeState) -> dict:
        # 节点执行前先记录输入
        text = state["text"]
        return {"messages": [text], "text": _append_marker(text, marker)}

    return node


def build_state_graph():
    graph = StateGraph(NodeState)
    for index in (1, 2, 3):
        graph.add_node(f"node_{index}", _stateful_node(f"节点{index}"))
    graph.add_edge(START, "node_1")
    graph.add_edge("node_1", "node_2")
    graph.add_edge("node_2", "node_3")
    graph.add_edge("node_3", END)
    return graph.compile()


async def run_state_graph(text: str) -> NodeState:
    state = await build_state_graph().ainvoke({"text": text, "messages": []})
    logger.info(f"简单状态图的输出是: {state['text']}")
    return state


def process_message_content(content: str) -> str:
    processed = "处理后的内容: " + content
    logger.info(f"消息内容已处理: {processed}")
    return processed


def _random_branch(_: Dict[str, Any]) -> str:
    return random.choice(["b1", "b2"])


def _with_role(role: str, branch: str) -> Callable[[Dict[str, Any]], Dict[str, Any]]:
    def set_role(kvs: Dict[str, Any]) -> Dict[str, Any]:
        logger.info(f"hello in branch lambda {branch}")
        if kvs is None:
            raise ValueError("nil map")
        return {**kvs, "role": role}

    return set_role


def _view(kvs: Dict[str, Any]) -> Dict[str, Any]:
    logger.info(f"in view lambda: {kvs}")
    return dict(kvs or {})


def _message_content(message: BaseMessage) -> str:
    logger.info(f"in view of messages: {message.content}")
    return process_message_content(message.content)


def build_role_play_chain(
    llm: BaseChatModel,
    choose_branch: Optional[Callable[[Dict[str, Any]], str]] = None,
) -> Runnable:
    """
    角色扮演链

    准备 -> 分支(b1: cat / b2: dog) -> 透传 -> 并行{role, input} -> 提示词 -> 模型 -> 后处理
    """
    choose_branch = choose_branch or _random_branch

    branch = RunnableBranch(
        (lambda kvs: choose_branch(kvs) == "b1", RunnableLambda(_with_role("cat", "01"))),
        RunnableLambda(_with_role("dog", "02")),
    )
    parallel = RunnableParallel(
        role=RunnableLambda(lambda kvs: kvs.get("role") or DEFAULT_ROLE),
        input=RunnableLambda(lambda _: ROLE_PLAY_QUESTION),
    )

    return (
        RunnableLambda(_view)
        | branch
        | RunnablePassthrough()
        | parallel
        | get_role_play_prompt()
        | llm
        | RunnableLambda(_message_content)
    )


async def stream_characters(text: str, delay: float = 0.05) -> AsyncIterator[str]:
    """逐字符输出文本，模拟打字效果"""
    for char in text:
        if delay:
            await asyncio.sleep(delay)
        yield char
