"""
条件查询重写工作流

基于 LangGraph 的有状态图：
1. 分类器判断输入是有效问题还是垃圾信息
2. 有效问题交给重写器改写；无效问题原样直通
3. 意图版本在改写后再做一次意图分类，分别路由到学生守则 / 员工规范 / 其他场景
"""
import logging
from typing import AsyncIterator, Iterable, Literal, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_core.runnables import RunnableConfig
from langgraph.graph import StateGraph, START, END

from chainlab.core.exceptions import WorkflowError
from chainlab.core.logging_config import OperationLogger
from chainlab.prompts import (
    get_classifier_prompt,
    get_rewriter_prompt,
    get_intent_classifier_prompt,
    get_student_rules_prompt,
    get_employee_rules_prompt,
)
from .state import (
    RewriteState,
    VALID,
    INVALID,
    OTHER_SCENARIO_ANSWER,
    classify_decision,
    route_intent,
)


logger = logging.getLogger(__name__)

# 终止节点：其 answer 即为工作流输出；其中调用模型的节点按 token 流式输出
SIMPLE_OUTPUT_NODES = ("rewrite", "passthrough")
SIMPLE_STREAMING_NODES = ("rewrite",)
INTENT_OUTPUT_NODES = ("student_rules", "employee_rules", "other", "passthrough")
INTENT_STREAMING_NODES = ("student_rules", "employee_rules")


def _message_text(message: BaseMessage) -> str:
    content = message.content
    if isinstance(content, str):
        return content
    # 多段内容只取文本部分
    return "".join(
        part.get("text", "") if isinstance(part, dict) else str(part)
        for part in content
    )


def _add_classifier_nodes(graph: StateGraph, llm: BaseChatModel) -> None:
    classifier_prompt = get_classifier_prompt()
    rewriter_prompt = get_rewriter_prompt()

    async def store_query(state: RewriteState) -> dict:
        return {"original_query": state["query"]}

    async def classify(state: RewriteState) -> dict:
        messages = classifier_prompt.format_messages(input=state["original_query"])
        response = await llm.ainvoke(messages)
        decision = classify_decision(_message_text(response))
        logger.info(f"分类器判定: {decision}")
        return {"decision": decision}

    async def rewrite(state: RewriteState) -> dict:
        messages = rewriter_prompt.format_messages(input=state["original_query"])
        response = await llm.ainvoke(messages)
        rewritten = _message_text(response)
        return {"rewritten_query": rewritten, "answer": rewritten}

    async def passthrough(state: RewriteState) -> dict:
        return {"answer": state["original_query"]}

    graph.add_node("store_query", store_query)
    graph.add_node("classify", classify)
    graph.add_node("rewrite", rewrite)
    graph.add_node("passthrough", passthrough)

    graph.add_edge(START, "store_query")
    graph.add_edge("store_query", "classify")
    graph.add_conditional_edges(
        "classify",
        lambda state: state.get("decision", INVALID),
        {VALID: "rewrite", INVALID: "passthrough"},
    )
    graph.add_edge("passthrough", END)


def build_conditional_rewriter_graph(llm: BaseChatModel):
    """编译条件重写图：valid 输出改写后的问题，invalid 输出原始问题"""
    graph = StateGraph(RewriteState)
    _add_classifier_nodes(graph, llm)
    graph.add_edge("rewrite", END)
    return graph.compile()


def build_intent_rewriter_graph(llm: BaseChatModel):
    """编译带意图路由的重写图"""
    intent_prompt = get_intent_classifier_prompt()
    student_prompt = get_student_rules_prompt()
    employee_prompt = get_employee_rules_prompt()

    async def classify_intent(state: RewriteState) -> dict:
        messages = intent_prompt.format_messages(input=state["rewritten_query"])
        response = await llm.ainvoke(messages)
        intent = _message_text(response).strip()
        logger.info(f"意图判定: {intent}")
        return {"intent": intent}

    async def student_rules(state: RewriteState) -> dict:
        messages = student_prompt.format_messages(input=state["rewritten_query"])
        response = await llm.ainvoke(messages)
        return {"answer": _message_text(response)}

    async def employee_rules(state: RewriteState) -> dict:
        messages = employee_prompt.format_messages(input=state["rewritten_query"])
        response = await llm.ainvoke(messages)
        return {"answer": _message_text(response)}

    async def other(state: RewriteState) -> dict:
        return {"answer": OTHER_SCENARIO_ANSWER}

    graph = StateGraph(RewriteState)
    _add_classifier_nodes(graph, llm)

    graph.add_node("classify_intent", classify_intent)
    graph.add_node("student_rules", student_rules)
    graph.add_node("employee_rules", employee_rules)
    graph.add_node("other", other)

    graph.add_edge("rewrite", "classify_intent")
    graph.add_conditional_edges(
        "classify_intent",
        lambda state: route_intent(state.get("intent", "")),
        {
            "student_rules": "student_rules",
            "employee_rules": "employee_rules",
            "other": "other",
        },
    )
    graph.add_edge("student_rules", END)
    graph.add_edge("employee_rules", END)
    graph.add_edge("other", END)

    return graph.compile()


class RewriterWorkflow:
    """
    已编译重写图的调用封装

    - invoke: 聚合输出，返回最终答案
    - stream: 逐块输出，只转发 streaming_nodes 的模型 token；其余终止节点整体输出一次
    """

    def __init__(
        self,
        graph,
        output_nodes: Iterable[str],
        streaming_nodes: Iterable[str] = (),
        name: str = "rewriter",
    ):
        self.graph = graph
        self.output_nodes = set(output_nodes)
        self.streaming_nodes = set(streaming_nodes) & self.output_nodes
        self.name = name

    async def run(self, query: str, config: Optional[RunnableConfig] = None) -> RewriteState:
        with OperationLogger(logger, f"{self.name} 工作流调用"):
            try:
                return await self.graph.ainvoke({"query": query}, config=config)
            except Exception as e:
                raise WorkflowError("调用图失败", workflow=self.name, cause=e) from e

    async def invoke(self, query: str, config: Optional[RunnableConfig] = None) -> str:
        state = await self.run(query, config=config)
        return state.get("answer", "")

    async def stream(
        self,
        query: str,
        config: Optional[RunnableConfig] = None,
    ) -> AsyncIterator[str]:
        streamed_nodes: set[str] = set()
        with OperationLogger(logger, f"{self.name} 流式调用") as op:
            try:
                async for mode, chunk in self.graph.astream(
                    {"query": query},
                    config=config,
                    stream_mode=["messages", "updates"],
                ):
                    if mode == "messages":
                        message, metadata = chunk
                        node = metadata.get("langgraph_node")
                        if node not in self.streaming_nodes:
                            continue
                        text = _message_text(message)
                        if text:
                            streamed_nodes.add(node)
                            op.chunks += 1
                            yield text
                    elif mode == "updates":
                        for node, update in chunk.items():
                            if node not in self.output_nodes or node in streamed_nodes:
                                continue
                            if not isinstance(update, dict):
                                continue
                            answer = update.get("answer")
                            if answer:
                                op.chunks += 1
                                yield answer
            except Exception as e:
                logger.error(f"从流中接收数据时出错, err: {e}")
                raise WorkflowError("流式调用图失败", workflow=self.name, cause=e) from e


def create_rewriter_workflow(
    kind: Literal["simple", "intent"] = "intent",
    llm: Optional[BaseChatModel] = None,
) -> RewriterWorkflow:
    if llm is None:
        from chainlab.llm import get_chat_model
        llm = get_chat_model()

    if kind == "simple":
        return RewriterWorkflow(
            build_conditional_rewriter_graph(llm),
            output_nodes=SIMPLE_OUTPUT_NODES,
            streaming_nodes=SIMPLE_STREAMING_NODES,
            name="conditional_rewriter",
        )
    if kind == "intent":
        return RewriterWorkflow(
            build_intent_rewriter_graph(llm),
            output_nodes=INTENT_OUTPUT_NODES,
            streaming_nodes=INTENT_STREAMING_NODES,
            name="intent_rewriter",
        )
    raise ValueError(f"Unknown workflow kind: {kind}. Available: ['simple', 'intent']")
