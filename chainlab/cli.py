"""
命令行示例入口

用法:
    python -m chainlab.cli rewrite --stream --kind intent
    python -m chainlab.cli agent --query "what is 123 + 456?"
"""
import argparse
import asyncio
import sys
from typing import List, Optional

from dotenv import load_dotenv
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

load_dotenv()

from chainlab.config import get_settings
from chainlab.core.logging_config import setup_logging

console = Console()

EXIT_COMMAND = "exit"
REWRITE_PROMPT = "请输入您的问题 (输入 'exit' 来结束对话): "
DEFAULT_AGENT_QUERY = "what is 123 + 456?"
DEFAULT_TOOL_ONCE_QUERY = "我叫 zhangsan, 邮箱是 zhangsan@bytedance.com, 帮我推荐一处房产"


async def cmd_rewrite(args) -> int:
    from chainlab.workflows.rewriter import create_rewriter_workflow

    workflow = create_rewriter_workflow(args.kind)

    async def answer(query: str) -> None:
        if args.stream:
            async for chunk in workflow.stream(query):
                console.print(chunk, end="", markup=False, highlight=False)
            console.print()
        else:
            result = await workflow.invoke(query)
            console.print(f"[bold yellow]输出:[/bold yellow] {escape(str(result))}")

    if args.query:
        await answer(args.query)
        return 0

    while True:
        try:
            query = console.input(REWRITE_PROMPT).strip()
        except EOFError:
            break
        if query == EXIT_COMMAND:
            break
        if not query:
            continue
        try:
            await answer(query)
        except Exception as e:
            console.print(f"[bold red]错误:[/bold red] {escape(str(e))}")
    return 0


async def cmd_chain(args) -> int:
    from chainlab.workflows.demos import build_simple_chain

    result = await build_simple_chain().ainvoke(args.input or "eino chain test")
    console.print(f"简单调用链的输出是: {escape(str(result))}")
    return 0


async def cmd_graph(args) -> int:
    from chainlab.workflows.demos import build_simple_graph

    text = args.input or console.input("请输入: ").strip()
    state = await build_simple_graph().ainvoke({"text": text})
    console.print(Panel(state["text"], title="简单图的输出"))
    return 0


async def cmd_state_graph(args) -> int:
    from chainlab.workflows.demos import run_state_graph

    state = await run_state_graph(args.input or "eino state graph test")
    console.print(f"简单状态图的输出是: {escape(state['text'])}")
    for index, message in enumerate(state["messages"], 1):
        console.print(f"  [dim]{index}. {escape(str(message))}[/dim]")
    return 0


async def cmd_any_graph(args) -> int:
    from chainlab.workflows.demos import run_any_input_graph

    try:
        result = await run_any_input_graph({"name": "bob", "score": 100})
    except TypeError as e:
        console.print(f"[bold red]调用图失败:[/bold red] {escape(str(e))}")
        return 1
    console.print(f"任意输入图的输出是: {escape(str(result))}")
    return 0


async def cmd_role_play(args) -> int:
    from chainlab.llm import get_chat_model
    from chainlab.workflows.demos import build_role_play_chain, stream_characters

    chain = build_role_play_chain(get_chat_model())
    output = await chain.ainvoke({})
    async for char in stream_characters(output, delay=args.delay):
        console.print(char, end="", markup=False, highlight=False)
    console.print()
    return 0


async def cmd_prompt(args) -> int:
    from chainlab.llm import get_chat_model
    from chainlab.prompts import get_tool_analysis_prompt

    messages = get_tool_analysis_prompt().format_messages(
        role="专业的助手",
        query="什么是宇宙",
        history_key=[
            HumanMessage(content="告诉我油画是什么?"),
            AIMessage(content="油画是xxx"),
        ],
        toolresult="噶哈哈haaaaaaaaaaaa哈哈",
    )
    response = await get_chat_model().ainvoke(messages)
    console.print(response.content)
    return 0


async def cmd_agent(args) -> int:
    from chainlab.agents.react_agent import (
        DEFAULT_PERSONA,
        build_react_agent,
        stream_agent_answer,
    )
    from chainlab.callbacks import FileLoggerCallback
    from chainlab.core.exceptions import MCPError
    from chainlab.llm import get_chat_model
    from chainlab.mcp import MCPToolSession, start_mcp_server

    settings = get_settings()
    if not args.no_server:
        start_mcp_server(settings.MCP_SERVER_HOST, settings.MCP_SERVER_PORT)
        # 等待服务端开始监听
        await asyncio.sleep(1)

    try:
        async with MCPToolSession(settings.mcp_server_url) as session:
            agent = build_react_agent(get_chat_model(), session.get_tools())
            messages = [
                SystemMessage(content=DEFAULT_PERSONA),
                HumanMessage(content=args.query or DEFAULT_AGENT_QUERY),
            ]
            console.print("\n\n===== start streaming =====\n")
            with FileLoggerCallback("react-agent.log") as logger_cb:
                async for token in stream_agent_answer(agent, messages, callbacks=[logger_cb]):
                    console.print(token, end="", markup=False, highlight=False)
            console.print("\n\n===== finished =====")
    except MCPError as e:
        console.print(f"[bold red]MCP 错误:[/bold red] {escape(str(e))}")
        return 1
    return 0


async def cmd_tool_once(args) -> int:
    from chainlab.agents.react_agent import build_tool_call_once_graph, run_tool_call_once
    from chainlab.llm import get_chat_model
    from chainlab.tools.user_info import user_info_tool

    graph = build_tool_call_once_graph(get_chat_model(), [user_info_tool])
    output = await run_tool_call_once(graph, args.query or DEFAULT_TOOL_ONCE_QUERY)
    console.print(Panel(str(output.content), title=type(output).__name__))
    return 0


COMMANDS = {
    "rewrite": cmd_rewrite,
    "chain": cmd_chain,
    "graph": cmd_graph,
    "state-graph": cmd_state_graph,
    "any-graph": cmd_any_graph,
    "role-play": cmd_role_play,
    "prompt": cmd_prompt,
    "agent": cmd_agent,
    "tool-once": cmd_tool_once,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chainlab", description="LangChain / LangGraph 编排示例")
    parser.add_argument("--log-level", type=str, default=None, help="日志级别")
    subparsers = parser.add_subparsers(dest="command", required=True)

    rewrite = subparsers.add_parser("rewrite", help="条件查询重写工作流")
    rewrite.add_argument("--stream", action="store_true", help="流式输出")
    rewrite.add_argument("--kind", choices=["simple", "intent"], default="intent", help="工作流类型")
    rewrite.add_argument("--query", type=str, default=None, help="只处理一次该问题")

    for name, help_text in (
        ("chain", "两个节点的简单链"),
        ("graph", "带子图的简单图"),
        ("state-graph", "带状态的图"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--input", type=str, default=None, help="输入文本")

    subparsers.add_parser("any-graph", help="接受任意输入的图")

    role_play = subparsers.add_parser("role-play", help="分支 + 并行的角色扮演链")
    role_play.add_argument("--delay", type=float, default=0.05, help="逐字输出间隔（秒）")

    subparsers.add_parser("prompt", help="工具结果分析提示词")

    agent = subparsers.add_parser("agent", help="基于 MCP 工具的 ReAct Agent")
    agent.add_argument("--no-server", action="store_true", help="不启动内置 MCP 服务")
    agent.add_argument("--query", type=str, default=None, help="用户问题")

    tool_once = subparsers.add_parser("tool-once", help="单次工具调用图")
    tool_once.add_argument("--query", type=str, default=None, help="用户问题")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(args.log_level or settings.LOG_LEVEL, settings.LOG_FILE)

    from chainlab.tracing import setup_tracing

    shutdown_tracing = setup_tracing(settings)
    try:
        return asyncio.run(COMMANDS[args.command](args))
    except KeyboardInterrupt:
        return 130
    finally:
        shutdown_tracing()


if __name__ == "__main__":
    sys.exit(main())
