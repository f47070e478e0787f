"""
路由依赖：从 app.state 取工作流与聊天记录存储
"""
import logging

from fastapi.requests import HTTPConnection

from chainlab.storage.chat_logs import ChatLogStore
from chainlab.workflows.rewriter import RewriterWorkflow, create_rewriter_workflow


logger = logging.getLogger(__name__)


def get_workflow(conn: HTTPConnection) -> RewriterWorkflow:
    state = conn.app.state
    if getattr(state, "workflow", None) is None:
        logger.info("未注入工作流，创建默认的意图识别重写工作流")
        state.workflow = create_rewriter_workflow("intent")
    return state.workflow


def get_store(conn: HTTPConnection) -> ChatLogStore:
    return conn.app.state.store
