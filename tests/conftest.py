"""
测试配置

提供测试所需的公共 fixtures
"""
from typing import Any, List

import pytest
from langchain_core.language_models.fake_chat_models import (
    FakeListChatModel,
    FakeMessagesListChatModel,
)

from chainlab.config import Settings
from chainlab.storage.chat_logs import ChatLogStore


class ToolCallingFakeChatModel(FakeMessagesListChatModel):
    """按顺序返回预设消息并接受 bind_tools 的模型"""

    def bind_tools(self, tools: List[Any], **kwargs: Any):
        return self


@pytest.fixture
def fake_llm_factory():
    """按给定回复顺序创建确定性的聊天模型"""
    def _make(*responses: str) -> FakeListChatModel:
        return FakeListChatModel(responses=list(responses))
    return _make


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        OPENAI_BASE_URL="http://localhost:9999/v1",
        OPENAI_API_KEY="sk-test",
        OPENAI_MODEL_NAME="test-model",
        CHAT_LOG_DIR=str(tmp_path / "chat_logs"),
        STATIC_DIR=str(tmp_path / "static"),
        HTTP_LOG_ENABLED=False,
        APMPLUS_APP_KEY=None,
        EINO_DEBUG=False,
    )


@pytest.fixture
def chat_store(tmp_path) -> ChatLogStore:
    return ChatLogStore(tmp_path / "chat_logs")
