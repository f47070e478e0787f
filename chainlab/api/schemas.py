from pydantic import BaseModel, Field
from typing import Any, List, Optional

from chainlab.storage.chat_logs import ChatMessage, ChatLogSummary


class ChatRequest(BaseModel):
    message: str = ""


class SaveChatRequest(BaseModel):
    id: str = ""
    messages: List[ChatMessage] = Field(default_factory=list)


class StatusResponse(BaseModel):
    status: str = "ok"


class WSEnvelope(BaseModel):
    type: str
    payload: Optional[Any] = None


class WSChatPayload(BaseModel):
    message: str = ""


class WSLoadPayload(BaseModel):
    id: str = ""


__all__ = [
    "ChatMessage",
    "ChatLogSummary",
    "ChatRequest",
    "SaveChatRequest",
    "StatusResponse",
    "WSEnvelope",
    "WSChatPayload",
    "WSLoadPayload",
]
