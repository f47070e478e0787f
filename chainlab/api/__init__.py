from .routes import router
from .websocket import router as websocket_router, ConnectionManager, manager
from .schemas import (
    ChatRequest,
    SaveChatRequest,
    StatusResponse,
    WSEnvelope,
    WSChatPayload,
    WSLoadPayload,
)

__all__ = [
    "router",
    "websocket_router",
    "ConnectionManager",
    "manager",
    "ChatRequest",
    "SaveChatRequest",
    "StatusResponse",
    "WSEnvelope",
    "WSChatPayload",
    "WSLoadPayload",
]
