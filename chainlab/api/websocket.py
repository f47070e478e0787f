"""
WebSocket 聊天接口

客户端发送 {"type": ..., "payload": ...} 文本帧，支持 chat / save / history / load 四类命令，
服务端返回的每一帧都是带 type 字段的 JSON 对象
"""
import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional, Set

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError

from chainlab.core.exceptions import ChatLogError, ChatLogNotFoundError, ValidationError
from chainlab.storage.chat_logs import ChatLogStore
from chainlab.workflows.rewriter import RewriterWorkflow
from .deps import get_store, get_workflow
from .schemas import SaveChatRequest, WSChatPayload, WSEnvelope, WSLoadPayload


logger = logging.getLogger(__name__)

router = APIRouter()

REQUEST_KIND_NAMES = {
    "chat": "聊天",
    "save": "保存",
    "load": "加载",
}


class ConnectionManager:
    def __init__(self):
        self._connections: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections.add(websocket)
            count = len(self._connections)
        logger.info(f"新的WebSocket连接已建立，当前连接数: {count}")

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._connections.discard(websocket)
            count = len(self._connections)
        logger.info(f"WebSocket连接已关闭，当前连接数: {count}")


manager = ConnectionManager()


async def send_frame(websocket: WebSocket, frame_type: str, **fields: Any) -> None:
    await websocket.send_json({"type": frame_type, **fields})


async def send_error(websocket: WebSocket, message: str) -> None:
    await send_frame(websocket, "error", message=message)


async def handle_chat(
    websocket: WebSocket,
    workflow_provider: Callable[[], RewriterWorkflow],
    payload: WSChatPayload,
) -> None:
    if not payload.message:
        await send_error(websocket, "消息不能为空")
        return

    try:
        workflow = workflow_provider()
        async for chunk in workflow.stream(payload.message):
            await send_frame(websocket, "chat_chunk", content=chunk)
    except WebSocketDisconnect:
        raise
    except Exception as e:
        logger.error(f"从流中接收数据时出错, err: {e}")
        await send_error(websocket, "处理消息时出错")

    await send_frame(websocket, "chat_end")


async def handle_save(websocket: WebSocket, store: ChatLogStore, request: SaveChatRequest) -> None:
    if not request.id or not request.messages:
        await send_error(websocket, "ID和消息不能为空")
        return
    try:
        await store.save(request.id, request.messages)
    except (ValidationError, ChatLogError) as e:
        logger.error(f"保存聊天记录失败: {e}")
        await send_error(websocket, e.message)
        return
    await send_frame(websocket, "save_success", message="聊天记录保存成功")


async def handle_history(websocket: WebSocket, store: ChatLogStore) -> None:
    history = await store.list_history()
    await send_frame(websocket, "history_list", history=[item.model_dump() for item in history])


async def handle_load(websocket: WebSocket, store: ChatLogStore, payload: WSLoadPayload) -> None:
    if not payload.id:
        await send_error(websocket, "缺少聊天ID")
        return
    try:
        messages = await store.load(payload.id)
    except ChatLogNotFoundError:
        await send_error(websocket, "聊天记录不存在")
        return
    except (ValidationError, ChatLogError) as e:
        logger.error(f"加载聊天记录失败: {e}")
        await send_error(websocket, e.message)
        return
    await send_frame(
        websocket,
        "chat_history",
        id=payload.id,
        messages=[m.model_dump() for m in messages],
    )


def _parse_payload(model, payload: Optional[Any]):
    return model.model_validate(payload if payload is not None else {})


async def dispatch(
    websocket: WebSocket,
    envelope: WSEnvelope,
    workflow_provider: Callable[[], RewriterWorkflow],
    store: ChatLogStore,
) -> None:
    kind = envelope.type
    if kind not in ("chat", "save", "history", "load"):
        await send_error(websocket, "未知的命令类型")
        return

    if kind == "history":
        await handle_history(websocket, store)
        return

    model = {"chat": WSChatPayload, "save": SaveChatRequest, "load": WSLoadPayload}[kind]
    try:
        payload = _parse_payload(model, envelope.payload)
    except PydanticValidationError:
        await send_error(websocket, f"无效的{REQUEST_KIND_NAMES[kind]}请求格式")
        return

    if kind == "chat":
        await handle_chat(websocket, workflow_provider, payload)
    elif kind == "save":
        await handle_save(websocket, store, payload)
    else:
        await handle_load(websocket, store, payload)


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    store: ChatLogStore = Depends(get_store),
):
    await manager.connect(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            text = message.get("text")
            if text is None:
                continue

            try:
                data: Dict[str, Any] = json.loads(text)
                envelope = WSEnvelope.model_validate(data)
            except (json.JSONDecodeError, PydanticValidationError) as e:
                logger.error(f"解析WebSocket消息失败: {e}")
                await send_error(websocket, "无效的消息格式")
                continue

            await dispatch(websocket, envelope, lambda: get_workflow(websocket), store)
    except WebSocketDisconnect:
        logger.info("WebSocket 客户端断开连接")
    finally:
        await manager.disconnect(websocket)
