import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response, StreamingResponse

from chainlab.core.exceptions import (
    BaseError,
    ChatLogError,
    ChatLogNotFoundError,
    ValidationError,
)
from chainlab.llm import get_provider_info
from chainlab.storage.chat_logs import ChatLogStore, ChatLogSummary
from chainlab.workflows.rewriter import RewriterWorkflow
from .deps import get_store, get_workflow
from .schemas import ChatRequest, SaveChatRequest, StatusResponse


logger = logging.getLogger(__name__)

router = APIRouter()


def _raise_http(e: BaseError):
    if isinstance(e, ValidationError):
        raise HTTPException(status_code=400, detail=e.message)
    if isinstance(e, ChatLogNotFoundError):
        raise HTTPException(status_code=404, detail=e.message)
    raise HTTPException(status_code=500, detail=e.message)


@router.get("/health", response_model=StatusResponse)
async def health_check():
    return StatusResponse()


@router.get("/providers")
async def list_providers():
    return get_provider_info()


@router.post("/chat")
async def chat(
    request: ChatRequest,
    workflow: RewriterWorkflow = Depends(get_workflow),
):
    if not request.message:
        raise HTTPException(status_code=400, detail="消息不能为空")

    async def generate():
        try:
            async for chunk in workflow.stream(request.message):
                logger.debug(f"chunk: {chunk}")
                yield f"data: {chunk}\n\n"
        except Exception as e:
            logger.error(f"从流中接收数据时出错, err: {e}")
            yield f"data: [ERROR] {e}\n\n"

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.post("/history", response_model=StatusResponse)
async def save_history(
    request: SaveChatRequest,
    store: ChatLogStore = Depends(get_store),
):
    if not request.id or not request.messages:
        raise HTTPException(status_code=400, detail="ID和消息不能为空")
    try:
        await store.save(request.id, request.messages)
    except (ChatLogError, ValidationError) as e:
        _raise_http(e)
    return StatusResponse()


@router.get("/history", response_model=list[ChatLogSummary])
async def list_history(store: ChatLogStore = Depends(get_store)):
    return await store.list_history()


@router.get("/history/{log_id}")
async def get_history(log_id: str, store: ChatLogStore = Depends(get_store)):
    try:
        content = await store.load_raw(log_id)
    except (ChatLogError, ValidationError) as e:
        _raise_http(e)
    return Response(content=content, media_type="application/json")
