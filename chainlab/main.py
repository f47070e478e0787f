import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles

from chainlab.api import router, websocket_router
from chainlab.config import Settings, get_settings
from chainlab.storage.chat_logs import ChatLogStore
from chainlab.tracing import get_tracer, setup_tracing
from chainlab.workflows.rewriter import RewriterWorkflow


logger = logging.getLogger(__name__)


def create_app(
    workflow: Optional[RewriterWorkflow] = None,
    store: Optional[ChatLogStore] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        shutdown_tracing = setup_tracing(settings)
        logger.info(f"服务器启动在 http://localhost:{settings.PORT}")
        yield
        shutdown_tracing()

    app = FastAPI(
        title="Chainlab API",
        description="Conditional query rewriting over SSE and WebSocket",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.workflow = workflow
    app.state.store = store or ChatLogStore(settings.CHAT_LOG_DIR)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    tracer = get_tracer()

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        with tracer.start_as_current_span(f"{request.method} {request.url.path}") as span:
            response = await call_next(request)
            span.set_attribute("http.status_code", response.status_code)
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(
            f"[HTTP] {request.method} {request.url.path} {response.status_code} {elapsed:.1f}ms"
        )
        return response

    app.include_router(router, prefix="/api")
    app.include_router(websocket_router)

    @app.get("/chat/{rest:path}", include_in_schema=False)
    async def redirect_chat(rest: str):
        return RedirectResponse(url="/", status_code=301)

    static_dir = Path(settings.STATIC_DIR)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
    else:
        logger.warning(f"静态文件目录不存在: {static_dir}")

    return app
