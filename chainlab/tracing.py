"""
调试输出与链路追踪

- EINO_DEBUG=true: 打开 LangChain 全局调试输出
- APMPLUS_APP_KEY: 通过 OTLP/HTTP 将链路数据上报到 APMPlus
"""
import logging
from typing import Callable, Optional

from langchain_core.globals import set_debug
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter

from chainlab.config import Settings, get_settings


logger = logging.getLogger(__name__)

SERVICE_NAME = "chainlab"
APMPLUS_APP_KEY_HEADER = "X-ByteAPM-AppKey"

_provider: Optional[TracerProvider] = None


def apmplus_endpoint(region: str) -> str:
    return f"http://apmplus-{region}.volces.com:4318/v1/traces"


def build_tracer_provider(
    settings: Settings,
    exporter: Optional[SpanExporter] = None,
) -> TracerProvider:
    resource = Resource.create({
        "service.name": SERVICE_NAME,
        "apmplus.business_type": "llm",
    })
    provider = TracerProvider(resource=resource)
    if exporter is None:
        exporter = OTLPSpanExporter(
            endpoint=apmplus_endpoint(settings.APMPLUS_REGION),
            headers={APMPLUS_APP_KEY_HEADER: settings.APMPLUS_APP_KEY or ""},
        )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    return provider


def setup_tracing(settings: Optional[Settings] = None) -> Callable[[], None]:
    """按配置启用调试输出与链路上报，返回用于退出时刷新并关闭的函数"""
    global _provider
    settings = settings or get_settings()

    if settings.EINO_DEBUG:
        set_debug(True)
        logger.info("已开启 LangChain 调试输出")

    if not settings.APMPLUS_APP_KEY:
        return lambda: None

    if _provider is None:
        _provider = build_tracer_provider(settings)
        trace.set_tracer_provider(_provider)
        logger.info(f"====apmplus tracing enabled: {apmplus_endpoint(settings.APMPLUS_REGION)}")

    return shutdown_tracing


def shutdown_tracing() -> None:
    global _provider
    if _provider is not None:
        _provider.force_flush()
        _provider.shutdown()
        _provider = None


def get_tracer(name: str = SERVICE_NAME) -> trace.Tracer:
    return trace.get_tracer(name)
