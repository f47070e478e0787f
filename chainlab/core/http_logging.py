"""
HTTP 请求/响应日志

为模型客户端提供可注入的 httpx 传输层，记录请求方法、地址、请求头、请求体以及响应状态。
请求体被读取后由 httpx 缓存，内部传输层可以再次读取。
"""
import logging
from typing import Optional, Tuple

import httpx


logger = logging.getLogger(__name__)

REDACTED_HEADERS = {"authorization", "api-key", "x-api-key", "proxy-authorization"}
STREAMING_CONTENT_TYPE = "text/event-stream"


def _redact_headers(headers: httpx.Headers) -> list[tuple[str, str]]:
    redacted = []
    for name, value in headers.multi_items():
        if name.lower() in REDACTED_HEADERS:
            value = "***"
        redacted.append((name, value))
    return redacted


def _decode_body(body: bytes, limit: int) -> str:
    text = body.decode("utf-8", errors="replace")
    if limit and len(text) > limit:
        return text[:limit] + f"...(共 {len(text)} 字符)"
    return text


class _LoggingMixin:
    log_headers: bool
    log_response_body: bool
    body_limit: int

    def _log_request(self, request: httpx.Request, body: bytes) -> None:
        logger.info(f"[HTTP] 请求: {request.method} {request.url}")
        if self.log_headers:
            for name, value in _redact_headers(request.headers):
                logger.debug(f"[HTTP] 请求头: {name}: {value}")
        if body:
            logger.info(f"[HTTP] 请求体: {_decode_body(body, self.body_limit)}")

    def _log_response(self, response: httpx.Response) -> None:
        logger.info(f"[HTTP] 响应状态: {response.status_code} {response.reason_phrase}")

    def _should_read_response(self, response: httpx.Response) -> bool:
        if not self.log_response_body:
            return False
        content_type = response.headers.get("content-type", "")
        return STREAMING_CONTENT_TYPE not in content_type


class LoggingTransport(_LoggingMixin, httpx.BaseTransport):
    """同步日志传输层，包装另一个 httpx 传输层"""

    def __init__(
        self,
        wrapped: Optional[httpx.BaseTransport] = None,
        log_headers: bool = True,
        log_response_body: bool = False,
        body_limit: int = 4000,
    ):
        self.wrapped = wrapped or httpx.HTTPTransport()
        self.log_headers = log_headers
        self.log_response_body = log_response_body
        self.body_limit = body_limit

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        try:
            body = request.read()
        except Exception as e:
            logger.warning(f"[HTTP] 读取请求体失败: {e}")
            body = b""
        self._log_request(request, body)

        try:
            response = self.wrapped.handle_request(request)
        except Exception as e:
            logger.error(f"[HTTP] 请求错误: {e}")
            raise

        self._log_response(response)
        if self._should_read_response(response):
            response.read()
            logger.info(f"[HTTP] 响应体: {_decode_body(response.content, self.body_limit)}")
        return response

    def close(self) -> None:
        self.wrapped.close()


class AsyncLoggingTransport(_LoggingMixin, httpx.AsyncBaseTransport):
    """异步日志传输层，包装另一个 httpx 异步传输层"""

    def __init__(
        self,
        wrapped: Optional[httpx.AsyncBaseTransport] = None,
        log_headers: bool = True,
        log_response_body: bool = False,
        body_limit: int = 4000,
    ):
        self.wrapped = wrapped or httpx.AsyncHTTPTransport()
        self.log_headers = log_headers
        self.log_response_body = log_response_body
        self.body_limit = body_limit

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        try:
            body = await request.aread()
        except Exception as e:
            logger.warning(f"[HTTP] 读取请求体失败: {e}")
            body = b""
        self._log_request(request, body)

        try:
            response = await self.wrapped.handle_async_request(request)
        except Exception as e:
            logger.error(f"[HTTP] 请求错误: {e}")
            raise

        self._log_response(response)
        if self._should_read_response(response):
            await response.aread()
            logger.info(f"[HTTP] 响应体: {_decode_body(response.content, self.body_limit)}")
        return response

    async def aclose(self) -> None:
        await self.wrapped.aclose()


def build_http_clients(
    log_response_body: bool = False,
    timeout: float = 120.0,
) -> Tuple[httpx.Client, httpx.AsyncClient]:
    """创建带日志传输层的同步/异步 httpx 客户端，供模型客户端注入使用"""
    client = httpx.Client(
        transport=LoggingTransport(log_response_body=log_response_body),
        timeout=timeout,
    )
    async_client = httpx.AsyncClient(
        transport=AsyncLoggingTransport(log_response_body=log_response_body),
        timeout=timeout,
    )
    return client, async_client
