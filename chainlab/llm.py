import logging
from functools import lru_cache
from typing import Optional

from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI, OpenAIEmbeddings

from chainlab.config import Settings, get_settings
from chainlab.core.exceptions import ConfigError, LLMError
from chainlab.core.http_logging import build_http_clients


logger = logging.getLogger(__name__)

PROVIDERS = ("openai", "ark")


@lru_cache()
def _shared_http_clients(log_response_body: bool):
    return build_http_clients(log_response_body=log_response_body)


def resolve_provider(provider: Optional[str], settings: Settings, strict: bool = False) -> str:
    """解析模型提供商；strict 时未知的取值抛出 ConfigError，否则回退到 openai"""
    provider = (provider or settings.CHAT_MODEL_PROVIDER or "").strip().lower()
    if provider not in PROVIDERS:
        if strict:
            raise ConfigError(
                f"未知的模型提供商: {provider or '(空)'}，可选值: {list(PROVIDERS)}",
                config_key="CHAT_MODEL_PROVIDER",
            )
        logger.error("未设置 CHAT_MODEL_PROVIDER 环境变量或其值无效，默认使用 OpenAI 模型。")
        return "openai"
    return provider


def _provider_config(provider: str, model: Optional[str], settings: Settings) -> dict:
    if provider == "ark":
        return {
            "model": model or settings.ARK_CHAT_MODEL,
            "api_key": settings.ARK_API_KEY,
            "base_url": settings.ARK_BASE_URL,
        }

    missing = settings.missing_model_settings()
    if missing:
        logger.warning(f"警告: {', '.join(missing)} 环境变量未设置。请设置这些变量以运行本示例。")
    return {
        "model": model or settings.OPENAI_MODEL_NAME,
        "api_key": settings.OPENAI_API_KEY,
        "base_url": settings.OPENAI_BASE_URL,
    }


def get_chat_model(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    settings: Optional[Settings] = None,
    strict: bool = False,
    **kwargs,
) -> BaseChatModel:
    settings = settings or get_settings()
    provider = resolve_provider(provider, settings, strict=strict)

    config = _provider_config(provider, model, settings)
    # 未配置时使用占位 key，请求阶段才会返回鉴权错误
    config["api_key"] = config["api_key"] or "not-configured"
    config["model"] = config["model"] or "gpt-4o-mini"
    config["temperature"] = settings.MODEL_TEMPERATURE if temperature is None else temperature

    if settings.HTTP_LOG_ENABLED:
        http_client, http_async_client = _shared_http_clients(settings.HTTP_LOG_RESPONSE_BODY)
        config["http_client"] = http_client
        config["http_async_client"] = http_async_client

    config.update(kwargs)

    try:
        chat_model = ChatOpenAI(**config)
    except Exception as e:
        raise LLMError("创建聊天模型失败", provider=provider, model=config["model"], cause=e) from e

    logger.info(f"创建 {provider} 模型成功: {config['model']}")
    return chat_model


def get_embeddings(
    provider: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Embeddings:
    settings = settings or get_settings()
    provider = resolve_provider(provider, settings)

    if provider == "ark":
        logger.info(f"ARK_EMBEDDING_MODEL: {settings.ARK_EMBEDDING_MODEL}")
        config = {
            "model": settings.ARK_EMBEDDING_MODEL,
            "api_key": settings.ARK_API_KEY,
            "base_url": settings.ARK_BASE_URL,
            # Ark 只接受原始文本输入
            "check_embedding_ctx_length": False,
        }
    else:
        config = {
            "model": settings.OPENAI_EMBEDDING_MODEL,
            "api_key": settings.OPENAI_API_KEY,
            "base_url": settings.OPENAI_BASE_URL,
        }
    config["api_key"] = config["api_key"] or "not-configured"

    try:
        return OpenAIEmbeddings(**config)
    except Exception as e:
        raise LLMError("创建 Embedding 模型失败", provider=provider, model=config["model"], cause=e) from e


def get_provider_info(settings: Optional[Settings] = None) -> list[dict]:
    settings = settings or get_settings()
    return [
        {
            "name": "openai",
            "model": settings.OPENAI_MODEL_NAME,
            "available": not settings.missing_model_settings(),
            "base_url": settings.OPENAI_BASE_URL,
        },
        {
            "name": "ark",
            "model": settings.ARK_CHAT_MODEL,
            "available": bool(settings.ARK_API_KEY and settings.ARK_CHAT_MODEL),
            "base_url": settings.ARK_BASE_URL,
        },
    ]
