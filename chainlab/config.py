from pydantic_settings import BaseSettings
from typing import Optional
from functools import lru_cache


class Settings(BaseSettings):
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    OPENAI_BASE_URL: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL_NAME: Optional[str] = None
    OPENAI_EMBEDDING_MODEL: str = "text-embedding-3-small"

    ARK_BASE_URL: str = "https://ark.cn-beijing.volces.com/api/v3"
    ARK_API_KEY: Optional[str] = None
    ARK_CHAT_MODEL: Optional[str] = None
    ARK_EMBEDDING_MODEL: Optional[str] = None

    CHAT_MODEL_PROVIDER: str = "openai"
    MODEL_TEMPERATURE: float = 0.7

    # 调试与链路追踪
    EINO_DEBUG: bool = False
    APMPLUS_APP_KEY: Optional[str] = None
    APMPLUS_REGION: str = "cn-beijing"

    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    HTTP_LOG_ENABLED: bool = True
    HTTP_LOG_RESPONSE_BODY: bool = False

    CHAT_LOG_DIR: str = "chat_logs"
    STATIC_DIR: str = "static"

    MCP_SERVER_HOST: str = "localhost"
    MCP_SERVER_PORT: int = 12345

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

    @property
    def mcp_server_url(self) -> str:
        return f"http://{self.MCP_SERVER_HOST}:{self.MCP_SERVER_PORT}/sse"

    def missing_model_settings(self) -> list[str]:
        """返回未设置的 OpenAI 模型相关环境变量"""
        required = {
            "OPENAI_BASE_URL": self.OPENAI_BASE_URL,
            "OPENAI_API_KEY": self.OPENAI_API_KEY,
            "OPENAI_MODEL_NAME": self.OPENAI_MODEL_NAME,
        }
        return [key for key, value in required.items() if not value]


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
