from .exceptions import (
    BaseError,
    ErrorCategory,
    ConfigError,
    LLMError,
    WorkflowError,
    MCPError,
    ValidationError,
    ChatLogError,
    ChatLogNotFoundError,
)
from .logging_config import setup_logging, OperationLogger
from .http_logging import LoggingTransport, AsyncLoggingTransport, build_http_clients

__all__ = [
    "BaseError",
    "ErrorCategory",
    "ConfigError",
    "LLMError",
    "WorkflowError",
    "MCPError",
    "ValidationError",
    "ChatLogError",
    "ChatLogNotFoundError",
    "setup_logging",
    "OperationLogger",
    "LoggingTransport",
    "AsyncLoggingTransport",
    "build_http_clients",
]
