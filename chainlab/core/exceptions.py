"""
统一异常处理模块

提供项目级别的异常类层次结构，用于：
1. 统一错误分类
2. 结构化错误信息
3. HTTP / WebSocket 层的错误映射
"""
from typing import Optional, Dict, Any
from enum import Enum


class ErrorCategory(str, Enum):
    """错误类别"""
    LLM = "llm"
    MCP = "mcp"
    VALIDATION = "validation"
    STORAGE = "storage"
    WORKFLOW = "workflow"
    CONFIG = "config"
    SYSTEM = "system"


class BaseError(Exception):
    """
    基础异常类

    所有项目异常的基类，提供统一的错误信息结构
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        self.message = message
        self.category = category
        self.details = details or {}
        self.cause = cause
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        result = {
            "error": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "details": self.details,
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result

    def __str__(self) -> str:
        return f"[{self.category.value}] {self.message}"


class ConfigError(BaseError):
    """配置相关错误"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        details = details or {}
        if config_key:
            details["config_key"] = config_key
        super().__init__(
            message=message,
            category=ErrorCategory.CONFIG,
            details=details,
            cause=cause,
        )


class LLMError(BaseError):
    """LLM 相关错误"""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        details = details or {}
        if provider:
            details["provider"] = provider
        if model:
            details["model"] = model
        super().__init__(
            message=message,
            category=ErrorCategory.LLM,
            details=details,
            cause=cause,
        )


class WorkflowError(BaseError):
    """工作流图构建或执行错误"""

    def __init__(
        self,
        message: str,
        workflow: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        details = details or {}
        if workflow:
            details["workflow"] = workflow
        super().__init__(
            message=message,
            category=ErrorCategory.WORKFLOW,
            details=details,
            cause=cause,
        )


class MCPError(BaseError):
    """MCP 工具相关错误"""

    def __init__(
        self,
        message: str,
        tool_name: Optional[str] = None,
        server_url: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        details = details or {}
        if tool_name:
            details["tool_name"] = tool_name
        if server_url:
            details["server_url"] = server_url
        super().__init__(
            message=message,
            category=ErrorCategory.MCP,
            details=details,
            cause=cause,
        )


class ValidationError(BaseError):
    """验证相关错误"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)[:100]
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            details=details,
            cause=cause,
        )


class ChatLogError(BaseError):
    """聊天记录存储错误"""

    def __init__(
        self,
        message: str,
        log_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        details = details or {}
        if log_id:
            details["log_id"] = log_id
        super().__init__(
            message=message,
            category=ErrorCategory.STORAGE,
            details=details,
            cause=cause,
        )


class ChatLogNotFoundError(ChatLogError):
    """聊天记录不存在"""

    def __init__(self, log_id: str):
        super().__init__(message="聊天记录不存在", log_id=log_id)
