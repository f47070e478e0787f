"""
chainlab 日志配置

- setup_logging: CLI 与 run.py 启动时调用一次，控制台输出（终端下彩色）加可选的 UTF-8 文件输出
- OperationLogger: 工作流用来记录一次图调用的开始、结束、耗时与流式输出块数
"""
import logging
import sys
import time
from pathlib import Path
from typing import Iterable, Optional


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 模型请求由 core.http_logging 的传输层记录，这些库自身的请求日志只保留警告
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "mcp.client.sse")


class ColorFormatter(logging.Formatter):
    """按级别给 levelname 着色，只挂在控制台 handler 上"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        # 文件 handler 共用同一条记录
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, "")
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _console_formatter(use_color: bool) -> logging.Formatter:
    if use_color and sys.stdout.isatty():
        return ColorFormatter(LOG_FORMAT, DATE_FORMAT)
    return logging.Formatter(LOG_FORMAT, DATE_FORMAT)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    use_color: bool = True,
    quiet_loggers: Iterable[str] = QUIET_LOGGERS,
) -> None:
    """
    配置根日志器

    Args:
        level: LOG_LEVEL，无法识别时按 INFO 处理
        log_file: LOG_FILE，设置后同时写入该文件
        use_color: 控制台是否着色（仅在终端中生效）
        quiet_loggers: 降到 WARNING 的第三方日志器
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(_console_formatter(use_color))
    handlers = [console_handler]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        handlers.append(file_handler)

    root_logger.handlers = handlers

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


class OperationLogger:
    """
    图调用计时

    RewriterWorkflow 用它包住 ainvoke 与 astream，流式调用时累加 chunks:

        with OperationLogger(logger, "intent_rewriter 流式调用") as op:
            async for chunk in graph.astream(...):
                op.chunks += 1
    """

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.INFO):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.chunks = 0
        self._start = 0.0

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self._start

    def _summary(self) -> str:
        summary = f"耗时: {self.elapsed:.2f}s"
        if self.chunks:
            summary += f", 输出 {self.chunks} 块"
        return summary

    def __enter__(self) -> "OperationLogger":
        self._start = time.perf_counter()
        self.logger.log(self.level, f"开始: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.logger.log(self.level, f"完成: {self.operation} ({self._summary()})")
        elif issubclass(exc_type, GeneratorExit):
            # 调用方提前停止读取流
            self.logger.log(self.level, f"中断: {self.operation} ({self._summary()})")
        else:
            self.logger.error(f"失败: {self.operation} ({self._summary()}) - {exc_val}")
        return False
