"""
Agent 运行日志回调

将链、模型与工具的开始、结束和错误事件以 JSON 形式写入日志文件
"""
import json
import threading
from typing import Any, Dict, List, Optional

from langchain_core.callbacks import BaseCallbackHandler
from pydantic import BaseModel


def _json_default(obj: Any) -> Any:
    # 消息与 LLMResult 均为 pydantic 模型
    if isinstance(obj, BaseModel):
        return obj.model_dump()
    return str(obj)


def _to_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2, default=_json_default)


class FileLoggerCallback(BaseCallbackHandler):
    """
    文件日志回调

    使用示例:
        with FileLoggerCallback("react-agent.log") as cb:
            await agent.ainvoke(inputs, config={"callbacks": [cb]})
    """

    def __init__(self, path: str, encoding: str = "utf-8"):
        self.path = path
        self._file = open(path, "a", encoding=encoding)
        self._lock = threading.Lock()

    def __enter__(self) -> "FileLoggerCallback":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            if not self._file.closed:
                self._file.close()

    def _write(self, section: str, payload: Any = None, inline: bool = False) -> None:
        with self._lock:
            if self._file.closed:
                return
            if inline:
                self._file.write(f"[{section}] {_to_json(payload)}\n")
            else:
                self._file.write(f"=========[{section}]=========\n")
                if payload is not None:
                    self._file.write(_to_json(payload) + "\n")
            self._file.flush()

    def on_chain_start(
        self,
        serialized: Optional[Dict[str, Any]],
        inputs: Dict[str, Any],
        **kwargs: Any,
    ) -> None:
        self._write("OnStart", {"name": kwargs.get("name"), "input": inputs}, inline=True)

    def on_chat_model_start(
        self,
        serialized: Optional[Dict[str, Any]],
        messages: List[List[Any]],
        **kwargs: Any,
    ) -> None:
        self._write("OnStart", {"name": kwargs.get("name"), "messages": messages}, inline=True)

    def on_chain_end(self, outputs: Any, **kwargs: Any) -> None:
        self._write("OnEnd", outputs)

    def on_llm_end(self, response: Any, **kwargs: Any) -> None:
        self._write("OnEnd", response)

    def on_chain_error(self, error: BaseException, **kwargs: Any) -> None:
        self._write("OnError", str(error))

    def on_llm_error(self, error: BaseException, **kwargs: Any) -> None:
        self._write("OnError", str(error))

    def on_tool_start(
        self,
        serialized: Optional[Dict[str, Any]],
        input_str: str,
        **kwargs: Any,
    ) -> None:
        self._write("OnToolStart", input_str)

    def on_tool_end(self, output: Any, **kwargs: Any) -> None:
        self._write("OnToolEnd", output)

    def on_tool_error(self, error: BaseException, **kwargs: Any) -> None:
        self._write("OnToolError", str(error))
