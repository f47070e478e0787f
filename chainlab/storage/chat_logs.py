"""
聊天记录存储

每个会话保存为 <base_dir>/<id>.json，内容是 [{role, content}, ...] 的 UTF-8 JSON 数组
"""
import json
import logging
import os
from pathlib import Path
from typing import List, Union

import aiofiles
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from chainlab.core.exceptions import ChatLogError, ChatLogNotFoundError, ValidationError


logger = logging.getLogger(__name__)


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatLogSummary(BaseModel):
    id: str
    title: str


def _validate_log_id(log_id: str) -> str:
    if not log_id:
        raise ValidationError("缺少聊天ID", field="id")
    if any(part in log_id for part in ("/", "\\", "..", "\x00", os.sep)):
        raise ValidationError("无效的聊天ID", field="id", value=log_id)
    return log_id


class ChatLogStore:
    def __init__(self, base_dir: Union[str, Path] = "chat_logs"):
        self.base_dir = Path(base_dir)

    def _path(self, log_id: str) -> Path:
        return self.base_dir / f"{_validate_log_id(log_id)}.json"

    async def save(self, log_id: str, messages: List[Union[ChatMessage, dict]]) -> None:
        path = self._path(log_id)
        if not messages:
            raise ValidationError("聊天记录不能为空", field="messages")

        try:
            records = [ChatMessage.model_validate(m).model_dump() for m in messages]
        except PydanticValidationError as e:
            raise ValidationError("无效的聊天记录格式", field="messages", cause=e) from e

        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(records, ensure_ascii=False, indent=2))
        except OSError as e:
            raise ChatLogError("保存聊天记录失败", log_id=log_id, cause=e) from e

        logger.info(f"聊天记录已保存: {path}")

    async def list_history(self) -> List[ChatLogSummary]:
        self.base_dir.mkdir(parents=True, exist_ok=True)

        history = []
        for path in sorted(self.base_dir.glob("*.json")):
            try:
                async with aiofiles.open(path, "rb") as f:
                    data = json.loads((await f.read()).decode("utf-8"))
            except (OSError, ValueError) as e:
                logger.warning(f"跳过无法读取的聊天记录 {path.name}: {e}")
                continue

            if not isinstance(data, list) or not data:
                continue
            first = data[0]
            title = first.get("content") if isinstance(first, dict) else None
            if not isinstance(title, str):
                logger.warning(f"跳过格式无效的聊天记录 {path.name}")
                continue
            history.append(ChatLogSummary(id=path.stem, title=title))

        return history

    async def load_raw(self, log_id: str) -> bytes:
        path = self._path(log_id)
        if not path.is_file():
            raise ChatLogNotFoundError(log_id)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except OSError as e:
            raise ChatLogError("读取聊天记录失败", log_id=log_id, cause=e) from e

    async def load(self, log_id: str) -> List[ChatMessage]:
        raw = await self.load_raw(log_id)
        try:
            data = json.loads(raw.decode("utf-8"))
            return [ChatMessage.model_validate(item) for item in data]
        except (UnicodeDecodeError, ValueError, TypeError) as e:
            raise ChatLogError("解析聊天记录失败", log_id=log_id, cause=e) from e
