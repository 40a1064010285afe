"""Gemini/LangChain 集成：三个 Agent 共用的生成后端。"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, Union

from langchain_core.messages import BaseMessage, HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import BaseModel

from pbl_architect.config import Settings

logger = logging.getLogger(__name__)


class BackendError(RuntimeError):
    """生成后端调用失败（网络、配额、后端报错等）。"""


class BackendNotConfiguredError(BackendError):
    """当未提供 Gemini API Key 时抛出。"""


class ImagePart(BaseModel):
    """内联图片，``data`` 为 base64 字符串。"""

    mime_type: str = "image/jpeg"
    data: str


Part = Union[str, ImagePart]


class GenerationBackend(Protocol):
    async def call(
        self,
        parts: Union[str, Sequence[Part]],
        schema: Optional[Dict[str, Any]] = None,
        temperature: Optional[float] = None,
    ) -> str: ...


def build_content(parts: Union[str, Sequence[Part]]) -> Union[str, List[Dict[str, Any]]]:
    """把文本/图片片段转换为 LangChain 的多模态消息内容。"""

    if isinstance(parts, str):
        return parts
    content: List[Dict[str, Any]] = []
    for part in parts:
        if isinstance(part, ImagePart):
            content.append(
                {"type": "image_url", "image_url": f"data:{part.mime_type};base64,{part.data}"}
            )
        else:
            content.append({"type": "text", "text": part})
    return content


def message_text(message: BaseMessage) -> str:
    """提取模型回复中的纯文本。"""

    content = message.content
    if isinstance(content, str):
        return content
    chunks: List[str] = []
    for item in content:
        if isinstance(item, str):
            chunks.append(item)
        elif isinstance(item, dict) and item.get("type", "text") == "text":
            chunks.append(str(item.get("text", "")))
    return "".join(chunks)


class GeminiBackend:
    """使用 LangChain 封装的 Gemini 调用，传入 schema 时启用结构化输出约束。"""

    def __init__(self, settings: Settings, max_output_tokens: Optional[int] = None) -> None:
        self.settings = settings
        self.max_output_tokens = max_output_tokens or settings.max_output_tokens
        self._chats: Dict[Tuple[str, float], ChatGoogleGenerativeAI] = {}

    @property
    def is_available(self) -> bool:
        return bool(self.settings.gemini_api_key)

    def _get_chat(
        self, schema: Optional[Dict[str, Any]], temperature: float
    ) -> ChatGoogleGenerativeAI:
        if not self.is_available:
            raise BackendNotConfiguredError("Gemini API 未配置")
        cache_key = (json.dumps(schema, sort_keys=True) if schema else "", temperature)
        chat = self._chats.get(cache_key)
        if chat is None:
            options: Dict[str, Any] = {
                "model": self.settings.gemini_model,
                "google_api_key": self.settings.gemini_api_key,
                "temperature": temperature,
                "max_output_tokens": self.max_output_tokens,
                "max_retries": 0,
            }
            if schema is not None:
                options["response_mime_type"] = "application/json"
                options["response_schema"] = schema
            chat = ChatGoogleGenerativeAI(**options)
            self._chats[cache_key] = chat
        return chat

    async def call(
        self,
        parts: Union[str, Sequence[Part]],
        schema: Optional[Dict[str, Any]] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """发送一次请求并返回原始文本，失败统一转为 ``BackendError``。"""

        chat = self._get_chat(schema, 0.7 if temperature is None else temperature)
        try:
            result = await chat.ainvoke([HumanMessage(content=build_content(parts))])
        except Exception as exc:  # noqa: BLE001 - 依赖外部 API，异常类型不固定
            logger.error(f"Gemini call failed ({self.settings.gemini_model}): {exc}")
            raise BackendError("Gemini 调用失败") from exc
        return message_text(result)
