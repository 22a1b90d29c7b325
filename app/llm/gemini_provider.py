"""
app.llm.gemini_provider
~~~~~~~~~~~~~~~~~~~~~~~

纯 LLM 客户端封装 —— 只负责与 Google Gemini API 的连接和调用。

每次请求都新建一个聊天 Session，历史里只放当前这一条用户消息，
服务端不保留任何跨请求的对话上下文。

与直播间那版的 bot 不同，这里失败时不返回"友好提示文本"，而是统一抛出
``ServiceError``，由上层（``AIReplyBridge``）决定兜底回复。
"""
from __future__ import annotations

import asyncio

from google import genai
from google.genai import types

from app.core.config import settings
from app.core.exceptions import ServiceError
from app.core.logging import get_logger
from app.llm.client import create_gemini_client

logger = get_logger(__name__)


class GeminiProvider:
    """Gemini 文本生成封装。

    Attributes:
        model_name: 使用的 Gemini 模型名称。
        timeout: 单次调用的超时时间（秒）。
    """

    def __init__(
        self,
        model_name: str | None = None,
        timeout: float | None = None,
        client: genai.Client | None = None,
    ) -> None:
        """初始化 Provider。

        Args:
            model_name: Gemini 模型名称，默认读取 ``settings.GEMINI_MODEL``。
            timeout: 超时时间（秒），默认读取 ``settings.AI_REPLY_TIMEOUT``。
            client: 可选的 ``genai.Client`` 实例（用于测试注入 mock）。
        """
        self.model_name: str = model_name or settings.GEMINI_MODEL
        self.timeout: float = timeout if timeout is not None else settings.AI_REPLY_TIMEOUT
        self._client: genai.Client = client or create_gemini_client()
        logger.info("LLM 客户端已初始化 | model=%s | timeout=%.1fs", self.model_name, self.timeout)

    async def generate_reply(self, message: str) -> str:
        """发送一条消息并获取完整回复。

        Args:
            message: 用户发给 AI 的原始消息。

        Returns:
            模型回复文本。

        Raises:
            ServiceError: 调用异常、超时或返回空内容。
        """
        try:
            reply = await asyncio.wait_for(self._send(message), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ServiceError(f"Gemini 调用超时（{self.timeout:.1f}s）") from e
        except Exception as e:
            raise ServiceError(f"Gemini 调用异常: {e!s}") from e

        if not reply or not reply.strip():
            raise ServiceError("Gemini 返回了空回复")
        return reply

    async def _send(self, message: str) -> str | None:
        # 单轮历史：只放当前消息本身
        chat = self._client.aio.chats.create(
            model=self.model_name,
            history=[
                types.Content(role="user", parts=[types.Part(text=message)]),
            ],
        )
        response = await chat.send_message(message)
        return response.text
