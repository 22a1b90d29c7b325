"""
app.services.ai_bridge
~~~~~~~~~~~~~~~~~~~~~~

AI 回复桥接 —— 把一条聊天消息转成对生成式文本服务的请求，并把结果只回给发送者。

失败（异常、超时、空回复）时回一条固定的兜底消息，客户端总能收到格式完整的回复，
原始错误只记录在服务端日志里。
"""
from __future__ import annotations

from typing import Protocol

from app.core.clock import display_time
from app.core.exceptions import ServiceError
from app.core.logging import get_logger
from app.schemas.events import AI_AUTHOR, ChatMessageData
from app.services.broadcaster import RoomBroadcaster

logger = get_logger(__name__)

FALLBACK_REPLY: str = "Sorry, something went wrong. Please try again later."

RECEIVE_AI_MESSAGE: str = "receive_ai_message"


class ReplyProvider(Protocol):
    """生成式文本服务的最小接口（``GeminiProvider`` 或测试替身）。"""

    async def generate_reply(self, message: str) -> str: ...


class AIReplyBridge:
    """AI 回复桥接。

    Attributes:
        provider: 生成式文本服务。
        broadcaster: 出站投递，用来把回复单发给发送者。
    """

    def __init__(self, provider: ReplyProvider, broadcaster: RoomBroadcaster) -> None:
        self.provider = provider
        self.broadcaster = broadcaster

    async def request_reply(self, message: str) -> ChatMessageData:
        """请求 AI 回复并组装出站消息，失败时返回兜底消息。"""
        try:
            text = await self.provider.generate_reply(message)
        except ServiceError as e:
            logger.error("AI 回复失败，返回兜底消息: %s", e, exc_info=True)
            text = FALLBACK_REPLY
        return ChatMessageData(author=AI_AUTHOR, message=text, time=display_time())

    async def reply(self, connection_id: str, message: str) -> bool:
        """为 ``connection_id`` 请求 AI 回复并只发给它。

        ``connection_id`` 在挂起前就已确定；等待期间发送者断开的话，投递静默失败。

        Returns:
            回复是否送达。
        """
        reply = await self.request_reply(message)
        delivered = await self.broadcaster.send_to(
            connection_id, RECEIVE_AI_MESSAGE, reply.model_dump(),
        )
        if not delivered:
            logger.info("AI 回复生成时发送者已离开，丢弃回复")
        return delivered
