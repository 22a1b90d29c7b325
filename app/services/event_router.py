"""
app.services.event_router
~~~~~~~~~~~~~~~~~~~~~~~~~

事件路由 —— 聊天中继的核心，进程启动时创建一次，挂载在 ``app.state.event_router``。

持有连接注册表、房间目录、广播器、输入状态转发和 AI 回复桥接，
把某个连接发来的入站事件分发给对应的处理函数。

并发模型:
  - 所有处理函数运行在同一个 asyncio 事件循环上；
  - 同一连接的事件由 WebSocket 端点逐条串行分发，不同连接的事件在 ``await`` 处交错；
  - 注册表 / 房间目录的修改内部没有 ``await``，因此无需加锁即可保持一致；
  - 唯一会在处理中途挂起等待外部 I/O 的是 AI 回复。

入站事件一览:
  - ``join_room``       {room, displayName} 或房间名字符串
  - ``leave_room``      {room}
  - ``get_members``     {room}             → 仅回复发送者 ``members_list``
  - ``send_message``    {room, author, message} → 房间全员（含发送者）``receive_message``
  - ``typing``          {room, author}     → 房间内除发送者外 ``typing``
  - ``stop_typing``     {room, author}     → 房间内除发送者外 ``stop_typing``
  - ``send_ai_message`` {message}          → 仅回复发送者 ``receive_ai_message``
"""
from __future__ import annotations

import json
import uuid
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from fastapi import WebSocket
from pydantic import BaseModel, ValidationError

from app.core.clock import display_time
from app.core.exceptions import ProtocolMisuse
from app.core.logging import get_logger
from app.schemas.events import (
    AIMessagePayload,
    ChatMessageData,
    EventFrame,
    JoinRoomPayload,
    RoomPayload,
    SendMessagePayload,
    TypingPayload,
)
from app.services.ai_bridge import AIReplyBridge, ReplyProvider
from app.services.broadcaster import RoomBroadcaster
from app.services.presence import PresenceRelay
from app.services.registry import Connection, ConnectionRegistry
from app.services.rooms import RoomDirectory

logger = get_logger(__name__)

RECEIVE_MESSAGE: str = "receive_message"
MEMBERS_LIST: str = "members_list"

P = TypeVar("P", bound=BaseModel)
Handler = Callable[[str, Any], Awaitable[None]]


def _validate(model: type[P], data: Any) -> P:
    """校验 payload，失败时转成 ``ProtocolMisuse``。"""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ProtocolMisuse(f"{model.__name__} 校验失败: {e.error_count()} 个字段错误") from e


class EventRouter:
    """入站事件分发与出站广播。

    Attributes:
        registry: 连接注册表。
        directory: 房间目录。
        broadcaster: 出站投递。
        presence: 输入状态转发。
        ai_bridge: AI 回复桥接。
    """

    def __init__(self, provider: ReplyProvider) -> None:
        self.registry = ConnectionRegistry()
        self.directory = RoomDirectory(self.registry)
        self.broadcaster = RoomBroadcaster(self.registry, self.directory)
        self.presence = PresenceRelay(self.broadcaster)
        self.ai_bridge = AIReplyBridge(provider, self.broadcaster)

        self._handlers: dict[str, Handler] = {
            "join_room": self._on_join_room,
            "leave_room": self._on_leave_room,
            "get_members": self._on_get_members,
            "send_message": self._on_send_message,
            "typing": self._on_typing,
            "stop_typing": self._on_stop_typing,
            "send_ai_message": self._on_send_ai_message,
        }

    # ── 连接生命周期 ──────────────────────────────────────────────────

    def connect(self, websocket: WebSocket | None = None, connection_id: str | None = None) -> Connection:
        """登记一个新连接并分配连接 ID。"""
        return self.registry.register(connection_id or uuid.uuid4().hex, websocket)

    def disconnect(self, connection_id: str) -> None:
        """连接断开：先退出所有房间，再注销连接记录。"""
        self.directory.remove_everywhere(connection_id)
        self.registry.unregister(connection_id)

    @property
    def online_count(self) -> int:
        """当前在线连接数。"""
        return len(self.registry)

    # ── 入站分发 ──────────────────────────────────────────────────────

    @staticmethod
    def parse_frame(raw: str) -> EventFrame:
        """把一帧 JSON 文本解析成 ``EventFrame``。"""
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ProtocolMisuse(f"非法 JSON: {e.msg}") from e
        return _validate(EventFrame, payload)

    async def dispatch(self, connection_id: str, event: str, data: Any = None) -> None:
        """把事件交给对应的处理函数。

        Raises:
            ProtocolMisuse: 未知事件名或 payload 校验失败。
        """
        handler = self._handlers.get(event)
        if handler is None:
            raise ProtocolMisuse(f"未知事件: {event}")
        await handler(connection_id, data)

    async def handle_frame(self, connection_id: str, raw: str) -> None:
        """解析并分发一帧消息；格式错误的帧记录日志后丢弃，不影响连接。"""
        try:
            frame = self.parse_frame(raw)
            await self.dispatch(connection_id, frame.event, frame.data)
        except ProtocolMisuse as e:
            logger.warning("丢弃格式错误的事件: %s", e)

    # ── 事件处理函数 ──────────────────────────────────────────────────

    async def _on_join_room(self, connection_id: str, data: Any) -> None:
        # 兼容旧客户端：payload 直接是房间名
        if isinstance(data, str):
            data = {"room": data}
        payload = _validate(JoinRoomPayload, data)
        self.directory.join(payload.room, connection_id)
        if payload.display_name is not None:
            self.registry.set_display_name(connection_id, payload.display_name)
        logger.info("加入房间 | room=%s | name=%s", payload.room, payload.display_name)

    async def _on_leave_room(self, connection_id: str, data: Any) -> None:
        payload = _validate(RoomPayload, data)
        self.directory.leave(payload.room, connection_id)
        logger.info("离开房间 | room=%s", payload.room)

    async def _on_get_members(self, connection_id: str, data: Any) -> None:
        payload = _validate(RoomPayload, data)
        members = self.directory.members_of(payload.room)
        await self.broadcaster.send_to(connection_id, MEMBERS_LIST, members)

    async def _on_send_message(self, connection_id: str, data: Any) -> None:
        # 不校验发送者是否在房间内，直接按房间名广播
        payload = _validate(SendMessagePayload, data)
        message = ChatMessageData(
            author=payload.author,
            message=payload.message,
            time=display_time(),
        )
        logger.info("收到消息 | room=%s | author=%s", payload.room, payload.author)
        await self.broadcaster.broadcast(payload.room, RECEIVE_MESSAGE, message.model_dump())

    async def _on_typing(self, connection_id: str, data: Any) -> None:
        payload = _validate(TypingPayload, data)
        logger.debug("%s 正在输入 | room=%s", payload.author, payload.room)
        await self.presence.typing(connection_id, payload.room, payload.author)

    async def _on_stop_typing(self, connection_id: str, data: Any) -> None:
        payload = _validate(TypingPayload, data)
        logger.debug("%s 停止输入 | room=%s", payload.author, payload.room)
        await self.presence.stop_typing(connection_id, payload.room)

    async def _on_send_ai_message(self, connection_id: str, data: Any) -> None:
        payload = _validate(AIMessagePayload, data)
        await self.ai_bridge.reply(connection_id, payload.message)
