"""
app.services.broadcaster
~~~~~~~~~~~~~~~~~~~~~~~~

房间广播器 —— 负责所有出站消息：单发给某个连接，或扇出给房间内的成员。
"""
from __future__ import annotations

import asyncio
from typing import Any

from app.core.logging import get_logger
from app.schemas.events import EventFrame
from app.services.registry import ConnectionRegistry
from app.services.rooms import RoomDirectory

logger = get_logger(__name__)


class RoomBroadcaster:
    """出站消息投递。

    广播时先同步拍下房间成员快照，再开始任何 ``await``，
    因此消息恰好送达"广播那一刻"的房间成员。

    Attributes:
        registry: 连接注册表，用于查找目标连接的传输句柄。
        directory: 房间目录，用于解析房间成员。
    """

    def __init__(self, registry: ConnectionRegistry, directory: RoomDirectory) -> None:
        self.registry = registry
        self.directory = directory

    async def send_to(self, connection_id: str, event: str, data: Any = None) -> bool:
        """向单个连接发送事件。

        目标连接已断开或发送失败时静默返回 ``False``，不抛异常。
        """
        connection = self.registry.get(connection_id)
        if connection is None or connection.websocket is None:
            logger.debug("目标连接不存在，丢弃事件 | event=%s", event)
            return False
        frame = EventFrame(event=event, data=data).model_dump(mode="json")
        async with connection.send_lock:
            try:
                await connection.websocket.send_json(frame)
            except Exception as e:
                logger.warning("发送失败，等待断开流程清理连接 | event=%s | %s", event, e)
                return False
        return True

    async def broadcast(
        self,
        room: str,
        event: str,
        data: Any = None,
        exclude: str | None = None,
    ) -> int:
        """向房间内所有成员广播事件，可排除一个连接（通常是发送者）。

        Returns:
            成功送达的连接数。
        """
        recipients = [cid for cid in self.directory.member_ids(room) if cid != exclude]
        if not recipients:
            return 0
        results = await asyncio.gather(
            *(self.send_to(cid, event, data) for cid in recipients),
            return_exceptions=True,
        )
        delivered = sum(1 for result in results if result is True)
        logger.debug(
            "广播完成 | room=%s | event=%s | 送达 %d/%d",
            room, event, delivered, len(recipients),
        )
        return delivered
