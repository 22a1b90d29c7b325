"""
app.services.presence
~~~~~~~~~~~~~~~~~~~~~

"正在输入"状态转发。无状态、不去重、不防抖：收到一次就转发一次，且不回显给发送者。
"""
from __future__ import annotations

from app.services.broadcaster import RoomBroadcaster

TYPING: str = "typing"
STOP_TYPING: str = "stop_typing"


class PresenceRelay:
    def __init__(self, broadcaster: RoomBroadcaster) -> None:
        self.broadcaster = broadcaster

    async def typing(self, connection_id: str, room: str, author: str) -> int:
        return await self.broadcaster.broadcast(room, TYPING, author, exclude=connection_id)

    async def stop_typing(self, connection_id: str, room: str) -> int:
        return await self.broadcaster.broadcast(room, STOP_TYPING, None, exclude=connection_id)
