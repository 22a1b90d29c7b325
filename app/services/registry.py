"""
app.services.registry
~~~~~~~~~~~~~~~~~~~~~

连接注册表 —— 记录每一个在线 WebSocket 连接及其属性（昵称、已加入的房间）。

昵称等可变属性保存在 ``Connection`` 记录里，而不是挂在 WebSocket 对象上。
对未知连接 ID 的操作一律静默忽略：断开连接与清理流程可能交错执行，不应因此报错。
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from fastapi import WebSocket

from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Connection:
    """一个在线连接。

    Attributes:
        connection_id: 连接唯一标识，连接建立时分配。
        websocket: 出站消息使用的传输句柄（单元测试中可以为 None）。
        display_name: 加入房间时设置的昵称，未设置时为 None。
        rooms: 当前已加入的房间名集合。
        send_lock: 串行化发往本连接的消息，保证按发出顺序到达。
    """

    connection_id: str
    websocket: WebSocket | None = None
    display_name: str | None = None
    rooms: set[str] = field(default_factory=set)
    send_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)


class ConnectionRegistry:
    """进程内的连接注册表，以连接 ID 为键。"""

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}

    def register(self, connection_id: str, websocket: WebSocket | None = None) -> Connection:
        """登记新连接；重复登记同一 ID 时返回已有记录。"""
        existing = self._connections.get(connection_id)
        if existing is not None:
            return existing
        connection = Connection(connection_id=connection_id, websocket=websocket)
        self._connections[connection_id] = connection
        logger.debug("连接已登记 | 当前在线: %d", len(self._connections))
        return connection

    def set_display_name(self, connection_id: str, name: str) -> None:
        """设置（或覆盖）连接的昵称。"""
        connection = self._connections.get(connection_id)
        if connection is None:
            return
        connection.display_name = name

    def unregister(self, connection_id: str) -> set[str]:
        """移除连接记录，返回它最后所在的房间集合，方便调用方清理房间目录。"""
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            return set()
        logger.debug("连接已注销 | 当前在线: %d", len(self._connections))
        return set(connection.rooms)

    def get(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def display_name_of(self, connection_id: str) -> str | None:
        connection = self._connections.get(connection_id)
        return connection.display_name if connection is not None else None

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)
