"""
app.services.rooms
~~~~~~~~~~~~~~~~~~

房间目录 —— 房间名到成员连接 ID 的映射。

房间在第一次有人加入时隐式创建，最后一个成员离开时直接删除，
目录中永远不存在"空房间"：查询不存在的房间与查询空房间结果相同。

``join`` / ``leave`` 同时更新目录和 ``Connection.rooms``，两步之间没有 ``await``，
因此在单线程事件循环中对外始终保持一致。
"""
from __future__ import annotations

from app.core.logging import get_logger
from app.services.registry import ConnectionRegistry

logger = get_logger(__name__)

UNKNOWN_MEMBER_NAME: str = "Unknown"


class RoomDirectory:
    """房间成员目录。

    成员集合用 ``dict[str, None]`` 存储：既有集合语义（不重复），又保留加入顺序，
    使 ``members_of`` 的返回结果稳定。

    Attributes:
        registry: 共享的连接注册表，用于同步 ``Connection.rooms`` 和查询昵称。
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self.registry = registry
        self._rooms: dict[str, dict[str, None]] = {}

    def join(self, room: str, connection_id: str) -> None:
        """把连接加入房间（幂等）；房间不存在时自动创建。"""
        connection = self.registry.get(connection_id)
        if connection is None:
            logger.debug("忽略未知连接的加入请求 | room=%s", room)
            return
        self._rooms.setdefault(room, {})[connection_id] = None
        connection.rooms.add(room)

    def leave(self, room: str, connection_id: str) -> None:
        """把连接移出房间（幂等）；房间变空时删除。"""
        members = self._rooms.get(room)
        if members is not None:
            members.pop(connection_id, None)
            if not members:
                del self._rooms[room]
        connection = self.registry.get(connection_id)
        if connection is not None:
            connection.rooms.discard(room)

    def remove_everywhere(self, connection_id: str) -> None:
        """把连接从它所在的所有房间移除（断开连接时调用）。"""
        connection = self.registry.get(connection_id)
        if connection is not None:
            rooms = set(connection.rooms)
        else:
            # 注册表里已没有记录时退化为全量扫描，保证目录中不残留该连接
            rooms = {name for name, members in self._rooms.items() if connection_id in members}
        for room in rooms:
            self.leave(room, connection_id)

    def member_ids(self, room: str) -> list[str]:
        """返回房间当前成员 ID 的快照。"""
        return list(self._rooms.get(room, ()))

    def members_of(self, room: str) -> list[str]:
        """返回房间当前所有成员的昵称，未设置昵称的成员显示为 ``Unknown``。"""
        return [
            self.registry.display_name_of(connection_id) or UNKNOWN_MEMBER_NAME
            for connection_id in self.member_ids(room)
        ]

    def is_member(self, room: str, connection_id: str) -> bool:
        return connection_id in self._rooms.get(room, {})

    def rooms(self) -> dict[str, int]:
        """返回所有非空房间及其成员数。"""
        return {name: len(members) for name, members in self._rooms.items()}
