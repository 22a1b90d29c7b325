"""
tests.test_registry
~~~~~~~~~~~~~~~~~~~

ConnectionRegistry 单元测试。
"""
from __future__ import annotations

from app.services.registry import ConnectionRegistry


class TestConnectionRegistry:
    """测试连接的登记、昵称设置与注销。"""

    def test_register_creates_empty_entry(self) -> None:
        """新登记的连接没有昵称，也不在任何房间中。"""
        registry = ConnectionRegistry()

        connection = registry.register("c1")

        assert connection.connection_id == "c1"
        assert connection.display_name is None
        assert connection.rooms == set()
        assert "c1" in registry
        assert len(registry) == 1

    def test_register_twice_returns_same_entry(self) -> None:
        registry = ConnectionRegistry()

        first = registry.register("c1")
        second = registry.register("c1")

        assert first is second
        assert len(registry) == 1

    def test_set_display_name_overwrites(self) -> None:
        registry = ConnectionRegistry()
        registry.register("c1")

        registry.set_display_name("c1", "Alice")
        registry.set_display_name("c1", "Alicia")

        assert registry.display_name_of("c1") == "Alicia"

    def test_unregister_returns_last_rooms(self) -> None:
        """注销时返回连接最后所在的房间，并移除记录。"""
        registry = ConnectionRegistry()
        connection = registry.register("c1")
        connection.rooms.update({"lobby", "games"})

        rooms = registry.unregister("c1")

        assert rooms == {"lobby", "games"}
        assert "c1" not in registry
        assert registry.get("c1") is None

    def test_unknown_id_operations_are_noops(self) -> None:
        """对未知连接 ID 的操作不报错。"""
        registry = ConnectionRegistry()

        registry.set_display_name("ghost", "Nobody")

        assert registry.unregister("ghost") == set()
        assert registry.display_name_of("ghost") is None
        assert len(registry) == 0
