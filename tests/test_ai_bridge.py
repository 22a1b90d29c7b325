"""
tests.test_ai_bridge
~~~~~~~~~~~~~~~~~~~~

AIReplyBridge 单元测试：成功回复、兜底回复、发送者中途离开。

AI 回复只发给发送者，房间里的其他成员收不到任何东西。
"""
from __future__ import annotations

import asyncio

import pytest

from app.core.exceptions import ServiceError
from app.services.ai_bridge import FALLBACK_REPLY


class TestAIReplyBridge:
    """测试 send_ai_message 事件。"""

    @pytest.mark.asyncio
    async def test_success_reply_goes_to_sender_only(self, event_router, connect, fake_provider) -> None:
        a, ws_a = connect("a")
        b, ws_b = connect("b")
        await event_router.dispatch(a, "join_room", {"room": "lobby", "displayName": "Alice"})
        await event_router.dispatch(b, "join_room", {"room": "lobby", "displayName": "Bob"})

        await event_router.dispatch(a, "send_ai_message", {"message": "Say hello"})

        replies = ws_a.events("receive_ai_message")
        assert len(replies) == 1
        assert replies[0]["data"]["author"] == "AI"
        assert replies[0]["data"]["message"] == "Hello!"
        assert replies[0]["data"]["time"]
        assert ws_b.sent == []
        assert fake_provider.calls == ["Say hello"]

    @pytest.mark.asyncio
    async def test_failure_sends_fallback(self, event_router, connect, fake_provider) -> None:
        fake_provider.error = ServiceError("downstream exploded")
        a, ws_a = connect("a")
        b, ws_b = connect("b")
        await event_router.dispatch(b, "join_room", "lobby")
        await event_router.dispatch(a, "join_room", "lobby")

        await event_router.dispatch(a, "send_ai_message", {"message": "Say hello"})

        replies = ws_a.events("receive_ai_message")
        assert len(replies) == 1
        assert replies[0]["data"]["author"] == "AI"
        assert replies[0]["data"]["message"] == FALLBACK_REPLY
        assert ws_b.sent == []

    @pytest.mark.asyncio
    async def test_sender_disconnected_during_wait(self, event_router, connect) -> None:
        """AI 等待期间发送者断开，回复静默丢弃，不报错。"""
        a, ws_a = connect("a")
        b, ws_b = connect("b")
        await event_router.dispatch(a, "join_room", "lobby")
        await event_router.dispatch(b, "join_room", "lobby")

        release = asyncio.Event()

        class SlowProvider:
            async def generate_reply(self, message: str) -> str:
                await release.wait()
                return "late"

        event_router.ai_bridge.provider = SlowProvider()
        task = asyncio.create_task(event_router.ai_bridge.reply(a, "hello?"))
        await asyncio.sleep(0)

        event_router.disconnect(a)
        release.set()
        delivered = await task

        assert delivered is False
        assert ws_a.sent == []
        assert ws_b.sent == []

    @pytest.mark.asyncio
    async def test_other_connections_keep_working_while_ai_waits(self, event_router, connect) -> None:
        """AI 挂起期间，其他连接的加入和广播照常进行。"""
        a, ws_a = connect("a")
        b, ws_b = connect("b")
        await event_router.dispatch(a, "join_room", "lobby")

        release = asyncio.Event()

        class SlowProvider:
            async def generate_reply(self, message: str) -> str:
                await release.wait()
                return "done"

        event_router.ai_bridge.provider = SlowProvider()
        task = asyncio.create_task(
            event_router.dispatch(a, "send_ai_message", {"message": "think"}),
        )
        await asyncio.sleep(0)

        await event_router.dispatch(b, "join_room", "lobby")
        await event_router.dispatch(
            b, "send_message", {"room": "lobby", "author": "Bob", "message": "meanwhile"},
        )
        release.set()
        await task

        assert [f["event"] for f in ws_a.sent] == ["receive_message", "receive_ai_message"]
        assert [f["event"] for f in ws_b.sent] == ["receive_message"]
