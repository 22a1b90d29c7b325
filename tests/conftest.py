"""
tests.conftest
~~~~~~~~~~~~~~

共享 pytest fixtures —— mock 掉所有外部 API 调用（Gemini），
并提供一个记录出站帧的假 WebSocket，使单元测试无需网络即可运行。
"""
from __future__ import annotations

import os
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

# ── 在所有测试导入前设置环境变量 ─────────────────────────────────────
os.environ.setdefault("GEMINI_API_KEY", "test-fake-key")
os.environ.setdefault("ENVIRONMENT", "test")  # 激活 .env.test 配置

from app.services.event_router import EventRouter  # noqa: E402


class FakeWebSocket:
    """只实现 ``send_json`` 的 WebSocket 替身，记录所有出站帧。"""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    async def send_json(self, data: Any) -> None:
        self.sent.append(data)

    def events(self, name: str | None = None) -> list[dict[str, Any]]:
        """返回收到的帧，可按事件名过滤。"""
        if name is None:
            return list(self.sent)
        return [frame for frame in self.sent if frame["event"] == name]


class FakeProvider:
    """可配置成功 / 失败的 AI Provider 替身。"""

    def __init__(self, reply: str = "Hello!", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[str] = []

    async def generate_reply(self, message: str) -> str:
        self.calls.append(message)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture()
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture()
def event_router(fake_provider: FakeProvider) -> EventRouter:
    """每个测试独立的 EventRouter 实例。"""
    return EventRouter(provider=fake_provider)


@pytest.fixture()
def connect(event_router: EventRouter):
    """登记一个带假 WebSocket 的连接，返回 (connection_id, websocket)。"""

    def _connect(connection_id: str) -> tuple[str, FakeWebSocket]:
        ws = FakeWebSocket()
        event_router.connect(ws, connection_id=connection_id)
        return connection_id, ws

    return _connect


@pytest.fixture()
def mock_gemini_client() -> MagicMock:
    """返回一个 mock 的 ``genai.Client``，``aio.chats.create().send_message`` 返回 "Hello!"。"""
    client = MagicMock()
    chat = MagicMock()
    chat.send_message = AsyncMock(return_value=MagicMock(text="Hello!"))
    client.aio.chats.create.return_value = chat
    return client
