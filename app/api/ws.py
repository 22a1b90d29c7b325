"""
app.api.ws
~~~~~~~~~~

WebSocket 实时聊天接口。

提供 ``/ws`` 端点。每帧消息都是 JSON 文本 ``{"event": ..., "data": ...}``，
入站事件交给 ``EventRouter`` 分发，出站事件由 ``RoomBroadcaster`` 推送。

每个连接内部拆成两个协程：
  - ``receive_loop`` 只负责收帧并放入有界队列，队列满时丢弃；
  - ``process_loop`` 按到达顺序逐条分发，单个事件出错不会中断连接。
"""
from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from app.api.deps import get_ws_event_router
from app.core.config import settings
from app.core.logging import connection_id_ctx_var, get_logger
from app.services.event_router import EventRouter

logger = get_logger(__name__)

router: APIRouter = APIRouter()


@router.websocket("/ws")
async def websocket_chat_endpoint(
    websocket: WebSocket,
    event_router: EventRouter = Depends(get_ws_event_router),
) -> None:
    """WebSocket 聊天端点。

    Args:
        websocket: FastAPI WebSocket 连接对象。
        event_router: 进程内唯一的事件路由实例。
    """
    await websocket.accept()
    connection = event_router.connect(websocket)
    token = connection_id_ctx_var.set(connection.connection_id[:8])
    logger.info("用户已连接 | 当前在线: %d", event_router.online_count)

    # 隔离接收与处理：AI 回复等待期间仍能继续收帧
    queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=settings.MAX_PENDING_EVENTS)

    async def receive_loop() -> None:
        try:
            while True:
                raw: str = await websocket.receive_text()
                try:
                    queue.put_nowait(raw)
                except asyncio.QueueFull:
                    logger.warning("事件队列已满，丢弃事件")
        except WebSocketDisconnect:
            pass  # 正常断开
        except Exception as e:
            logger.error("WebSocket 接收异常: %s", e, exc_info=True)
        finally:
            await queue.put(None)  # 通知处理协程结束

    async def process_loop() -> None:
        while True:
            raw = await queue.get()
            if raw is None:
                break
            try:
                await event_router.handle_frame(connection.connection_id, raw)
            except Exception as e:
                logger.error("事件处理异常: %s", e, exc_info=True)

    try:
        await asyncio.gather(receive_loop(), process_loop())
    finally:
        event_router.disconnect(connection.connection_id)
        logger.info("用户已断开 | 当前在线: %d", event_router.online_count)
        connection_id_ctx_var.reset(token)
