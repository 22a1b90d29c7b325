"""
app.schemas.events
~~~~~~~~~~~~~~~~~~

WebSocket 事件协议的 Pydantic 模型。

所有帧都是 JSON 文本 ``{"event": "<名称>", "data": <payload>}``，入站和出站格式一致。
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

AI_AUTHOR: str = "AI"


class EventFrame(BaseModel):
    """一帧 WebSocket 消息。"""

    event: str = Field(..., min_length=1, description="事件名称")
    data: Any = Field(default=None, description="事件 payload")


# ── 入站 payload ──────────────────────────────────────────────────────

class RoomPayload(BaseModel):
    """只携带房间名的 payload（leave_room / get_members）。"""

    room: str = Field(..., description="房间名")


class JoinRoomPayload(RoomPayload):
    """join_room 的 payload。客户端使用驼峰字段 ``displayName``。"""

    model_config = ConfigDict(populate_by_name=True)

    display_name: str | None = Field(
        default=None, alias="displayName", description="在房间中显示的昵称",
    )


class SendMessagePayload(RoomPayload):
    """send_message 的 payload。"""

    author: str = Field(..., description="消息作者（由客户端自行填写）")
    message: str = Field(..., description="消息正文")


class TypingPayload(RoomPayload):
    """typing / stop_typing 的 payload。"""

    author: str = Field(default="", description="正在输入的用户名")


class AIMessagePayload(BaseModel):
    """send_ai_message 的 payload。"""

    message: str = Field(..., description="发给 AI 的问题")


# ── 出站 payload ──────────────────────────────────────────────────────

class ChatMessageData(BaseModel):
    """广播给客户端的一条聊天消息（receive_message / receive_ai_message）。"""

    author: str = Field(..., description="作者")
    message: str = Field(..., description="消息正文")
    time: str = Field(..., description="服务端生成的展示用时间，例如 03:07 PM")


class RoomSummaryData(BaseModel):
    """HTTP 房间列表中的单个房间摘要。"""

    room: str = Field(..., description="房间名")
    member_count: int = Field(..., description="当前成员数")
