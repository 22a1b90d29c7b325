"""
app.api.rooms
~~~~~~~~~~~~~

房间只读 REST 接口，路由前缀 ``/api``。

端点:
  - ``GET /rooms`` → 当前所有非空房间及成员数
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.deps import get_event_router
from app.schemas.api_response import ApiResponse
from app.schemas.events import RoomSummaryData
from app.services.event_router import EventRouter

router: APIRouter = APIRouter()


@router.get(
    "/rooms",
    summary="获取活跃房间列表",
    response_model=ApiResponse[list[RoomSummaryData]],
)
async def list_rooms(
    event_router: EventRouter = Depends(get_event_router),
) -> ApiResponse[list[RoomSummaryData]]:
    """返回所有当前有成员的房间。"""
    rooms = [
        RoomSummaryData(room=name, member_count=count)
        for name, count in event_router.directory.rooms().items()
    ]
    return ApiResponse.ok(data=rooms)
