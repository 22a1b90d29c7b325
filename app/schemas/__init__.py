"""
app.schemas
~~~~~~~~~~~
Pydantic schemas and models for the API.
"""
from app.schemas.api_response import ApiResponse
from app.schemas.events import (
    AIMessagePayload,
    ChatMessageData,
    EventFrame,
    JoinRoomPayload,
    RoomPayload,
    RoomSummaryData,
    SendMessagePayload,
    TypingPayload,
)

# Call model_rebuild to resolve forward references in generic Pydantic models.
ApiResponse.model_rebuild()
