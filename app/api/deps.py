from fastapi import Request, WebSocket

from app.services.event_router import EventRouter


def get_event_router(request: Request) -> EventRouter:
    return request.app.state.event_router


def get_ws_event_router(websocket: WebSocket) -> EventRouter:
    return websocket.app.state.event_router
