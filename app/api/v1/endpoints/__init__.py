from fastapi import APIRouter

from app.api.v1.endpoints import lobby, ws_lobby

api_router = APIRouter()

api_router.include_router(lobby.router, prefix="/lobby", tags=["lobby"])

api_router.include_router(ws_lobby.router, prefix="/ws", tags=["ws"])
