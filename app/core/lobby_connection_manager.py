import logging
from uuid import UUID, uuid4

from fastapi import WebSocket, status
from fastapi.websockets import WebSocketState

from app.services.sync_controller import SyncController

logger = logging.getLogger(__name__)


class LobbyConnectionManager:
    def __init__(self) -> None:
        self.active_connections: dict[UUID, WebSocket] = {}
        self.controllers: dict[UUID, SyncController] = {}

    async def connect(self, websocket: WebSocket, controller: SyncController) -> UUID:
        await websocket.accept()

        session_id = uuid4()
        self.active_connections[session_id] = websocket
        self.controllers[session_id] = controller
        return session_id

    async def disconnect(self, session_id: UUID) -> None:
        controller = self.controllers.pop(session_id, None)
        if controller is not None:
            await controller.close()

        self.active_connections.pop(session_id, None)

    def is_connected(self, session_id: UUID) -> bool:
        return session_id in self.active_connections

    @property
    def session_count(self) -> int:
        return len(self.active_connections)

    async def close_all(self) -> None:
        for session_id, websocket in list(self.active_connections.items()):
            await self.disconnect(session_id)
            if websocket.client_state == WebSocketState.CONNECTED:
                try:
                    await websocket.close(code=status.WS_1001_GOING_AWAY)
                except RuntimeError:
                    logger.warning("Session %s was already closing", session_id)


lobby_manager = LobbyConnectionManager()
