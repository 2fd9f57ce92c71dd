import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar
from uuid import UUID

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder
from fastapi.websockets import WebSocketState
from pydantic import BaseModel, ValidationError

from app.core.config import settings
from app.core.lobby_connection_manager import lobby_manager
from app.core.session_state import SessionState
from app.dependencies.services import get_lobby_store
from app.schemas.notification import Notification
from app.schemas.ws import (
    HostLoginData,
    LogoutData,
    SessionStateData,
    SetMaxPlayersData,
    SubmitCodeData,
    SubmitNameData,
    WebSocketMessage,
    WebSocketResponse,
    WSActionType,
)
from app.services.lobby_store import RecordStore
from app.services.sync_controller import SyncController

logger = logging.getLogger(__name__)

router = APIRouter()

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class LobbyWebSocketHandler:
    def __init__(self, websocket: WebSocket, store: RecordStore):
        self.websocket = websocket
        self.store = store
        self.session_id: UUID | None = None
        self.controller = SyncController(
            store,
            host_password=settings.HOST_PASSWORD,
            reset_access_code=settings.RESET_ACCESS_CODE,
            on_state_change=self.send_state,
            on_notification=self.send_notification,
        )

    async def handle_connection(self) -> bool:
        result = True
        try:
            self.session_id = await lobby_manager.connect(
                self.websocket, self.controller
            )
            await self.controller.start()
            await self.send_state(self.controller.state)
            await self.handle_messages()
        except WebSocketDisconnect:
            result = False
        except Exception as e:
            await self.handle_error(e)
            result = False
        finally:
            if self.session_id is not None:
                await lobby_manager.disconnect(self.session_id)

        return result

    async def handle_messages(self) -> None:
        message_handlers: dict[str, Callable[[WebSocketMessage], Awaitable[None]]] = {
            WSActionType.PING: self.handle_ping,
            WSActionType.HOST_LOGIN: self.handle_host_login,
            WSActionType.SUBMIT_CODE: self.handle_submit_code,
            WSActionType.SUBMIT_NAME: self.handle_submit_name,
            WSActionType.REGENERATE_CODE: self.handle_regenerate_code,
            WSActionType.TOGGLE_OPEN: self.handle_toggle_open,
            WSActionType.SET_MAX_PLAYERS: self.handle_set_max_players,
            WSActionType.LOGOUT: self.handle_logout,
        }

        while True:
            data = await self.websocket.receive_json()
            try:
                message = WebSocketMessage(
                    action=data.get("action", ""), data=data.get("data")
                )
            except (ValidationError, AttributeError) as e:
                await self.send_error(f"Invalid message format: {e!s}")
                continue

            handler = message_handlers.get(message.action)
            if handler is None:
                await self.send_error(f"Unknown action: {message.action}")
                continue

            try:
                await handler(message)
            except ValidationError as e:
                await self.send_error(f"Invalid {message.action} payload: {e!s}")

    async def handle_ping(self, _: WebSocketMessage) -> None:
        await self.send(
            WebSocketResponse(
                status="success",
                action=WSActionType.PONG,
                data={"message": "pong"},
            )
        )

    async def handle_host_login(self, message: WebSocketMessage) -> None:
        payload = _parse(HostLoginData, message)
        await self.controller.host_login(payload.password)

    async def handle_submit_code(self, message: WebSocketMessage) -> None:
        payload = _parse(SubmitCodeData, message)
        await self.controller.submit_access_code(payload.code)

    async def handle_submit_name(self, message: WebSocketMessage) -> None:
        payload = _parse(SubmitNameData, message)
        await self.controller.submit_name(payload.name)

    async def handle_regenerate_code(self, _: WebSocketMessage) -> None:
        await self.controller.regenerate_access_code()

    async def handle_toggle_open(self, _: WebSocketMessage) -> None:
        await self.controller.toggle_open()

    async def handle_set_max_players(self, message: WebSocketMessage) -> None:
        payload = _parse(SetMaxPlayersData, message)
        await self.controller.set_max_players(payload.max_players)

    async def handle_logout(self, message: WebSocketMessage) -> None:
        payload = _parse(LogoutData, message)
        await self.controller.logout(confirmed=payload.confirm)

    async def send_state(self, state: SessionState) -> None:
        await self.send(
            WebSocketResponse(
                status="success",
                action=WSActionType.STATE,
                data=SessionStateData.from_state(state).model_dump(mode="json"),
            )
        )

    async def send_notification(self, notification: Notification) -> None:
        await self.send(
            WebSocketResponse(
                status="success" if notification.level == "success" else "error",
                action=WSActionType.NOTIFICATION,
                data=notification.model_dump(),
                error=notification.message if notification.level == "error" else None,
            )
        )

    async def send_error(self, error: str) -> None:
        await self.send(
            WebSocketResponse(
                status="error",
                action=WSActionType.ERROR,
                error=error,
            )
        )

    async def send(self, response: WebSocketResponse) -> None:
        if self.websocket.client_state == WebSocketState.CONNECTED:
            await self.websocket.send_json(jsonable_encoder(response))

    async def handle_error(self, e: Exception) -> None:
        logger.exception("Lobby session %s failed", self.session_id)
        if self.websocket.client_state == WebSocketState.CONNECTED:
            await self.websocket.close(
                code=status.WS_1011_INTERNAL_ERROR, reason=str(e)
            )


def _parse(model: type[PayloadT], message: WebSocketMessage) -> PayloadT:
    return model.model_validate(message.data or {})


@router.websocket("/lobby")
async def lobby_websocket(
    websocket: WebSocket,
    store: RecordStore = Depends(get_lobby_store),
):
    handler = LobbyWebSocketHandler(websocket, store)
    await handler.handle_connection()
