from unittest.mock import AsyncMock

import pytest
from fastapi import WebSocket, status
from fastapi.websockets import WebSocketState

from app.core.lobby_connection_manager import LobbyConnectionManager


@pytest.fixture
def mock_websocket():
    websocket = AsyncMock(spec=WebSocket)
    websocket.client_state = WebSocketState.CONNECTED
    return websocket


@pytest.fixture
def mock_controller():
    return AsyncMock()


@pytest.fixture
def connection_manager():
    manager = LobbyConnectionManager()

    yield manager
    manager.active_connections.clear()
    manager.controllers.clear()


async def test_connect_accepts_and_registers(
    connection_manager, mock_websocket, mock_controller
):
    session_id = await connection_manager.connect(mock_websocket, mock_controller)

    mock_websocket.accept.assert_awaited_once()
    assert connection_manager.is_connected(session_id)
    assert connection_manager.session_count == 1


async def test_disconnect_releases_controller(
    connection_manager, mock_websocket, mock_controller
):
    session_id = await connection_manager.connect(mock_websocket, mock_controller)

    await connection_manager.disconnect(session_id)
    await connection_manager.disconnect(session_id)

    mock_controller.close.assert_awaited_once()
    assert not connection_manager.is_connected(session_id)


async def test_close_all(connection_manager, mock_controller):
    sockets = []
    for _ in range(2):
        websocket = AsyncMock(spec=WebSocket)
        websocket.client_state = WebSocketState.CONNECTED
        sockets.append(websocket)
        await connection_manager.connect(websocket, mock_controller)

    await connection_manager.close_all()

    assert connection_manager.session_count == 0
    assert mock_controller.close.await_count == 2
    for websocket in sockets:
        websocket.close.assert_awaited_once_with(code=status.WS_1001_GOING_AWAY)
