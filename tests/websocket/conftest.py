import uuid

import pytest
from fastapi import WebSocket
from fastapi.websockets import WebSocketState

from app.schemas.change import SubscriptionHandle
from app.schemas.room import RoomSnapshot


@pytest.fixture
def lobby_ws_client(mocker):
    mock_websocket = mocker.AsyncMock(spec=WebSocket)
    mock_websocket.client_state = WebSocketState.CONNECTED
    return mock_websocket


@pytest.fixture
def room_snapshot():
    return RoomSnapshot(
        id=uuid.uuid4(),
        access_code="AB12",
        is_active=True,
        max_players=4,
        host_joined=True,
    )


@pytest.fixture
def mock_store(mocker, room_snapshot):
    store = mocker.AsyncMock()
    store.subscribe = mocker.Mock(
        side_effect=lambda table, listener: SubscriptionHandle(table=table)
    )
    store.unsubscribe = mocker.Mock()
    store.get_room.return_value = room_snapshot
    store.get_players.return_value = []
    return store
