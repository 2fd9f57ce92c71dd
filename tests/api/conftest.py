import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.db.session import get_session
from app.dependencies.repositories import (
    get_player_repository,
    get_room_repository,
)
from app.main import app
from app.models.room import Room


@pytest_asyncio.fixture
async def client(mocker):
    mock_session = mocker.AsyncMock()

    mock_room_repository = mocker.AsyncMock()
    mock_player_repository = mocker.AsyncMock()

    app.dependency_overrides[get_session] = lambda: mock_session

    app.dependency_overrides[get_room_repository] = lambda: mock_room_repository
    app.dependency_overrides[get_player_repository] = lambda: mock_player_repository

    mocks = {
        "session": mock_session,
        "repositories": {
            "room": mock_room_repository,
            "player": mock_player_repository,
        },
    }

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client_instance:
        yield client_instance, mocks

    app.dependency_overrides.clear()


@pytest.fixture
def mock_room():
    return Room(
        id=uuid.uuid4(),
        access_code="AB12",
        is_active=True,
        max_players=4,
        host_joined=True,
    )
