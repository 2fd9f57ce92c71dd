import uuid

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.core.change_feed import ChangeFeed
from app.core.session_state import SessionState
from app.models.player import Player
from app.models.room import Room
from app.schemas.notification import Notification
from app.schemas.room import PlayerSnapshot, RoomSnapshot
from app.services.lobby_store import LobbyStore
from app.services.sync_controller import SyncController

HOST_PASSWORD = "1234"
RESET_ACCESS_CODE = "0000"


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path}/test.db",
        echo=False,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def test_db_session(session_factory) -> AsyncSession:
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest_asyncio.fixture
async def test_room(session_factory) -> Room:
    room = Room(
        access_code="0000",
        is_active=False,
        max_players=4,
        host_joined=False,
    )

    async with session_factory() as session:
        session.add(room)
        await session.commit()
        await session.refresh(room)

    return room


@pytest_asyncio.fixture
async def test_players(session_factory, test_room) -> list[Player]:
    players = [Player(room_id=test_room.id, name=f"Player{i}") for i in range(2)]

    async with session_factory() as session:
        session.add_all(players)
        await session.commit()
        for player in players:
            await session.refresh(player)

    return players


@pytest.fixture
def change_feed() -> ChangeFeed:
    return ChangeFeed()


@pytest.fixture
def lobby_store(session_factory, change_feed) -> LobbyStore:
    return LobbyStore(session_factory, change_feed, enforce_capacity=True)


@pytest.fixture
def room_id():
    return uuid.uuid4()


@pytest.fixture
def room_snapshot(room_id) -> RoomSnapshot:
    return RoomSnapshot(
        id=room_id,
        access_code="AB12",
        is_active=True,
        max_players=4,
        host_joined=True,
    )


@pytest.fixture
def make_player(room_id):
    def _make(name: str = "Alice") -> PlayerSnapshot:
        return PlayerSnapshot(id=uuid.uuid4(), room_id=room_id, name=name)

    return _make


class RecordedClient:
    """A controller wired to lists instead of a socket."""

    def __init__(self, store) -> None:
        self.states: list[SessionState] = []
        self.notifications: list[Notification] = []
        self.controller = SyncController(
            store,
            host_password=HOST_PASSWORD,
            reset_access_code=RESET_ACCESS_CODE,
            on_state_change=self._record_state,
            on_notification=self._record_notification,
        )

    async def _record_state(self, state: SessionState) -> None:
        self.states.append(state)

    async def _record_notification(self, notification: Notification) -> None:
        self.notifications.append(notification)

    @property
    def state(self) -> SessionState:
        return self.controller.state

    @property
    def error_codes(self) -> list[str | None]:
        return [n.code for n in self.notifications if n.level == "error"]


@pytest.fixture
def recorded_clients() -> list[RecordedClient]:
    return []


@pytest_asyncio.fixture
async def connect_client(lobby_store, recorded_clients):
    async def _connect(store=None) -> RecordedClient:
        client = RecordedClient(store or lobby_store)
        await client.controller.start()
        recorded_clients.append(client)
        return client

    yield _connect

    for client in recorded_clients:
        await client.controller.close()


@pytest.fixture
def settle(recorded_clients):
    """Wait until every connected client has applied its queued changes."""

    async def _settle() -> None:
        for client in recorded_clients:
            await client.controller.wait_idle()

    return _settle
