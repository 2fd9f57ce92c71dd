import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.change_feed import ChangeFeed, ChangeListener
from app.core.error import DomainErrorCode, LobbyDomainError, StoreOperationError
from app.models.player import Player
from app.repositories.player_repository import PlayerRepository
from app.repositories.room_repository import RoomRepository
from app.schemas.change import ChangeKind, ChangeTable, SubscriptionHandle
from app.schemas.room import PlayerSnapshot, RoomSnapshot, RoomUpdate
from app.util.validators import validate_player_name

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    async def get_room(self) -> RoomSnapshot | None: ...

    async def update_room(self, room_id: UUID, changes: RoomUpdate) -> RoomSnapshot: ...

    async def get_players(self, room_id: UUID) -> list[PlayerSnapshot]: ...

    async def insert_player(self, room_id: UUID, name: str) -> PlayerSnapshot: ...

    async def delete_all_players(self, room_id: UUID) -> int: ...

    def subscribe(
        self, table: ChangeTable, listener: ChangeListener
    ) -> SubscriptionHandle: ...

    def unsubscribe(self, handle: SubscriptionHandle) -> None: ...


class LobbyStore:
    """Room and player records plus their change notifications.

    Every write is one committed transaction followed by a change event.
    Nothing spans more than one call, so composite invariants are only
    eventually consistent.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        change_feed: ChangeFeed,
        *,
        enforce_capacity: bool = True,
    ):
        self.session_factory = session_factory
        self.change_feed = change_feed
        self.enforce_capacity = enforce_capacity

    @asynccontextmanager
    async def _session_scope(self, operation: str) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Store operation %s failed: %s", operation, e)
                raise StoreOperationError(
                    message=f"Store operation {operation} failed",
                    details={"operation": operation, "error": str(e)},
                ) from e
            except LobbyDomainError:
                await session.rollback()
                raise

    async def get_room(self) -> RoomSnapshot | None:
        async with self._session_scope("get_room") as session:
            room = await RoomRepository(session).get_singleton()
            if room is None:
                return None
            return RoomSnapshot.model_validate(room)

    async def update_room(self, room_id: UUID, changes: RoomUpdate) -> RoomSnapshot:
        async with self._session_scope("update_room") as session:
            room_repository = RoomRepository(session)
            room = await room_repository.filter_one_or_raise(id=room_id)

            for field, value in changes.changed_fields().items():
                setattr(room, field, value)

            room = await room_repository.update(room)
            await session.commit()
            snapshot = RoomSnapshot.model_validate(room)

        await self.change_feed.publish(
            ChangeTable.ROOM,
            ChangeKind.UPDATE,
            snapshot.id,
            record=snapshot.model_dump(mode="json"),
        )
        return snapshot

    async def get_players(self, room_id: UUID) -> list[PlayerSnapshot]:
        async with self._session_scope("get_players") as session:
            players = await PlayerRepository(session).get_by_room(room_id)
            return [PlayerSnapshot.model_validate(player) for player in players]

    async def insert_player(self, room_id: UUID, name: str) -> PlayerSnapshot:
        name = validate_player_name(name)

        async with self._session_scope("insert_player") as session:
            player_repository = PlayerRepository(session)

            if self.enforce_capacity:
                room = await RoomRepository(session).lock_by_uuid_or_raise(room_id)
                current = await player_repository.count(room_id=room_id)
                if current >= room.max_players:
                    raise LobbyDomainError(
                        code=DomainErrorCode.ROOM_IS_FULL,
                        message="All player slots are taken",
                        details={
                            "room_id": str(room_id),
                            "max_players": room.max_players,
                            "current_players": current,
                        },
                    )

            player = await player_repository.create(Player(room_id=room_id, name=name))
            await session.commit()
            snapshot = PlayerSnapshot.model_validate(player)

        await self.change_feed.publish(ChangeTable.PLAYER, ChangeKind.INSERT, room_id)
        return snapshot

    async def delete_all_players(self, room_id: UUID) -> int:
        async with self._session_scope("delete_all_players") as session:
            deleted = await PlayerRepository(session).delete_by_room(room_id)
            await session.commit()

        logger.info("Removed %d players from room %s", deleted, room_id)
        await self.change_feed.publish(ChangeTable.PLAYER, ChangeKind.DELETE, room_id)
        return deleted

    def subscribe(
        self, table: ChangeTable, listener: ChangeListener
    ) -> SubscriptionHandle:
        return self.change_feed.subscribe(table, listener)

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        self.change_feed.unsubscribe(handle)
