from typing import cast
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.error import DomainErrorCode, LobbyDomainError
from app.models.room import Room
from app.repositories.base_repository import BaseRepository


class RoomRepository(BaseRepository[Room]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, Room, DomainErrorCode.ROOM_NOT_FOUND)

    async def get_singleton(self) -> Room | None:
        result = await self.session.execute(
            select(Room).order_by(Room.created_at, Room.id).limit(1)
        )
        return cast(Room | None, result.scalar_one_or_none())

    async def lock_by_uuid_or_raise(self, room_id: UUID) -> Room:
        """Row-lock the room until the surrounding transaction ends.

        SQLite ignores ``FOR UPDATE``; its writers are already serialized.
        """
        result = await self.session.execute(
            select(Room).where(Room.id == room_id).with_for_update()
        )
        room = cast(Room | None, result.scalar_one_or_none())
        if room is None:
            raise LobbyDomainError(
                code=self.not_found_error_code,
                message=f"Room {room_id} not found",
                details={"room_id": str(room_id)},
            )
        return room
