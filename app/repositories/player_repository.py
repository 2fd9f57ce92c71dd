from typing import cast
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.error import DomainErrorCode
from app.models.player import Player
from app.repositories.base_repository import BaseRepository


class PlayerRepository(BaseRepository[Player]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, Player, DomainErrorCode.PLAYER_NOT_FOUND)

    async def get_by_room(self, room_id: UUID) -> list[Player]:
        result = await self.session.execute(
            select(Player)
            .where(Player.room_id == room_id)
            .order_by(Player.created_at, Player.id),
        )
        return cast(list[Player], list(result.scalars().all()))

    async def delete_by_room(self, room_id: UUID) -> int:
        result = await self.session.execute(
            delete(Player).where(Player.room_id == room_id),
        )
        await self.session.flush()
        return result.rowcount or 0
