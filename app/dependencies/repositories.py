from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.error import MissingProvisioningError
from app.db.session import get_session
from app.models.room import Room
from app.repositories.player_repository import PlayerRepository
from app.repositories.room_repository import RoomRepository


def get_room_repository(session: AsyncSession = Depends(get_session)) -> RoomRepository:
    return RoomRepository(session)


def get_player_repository(
    session: AsyncSession = Depends(get_session),
) -> PlayerRepository:
    return PlayerRepository(session)


async def get_provisioned_room(
    room_repository: RoomRepository = Depends(get_room_repository),
) -> Room:
    room = await room_repository.get_singleton()
    if room is None:
        raise MissingProvisioningError()
    return room
