from fastapi import APIRouter, Depends, status

from app.dependencies.repositories import get_player_repository, get_provisioned_room
from app.models.room import Room
from app.repositories.player_repository import PlayerRepository
from app.schemas.room import LobbyResponse

router = APIRouter()


@router.get(
    "",
    response_model=LobbyResponse,
    status_code=status.HTTP_200_OK,
)
async def read_lobby(
    room: Room = Depends(get_provisioned_room),
    player_repository: PlayerRepository = Depends(get_player_repository),
) -> LobbyResponse:
    player_count = await player_repository.count(room_id=room.id)

    return LobbyResponse(
        is_active=room.is_active,
        max_players=room.max_players,
        host_joined=room.host_joined,
        player_count=player_count,
        recommended_max_players=list(Room.RECOMMENDED_MAX_PLAYERS),
    )
