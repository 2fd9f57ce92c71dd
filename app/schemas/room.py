from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from app.util.validators import validate_access_code, validate_max_players


class RoomSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: UUID
    access_code: str
    is_active: bool
    max_players: int
    host_joined: bool


class PlayerSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: UUID
    room_id: UUID
    name: str


class RoomUpdate(BaseModel):
    access_code: str | None = None
    is_active: bool | None = None
    max_players: int | None = None
    host_joined: bool | None = None

    @field_validator("access_code")
    @classmethod
    def validate_access_code(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return validate_access_code(v)

    @field_validator("max_players")
    @classmethod
    def validate_max_players(cls, v: int | None) -> int | None:
        if v is None:
            return v
        return validate_max_players(v)

    def changed_fields(self) -> dict[str, object]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class LobbyResponse(BaseModel):
    is_active: bool
    max_players: int
    host_joined: bool
    player_count: int
    recommended_max_players: list[int]
