from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from app.models.time_stamp_mixin import TimeStampMixin
from app.util.validators import PLAYER_NAME_MAX_LENGTH


class Player(TimeStampMixin, SQLModel, table=True):  # type: ignore[call-arg]
    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
    )
    room_id: UUID = Field(foreign_key="room.id", index=True)
    name: str = Field(max_length=PLAYER_NAME_MAX_LENGTH)
