from typing import ClassVar
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from app.models.time_stamp_mixin import TimeStampMixin


class Room(TimeStampMixin, SQLModel, table=True):  # type: ignore[call-arg]
    RECOMMENDED_MAX_PLAYERS: ClassVar[tuple[int, ...]] = (2, 4, 8, 16, 32)

    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
    )
    access_code: str = Field(max_length=4)
    is_active: bool = Field(default=False)
    max_players: int = Field(default=4)
    host_joined: bool = Field(default=False)
