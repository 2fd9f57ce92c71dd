from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class ChangeTable(str, Enum):
    ROOM = "room"
    PLAYER = "player"


class ChangeKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class ChangeEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    table: ChangeTable
    kind: ChangeKind
    room_id: UUID
    sequence: int
    # Full row for room events; player events carry no payload.
    record: dict[str, Any] | None = None
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())


class SubscriptionHandle(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    table: ChangeTable
