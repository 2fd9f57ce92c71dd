from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from app.core.session_state import EntryStep, SessionState, SessionView


class WSActionType(str, Enum):
    PING = "ping"
    HOST_LOGIN = "host_login"
    SUBMIT_CODE = "submit_code"
    SUBMIT_NAME = "submit_name"
    REGENERATE_CODE = "regenerate_code"
    TOGGLE_OPEN = "toggle_open"
    SET_MAX_PLAYERS = "set_max_players"
    LOGOUT = "logout"

    PONG = "pong"
    STATE = "state"
    NOTIFICATION = "notification"
    ERROR = "error"


class WebSocketMessage(BaseModel):
    action: str
    data: dict[str, Any] | None = None


class WebSocketResponse(BaseModel):
    status: Literal["success", "error"]
    action: str
    data: dict[str, Any] | None = None
    error: str | None = None
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())


class HostLoginData(BaseModel):
    password: str


class SubmitCodeData(BaseModel):
    code: str


class SubmitNameData(BaseModel):
    name: str


class SetMaxPlayersData(BaseModel):
    max_players: int


class LogoutData(BaseModel):
    confirm: bool = False


class RoomStateData(BaseModel):
    is_active: bool
    max_players: int
    host_joined: bool
    access_code: str | None = None


class SessionStateData(BaseModel):
    view: SessionView
    entry_step: EntryStep | None = None
    room: RoomStateData | None = None
    player_count: int
    players: list[str] | None = None

    @classmethod
    def from_state(cls, state: SessionState) -> "SessionStateData":
        is_host = state.view == SessionView.HOST_DASHBOARD

        room = None
        if state.room is not None:
            room = RoomStateData(
                is_active=state.room.is_active,
                max_players=state.room.max_players,
                host_joined=state.room.host_joined,
                access_code=state.room.access_code if is_host else None,
            )

        return cls(
            view=state.view,
            entry_step=state.entry_step,
            room=room,
            player_count=state.player_count,
            players=[player.name for player in state.players] if is_host else None,
        )
