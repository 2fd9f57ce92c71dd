"""Per-client view state and the reducer that drives it.

A session is rebuilt from immutable snapshots only; nothing here touches
the store. ``reduce`` is pure so every transition can be exercised
without a database or a socket.
"""

from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from app.schemas.room import PlayerSnapshot, RoomSnapshot
from app.util.access_code import access_codes_match


class SessionView(str, Enum):
    LOADING = "loading"
    HOST_LOGIN = "host_login"
    PLAYER_ENTRY = "player_entry"
    LOBBY = "lobby"
    FULL = "full"
    HOST_DASHBOARD = "host_dashboard"


class EntryStep(str, Enum):
    CODE = "code"
    NAME = "name"


COMMITTED_VIEWS = frozenset({SessionView.LOBBY, SessionView.HOST_DASHBOARD})


class SessionState(BaseModel):
    model_config = ConfigDict(frozen=True)

    view: SessionView = SessionView.LOADING
    entry_step: EntryStep | None = None
    room: RoomSnapshot | None = None
    players: tuple[PlayerSnapshot, ...] = ()
    # Access code the player validated before moving to the name step.
    accepted_code: str | None = None

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def is_committed(self) -> bool:
        return self.view in COMMITTED_VIEWS

    @property
    def is_full(self) -> bool:
        return self.room is not None and self.player_count >= self.room.max_players

    def is_entry_step(self, step: EntryStep) -> bool:
        return self.view == SessionView.PLAYER_ENTRY and self.entry_step == step


class SessionEvent(BaseModel):
    model_config = ConfigDict(frozen=True)


class SnapshotLoaded(SessionEvent):
    room: RoomSnapshot
    players: tuple[PlayerSnapshot, ...] = ()


class RoomUpdated(SessionEvent):
    room: RoomSnapshot


class PlayersUpdated(SessionEvent):
    players: tuple[PlayerSnapshot, ...]


class HostLoginSucceeded(SessionEvent):
    pass


class AccessCodeAccepted(SessionEvent):
    code: str


class PlayerJoined(SessionEvent):
    player: PlayerSnapshot


class CapacityReached(SessionEvent):
    pass


class HostLoggedOut(SessionEvent):
    pass


def derive_view(
    room: RoomSnapshot, player_count: int
) -> tuple[SessionView, EntryStep | None]:
    if not room.host_joined:
        return SessionView.HOST_LOGIN, None
    if player_count >= room.max_players:
        return SessionView.FULL, None
    return SessionView.PLAYER_ENTRY, EntryStep.CODE


def _apply_snapshot(
    state: SessionState,
    room: RoomSnapshot | None,
    players: tuple[PlayerSnapshot, ...],
) -> SessionState:
    updated = state.model_copy(update={"room": room, "players": players})
    if state.is_committed or room is None:
        return updated

    view, step = derive_view(room, len(players))
    accepted_code = None

    if (
        view == SessionView.PLAYER_ENTRY
        and state.is_entry_step(EntryStep.NAME)
        and state.accepted_code is not None
        and access_codes_match(state.accepted_code, room.access_code)
    ):
        step = EntryStep.NAME
        accepted_code = state.accepted_code

    return updated.model_copy(
        update={"view": view, "entry_step": step, "accepted_code": accepted_code}
    )


def _on_snapshot_loaded(state: SessionState, event: SnapshotLoaded) -> SessionState:
    return _apply_snapshot(state, event.room, event.players)


def _on_room_updated(state: SessionState, event: RoomUpdated) -> SessionState:
    return _apply_snapshot(state, event.room, state.players)


def _on_players_updated(state: SessionState, event: PlayersUpdated) -> SessionState:
    return _apply_snapshot(state, state.room, event.players)


def _on_host_login(state: SessionState, _: HostLoginSucceeded) -> SessionState:
    if state.is_committed:
        return state
    return state.model_copy(
        update={
            "view": SessionView.HOST_DASHBOARD,
            "entry_step": None,
            "accepted_code": None,
        }
    )


def _on_code_accepted(state: SessionState, event: AccessCodeAccepted) -> SessionState:
    if not state.is_entry_step(EntryStep.CODE):
        return state
    if state.is_full:
        return state.model_copy(
            update={"view": SessionView.FULL, "entry_step": None}
        )
    return state.model_copy(
        update={"entry_step": EntryStep.NAME, "accepted_code": event.code.upper()}
    )


def _on_player_joined(state: SessionState, event: PlayerJoined) -> SessionState:
    if state.is_committed:
        return state

    players = state.players
    if all(player.id != event.player.id for player in players):
        players = (*players, event.player)

    return state.model_copy(
        update={
            "view": SessionView.LOBBY,
            "entry_step": None,
            "accepted_code": None,
            "players": players,
        }
    )


def _on_capacity_reached(state: SessionState, _: CapacityReached) -> SessionState:
    if state.view != SessionView.PLAYER_ENTRY:
        return state
    return state.model_copy(
        update={"view": SessionView.FULL, "entry_step": None, "accepted_code": None}
    )


def _on_host_logged_out(state: SessionState, _: HostLoggedOut) -> SessionState:
    if state.view != SessionView.HOST_DASHBOARD:
        return state
    return state.model_copy(
        update={
            "view": SessionView.HOST_LOGIN,
            "entry_step": None,
            "accepted_code": None,
            "players": (),
        }
    )


_HANDLERS: dict[type[SessionEvent], Callable[[SessionState, Any], SessionState]] = {
    SnapshotLoaded: _on_snapshot_loaded,
    RoomUpdated: _on_room_updated,
    PlayersUpdated: _on_players_updated,
    HostLoginSucceeded: _on_host_login,
    AccessCodeAccepted: _on_code_accepted,
    PlayerJoined: _on_player_joined,
    CapacityReached: _on_capacity_reached,
    HostLoggedOut: _on_host_logged_out,
}


def reduce(state: SessionState, event: SessionEvent) -> SessionState:
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unsupported session event: {type(event).__name__}")
    return handler(state, event)
