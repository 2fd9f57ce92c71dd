import asyncio
import contextlib
import logging
import secrets
from collections.abc import Awaitable, Callable
from uuid import UUID

from app.core.error import (
    DomainErrorCode,
    LobbyDomainError,
    LobbyValidationError,
    MissingProvisioningError,
)
from app.core.session_state import (
    AccessCodeAccepted,
    CapacityReached,
    EntryStep,
    HostLoggedOut,
    HostLoginSucceeded,
    PlayerJoined,
    PlayersUpdated,
    RoomUpdated,
    SessionEvent,
    SessionState,
    SessionView,
    SnapshotLoaded,
    reduce,
)
from app.schemas.change import ChangeEvent, ChangeTable, SubscriptionHandle
from app.schemas.notification import Notification
from app.schemas.room import RoomSnapshot, RoomUpdate
from app.services.lobby_store import RecordStore
from app.util.access_code import access_codes_match, generate_access_code
from app.util.validators import validate_max_players, validate_player_name

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionState], Awaitable[None]]
NotificationListener = Callable[[Notification], Awaitable[None]]


class SyncController:
    """One client session: reconciles change events and issues writes.

    Actions never raise domain errors to the caller. A failure becomes an
    error notification and leaves the session where it was; the next change
    event is the source of truth.

    Change events land in a per-session inbox and are applied by a
    background task, so a publishing writer never waits on this session.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        host_password: str,
        reset_access_code: str,
        on_state_change: StateListener | None = None,
        on_notification: NotificationListener | None = None,
    ):
        self.store = store
        self.host_password = host_password
        self.reset_access_code = reset_access_code
        self.on_state_change = on_state_change
        self.on_notification = on_notification

        self.state = SessionState()
        self._subscriptions: list[SubscriptionHandle] = []
        self._inbox: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        self._inbox_task: asyncio.Task[None] | None = None
        self._last_room_sequence = 0
        self._players_generation = 0

    @property
    def room_id(self) -> UUID | None:
        return self.state.room.id if self.state.room else None

    async def start(self) -> None:
        # Events published while the snapshot loads wait in the inbox and
        # are applied on top of it once the inbox task runs.
        self._subscriptions = [
            self.store.subscribe(ChangeTable.ROOM, self._enqueue),
            self.store.subscribe(ChangeTable.PLAYER, self._enqueue),
        ]

        try:
            await self._load_snapshot()
        finally:
            self._inbox_task = asyncio.create_task(self._drain_inbox())

    async def _load_snapshot(self) -> None:
        try:
            room = await self.store.get_room()
            if room is None:
                raise MissingProvisioningError()
            players = await self.store.get_players(room.id)
        except MissingProvisioningError as e:
            logger.error("Cannot load lobby: %s", e.message)
            await self._notify_error(e)
            return
        except LobbyDomainError as e:
            await self._notify_error(e)
            return

        await self._dispatch(SnapshotLoaded(room=room, players=tuple(players)))

    async def close(self) -> None:
        for handle in self._subscriptions:
            self.store.unsubscribe(handle)
        self._subscriptions = []

        if self._inbox_task is not None:
            self._inbox_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._inbox_task
            self._inbox_task = None

    async def wait_idle(self) -> None:
        """Return once every change event received so far has been applied."""
        await self._inbox.join()

    async def __aenter__(self) -> "SyncController":
        await self.start()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    async def _enqueue(self, event: ChangeEvent) -> None:
        self._inbox.put_nowait(event)

    async def _drain_inbox(self) -> None:
        while True:
            event = await self._inbox.get()
            try:
                if event.table == ChangeTable.ROOM:
                    await self._apply_room_change(event)
                else:
                    await self._apply_player_change(event)
            except Exception:
                logger.exception(
                    "Session failed to apply %s event #%d",
                    event.table.value,
                    event.sequence,
                )
            finally:
                self._inbox.task_done()

    async def _apply_room_change(self, event: ChangeEvent) -> None:
        if event.record is None or event.sequence <= self._last_room_sequence:
            return
        self._last_room_sequence = event.sequence
        room = RoomSnapshot.model_validate(event.record)
        await self._dispatch(RoomUpdated(room=room))

    async def _apply_player_change(self, event: ChangeEvent) -> None:
        if self.room_id is not None and event.room_id != self.room_id:
            return
        await self.refresh_players()

    async def refresh_players(self) -> None:
        room_id = self.room_id
        if room_id is None:
            return

        self._players_generation += 1
        generation = self._players_generation
        try:
            players = await self.store.get_players(room_id)
        except LobbyDomainError as e:
            await self._notify_error(e)
            return

        # A newer fetch was issued while this one was in flight.
        if generation != self._players_generation:
            return
        await self._dispatch(PlayersUpdated(players=tuple(players)))

    async def host_login(self, password: str) -> bool:
        try:
            self._require_view(SessionView.HOST_LOGIN)
            if not secrets.compare_digest(
                password.encode("utf-8"), self.host_password.encode("utf-8")
            ):
                raise LobbyValidationError(
                    code=DomainErrorCode.INVALID_PASSWORD,
                    message="Wrong host password",
                )
            await self.store.update_room(
                self._require_room().id,
                RoomUpdate(host_joined=True, is_active=True),
            )
        except LobbyDomainError as e:
            await self._notify_error(e)
            return False

        # The echoed room event is still queued; it reaches a committed view.
        await self._dispatch(HostLoginSucceeded())
        await self._notify_success("Host mode enabled")
        return True

    async def submit_access_code(self, code: str) -> bool:
        try:
            self._require_entry_step(EntryStep.CODE)
            room = self._require_room()
            if not room.is_active:
                raise LobbyValidationError(
                    code=DomainErrorCode.ROOM_CLOSED,
                    message="The room is not open yet",
                )
            if not access_codes_match(code, room.access_code):
                raise LobbyValidationError(
                    code=DomainErrorCode.INVALID_ACCESS_CODE,
                    message="Wrong access code",
                    details={"access_code": code},
                )
        except LobbyDomainError as e:
            await self._notify_error(e)
            return False

        await self._dispatch(AccessCodeAccepted(code=room.access_code))
        return True

    async def submit_name(self, name: str) -> bool:
        try:
            self._require_entry_step(EntryStep.NAME)
            room = self._require_room()
            trimmed = validate_player_name(name)
        except LobbyDomainError as e:
            await self._notify_error(e)
            return False

        if self.state.is_full:
            await self._dispatch(CapacityReached())
            return False

        try:
            player = await self.store.insert_player(room.id, trimmed)
        except LobbyDomainError as e:
            if e.code == DomainErrorCode.ROOM_IS_FULL:
                await self._dispatch(CapacityReached())
            await self._notify_error(e)
            return False

        await self._dispatch(PlayerJoined(player=player))
        await self._notify_success(f"Registered as {player.name}")
        return True

    async def regenerate_access_code(self) -> str | None:
        try:
            self._require_host()
            code = generate_access_code()
            await self.store.update_room(
                self._require_room().id, RoomUpdate(access_code=code)
            )
        except LobbyDomainError as e:
            await self._notify_error(e)
            return None

        await self._notify_success(f"New access code {code}")
        return code

    async def toggle_open(self) -> bool:
        try:
            self._require_host()
            room = self._require_room()
            await self.store.update_room(
                room.id, RoomUpdate(is_active=not room.is_active)
            )
        except LobbyDomainError as e:
            await self._notify_error(e)
            return False

        await self._notify_success("Room closed" if room.is_active else "Room opened")
        return True

    async def set_max_players(self, max_players: int) -> bool:
        try:
            self._require_host()
            validate_max_players(max_players)
            await self.store.update_room(
                self._require_room().id, RoomUpdate(max_players=max_players)
            )
        except LobbyDomainError as e:
            await self._notify_error(e)
            return False

        await self._notify_success(f"Player limit set to {max_players}")
        return True

    async def logout(self, *, confirmed: bool) -> bool:
        try:
            self._require_host()
            if not confirmed:
                raise LobbyValidationError(
                    code=DomainErrorCode.LOGOUT_NOT_CONFIRMED,
                    message="Logout must be confirmed",
                )
            room = self._require_room()
            await self.store.update_room(
                room.id,
                RoomUpdate(
                    host_joined=False,
                    is_active=False,
                    access_code=self.reset_access_code,
                ),
            )
            await self.store.delete_all_players(room.id)
        except LobbyDomainError as e:
            await self._notify_error(e)
            return False

        # Apply queued events while still committed so none of them can
        # re-derive the view after the reset.
        await self.wait_idle()
        await self._dispatch(HostLoggedOut())
        await self._notify_success("Room reset")
        return True

    def _require_room(self) -> RoomSnapshot:
        if self.state.room is None:
            raise MissingProvisioningError()
        return self.state.room

    def _require_view(self, view: SessionView) -> None:
        if self.state.view != view:
            raise LobbyValidationError(
                code=DomainErrorCode.INVALID_ACTION,
                message=f"Action not available in {self.state.view.value}",
                details={"view": self.state.view.value, "expected": view.value},
            )

    def _require_entry_step(self, step: EntryStep) -> None:
        if not self.state.is_entry_step(step):
            raise LobbyValidationError(
                code=DomainErrorCode.INVALID_ACTION,
                message=f"Action not available in {self.state.view.value}",
                details={"view": self.state.view.value, "expected": step.value},
            )

    def _require_host(self) -> None:
        if self.state.view != SessionView.HOST_DASHBOARD:
            raise LobbyValidationError(
                code=DomainErrorCode.NOT_HOST,
                message="Only the host can do this",
                details={"view": self.state.view.value},
            )

    async def _dispatch(self, event: SessionEvent) -> None:
        previous = self.state
        self.state = reduce(self.state, event)
        if self.state != previous and self.on_state_change:
            await self.on_state_change(self.state)

    async def _notify_success(self, message: str) -> None:
        if self.on_notification:
            await self.on_notification(Notification(level="success", message=message))

    async def _notify_error(self, error: LobbyDomainError) -> None:
        logger.debug("Action failed with %s: %s", error.code.value, error.message)
        if self.on_notification:
            await self.on_notification(
                Notification(
                    level="error", message=error.message, code=error.code.value
                )
            )
