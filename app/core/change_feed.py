import logging
from collections.abc import Awaitable, Callable
from typing import Any
from uuid import UUID

from app.schemas.change import ChangeEvent, ChangeKind, ChangeTable, SubscriptionHandle

logger = logging.getLogger(__name__)

ChangeListener = Callable[[ChangeEvent], Awaitable[None]]


class ChangeFeed:
    """In-process publish/subscribe channel keyed by table.

    Delivery is best-effort: a listener that raises is logged and skipped,
    the remaining listeners and the publisher are unaffected.
    """

    def __init__(self) -> None:
        self.subscribers: dict[ChangeTable, dict[UUID, ChangeListener]] = {
            table: {} for table in ChangeTable
        }
        self._sequence = 0

    def subscribe(
        self, table: ChangeTable, listener: ChangeListener
    ) -> SubscriptionHandle:
        handle = SubscriptionHandle(table=table)
        self.subscribers[table][handle.id] = listener
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        self.subscribers[handle.table].pop(handle.id, None)

    def subscriber_count(self, table: ChangeTable) -> int:
        return len(self.subscribers[table])

    async def publish(
        self,
        table: ChangeTable,
        kind: ChangeKind,
        room_id: UUID,
        record: dict[str, Any] | None = None,
    ) -> ChangeEvent:
        self._sequence += 1
        event = ChangeEvent(
            table=table,
            kind=kind,
            room_id=room_id,
            sequence=self._sequence,
            record=record,
        )

        # Copy so listeners may unsubscribe while being notified.
        for handle_id, listener in list(self.subscribers[table].items()):
            try:
                await listener(event)
            except Exception:
                logger.exception(
                    "Change listener %s failed on %s event #%d",
                    handle_id,
                    table.value,
                    event.sequence,
                )

        return event

    def clear(self) -> None:
        for listeners in self.subscribers.values():
            listeners.clear()


change_feed = ChangeFeed()
