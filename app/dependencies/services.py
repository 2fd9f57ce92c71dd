from app.core.change_feed import change_feed
from app.core.config import settings
from app.db.session import async_session
from app.services.lobby_store import LobbyStore


def get_lobby_store() -> LobbyStore:
    return LobbyStore(
        session_factory=async_session,
        change_feed=change_feed,
        enforce_capacity=settings.ENFORCE_CAPACITY_ON_INSERT,
    )
