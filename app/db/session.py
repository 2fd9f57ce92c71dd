import logging
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.core.config import settings
from app.models.player import Player  # noqa: F401
from app.models.room import Room
from app.repositories.room_repository import RoomRepository

logger = logging.getLogger(__name__)

engine = create_async_engine(
    settings.database_uri,
    echo=settings.DB_ECHO,
    future=True,
)

async_session = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        yield session


async def init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def provision_room(
    session_factory: async_sessionmaker[AsyncSession] = async_session,
) -> Room:
    """Create the singleton room if it does not exist yet."""
    async with session_factory() as session:
        room_repository = RoomRepository(session)
        existing = await room_repository.get_singleton()
        if existing:
            logger.info("Room %s already provisioned", existing.id)
            return existing

        room = await room_repository.create(
            Room(
                access_code=settings.RESET_ACCESS_CODE,
                is_active=False,
                max_players=settings.DEFAULT_MAX_PLAYERS,
                host_joined=False,
            )
        )
        await session.commit()
        logger.info("Provisioned room %s", room.id)
        return room
