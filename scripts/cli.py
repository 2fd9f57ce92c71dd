import asyncio
import logging
import sys

import alembic.config
import uvicorn

from app.core.config import settings
from app.db.session import init_db, provision_room

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def start_dev_server() -> None:
    logger.info("Starting development server with reload")
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)


def start_prod_server() -> None:
    logger.info("Starting production server")
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000)


def run_migrations() -> None:
    logger.info("Running migrations: upgrade head")
    alembic_args = ["upgrade", "head"]
    alembic.config.main(argv=alembic_args)
    logger.info("Migrations completed")


def rollback_migration() -> None:
    logger.info("Rolling back migration: downgrade -1")
    alembic_args = ["downgrade", "-1"]
    alembic.config.main(argv=alembic_args)
    logger.info("Migration rollback completed")


def create_migration() -> None:
    if len(sys.argv) < 2:
        logger.error("Migration message is required")
        print("Error: Migration message is required")
        print('Usage: migrate-create "your migration message"')
        sys.exit(1)

    message = sys.argv[1]
    logger.info(f"Creating migration with message: {message}")
    alembic_args = ["revision", "--autogenerate", "-m", message]
    alembic.config.main(argv=alembic_args)
    logger.info("Migration created")


def initialize_db() -> None:
    logger.info("Initializing database")
    asyncio.run(init_db())
    logger.info("Database initialization completed")


def provision_lobby_room() -> None:
    logger.info("Provisioning lobby room")
    room = asyncio.run(provision_room())
    print(f"Room {room.id} ready (access code {room.access_code})")


def run_coverage() -> None:
    from pytest import main as pytest_main

    logger.info("Running test coverage")
    sys.exit(
        pytest_main(["--cov=app", "--cov-report=term-missing", "--no-cov-on-fail"]),
    )
