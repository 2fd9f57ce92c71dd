import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.endpoints import api_router
from app.core.change_feed import change_feed
from app.core.config import settings
from app.core.error import DomainErrorCode, LobbyDomainError
from app.core.lobby_connection_manager import lobby_manager
from app.dependencies.services import get_lobby_store
from app.schemas.common import BaseResponse

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Single-room party lobby with live room and player sync",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.on_event("startup")
async def on_startup() -> None:
    try:
        room = await get_lobby_store().get_room()
    except LobbyDomainError as e:
        logger.error("Could not read lobby room on startup: %s", e.message)
        return

    if room is None:
        logger.error(
            "No room record provisioned; run `provision-room` before players connect"
        )
    else:
        logger.info("Serving lobby room %s", room.id)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await lobby_manager.close_all()
    change_feed.clear()


@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> BaseResponse:
    return BaseResponse(message="healthy")


@app.exception_handler(LobbyDomainError)
async def lobby_domain_error_handler(
    _request: Request,
    exc: LobbyDomainError,
) -> JSONResponse:
    domain_error_code_mapper = {
        DomainErrorCode.INVALID_PASSWORD: status.HTTP_401_UNAUTHORIZED,
        DomainErrorCode.INVALID_ACCESS_CODE: status.HTTP_422_UNPROCESSABLE_ENTITY,
        DomainErrorCode.INVALID_PLAYER_NAME: status.HTTP_422_UNPROCESSABLE_ENTITY,
        DomainErrorCode.INVALID_MAX_PLAYERS: status.HTTP_422_UNPROCESSABLE_ENTITY,
        DomainErrorCode.INVALID_ACTION: status.HTTP_400_BAD_REQUEST,
        DomainErrorCode.LOGOUT_NOT_CONFIRMED: status.HTTP_400_BAD_REQUEST,
        DomainErrorCode.NOT_HOST: status.HTTP_403_FORBIDDEN,
        DomainErrorCode.ROOM_CLOSED: status.HTTP_400_BAD_REQUEST,
        DomainErrorCode.ROOM_IS_FULL: status.HTTP_400_BAD_REQUEST,
        DomainErrorCode.ROOM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
        DomainErrorCode.PLAYER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
        DomainErrorCode.ROOM_NOT_PROVISIONED: status.HTTP_404_NOT_FOUND,
        DomainErrorCode.STORE_OPERATION_FAILED: status.HTTP_503_SERVICE_UNAVAILABLE,
    }
    status_code = domain_error_code_mapper.get(
        exc.code,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            {
                "detail": exc.message,
                "code": exc.code,
                "error_details": exc.details,
            }
        ),
    )
