from enum import Enum
from typing import Any


class DomainErrorCode(str, Enum):
    INVALID_PASSWORD = "INVALID_PASSWORD"
    INVALID_ACCESS_CODE = "INVALID_ACCESS_CODE"
    INVALID_PLAYER_NAME = "INVALID_PLAYER_NAME"
    INVALID_MAX_PLAYERS = "INVALID_MAX_PLAYERS"
    INVALID_ACTION = "INVALID_ACTION"
    LOGOUT_NOT_CONFIRMED = "LOGOUT_NOT_CONFIRMED"
    NOT_HOST = "NOT_HOST"
    ROOM_CLOSED = "ROOM_CLOSED"
    ROOM_IS_FULL = "ROOM_IS_FULL"
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    ROOM_NOT_PROVISIONED = "ROOM_NOT_PROVISIONED"
    STORE_OPERATION_FAILED = "STORE_OPERATION_FAILED"


class LobbyDomainError(Exception):
    def __init__(
        self,
        code: DomainErrorCode,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message or code.name
        self.details = details or {}
        super().__init__(self.message)


class LobbyValidationError(LobbyDomainError):
    """Rejected user input. The session stays where it is."""


class StoreOperationError(LobbyDomainError):
    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(DomainErrorCode.STORE_OPERATION_FAILED, message, details)


class MissingProvisioningError(LobbyDomainError):
    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            DomainErrorCode.ROOM_NOT_PROVISIONED,
            message or "Room record has not been provisioned",
            details,
        )
