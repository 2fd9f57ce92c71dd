import re

from app.core.error import DomainErrorCode, LobbyValidationError

PLAYER_NAME_MAX_LENGTH = 32

_ACCESS_CODE_PATTERN = re.compile(r"^[0-9A-F]{4}$")


def validate_access_code(code: str) -> str:
    normalized = code.strip().upper()
    if not _ACCESS_CODE_PATTERN.match(normalized):
        raise LobbyValidationError(
            code=DomainErrorCode.INVALID_ACCESS_CODE,
            message="Access code must be 4 hexadecimal characters",
            details={
                "access_code": code,
            },
        )
    return normalized


def validate_player_name(name: str) -> str:
    trimmed = name.strip()

    if not trimmed:
        raise LobbyValidationError(
            code=DomainErrorCode.INVALID_PLAYER_NAME,
            message="Name cannot be empty",
            details={
                "name": name,
            },
        )

    if len(trimmed) > PLAYER_NAME_MAX_LENGTH:
        raise LobbyValidationError(
            code=DomainErrorCode.INVALID_PLAYER_NAME,
            message=f"Name must be {PLAYER_NAME_MAX_LENGTH} characters or less",
            details={
                "name": trimmed,
                "length": len(trimmed),
            },
        )

    return trimmed


def validate_max_players(max_players: int) -> int:
    if isinstance(max_players, bool) or not isinstance(max_players, int):
        raise LobbyValidationError(
            code=DomainErrorCode.INVALID_MAX_PLAYERS,
            message="Player limit must be an integer",
            details={
                "max_players": max_players,
            },
        )

    if max_players < 1:
        raise LobbyValidationError(
            code=DomainErrorCode.INVALID_MAX_PLAYERS,
            message="Player limit must be positive",
            details={
                "max_players": max_players,
            },
        )

    return max_players
