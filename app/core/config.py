from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    PROJECT_NAME: str = "Party-Lobby"
    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str = "sqlite+aiosqlite:///./party_lobby.db"
    DB_ECHO: bool = False

    # Shared static secret. Not a real access control mechanism.
    HOST_PASSWORD: str = "1234"
    RESET_ACCESS_CODE: str = "0000"
    DEFAULT_MAX_PLAYERS: int = 4
    ENFORCE_CAPACITY_ON_INSERT: bool = True

    LOG_LEVEL: str = "INFO"

    @property
    def database_uri(self) -> str:
        return self.DATABASE_URL


class TestSettings(Settings):
    model_config = SettingsConfigDict(env_file=".env.test", extra="ignore")

    DATABASE_URL: str = "sqlite+aiosqlite://"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_test_settings() -> TestSettings:
    return TestSettings()


settings = get_settings()
