from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Настройки приложения, загружаемые из переменных окружения.
    """
    POSTGRES_HOST: Optional[str] = None
    POSTGRES_PORT: Optional[int] = None
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: Optional[str] = None

    # Полный DSN имеет приоритет над POSTGRES_* (например, sqlite+aiosqlite для локального запуска)
    DATABASE_URL: Optional[str] = None
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_COMMAND_TIMEOUT: float = 10.0
    CREATE_SCHEMA: bool = False

    AUTH_SECRET: str = "change-me"
    AUTH_SALT: str = "pvz-api-session"
    TOKEN_TTL_SECONDS: int = 12 * 60 * 60

    HTTP_HOST: str = "0.0.0.0"
    HTTP_PORT: int = 8080

    LOG_LEVEL: str = "INFO"
    SLOW_REQUEST_SECONDS: float = 1.0

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )
