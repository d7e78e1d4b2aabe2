from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300

    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    ADMIN_COOKIE_NAME: str = "admin_token"
    MEMBER_COOKIE_NAME: str = "member_token"

    CORS_ORIGINS: list[str] = ["*"]

    CHAT_MAX_CONTENT_LENGTH: int = 4000
    CHAT_DEFAULT_SENDER_NAME: str = "Guest"
    CHAT_DEFAULT_STAFF_NAME: str = "Admin"

    LOG_LEVEL: str = "info"

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.POSTGRES_DB}"
        )

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
