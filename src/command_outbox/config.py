from __future__ import annotations

from typing import Literal

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

    REDIS_URL: str = "redis://localhost:6379/0"

    OUTBOX_COMMANDS_STREAM: str = "process_manager.commands"
    OUTBOX_COMMANDS_STREAM_MAXLEN: int | None = None
    OUTBOX_SCHEDULED_KEY: str = "process_manager.scheduled_commands"

    OUTBOX_SWEEP_INTERVAL: float = 30.0
    OUTBOX_SWEEP_PROBE_LIMIT: int = 1
    # "package.module:ClassName" of every pydantic command the serializer must know.
    OUTBOX_COMMAND_TYPES: list[str] = []

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

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
