"""Library configuration using pydantic-settings.

Database and logging settings are read from the environment (or a ``.env``
file) through the ``settings`` object rather than ``os.getenv()`` calls spread
across modules.
"""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./ormkit.db"
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_recycle: int = 3600  # seconds

    # Statements slower than this are logged at WARNING; 0 disables
    slow_query_threshold: float = 1.0

    # Logging
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("db_pool_size")
    @classmethod
    def validate_pool_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("db_pool_size must be at least 1")
        return v

    @field_validator("slow_query_threshold")
    @classmethod
    def validate_slow_query_threshold(cls, v: float) -> float:
        if v < 0:
            raise ValueError("slow_query_threshold cannot be negative")
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
