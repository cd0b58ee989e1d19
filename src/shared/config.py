# src/shared/config.py

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Central application settings (Pydantic v2).

    - Field names match the .env keys (case sensitive).
    - Store handle settings feed the session factory; monitoring settings feed
      the health monitor, batch updater and background worker.
    """

    # ------------------------------------------------------------------------------------
    # App / API
    # ------------------------------------------------------------------------------------
    PROJECT_NAME: str = Field(default="shop-tenancy", alias="APP_NAME")
    ENVIRONMENT: str = Field(default="dev", alias="ENV")  # dev|staging|prod
    API_V1_STR: str = Field(default="/api/v1")
    PROJECT_VERSION: str = Field(default="1.0.0")
    LOG_LEVEL: str = Field(default="INFO")
    LOG_JSON: bool = Field(default=False)

    # ------------------------------------------------------------------------------------
    # Backing store
    # ------------------------------------------------------------------------------------
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./tenancy.db",
        description="Async SQLAlchemy URL (postgresql+asyncpg or sqlite+aiosqlite)",
    )
    DATABASE_ECHO: bool = Field(default=False)
    DATABASE_POOL_SIZE: int = Field(default=5)
    DATABASE_MAX_OVERFLOW: int = Field(default=10)
    STORE_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)

    # ------------------------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------------------------
    PROVISIONING_ATOMIC: bool = Field(default=False)
    DEFAULT_ALERT_CHANNELS: List[str] = Field(default_factory=lambda: ["dashboard", "email"])

    # ------------------------------------------------------------------------------------
    # Monitoring / alerting / backup
    # ------------------------------------------------------------------------------------
    HEALTH_CHECK_CONCURRENCY: int = Field(default=8, ge=1)
    HEALTH_CHECK_INTERVAL_SECONDS: int = Field(default=300, ge=1)
    BATCH_UPDATE_CONCURRENCY: int = Field(default=8, ge=1)
    ALERT_PERSIST_ATTEMPTS: int = Field(default=2, ge=1)
    BACKUP_RECENT_ORDERS_LIMIT: int = Field(default=100, ge=0)

    # ------------------------------------------------------------------------------------
    # Helper properties
    # ------------------------------------------------------------------------------------
    @property
    def is_dev(self) -> bool:
        return self.ENVIRONMENT.lower() in {"dev", "development", "local"}

    @property
    def is_prod(self) -> bool:
        return self.ENVIRONMENT.lower() in {"prod", "production"}

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    # ------------------------------------------------------------------------------------
    # Pydantic v2 settings config
    # ------------------------------------------------------------------------------------
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "populate_by_name": True,   # enable aliases
        "extra": "ignore",          # don't crash on unrelated env keys
    }


@lru_cache()
def get_settings() -> Settings:
    return Settings()
