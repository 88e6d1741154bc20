from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="APP_",
        case_sensitive=False,
    )

    env: str = Field(default="development")
    debug: bool = Field(default=False)
    docs_enabled: bool = Field(default=True)
    log_level: str = Field(default="INFO")

    cors_origins: list[str] = Field(default_factory=list)
    trusted_hosts: list[str] = Field(default_factory=lambda: ["localhost", "127.0.0.1"])

    database_url: str = Field(default="sqlite+aiosqlite:///./measurements.db", min_length=1)
    database_pool_size: int = Field(default=10, ge=1, le=100)
    database_pool_timeout_seconds: float = Field(default=10.0, gt=0, le=120.0)
    database_max_pending: int | None = Field(default=None, ge=0)
    database_create_schema: bool = Field(default=True)

    retention_days: int = Field(default=30, ge=0, le=3650)
    recent_default_limit: int = Field(default=50, ge=1, le=1000)

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"


def load_settings() -> Settings:
    settings = Settings()
    if not settings.cors_origins:
        settings.cors_origins = ["*"]
    settings.log_level = settings.log_level.strip().upper() or "INFO"
    return settings
