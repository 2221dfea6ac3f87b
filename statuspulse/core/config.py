from __future__ import annotations

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: AnyUrl = Field(default="postgresql+asyncpg://localhost/statuspulse")
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8000, ge=1, le=65535)
    base_url: str = "http://localhost:8000"
    checker_concurrency: int = Field(default=20, ge=1)
    evaluation_interval_sec: float = Field(default=60.0, gt=0)
    check_user_agent: str = "statuspulse/1.0"
    webhook_timeout_sec: float = Field(default=10.0, gt=0)
    # probe identifier -> async DSN, e.g. {"orders": "postgresql+asyncpg://..."}
    database_probes: dict[str, str] = Field(default_factory=dict)
    database_close_timeout_sec: float = Field(default=2.0, gt=0)
    report_window_hours: int = Field(default=24, ge=1)
    report_points: int = Field(default=90, ge=2)
    check_retention_days: int = Field(default=0, ge=0)
    log_level: str = "INFO"

    # ENV-only configuration
    model_config = SettingsConfigDict(env_prefix="")


settings = Settings()
