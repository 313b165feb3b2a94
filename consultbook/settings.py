import secrets
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000
    root_path: str = ""

    debug: bool = False
    reload: bool = False

    jwt_secret: str = secrets.token_urlsafe(64)
    internal_jwt_ttl: int = 10

    notification_url: str = ""
    notification_timeout: float = 5.0

    store_backend: Literal["sql", "memory"] = "sql"

    slot_duration: int = Field(60, gt=0, le=24 * 60)  # minutes
    slot_horizon: int = Field(14, ge=1)  # days
    cancellation_buffer: int = Field(24, ge=0)  # hours
    schedule_timezone: str = "UTC"
    materialize_interval: int = 3600  # seconds, 0 disables the background job

    database_url: str = Field(
        "sqlite+aiosqlite:///consultbook.db",
        pattern=r"^(mysql\+aiomysql|postgresql\+asyncpg|sqlite\+aiosqlite)://.*$",
    )
    pool_recycle: int = 300
    pool_size: int = 20
    max_overflow: int = 20
    sql_show_statements: bool = False

    auth_redis_url: str = Field("redis://redis:6379/0", pattern=r"^redis://.*$")

    sentry_dsn: str | None = None
    sentry_environment: str = "test"


settings = Settings()
