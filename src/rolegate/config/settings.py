"""
Configuration for rolegate.

Settings are read from ``ROLEGATE_``-prefixed environment variables and an
optional ``.env`` file, and decide which GrantStore and GrantCache
``create_gate`` builds.
"""
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RoleGateSettings(BaseSettings):
    """Engine settings."""

    model_config = SettingsConfigDict(
        env_prefix="ROLEGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Persistence
    store_backend: Literal["memory", "postgres"] = "memory"
    database_dsn: Optional[str] = None
    db_schema: str = "rolegate"
    db_pool_min_size: int = Field(default=1, ge=1)
    db_pool_max_size: int = Field(default=10, ge=1)
    create_schema: bool = False

    # Cache
    cache_backend: Literal["memory", "redis", "none"] = "memory"
    redis_url: Optional[str] = None
    cache_key_prefix: str = "rolegate:grants"
    cache_ttl_seconds: Optional[int] = Field(default=None, gt=0)
    cache_max_size: int = Field(default=10000, ge=1)

    # Logging
    log_level: str = "INFO"
    log_verbosity: Literal["QUIET", "NORMAL", "VERBOSE", "DEBUG"] = "NORMAL"
    log_format: Literal["simple", "detailed", "json"] = "simple"

    @field_validator("log_verbosity", mode="before")
    @classmethod
    def _upper_verbosity(cls, value):
        return value.upper() if isinstance(value, str) else value

    @field_validator("log_level")
    @classmethod
    def _valid_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache()
def get_settings() -> RoleGateSettings:
    """Get cached settings instance."""
    return RoleGateSettings()
