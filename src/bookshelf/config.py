"""
Application configuration.

Values come from the environment; every setting has a default suitable for
local development (SQLite file, in-memory cache).
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the catalog service."""

    database_url: str = "sqlite:///bookshelf.db"
    sql_debug: bool = False

    # Version served when the Accept header names none
    default_api_version: str = "1.0"

    default_page: int = 1
    default_limit: int = 3

    # Unset means the in-process memory cache
    redis_url: Optional[str] = None
    cache_prefix: str = "bookshelf"
    cache_max_items: Optional[int] = None

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        url = os.getenv("DATABASE_URL", cls.database_url)
        # Some hosts hand out postgres:// but SQLAlchemy needs postgresql://
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)

        return cls(
            database_url=url,
            sql_debug=os.getenv("SQL_DEBUG", "false").lower() == "true",
            default_api_version=os.getenv(
                "DEFAULT_API_VERSION", cls.default_api_version
            ),
            default_page=_env_int("DEFAULT_PAGE", cls.default_page),
            default_limit=_env_int("DEFAULT_LIMIT", cls.default_limit),
            redis_url=os.getenv("REDIS_URL") or None,
            cache_prefix=os.getenv("CACHE_PREFIX", cls.cache_prefix),
            cache_max_items=_env_int("CACHE_MAX_ITEMS", None),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Get settings from the environment (read once per process)."""
    return Settings.from_env()
