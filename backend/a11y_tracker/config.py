"""
Application configuration.

Settings are read from environment variables once at import time.
A local .env file is loaded first when present.
"""
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    return int(raw) if raw else default


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings.

    Attributes:
        database_url: SQLAlchemy connection URL
        log_level: Root log level name (DEBUG, INFO, ...)
        history_limit: Max scans returned by the comparison history listing
        top_violations_limit: Size of the global violation ranking
        default_page_size: Page size for scan listings
        idempotency_ttl_hours: Lifetime of cached orchestrator responses
    """
    database_url: str
    log_level: str
    history_limit: int
    top_violations_limit: int
    default_page_size: int
    idempotency_ttl_hours: int


def load_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./a11y_tracker.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        history_limit=_int_env("HISTORY_LIMIT", 20),
        top_violations_limit=_int_env("TOP_VIOLATIONS_LIMIT", 10),
        default_page_size=_int_env("DEFAULT_PAGE_SIZE", 10),
        idempotency_ttl_hours=_int_env("IDEMPOTENCY_TTL_HOURS", 24),
    )


settings = load_settings()
