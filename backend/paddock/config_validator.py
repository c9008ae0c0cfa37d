"""
Configuration validation.

Checks settings before any work starts so a misconfigured worker refuses
to run instead of failing halfway through a day.
"""

from dataclasses import dataclass, field
from typing import Any

import httpx
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from paddock.config import Settings, get_settings
from paddock.errors import ETLError
from paddock.fetchers.base import DataFetcher
from paddock.logging_config import get_logger

logger = get_logger(__name__)

SUPPORTED_DATABASE_BACKENDS = ("sqlite", "postgresql", "postgres")


class ConfigurationError(Exception):
    """Raised when settings are unusable."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Invalid configuration: " + "; ".join(errors))


@dataclass
class ConfigValidation:
    """Outcome of ``validate``."""

    errors: list[str] = field(default_factory=list)
    summary: dict[str, Any] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors


def _validate_database(settings: Settings) -> str | None:
    if not settings.database_url:
        return "database_url is not set"
    try:
        url = make_url(settings.database_url)
    except ArgumentError:
        return "database_url is not a valid URL"
    if url.get_backend_name() not in SUPPORTED_DATABASE_BACKENDS:
        return f"Unsupported database backend: {url.get_backend_name()}"
    return None


def _validate_feed(settings: Settings) -> str | None:
    if not settings.feed_base_url:
        return "Missing feed base URL"
    try:
        url = httpx.URL(settings.feed_base_url)
    except httpx.InvalidURL:
        return "Invalid feed base URL format"
    if url.scheme not in ("http", "https") or not url.host:
        return "Invalid feed base URL format"
    if settings.feed_rate_ms < 0:
        return "Invalid feed_rate_ms setting"
    if settings.feed_retries < 0:
        return "Invalid feed_retries setting"
    if settings.feed_timeout <= 0:
        return "Invalid feed_timeout setting"
    if settings.feed_max_in_flight < 1:
        return "Invalid feed_max_in_flight setting"
    return None


def _validate_jobs(settings: Settings) -> str | None:
    if settings.job_concurrency < 1:
        return "Job concurrency must be a positive integer"
    if settings.job_max_attempts < 1:
        return "Job max attempts must be a positive integer"
    return None


def database_url_summary(database_url: str) -> str:
    """Host/port/database of a URL without credentials."""
    try:
        url = make_url(database_url)
    except ArgumentError:
        return "Invalid format"
    if url.get_backend_name() == "sqlite":
        return f"sqlite:{url.database or ':memory:'}"
    port = f":{url.port}" if url.port else ""
    return f"{url.host}{port}/{url.database or ''}"


def validate(settings: Settings | None = None) -> ConfigValidation:
    """Validate settings without raising; returns errors or a summary."""
    settings = settings or get_settings()

    checks = [
        ("Database", _validate_database(settings)),
        ("Feed", _validate_feed(settings)),
        ("Jobs", _validate_jobs(settings)),
    ]
    errors = [f"{name}: {reason}" for name, reason in checks if reason]
    if errors:
        return ConfigValidation(errors=errors)

    return ConfigValidation(summary={
        "status": "valid",
        "database": database_url_summary(settings.database_url),
        "feed": {
            "base_url": settings.feed_base_url,
            "rate_limit_ms": settings.feed_rate_ms,
            "max_in_flight": settings.feed_max_in_flight,
            "max_retries": settings.feed_retries,
        },
        "jobs": {
            "concurrency": settings.job_concurrency,
            "max_attempts": settings.job_max_attempts,
        },
        "debug": settings.debug,
    })


def validate_or_raise(settings: Settings | None = None) -> dict[str, Any]:
    """
    Validate settings, logging and raising on failure.

    Raises:
        ConfigurationError: when any check fails
    """
    result = validate(settings)
    if not result.valid:
        logger.error("Configuration validation failed", extra={"errors": result.errors})
        raise ConfigurationError(result.errors)

    logger.info("Configuration validation passed")
    return result.summary


async def _check_database(engine: AsyncEngine) -> tuple[bool, str]:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        return False, f"Connection failed: {e}"
    return True, "Connected"


async def _check_feed(client: DataFetcher) -> tuple[bool, str]:
    try:
        await client.health_check()
    except ETLError as e:
        return False, str(e)
    return True, "Reachable"


async def connectivity_test(engine: AsyncEngine, client: DataFetcher) -> tuple[bool, dict[str, tuple[bool, str]]]:
    """
    Test database and feed connectivity.

    Returns:
        (all_ok, {"database": (ok, message), "feed": (ok, message)})
    """
    results = {
        "database": await _check_database(engine),
        "feed": await _check_feed(client),
    }
    return all(ok for ok, _ in results.values()), results
