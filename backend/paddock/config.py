"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="PADDOCK_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Application
    app_name: str = "Paddock"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./data/paddock.db"

    # TAB feed
    feed_base_url: str = "https://json.tab.co.nz"
    feed_rate_ms: int = 350  # minimum gap between requests, shared per process
    feed_max_in_flight: int = 2  # concurrent requests allowed by the shared limiter
    feed_retries: int = 3
    feed_timeout: float = 15.0  # seconds
    user_agent: str = "Mozilla/5.0 (compatible; PaddockBot/1.0)"
    default_country: str = "NZ"

    # Jobs
    job_max_attempts: int = 5
    job_concurrency: int = 5


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
