"""Configuration management using pydantic-settings."""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Upstream fixtures API
    api_base_url: str = "https://sport-scheduler-backend.onrender.com/api"
    request_timeout_seconds: Optional[float] = 30.0

    # Cache settings
    # 10 minutes matches the upstream's own refresh cadence
    cache_ttl_seconds: int = 600
    # Maximum age of an entry still used as a fallback after a failed fetch.
    # None keeps every previously cached entry eligible.
    max_stale_seconds: Optional[int] = None

    # Live polling
    live_poll_interval_seconds: float = 30.0

    # Initial selection
    default_competition: str = "premier-league"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "MATCHFEED_"


settings = Settings()
