from pydantic_settings import BaseSettings
from pydantic import field_validator
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    Environment variables can come from:
    - .env file (local overrides)
    - System environment

    Variable names are the upper-cased field names:
    - API_BASE_URL, WAVE_ID (for the remote voting API)
    - REFRESH_INTERVAL_MS, BOOST_FRACTION (for the allocation engine)
    """

    # Remote voting API
    api_base_url: str = "https://api.6529.io/api"
    wave_id: str = ""
    user_agent: str = "MEMEAMP/1.0 httpx"

    # None keeps the remote calls without a client-side deadline
    http_timeout_seconds: Optional[float] = None

    # Refresh throttling
    refresh_interval_ms: int = 30_000
    zero_credit_on_refresh_failure: bool = True

    # Allocation rules
    boost_fraction: float = 0.1
    max_category_length: int = 100

    # Playlist
    playlist_size: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra env vars

    @field_validator('api_base_url', mode='before')
    @classmethod
    def strip_trailing_slash(cls, v):
        """Paths are joined with a leading slash"""
        if isinstance(v, str):
            return v.rstrip('/')
        return v

    @field_validator('refresh_interval_ms')
    @classmethod
    def check_refresh_interval(cls, v):
        if v <= 0:
            raise ValueError("refresh_interval_ms must be positive")
        return v

    @field_validator('boost_fraction')
    @classmethod
    def check_boost_fraction(cls, v):
        if not 0 < v <= 1:
            raise ValueError("boost_fraction must be in (0, 1]")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
