"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TRADECORE_",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"

    # Per-user limits and strategy parameters (trading.yaml)
    trading_config_path: str = "trading.yaml"

    # Market data
    default_timeframe: str = "1h"
    bar_limit: int = 300

    # Signals below this confidence never become orders
    min_confidence: float = 0.6


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
