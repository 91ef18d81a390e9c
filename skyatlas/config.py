"""
Configuration management for SkyAtlas.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here to avoid magic strings scattered
throughout the codebase.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class GeminiConfig:
    """Gemini generative model configuration."""
    api_key: Optional[str] = os.getenv('GEMINI_API_KEY') or None
    model: str = os.getenv('GEMINI_MODEL', 'gemini-2.5-flash')

    # Generated content changes slowly, an hour is plenty fresh
    cache_ttl_seconds: float = float(os.getenv('AI_CACHE_TTL_SECONDS', '3600'))
    max_retries: int = int(os.getenv('AI_MAX_RETRIES', '2'))
    retry_delay_seconds: float = float(os.getenv('AI_RETRY_DELAY_SECONDS', '1.0'))

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())


@dataclass(frozen=True)
class AviationStackConfig:
    """AviationStack API configuration for live flight data."""
    api_key: Optional[str] = os.getenv('AVIATIONSTACK_API_KEY') or None
    base_url: str = os.getenv('AVIATIONSTACK_BASE_URL', 'http://api.aviationstack.com/v1')
    limit: int = int(os.getenv('FLIGHT_FEED_LIMIT', '100'))

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class LiveFeedConfig:
    """Live flight feed settings."""
    cache_ttl_seconds: float = float(os.getenv('LIVE_FEED_CACHE_TTL_SECONDS', '30'))
    poll_interval: float = float(os.getenv('POLL_INTERVAL_SECONDS', '5'))


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    gemini: GeminiConfig
    aviationstack: AviationStackConfig
    live_feed: LiveFeedConfig

    # Flask settings
    secret_key: str
    debug: bool


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        gemini=GeminiConfig(),
        aviationstack=AviationStackConfig(),
        live_feed=LiveFeedConfig(),
        secret_key=os.getenv('SECRET_KEY', 'dev-key-change-in-prod'),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
    )


# Singleton instance
config = load_config()
