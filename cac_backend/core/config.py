"""
Settings and environment management module for the CAC Calculator backend.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for development
- Singleton pattern via @lru_cache for efficient access

Environment Variables:
- APP_NAME: Service name reported by /health (default: CAC Calculator Pro)
- CORS_ORIGINS: JSON list of allowed browser origins
- MAX_UPLOAD_BYTES: Upload size limit (default: 50 MiB)
- UPLOAD_CACHE_TTL_SECONDS: Lifetime of cached upload parses (default: 300)
- LOG_LEVEL: Root log level (default: INFO)

Usage:
    from cac_backend.core.config import get_settings

    settings = get_settings()
    ttl = settings.upload_cache_ttl_seconds
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Service name used in the health check and OpenAPI title.
        cors_origins: Origins allowed to call the API from a browser.
        max_upload_bytes: Largest accepted upload; larger files are rejected.
        upload_cache_ttl_seconds: How long a parsed upload stays in the cache.
        allowed_upload_extensions: File extensions accepted by /api/upload.
        default_contribution_margin: Margin used by contribution-margin CAC.
        log_level: Level passed to logging.basicConfig.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Service
    # =========================================================================

    app_name: str = 'CAC Calculator Pro'

    cors_origins: List[str] = [
        'http://localhost:3000',
        'http://127.0.0.1:3000',
    ]

    log_level: str = 'INFO'

    # =========================================================================
    # Uploads
    # =========================================================================

    # 50 MiB
    max_upload_bytes: int = 50 * 1024 * 1024

    # Parsed uploads are reused for identical filename + size within this window
    upload_cache_ttl_seconds: int = 300

    allowed_upload_extensions: List[str] = ['csv', 'xlsx', 'xls']

    # =========================================================================
    # Engine Defaults
    # =========================================================================

    # Contribution-margin CAC divides by customers x margin
    default_contribution_margin: float = 0.5


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The cached settings instance.

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
