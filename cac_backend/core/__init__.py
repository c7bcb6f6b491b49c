"""
Core infrastructure package for the FastAPI backend.

Provides:
- Configuration management via pydantic-settings
- FastAPI dependency injection utilities

Usage:
    from cac_backend.core import get_settings, SettingsDep
"""

from cac_backend.core.config import Settings, get_settings
from cac_backend.core.dependencies import (
    get_settings_dependency,
    get_upload_cache,
    SettingsDep,
    UploadCacheDep,
)

__all__ = [
    'Settings',
    'get_settings',
    'get_settings_dependency',
    'get_upload_cache',
    'SettingsDep',
    'UploadCacheDep',
]
