"""
FastAPI dependency injection module for the CAC Calculator backend.

Provides reusable dependencies so endpoint handlers never reach for globals
directly, which keeps them easy to test with dependency overrides.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- get_upload_cache: Returns the process-wide parsed-upload cache
- SettingsDep / UploadCacheDep: Annotated aliases for endpoint signatures

Usage Examples:
    @router.post("/upload")
    async def upload_file(
        settings: SettingsDep,
        cache: UploadCacheDep,
    ) -> UploadResponse:
        ...

    # In tests:
    app.dependency_overrides[get_upload_cache] = lambda: UploadCache(ttl_seconds=0)
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from cac_backend.core.config import Settings, get_settings
from cac_backend.services.ingestion import UploadCache


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    This is a thin wrapper around get_settings() to enable FastAPI's
    dependency override mechanism for testing.
    """
    return get_settings()


# =============================================================================
# Upload Cache Dependency
# =============================================================================

@lru_cache()
def get_upload_cache() -> UploadCache:
    """
    Return the upload cache shared by all requests in this process.

    The cache only holds parsed file contents; the metrics engine never reads
    from it, so analysis results stay a pure function of the request body.
    """
    return UploadCache(ttl_seconds=get_settings().upload_cache_ttl_seconds)


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

UploadCacheDep = Annotated[UploadCache, Depends(get_upload_cache)]
