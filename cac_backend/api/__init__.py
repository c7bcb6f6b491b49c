"""
Backend API package initialization.

This package contains FastAPI router modules for the CAC Calculator:
- uploads: CSV / Excel file parsing
- analysis: Channel/time/opportunity analysis and multi-methodology CAC
- reports: Report payload with key insights
"""

from fastapi import APIRouter

# Import router modules
from cac_backend.api.uploads import router as uploads_router
from cac_backend.api.analysis import router as analysis_router
from cac_backend.api.reports import router as reports_router

# Create main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(uploads_router, tags=["uploads"])
api_router.include_router(analysis_router, tags=["analysis"])
api_router.include_router(reports_router, tags=["reports"])

# Export all routers for selective imports
__all__ = [
    "api_router",
    "uploads_router",
    "analysis_router",
    "reports_router",
]
