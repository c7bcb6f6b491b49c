"""
FastAPI application entry point for the CAC Calculator API.

Configures logging and CORS, registers the API routers under /api, and starts
the ASGI server when run directly.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cac_backend import __version__
from cac_backend.api import api_router
from cac_backend.core.config import get_settings
from cac_backend.core.dependencies import get_upload_cache

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for startup and shutdown.

    On shutdown the upload cache is cleared.
    """
    logger.info(f"{settings.app_name} API starting")

    yield

    get_upload_cache().clear()
    logger.info(f"{settings.app_name} API shutting down")


# Create FastAPI application
app = FastAPI(
    title=f"{settings.app_name} API",
    version=__version__,
    description=(
        "Customer acquisition cost analysis. Parses marketing and revenue "
        "uploads, computes CAC under five methodologies, and ranks channel "
        "optimization opportunities."
    ),
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'OK' and the service name
    """
    return {"status": "OK", "service": settings.app_name}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": f"{settings.app_name} API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cac_backend.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
