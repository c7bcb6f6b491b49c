"""
FastAPI router module for data file uploads.

Implements POST /upload: accepts a CSV or Excel file in the multipart field
`dataFile` and returns its parsed rows.

Response shape: { headers, data, rowCount, filename, fileType }

Identical uploads (same filename and size) within the cache TTL are served
from the upload cache without re-parsing.
"""

import logging
from typing import Optional

from fastapi import APIRouter, File, HTTPException, UploadFile

from cac_backend.core.dependencies import SettingsDep, UploadCacheDep
from cac_backend.models.schemas import UploadResponse
from cac_backend.services.ingestion import UploadCache, UploadValidationError, parse_upload


# Configure logging
logger = logging.getLogger(__name__)


# =============================================================================
# Router Definition
# =============================================================================

router = APIRouter()


# =============================================================================
# Endpoint Implementations
# =============================================================================


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    settings: SettingsDep,
    cache: UploadCacheDep,
    dataFile: Optional[UploadFile] = File(default=None),
) -> UploadResponse:
    """
    Parse an uploaded CSV or Excel file into rows.

    Args:
        dataFile: Multipart file field

    Returns:
        UploadResponse with headers, row dicts and row count

    Raises:
        HTTPException 400: No file, empty file, or unsupported file type
        HTTPException 413: File larger than the configured limit
        HTTPException 500: Unexpected parse failure
    """
    if dataFile is None or not dataFile.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    try:
        content = await dataFile.read()
        filename = dataFile.filename

        if len(content) > settings.max_upload_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File exceeds the {settings.max_upload_bytes} byte upload limit"
            )

        cache_key = UploadCache.make_key(filename, len(content))
        cached = cache.get(cache_key)
        if cached is not None:
            logger.info(f"Serving cached parse for {filename}")
            return cached

        result = parse_upload(
            filename,
            content,
            allowed_extensions=settings.allowed_upload_extensions,
        )
        cache.set(cache_key, result)

        logger.info(f"Parsed upload {filename}: {result.rowCount} rows ({result.fileType.value})")
        return result

    except HTTPException:
        raise
    except UploadValidationError as e:
        logger.warning(f"Rejected upload {dataFile.filename}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error processing upload {dataFile.filename}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to process file: {str(e)}"
        )
