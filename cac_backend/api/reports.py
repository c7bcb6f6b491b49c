"""
FastAPI router module for report data.

Implements POST /generate-report-data, which assembles everything the browser
needs to render an exported report: business configuration, key metrics, the
CAC breakdown from a previous /analyze-cac call, channel and time analysis,
and key insights.
"""

import logging

from fastapi import APIRouter, Body, HTTPException

from cac_backend.models.schemas import ReportDataRequest, ReportDataResponse
from cac_backend.services.insights import build_report_data


# Configure logging
logger = logging.getLogger(__name__)


router = APIRouter()


@router.post("/generate-report-data", response_model=ReportDataResponse)
async def generate_report_data(
    request: ReportDataRequest = Body(...),
) -> ReportDataResponse:
    """
    Build the report payload.

    Every field of the request is optional; sections without input are empty.
    """
    try:
        return build_report_data(request)

    except Exception as e:
        logger.exception("Error generating report data")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to generate report data: {str(e)}"
        )
