"""
FastAPI router module for CAC analysis.

Implements:
- POST /analyze: channel performance, time trends and optimization
  opportunities over marketing + revenue rows
- POST /analyze-cac: the five CAC methodologies with data quality,
  recommendations and metadata

Response shapes:
- /analyze: { blendedCAC, totalSpend, totalCustomers, totalRevenue,
  channelPerformance, timeAnalysis, opportunities, dataQuality, rawData }
- /analyze-cac: { calculations, dataQuality, recommendations, metadata }
"""

import logging

from fastapi import APIRouter, Body, HTTPException

from cac_backend.core.dependencies import SettingsDep
from cac_backend.models.schemas import (
    AnalysisResponse,
    AnalyzeRequest,
    CACAnalysisRequest,
    CACAnalysisResponse,
)
from cac_backend.services.analysis import analyze, analyze_cac


# Configure logging
logger = logging.getLogger(__name__)


# =============================================================================
# Router Definition
# =============================================================================

router = APIRouter()


# =============================================================================
# Endpoint Implementations
# =============================================================================


@router.post("/analyze", response_model=AnalysisResponse, response_model_exclude_none=True)
async def analyze_marketing_data(
    request: AnalyzeRequest = Body(...),
) -> AnalysisResponse:
    """
    Run the channel / time / opportunity analysis.

    Args:
        request: Marketing rows (required, non-empty) and revenue rows

    Returns:
        AnalysisResponse; the input rows are echoed back as rawData

    Raises:
        HTTPException 400: No marketing rows
        HTTPException 500: Unexpected analysis failure
    """
    if not request.marketing:
        raise HTTPException(status_code=400, detail="Marketing data required")

    try:
        return analyze(request.marketing, request.revenue, include_raw=True)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error running analysis")
        raise HTTPException(
            status_code=500,
            detail=f"Analysis failed: {str(e)}"
        )


@router.post("/analyze-cac", response_model=CACAnalysisResponse)
async def analyze_customer_acquisition_cost(
    settings: SettingsDep,
    request: CACAnalysisRequest = Body(...),
) -> CACAnalysisResponse:
    """
    Compute CAC under all five methodologies.

    Args:
        request: businessModel, marketingData, revenueData and optional
            customerData, additionalCosts, analysisConfig

    Returns:
        CACAnalysisResponse

    Raises:
        HTTPException 400: marketingData or revenueData missing
        HTTPException 500: Unexpected calculation failure
    """
    if request.marketingData is None or request.revenueData is None:
        raise HTTPException(
            status_code=400,
            detail="Marketing and revenue data are required"
        )

    try:
        return analyze_cac(
            request.marketingData,
            request.revenueData,
            customer_raw=request.customerData,
            additional_costs=request.additionalCosts,
            business_model=request.businessModel,
            analysis_config=request.analysisConfig,
            contribution_margin=settings.default_contribution_margin,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error running CAC analysis")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to analyze CAC: {str(e)}"
        )
