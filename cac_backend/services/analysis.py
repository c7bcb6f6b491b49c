"""
Analysis Orchestration Service

Entry points that run the metrics engine end to end over raw request rows:

- analyze(): core totals, channel performance, time buckets and trends,
  prioritized opportunities, and a coarse data-quality summary.
- analyze_cac(): the five CAC methodologies with data quality,
  recommendations and metadata.

Both are pure: results depend only on the arguments, and every call builds
its own working state.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from cac_backend.models.schemas import (
    AdditionalCosts,
    AnalysisDataQuality,
    AnalysisResponse,
    CACAnalysisResponse,
    RawRow,
)
from cac_backend.services.cac_methods import (
    DEFAULT_CONTRIBUTION_MARGIN,
    assess_data_quality,
    build_metadata,
    calculate_all_methodologies,
    generate_recommendations,
)
from cac_backend.services.channel_performance import analyze_channel_performance
from cac_backend.services.normalization import (
    MarketingRow,
    RevenueRow,
    normalize_customer_records,
    normalize_marketing_rows,
    normalize_revenue_rows,
    round_half_up,
    safe_divide,
)
from cac_backend.services.opportunities import identify_optimization_opportunities
from cac_backend.services.time_analysis import analyze_time_performance

logger = logging.getLogger(__name__)

# Fields whose presence anywhere in the input counts toward basic completeness
MARKETING_QUALITY_FIELDS: List[str] = ['date', 'channel', 'spend']
REVENUE_QUALITY_FIELDS: List[str] = ['date', 'revenue']


# =============================================================================
# Core Metrics
# =============================================================================

def calculate_core_metrics(
    marketing: Sequence[MarketingRow],
    revenue: Sequence[RevenueRow]
) -> Dict[str, float]:
    """
    Headline totals for the analyze endpoint.

    Customers come from the marketing rows here (conversions), unlike the CAC
    methodologies which count revenue-side customers.
    """
    spend = sum(row.spend for row in marketing)
    customers = sum(row.customers for row in marketing)
    total_revenue = sum(row.revenue for row in revenue)

    return {
        'blendedCAC': round_half_up(safe_divide(spend, customers), 2),
        'totalSpend': round_half_up(spend, 2),
        'totalCustomers': round_half_up(customers, 2),
        'totalRevenue': round_half_up(total_revenue, 2),
    }


def _field_presence(rows: Sequence[RawRow], fields: Sequence[str]) -> float:
    # Share of `fields` that appear with a non-empty value in at least one row
    present = 0
    for name in fields:
        if any(row.get(name) not in (None, '') for row in rows):
            present += 1
    return present / len(fields)


def assess_basic_data_quality(
    marketing_raw: Sequence[RawRow],
    revenue_raw: Sequence[RawRow]
) -> AnalysisDataQuality:
    """Field-presence completeness as a 'NN%' string plus row counts."""
    marketing_completeness = _field_presence(marketing_raw, MARKETING_QUALITY_FIELDS)
    revenue_completeness = (
        _field_presence(revenue_raw, REVENUE_QUALITY_FIELDS) if revenue_raw else 0.0
    )
    completeness = (marketing_completeness + revenue_completeness) / 2 * 100

    return AnalysisDataQuality(
        completeness=f"{int(round_half_up(completeness))}%",
        marketingRows=len(marketing_raw),
        revenueRows=len(revenue_raw),
    )


# =============================================================================
# Entry Points
# =============================================================================

def analyze(
    marketing_raw: Sequence[RawRow],
    revenue_raw: Sequence[RawRow],
    include_raw: bool = True
) -> AnalysisResponse:
    """
    Run the full channel/time/opportunity analysis.

    Args:
        marketing_raw: Raw marketing rows from the request body
        revenue_raw: Raw revenue rows from the request body
        include_raw: Echo the input rows back as rawData for charting

    Returns:
        AnalysisResponse
    """
    marketing = normalize_marketing_rows(marketing_raw)
    revenue = normalize_revenue_rows(revenue_raw)

    logger.info(
        f"Running analysis on {len(marketing)} marketing rows and {len(revenue)} revenue rows"
    )

    core = calculate_core_metrics(marketing, revenue)
    channel_performance = analyze_channel_performance(marketing, revenue)
    time_analysis = analyze_time_performance(marketing, revenue)
    opportunities = identify_optimization_opportunities(channel_performance)

    raw_data = None
    if include_raw:
        raw_data = {'marketing': list(marketing_raw), 'revenue': list(revenue_raw)}

    return AnalysisResponse(
        **core,
        channelPerformance=channel_performance,
        timeAnalysis=time_analysis,
        opportunities=opportunities,
        dataQuality=assess_basic_data_quality(marketing_raw, revenue_raw),
        rawData=raw_data,
    )


def analyze_cac(
    marketing_raw: Sequence[RawRow],
    revenue_raw: Sequence[RawRow],
    customer_raw: Optional[Sequence[RawRow]] = None,
    additional_costs: Optional[AdditionalCosts] = None,
    business_model: Any = None,
    analysis_config: Optional[Mapping[str, Any]] = None,
    contribution_margin: float = DEFAULT_CONTRIBUTION_MARGIN
) -> CACAnalysisResponse:
    """
    Compute all five CAC methodologies with quality and recommendations.

    Args:
        marketing_raw: Raw marketing rows
        revenue_raw: Raw revenue rows
        customer_raw: Optional customer-level rows (LTV)
        additional_costs: Team/tool/overhead costs for fully-loaded CAC
        business_model: Echoed back in metadata
        analysis_config: Only `timeRange` is read, for metadata
        contribution_margin: Margin for contribution-margin CAC

    Returns:
        CACAnalysisResponse
    """
    marketing = normalize_marketing_rows(marketing_raw)
    revenue = normalize_revenue_rows(revenue_raw)
    customers = normalize_customer_records(customer_raw or [])

    calculations = calculate_all_methodologies(
        marketing,
        revenue,
        customers=customers,
        additional_costs=additional_costs,
        contribution_margin=contribution_margin,
    )
    data_quality = assess_data_quality(marketing_raw, revenue_raw)
    recommendations = generate_recommendations(calculations, data_quality)
    metadata = build_metadata(calculations, data_quality, business_model, analysis_config)

    logger.info(
        f"CAC analysis complete: simple={calculations.simpleBlended.value}, "
        f"fully_loaded={calculations.fullyLoaded.value}, confidence={metadata.confidence}"
    )

    return CACAnalysisResponse(
        calculations=calculations,
        dataQuality=data_quality,
        recommendations=recommendations,
        metadata=metadata,
    )


__all__ = [
    'MARKETING_QUALITY_FIELDS',
    'REVENUE_QUALITY_FIELDS',
    'calculate_core_metrics',
    'assess_basic_data_quality',
    'analyze',
    'analyze_cac',
]
