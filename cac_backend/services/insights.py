"""
Report Data Service

Assembles the report payload used by the browser to render exports:
business configuration, headline metrics, the CAC breakdown from a previous
analyze-cac call, per-channel and time analysis, and a short list of key
insights.

Key insights:
- methodology: warning when the spread of the single-value CAC methodologies
  exceeds half of their mean
- channel: best and worst channel by CAC (needs 2+ channels)
- data-quality: warning below 80 overall, success above 95
"""

from datetime import datetime
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from cac_backend.models.enums import InsightLevel
from cac_backend.models.schemas import (
    BusinessConfig,
    CACAnalysisResponse,
    ChannelStats,
    KeyInsight,
    KeyMetrics,
    RawRow,
    ReportDataRequest,
    ReportDataResponse,
    ReportSummary,
)
from cac_backend.services.channel_performance import analyze_channel_performance
from cac_backend.services.normalization import (
    normalize_marketing_rows,
    normalize_revenue_rows,
    safe_divide,
)
from cac_backend.services.time_analysis import analyze_time_performance

logger = logging.getLogger(__name__)

CAC_VARIANCE_THRESHOLD: float = 0.5
DATA_QUALITY_WARNING_BELOW: float = 80.0
DATA_QUALITY_SUCCESS_ABOVE: float = 95.0

NOT_SPECIFIED: str = 'Not specified'
REPORT_DATE_FORMAT: str = '%B %d, %Y'


# =============================================================================
# Key Insights
# =============================================================================

def methodology_insight(results: CACAnalysisResponse) -> Optional[KeyInsight]:
    calculations = results.calculations
    values = [
        calculations.simpleBlended.value,
        calculations.fullyLoaded.value,
        calculations.contributionMargin.value,
    ]
    mean = sum(values) / len(values)
    spread = max(values) - min(values)

    if spread <= mean * CAC_VARIANCE_THRESHOLD:
        return None

    return KeyInsight(
        type='methodology',
        level=InsightLevel.WARNING,
        title='High CAC Variance Detected',
        description=(
            f"CAC calculations vary significantly ({spread:.2f} range). This suggests "
            "different attribution models reveal different efficiency stories."
        ),
        recommendation=(
            'Focus on the Fully-Loaded CAC for budget planning and Simple Blended '
            'for quick benchmarks.'
        ),
    )


def channel_insight(channel_analysis: Mapping[str, ChannelStats]) -> Optional[KeyInsight]:
    if len(channel_analysis) < 2:
        return None

    ranked = sorted(channel_analysis.items(), key=lambda item: item[1].cac)
    best_name, best = ranked[0]
    worst_name, worst = ranked[-1]

    return KeyInsight(
        type='channel',
        level=InsightLevel.SUCCESS,
        title='Channel Performance Analysis',
        description=(
            f"{best_name} has the lowest CAC at ${best.cac:.2f}, while {worst_name} "
            f"has the highest at ${worst.cac:.2f}."
        ),
        recommendation=(
            f"Consider reallocating budget from {worst_name} to {best_name} "
            "for improved efficiency."
        ),
    )


def data_quality_insight(results: CACAnalysisResponse) -> Optional[KeyInsight]:
    overall = results.dataQuality.overall

    if overall < DATA_QUALITY_WARNING_BELOW:
        return KeyInsight(
            type='data-quality',
            level=InsightLevel.WARNING,
            title='Data Quality Concerns',
            description=(
                f"Overall data quality is {overall:.1f}%. This may impact calculation accuracy."
            ),
            recommendation=(
                'Review data collection processes and consider data cleaning before '
                'final analysis.'
            ),
        )

    if overall > DATA_QUALITY_SUCCESS_ABOVE:
        return KeyInsight(
            type='data-quality',
            level=InsightLevel.SUCCESS,
            title='Excellent Data Quality',
            description=(
                f"Data quality score of {overall:.1f}% indicates highly reliable calculations."
            ),
            recommendation=(
                'Maintain current data collection standards for consistent analysis quality.'
            ),
        )

    return None


def generate_key_insights(
    results: Optional[CACAnalysisResponse],
    channel_analysis: Mapping[str, ChannelStats]
) -> List[KeyInsight]:
    """Collect the insights that apply; none without prior CAC results."""
    if results is None:
        return []

    candidates = [
        methodology_insight(results),
        channel_insight(channel_analysis),
        data_quality_insight(results),
    ]
    return [insight for insight in candidates if insight is not None]


# =============================================================================
# Report Assembly
# =============================================================================

def _text_setting(config: Mapping[str, Any], key: str) -> str:
    value = config.get(key)
    return str(value) if value else NOT_SPECIFIED


def build_key_metrics(
    marketing_raw: Sequence[RawRow],
    revenue_raw: Sequence[RawRow]
) -> KeyMetrics:
    marketing = normalize_marketing_rows(marketing_raw)
    revenue = normalize_revenue_rows(revenue_raw)

    total_customers = sum(row.customers for row in revenue)
    total_revenue = sum(row.revenue for row in revenue)
    campaigns = {row.campaign_name for row in marketing if row.campaign_name}

    return KeyMetrics(
        totalSpend=sum(row.spend for row in marketing),
        totalCustomers=total_customers,
        totalRevenue=total_revenue,
        averageOrderValue=safe_divide(total_revenue, total_customers),
        totalCampaigns=len(campaigns),
    )


def build_report_data(
    request: ReportDataRequest,
    now: Optional[datetime] = None
) -> ReportDataResponse:
    """
    Build the report payload.

    Channel and time analysis are only produced when both marketing and
    revenue rows are supplied.
    """
    business_model: Dict[str, Any] = request.businessModel or {}
    analysis_config: Dict[str, Any] = request.analysisConfig or {}
    marketing_raw = request.marketingData or []
    revenue_raw = request.revenueData or []

    business_config = BusinessConfig(
        businessType=_text_setting(business_model, 'businessType'),
        revenueModel=_text_setting(business_model, 'revenueModel'),
        customerDefinition=_text_setting(business_model, 'customerDefinition'),
        analysisDate=(now or datetime.now()).strftime(REPORT_DATE_FORMAT),
        analysisPeriod=analysis_config.get('period') or 'Full dataset',
    )

    channel_analysis: Dict[str, ChannelStats] = {}
    time_analysis = None
    if request.marketingData is not None and request.revenueData is not None:
        marketing = normalize_marketing_rows(marketing_raw)
        revenue = normalize_revenue_rows(revenue_raw)
        channel_analysis = analyze_channel_performance(marketing, revenue)
        time_analysis = analyze_time_performance(marketing, revenue)

    results = request.results
    insights = generate_key_insights(results, channel_analysis)

    logger.info(
        f"Built report data: {len(channel_analysis)} channels, {len(insights)} insights"
    )

    return ReportDataResponse(
        summary=ReportSummary(
            businessConfig=business_config,
            keyMetrics=build_key_metrics(marketing_raw, revenue_raw),
        ),
        cacBreakdown=results.calculations if results else None,
        dataQuality=results.dataQuality if results else None,
        recommendations=results.recommendations if results else [],
        channelAnalysis=channel_analysis,
        timeAnalysis=time_analysis,
        insights=insights,
    )


__all__ = [
    'CAC_VARIANCE_THRESHOLD',
    'DATA_QUALITY_WARNING_BELOW',
    'DATA_QUALITY_SUCCESS_ABOVE',
    'methodology_insight',
    'channel_insight',
    'data_quality_insight',
    'generate_key_insights',
    'build_key_metrics',
    'build_report_data',
]
