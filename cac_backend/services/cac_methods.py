"""
CAC Methodology Service

Computes five independent CAC figures from the same normalized inputs:

1. Simple blended       total marketing spend / total revenue-side customers
2. Fully loaded         (spend + team + tool + overhead costs) / customers
3. Channel-specific     spend / customers per channel (union of both inputs)
4. Cohort-based         spend / customers per calendar month ('Unknown' when
                        the row date is missing or unparseable)
5. Contribution margin  spend / (customers x contribution margin)

Customers always come from the revenue rows, never from marketing conversions.
Every value is rounded half-up to 2 decimals and zero-guarded.

Each result carries a 1-5 confidence and a fixed explanation / use case /
limitations triple shown to end users.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from cac_backend.models.enums import Priority, RecommendationType
from cac_backend.models.schemas import (
    AdditionalCosts,
    CACCalculations,
    CACMetadata,
    ChannelSpecificResult,
    CohortBasedResult,
    ContributionMarginCalculation,
    ContributionMarginResult,
    DataQualityAssessment,
    FormulaCalculation,
    FullyLoadedCalculation,
    FullyLoadedResult,
    RawRow,
    Recommendation,
    SegmentCAC,
    SimpleBlendedCalculation,
    SimpleBlendedResult,
)
from cac_backend.services.normalization import (
    CustomerRecord,
    MarketingRow,
    RevenueRow,
    parse_row_date,
    round_half_up,
    safe_divide,
)
from cac_backend.services.time_analysis import month_key

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_CONTRIBUTION_MARGIN: float = 0.5
UNKNOWN_COHORT: str = 'Unknown'

# Fixed scores for consistency/accuracy/coverage until those checks exist
ASSUMED_CONSISTENCY: float = 75.0
ASSUMED_ACCURACY: float = 80.0
ASSUMED_COVERAGE: float = 70.0

LOW_DATA_QUALITY_THRESHOLD: float = 60.0
HIDDEN_COST_THRESHOLD: float = 0.5
RICH_CUSTOMER_DATA_THRESHOLD: int = 10

# formula, explanation, useCase, limitations
METHODOLOGY_TEXT: Dict[str, Dict[str, str]] = {
    'simpleBlended': {
        'formula': 'Total Marketing Spend ÷ Total New Customers',
        'explanation': 'Most basic calculation - what many marketing teams use',
        'useCase': 'Quick benchmarking, board presentations, high-level planning',
        'limitations': "Doesn't show channel performance, ignores attribution complexity",
    },
    'fullyLoaded': {
        'formula': '(Marketing Spend + Team Costs + Tools + Overhead) ÷ Total New Customers',
        'explanation': 'Includes all customer acquisition costs - what CFOs prefer',
        'useCase': 'True cost analysis, budgeting, profitability calculations',
        'limitations': 'Complex overhead allocation, may discourage experimentation',
    },
    'channelSpecific': {
        'formula': 'Channel Spend ÷ Channel Customers (with attribution model)',
        'explanation': 'Shows performance by marketing channel - what CMOs need',
        'useCase': 'Budget allocation, channel optimization, performance management',
        'limitations': 'Attribution challenges, cross-channel influence ignored',
    },
    'cohortBased': {
        'formula': 'Period Spend ÷ Customers Acquired in Same Period (tracked over time)',
        'explanation': 'Tracks CAC changes over time - best for trend analysis',
        'useCase': 'Performance trending, seasonal adjustments, growth planning',
        'limitations': 'Requires consistent tracking, complex with long sales cycles',
    },
    'contributionMargin': {
        'formula': 'Marketing Spend ÷ (New Customers × Contribution Margin %)',
        'explanation': 'Accounts for different customer values - most sophisticated',
        'useCase': 'Customer segment optimization, LTV:CAC analysis, pricing strategy',
        'limitations': 'Complex customer value calculations, requires detailed data',
    },
}


def _describe(method: str) -> Dict[str, str]:
    text = METHODOLOGY_TEXT[method]
    return {
        'explanation': text['explanation'],
        'useCase': text['useCase'],
        'limitations': text['limitations'],
    }


def total_spend(marketing: Sequence[MarketingRow]) -> float:
    return sum(row.spend for row in marketing)


def total_revenue_customers(revenue: Sequence[RevenueRow]) -> float:
    return sum(row.customers for row in revenue)


# =============================================================================
# Methodologies
# =============================================================================

def calculate_simple_blended_cac(
    marketing: Sequence[MarketingRow],
    revenue: Sequence[RevenueRow]
) -> SimpleBlendedResult:
    """Total marketing spend / total new customers."""
    spend = total_spend(marketing)
    customers = total_revenue_customers(revenue)

    return SimpleBlendedResult(
        value=round_half_up(safe_divide(spend, customers), 2),
        calculation=SimpleBlendedCalculation(
            totalSpend=spend,
            totalCustomers=customers,
            formula=METHODOLOGY_TEXT['simpleBlended']['formula'],
        ),
        confidence=4 if spend > 0 and customers > 0 else 1,
        **_describe('simpleBlended'),
    )


def calculate_fully_loaded_cac(
    marketing: Sequence[MarketingRow],
    revenue: Sequence[RevenueRow],
    additional_costs: Optional[AdditionalCosts] = None
) -> FullyLoadedResult:
    """Marketing spend plus team, tool and overhead costs, per new customer."""
    costs = additional_costs or AdditionalCosts()
    spend = total_spend(marketing)
    total_costs = spend + costs.teamCosts + costs.toolCosts + costs.overheadCosts
    customers = total_revenue_customers(revenue)

    return FullyLoadedResult(
        value=round_half_up(safe_divide(total_costs, customers), 2),
        calculation=FullyLoadedCalculation(
            marketingSpend=spend,
            teamCosts=costs.teamCosts,
            toolCosts=costs.toolCosts,
            overheadCosts=costs.overheadCosts,
            totalCosts=total_costs,
            totalCustomers=customers,
            formula=METHODOLOGY_TEXT['fullyLoaded']['formula'],
        ),
        confidence=5 if total_costs > 0 and customers > 0 else 1,
        **_describe('fullyLoaded'),
    )


def _segment_cacs(
    spend_by_key: Mapping[str, float],
    customers_by_key: Mapping[str, float]
) -> Dict[str, SegmentCAC]:
    # Keys from the spend side come first, then customer-only keys
    keys = list(spend_by_key)
    keys.extend(key for key in customers_by_key if key not in spend_by_key)

    segments: Dict[str, SegmentCAC] = {}
    for key in keys:
        spend = spend_by_key.get(key, 0.0)
        customers = customers_by_key.get(key, 0.0)
        segments[key] = SegmentCAC(
            value=round_half_up(safe_divide(spend, customers), 2),
            spend=spend,
            customers=customers,
            confidence=4 if spend > 0 and customers > 0 else 2,
        )
    return segments


def calculate_channel_specific_cac(
    marketing: Sequence[MarketingRow],
    revenue: Sequence[RevenueRow]
) -> ChannelSpecificResult:
    """Per-channel CAC over the union of marketing and revenue channels."""
    spend_by_channel: Dict[str, float] = {}
    for row in marketing:
        spend_by_channel[row.channel] = spend_by_channel.get(row.channel, 0.0) + row.spend

    customers_by_channel: Dict[str, float] = {}
    for row in revenue:
        customers_by_channel[row.channel] = (
            customers_by_channel.get(row.channel, 0.0) + row.customers
        )

    channels = _segment_cacs(spend_by_channel, customers_by_channel)

    return ChannelSpecificResult(
        channels=channels,
        calculation=FormulaCalculation(formula=METHODOLOGY_TEXT['channelSpecific']['formula']),
        confidence=4 if len(channels) > 1 else 2,
        **_describe('channelSpecific'),
    )


def cohort_for(value: Optional[str]) -> str:
    """Monthly cohort key for a row date, or 'Unknown'."""
    parsed = parse_row_date(value)
    if parsed is None:
        return UNKNOWN_COHORT
    return month_key(parsed)


def calculate_cohort_based_cac(
    marketing: Sequence[MarketingRow],
    revenue: Sequence[RevenueRow]
) -> CohortBasedResult:
    """Per-month CAC; spend and customers are matched by acquisition month."""
    spend_by_cohort: Dict[str, float] = {}
    for row in marketing:
        cohort = cohort_for(row.date)
        spend_by_cohort[cohort] = spend_by_cohort.get(cohort, 0.0) + row.spend

    customers_by_cohort: Dict[str, float] = {}
    for row in revenue:
        cohort = cohort_for(row.date)
        customers_by_cohort[cohort] = customers_by_cohort.get(cohort, 0.0) + row.customers

    cohorts = _segment_cacs(spend_by_cohort, customers_by_cohort)

    return CohortBasedResult(
        cohorts=cohorts,
        calculation=FormulaCalculation(formula=METHODOLOGY_TEXT['cohortBased']['formula']),
        confidence=5 if len(cohorts) > 2 else 3,
        **_describe('cohortBased'),
    )


def calculate_contribution_margin_cac(
    marketing: Sequence[MarketingRow],
    revenue: Sequence[RevenueRow],
    customers: Sequence[CustomerRecord] = (),
    contribution_margin: float = DEFAULT_CONTRIBUTION_MARGIN
) -> ContributionMarginResult:
    """
    Spend / (customers x contribution margin).

    With customer records, the customer count is the number of records;
    otherwise it is the revenue-side customer total. The margin is the
    configured constant in both cases; customer LTV does not change it.
    """
    spend = total_spend(marketing)

    if customers:
        customer_count = float(len(customers))
    else:
        customer_count = total_revenue_customers(revenue)

    value = safe_divide(spend, customer_count * contribution_margin)

    return ContributionMarginResult(
        value=round_half_up(value, 2),
        calculation=ContributionMarginCalculation(
            totalSpend=spend,
            totalCustomers=customer_count,
            averageContributionMargin=int(round_half_up(contribution_margin * 100)),
            formula=METHODOLOGY_TEXT['contributionMargin']['formula'],
        ),
        confidence=5 if len(customers) > RICH_CUSTOMER_DATA_THRESHOLD else 3,
        **_describe('contributionMargin'),
    )


def calculate_all_methodologies(
    marketing: Sequence[MarketingRow],
    revenue: Sequence[RevenueRow],
    customers: Sequence[CustomerRecord] = (),
    additional_costs: Optional[AdditionalCosts] = None,
    contribution_margin: float = DEFAULT_CONTRIBUTION_MARGIN
) -> CACCalculations:
    """Run all five methodologies over the same inputs."""
    return CACCalculations(
        simpleBlended=calculate_simple_blended_cac(marketing, revenue),
        fullyLoaded=calculate_fully_loaded_cac(marketing, revenue, additional_costs),
        channelSpecific=calculate_channel_specific_cac(marketing, revenue),
        cohortBased=calculate_cohort_based_cac(marketing, revenue),
        contributionMargin=calculate_contribution_margin_cac(
            marketing, revenue, customers, contribution_margin
        ),
    )


# =============================================================================
# Data Quality, Recommendations, Confidence
# =============================================================================

def _is_filled(value: Any) -> bool:
    return value is not None and value != ''


def assess_data_quality(
    marketing_raw: Sequence[RawRow],
    revenue_raw: Sequence[RawRow]
) -> DataQualityAssessment:
    """
    Score input completeness from the raw marketing rows.

    completeness is the share of non-empty cells across every marketing row;
    consistency, accuracy and coverage are fixed scores.
    """
    total_fields = 0
    filled_fields = 0
    for row in marketing_raw:
        for value in row.values():
            total_fields += 1
            if _is_filled(value):
                filled_fields += 1

    completeness = safe_divide(filled_fields, total_fields) * 100

    issues: List[str] = []
    if not marketing_raw:
        issues.append('No marketing data provided')
    if not revenue_raw:
        issues.append('No revenue/customer data provided')

    overall = (completeness + ASSUMED_CONSISTENCY + ASSUMED_ACCURACY + ASSUMED_COVERAGE) / 4

    recommendations: List[str] = []
    if overall < LOW_DATA_QUALITY_THRESHOLD:
        recommendations.append('Consider gathering more complete data for accurate analysis')

    return DataQualityAssessment(
        completeness=completeness,
        consistency=ASSUMED_CONSISTENCY,
        accuracy=ASSUMED_ACCURACY,
        coverage=ASSUMED_COVERAGE,
        overall=overall,
        issues=issues,
        recommendations=recommendations,
    )


def generate_recommendations(
    calculations: CACCalculations,
    data_quality: DataQualityAssessment
) -> List[Recommendation]:
    """Quick win for hidden costs, standing channel item, and a data-quality red flag."""
    recommendations: List[Recommendation] = []

    simple = calculations.simpleBlended.value
    fully_loaded = calculations.fullyLoaded.value
    if simple > 0 and fully_loaded > 0:
        difference = fully_loaded - simple
        if difference > simple * HIDDEN_COST_THRESHOLD:
            pct = int(round_half_up(difference / simple * 100))
            recommendations.append(Recommendation(
                type=RecommendationType.QUICK_WIN,
                priority=Priority.HIGH,
                title='Hidden Costs Impact',
                description=(
                    f"Your fully-loaded CAC is {pct}% higher than simple blended CAC. "
                    "Consider including team and tool costs in regular reporting."
                ),
                action='Include all acquisition costs in budget planning',
            ))

    recommendations.append(Recommendation(
        type=RecommendationType.STRATEGIC,
        priority=Priority.MEDIUM,
        title='Channel Optimization',
        description=(
            'Analyze channel-specific CAC to identify your most efficient acquisition channels.'
        ),
        action='Reallocate budget to highest-performing channels',
    ))

    if data_quality.overall < LOW_DATA_QUALITY_THRESHOLD:
        recommendations.append(Recommendation(
            type=RecommendationType.RED_FLAG,
            priority=Priority.HIGH,
            title='Data Quality Issues',
            description='Low data quality may impact calculation accuracy.',
            action='Improve data collection processes before making major budget decisions',
        ))

    return recommendations


def calculate_overall_confidence(
    calculations: CACCalculations,
    data_quality: DataQualityAssessment
) -> float:
    """Mean methodology confidence scaled by overall data quality."""
    scores = calculations.confidences()
    average = sum(scores) / len(scores)
    return round_half_up(average * data_quality.overall / 100, 2)


def build_metadata(
    calculations: CACCalculations,
    data_quality: DataQualityAssessment,
    business_model: Any = None,
    analysis_config: Optional[Mapping[str, Any]] = None
) -> CACMetadata:
    time_range = (analysis_config or {}).get('timeRange')
    return CACMetadata(
        analysisDate=datetime.now(timezone.utc).isoformat(),
        businessModel=business_model,
        timeRange=time_range,
        confidence=calculate_overall_confidence(calculations, data_quality),
    )


__all__ = [
    'DEFAULT_CONTRIBUTION_MARGIN',
    'UNKNOWN_COHORT',
    'METHODOLOGY_TEXT',
    'total_spend',
    'total_revenue_customers',
    'calculate_simple_blended_cac',
    'calculate_fully_loaded_cac',
    'calculate_channel_specific_cac',
    'cohort_for',
    'calculate_cohort_based_cac',
    'calculate_contribution_margin_cac',
    'calculate_all_methodologies',
    'assess_data_quality',
    'generate_recommendations',
    'calculate_overall_confidence',
    'build_metadata',
]
