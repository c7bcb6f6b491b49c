"""
Optimization Opportunity Service

Turns per-channel stats into a prioritized list of actions.

Per-channel rules (independent; a channel can produce several):
- efficiencyScore < 50            budget_reallocation, high
- CTR performance 'below'         creative_optimization, high if |diff| > 30
- CVR performance 'below'         funnel_optimization, high if |diff| > 25
- 0 < roas < 2                    profitability_optimization, medium

Cross-channel rule: with 2+ channels and a best/worst score gap above 30, a
strategic_reallocation moving 25% of the worst channel's daily spend to the
best channel is placed first.

The final list is stably sorted by priority (high, medium, low); ties keep
generation order, which follows the input channel order.
"""

import logging
from typing import Dict, List, Mapping, Tuple

from cac_backend.models.enums import OpportunityType, PerformanceLevel, Priority
from cac_backend.models.schemas import (
    BudgetImpact,
    BudgetMove,
    ChannelStats,
    CreativeExpectedResults,
    FunnelExpectedResults,
    Opportunity,
    ProfitabilityMetrics,
    ReallocationMetrics,
)
from cac_backend.services.normalization import round_half_up

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS - Rule Thresholds
# =============================================================================

LOW_EFFICIENCY_SCORE: int = 50
BUDGET_REDUCTION_SHARE: float = 0.3
TARGET_CAC_FACTOR: float = 0.7
EXPECTED_ROI_FACTOR: float = 0.4

CTR_HIGH_PRIORITY_GAP: float = 30.0
CVR_HIGH_PRIORITY_GAP: float = 25.0

PROFITABLE_ROAS: float = 2.0

STRATEGIC_GAP_THRESHOLD: int = 30
STRATEGIC_REALLOCATION_SHARE: float = 0.25
PROJECTED_SAVINGS_FACTOR: float = 0.3

DAYS_PER_MONTH: int = 30

PRIORITY_RANK: Dict[Priority, int] = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


def _num(value: float) -> str:
    # 2.0 -> '2', 3.75 -> '3.75'
    return f"{value:g}"


def _whole(value: float) -> int:
    return int(round_half_up(value))


# =============================================================================
# Per-Channel Rules
# =============================================================================

def budget_reallocation(
    channel: str,
    stats: ChannelStats,
    best_channel: str
) -> Opportunity:
    amount = _whole(stats.avgDailySpend * BUDGET_REDUCTION_SHARE)
    return Opportunity(
        type=OpportunityType.BUDGET_REALLOCATION,
        channel=channel,
        issue=f"Low efficiency in {channel} (Score: {stats.efficiencyScore}/100)",
        recommendation=f"Reduce daily budget by ${amount} and reallocate to {best_channel}",
        specificActions=[
            f"Pause underperforming campaigns in {channel}",
            f"Increase budget for {best_channel} by ${amount}/day",
            f"Review targeting and creative in {channel}",
            "Set up A/B tests for new messaging",
        ],
        impact="Expected 25-40% improvement in overall CAC",
        timeline='1-2 weeks',
        priority=Priority.HIGH,
        budgetMove=BudgetMove(from_=channel, to=best_channel, amount=amount),
        metrics=ReallocationMetrics(
            currentCAC=round_half_up(stats.cac, 2),
            targetCAC=round_half_up(stats.cac * TARGET_CAC_FACTOR, 2),
            expectedROI=_whole(amount * DAYS_PER_MONTH * EXPECTED_ROI_FACTOR),
        ),
    )


def creative_optimization(channel: str, stats: ChannelStats) -> Opportunity:
    metric = stats.benchmark.ctr
    gap = abs(metric.percentDiff)
    return Opportunity(
        type=OpportunityType.CREATIVE_OPTIMIZATION,
        channel=channel,
        issue=f"{channel} CTR {gap:.1f}% below industry benchmark",
        recommendation=(
            f"Refresh ad creative to improve CTR from {stats.ctr:.2f}% "
            f"to {_num(metric.benchmark)}%"
        ),
        specificActions=[
            "Test 3-5 new ad creatives this week",
            "Focus on emotional triggers and clear CTAs",
            "A/B test video vs. static creative",
            "Analyze top-performing competitor ads",
            "Update ad copy with current offers/features",
        ],
        impact=f"{_whole(gap)}% improvement in click volume",
        timeline='2-3 weeks',
        priority=Priority.HIGH if gap > CTR_HIGH_PRIORITY_GAP else Priority.MEDIUM,
        expectedResults=CreativeExpectedResults(
            currentClicks=_whole(stats.clicks),
            projectedClicks=_whole(stats.clicks * (1 + gap / 100)),
            additionalCustomers=_whole(stats.clicks * (gap / 100) * (stats.cvr / 100)),
        ),
    )


def funnel_optimization(channel: str, stats: ChannelStats) -> Opportunity:
    metric = stats.benchmark.cvr
    gap = abs(metric.percentDiff)
    return Opportunity(
        type=OpportunityType.FUNNEL_OPTIMIZATION,
        channel=channel,
        issue=f"{channel} conversion rate {gap:.1f}% below benchmark",
        recommendation=(
            "Optimize landing pages and conversion flow to improve CVR from "
            f"{stats.cvr:.2f}% to {_num(metric.benchmark)}%"
        ),
        specificActions=[
            f"Audit landing page experience for {channel} traffic",
            "A/B test simplified conversion forms",
            "Add trust signals and social proof",
            "Optimize page load speed (<2 seconds)",
            "Test mobile-first design improvements",
            "Implement retargeting for bounced visitors",
        ],
        impact=f"{_whole(gap)}% more customers from same traffic",
        timeline='3-4 weeks',
        priority=Priority.HIGH if gap > CVR_HIGH_PRIORITY_GAP else Priority.MEDIUM,
        expectedResults=FunnelExpectedResults(
            currentConversions=_whole(stats.customers),
            projectedConversions=_whole(stats.customers * (1 + gap / 100)),
            cacImprovement=round_half_up(stats.cac * (1 - gap / 200), 2),
        ),
    )


def profitability_optimization(channel: str, stats: ChannelStats) -> Opportunity:
    return Opportunity(
        type=OpportunityType.PROFITABILITY_OPTIMIZATION,
        channel=channel,
        issue=f"{channel} ROAS of {stats.roas:.2f}x below profitable threshold",
        recommendation="Focus on higher-value customer segments and optimize pricing",
        specificActions=[
            f"Analyze customer segments by LTV in {channel}",
            "Exclude low-value lookalike audiences",
            "Test premium product positioning",
            "Implement dynamic pricing strategies",
            "Focus spend on highest-converting demographics",
        ],
        impact="Potential to reach 3-4x ROAS target",
        timeline='4-6 weeks',
        priority=Priority.MEDIUM,
        currentMetrics=ProfitabilityMetrics(
            roas=round_half_up(stats.roas, 2),
            avgCustomerValue=round_half_up(stats.avgRevenuePerCustomer, 2),
            ltvCacRatio=round_half_up(stats.ltvCacRatio, 2),
        ),
    )


def channel_opportunities(
    channel: str,
    stats: ChannelStats,
    best_channel: str
) -> List[Opportunity]:
    """Apply every per-channel rule to one channel, in rule order."""
    found: List[Opportunity] = []

    if stats.efficiencyScore < LOW_EFFICIENCY_SCORE:
        found.append(budget_reallocation(channel, stats, best_channel))

    if stats.benchmark.ctr.performance == PerformanceLevel.BELOW:
        found.append(creative_optimization(channel, stats))

    if stats.benchmark.cvr.performance == PerformanceLevel.BELOW:
        found.append(funnel_optimization(channel, stats))

    if 0 < stats.roas < PROFITABLE_ROAS:
        found.append(profitability_optimization(channel, stats))

    return found


# =============================================================================
# Cross-Channel Rule
# =============================================================================

def rank_channels(
    channel_performance: Mapping[str, ChannelStats]
) -> List[Tuple[str, ChannelStats]]:
    """Channels by efficiency score, best first; ties keep input order."""
    return sorted(
        channel_performance.items(),
        key=lambda item: item[1].efficiencyScore,
        reverse=True,
    )


def strategic_reallocation(
    best: Tuple[str, ChannelStats],
    worst: Tuple[str, ChannelStats]
) -> Opportunity:
    best_channel, best_stats = best
    worst_channel, worst_stats = worst
    gap = best_stats.efficiencyScore - worst_stats.efficiencyScore
    amount = _whole(worst_stats.avgDailySpend * STRATEGIC_REALLOCATION_SHARE)
    monthly = amount * DAYS_PER_MONTH

    return Opportunity(
        type=OpportunityType.STRATEGIC_REALLOCATION,
        issue=f"{gap} point efficiency gap between best and worst channels",
        recommendation=f"Reallocate ${amount}/day from {worst_channel} to {best_channel}",
        specificActions=[
            f"Immediately reduce {worst_channel} daily budget by ${amount}",
            f"Increase {best_channel} daily budget by ${amount}",
            "Monitor performance for 2 weeks",
            "Scale winning channel further if results hold",
            "Document learnings for future budget decisions",
        ],
        impact=f"Projected {_whole(gap * 0.5)}% improvement in overall campaign efficiency",
        timeline='Immediate (2 weeks to measure)',
        priority=Priority.HIGH,
        budgetMove=BudgetMove(from_=worst_channel, to=best_channel, amount=amount),
        budgetImpact=BudgetImpact(
            monthlyReallocation=monthly,
            projectedSavings=_whole(monthly * PROJECTED_SAVINGS_FACTOR),
        ),
    )


# =============================================================================
# Entry Point
# =============================================================================

def sort_by_priority(opportunities: List[Opportunity]) -> List[Opportunity]:
    """Stable sort, high priority first."""
    return sorted(opportunities, key=lambda opp: PRIORITY_RANK[opp.priority], reverse=True)


def identify_optimization_opportunities(
    channel_performance: Mapping[str, ChannelStats]
) -> List[Opportunity]:
    """
    Build the prioritized opportunity list for an analysis.

    Args:
        channel_performance: Channel name -> ChannelStats, in input order

    Returns:
        Opportunities ordered high > medium > low
    """
    if not channel_performance:
        return []

    ranked = rank_channels(channel_performance)
    best, worst = ranked[0], ranked[-1]

    opportunities: List[Opportunity] = []
    for channel, stats in channel_performance.items():
        opportunities.extend(channel_opportunities(channel, stats, best[0]))

    if len(ranked) >= 2:
        gap = best[1].efficiencyScore - worst[1].efficiencyScore
        if gap > STRATEGIC_GAP_THRESHOLD:
            opportunities.insert(0, strategic_reallocation(best, worst))

    ordered = sort_by_priority(opportunities)
    logger.info(
        f"Identified {len(ordered)} opportunities across {len(channel_performance)} channels"
    )
    return ordered


__all__ = [
    'PRIORITY_RANK',
    'LOW_EFFICIENCY_SCORE',
    'STRATEGIC_GAP_THRESHOLD',
    'budget_reallocation',
    'creative_optimization',
    'funnel_optimization',
    'profitability_optimization',
    'channel_opportunities',
    'rank_channels',
    'strategic_reallocation',
    'sort_by_priority',
    'identify_optimization_opportunities',
]
