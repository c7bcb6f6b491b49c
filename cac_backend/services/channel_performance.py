"""
Channel Performance Service

Groups marketing and revenue rows by channel, derives the core ratios, compares
CTR/CVR/CAC against a fixed benchmark table, and scores each channel 0-100.

Aggregation rules:
- Marketing rows create channels; spend, customers, clicks and impressions are
  summed, and distinct dates / campaign names are tracked as sets.
- Revenue rows only add revenue to channels already seen in marketing data.
  Revenue for any other channel is dropped.
- Channel keys are exact, case-sensitive strings.

Efficiency score (computed per channel, order-independent):
    50 base
    + min(30, benchmarkCAC / cac x 15 - 15)       when cac > 0
    + min(25, ctr / benchmarkCTR x 12.5 - 12.5)   when ctr > 0
    + min(25, cvr / benchmarkCVR x 12.5 - 12.5)   when cvr > 0
    + min(20, (roas - 2) x 10)  when roas > 2, or - 15 when roas < 1
    then rounded and clamped to [0, 100].
"""

from dataclasses import dataclass, field
import logging
from typing import Dict, Sequence, Set

from cac_backend.models.enums import Grade, PerformanceLevel
from cac_backend.models.schemas import BenchmarkComparison, BenchmarkMetric, ChannelStats
from cac_backend.services.normalization import (
    MarketingRow,
    RevenueRow,
    round_half_up,
    safe_divide,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Benchmarks
# =============================================================================

@dataclass(frozen=True)
class ChannelBenchmark:
    """Industry reference values for a channel. ctr and cvr are percentages."""
    ctr: float
    cvr: float
    cpc: float
    cac: float


DEFAULT_BENCHMARK_KEY: str = 'default'

CHANNEL_BENCHMARKS: Dict[str, ChannelBenchmark] = {
    'Google Ads': ChannelBenchmark(ctr=2.0, cvr=3.75, cpc=2.69, cac=85),
    'Facebook': ChannelBenchmark(ctr=0.9, cvr=2.5, cpc=1.72, cac=90),
    'LinkedIn': ChannelBenchmark(ctr=0.6, cvr=4.2, cpc=5.26, cac=125),
    'TikTok': ChannelBenchmark(ctr=1.5, cvr=1.8, cpc=1.0, cac=75),
    DEFAULT_BENCHMARK_KEY: ChannelBenchmark(ctr=1.2, cvr=2.8, cpc=2.5, cac=95),
}

# A metric is 'below' when it is more than 20% worse than benchmark
BELOW_BENCHMARK_TOLERANCE: float = 0.2

BASE_EFFICIENCY_SCORE: float = 50.0
CAC_TERM_CAP: float = 30.0
CTR_TERM_CAP: float = 25.0
CVR_TERM_CAP: float = 25.0
ROAS_BONUS_CAP: float = 20.0
ROAS_PENALTY: float = 15.0

# (minimum score, grade), checked top-down
GRADE_THRESHOLDS = (
    (85, Grade.A),
    (75, Grade.B),
    (65, Grade.C),
    (50, Grade.D),
)


def get_benchmark(channel: str) -> ChannelBenchmark:
    """Benchmark for an exact channel name, else the default row."""
    return CHANNEL_BENCHMARKS.get(channel, CHANNEL_BENCHMARKS[DEFAULT_BENCHMARK_KEY])


# =============================================================================
# Benchmark Comparison
# =============================================================================

def _rate_performance(actual: float, benchmark: float) -> PerformanceLevel:
    # Higher is better (CTR, CVR)
    if actual > benchmark:
        return PerformanceLevel.ABOVE
    if actual < benchmark * (1 - BELOW_BENCHMARK_TOLERANCE):
        return PerformanceLevel.BELOW
    return PerformanceLevel.AVERAGE


def _cost_performance(actual: float, benchmark: float) -> PerformanceLevel:
    # Lower is better (CAC)
    if actual < benchmark:
        return PerformanceLevel.ABOVE
    if actual > benchmark * (1 + BELOW_BENCHMARK_TOLERANCE):
        return PerformanceLevel.BELOW
    return PerformanceLevel.AVERAGE


def compare_to_benchmark(
    ctr: float,
    cvr: float,
    cac: float,
    benchmark: ChannelBenchmark
) -> BenchmarkComparison:
    """
    Compare a channel's CTR, CVR and CAC with its benchmark.

    percentDiff is signed so that positive always means better than benchmark:
    (actual - benchmark) / benchmark for rates, (benchmark - actual) / benchmark
    for CAC.
    """
    return BenchmarkComparison(
        ctr=BenchmarkMetric(
            actual=ctr,
            benchmark=benchmark.ctr,
            performance=_rate_performance(ctr, benchmark.ctr),
            percentDiff=safe_divide(ctr - benchmark.ctr, benchmark.ctr) * 100,
        ),
        cvr=BenchmarkMetric(
            actual=cvr,
            benchmark=benchmark.cvr,
            performance=_rate_performance(cvr, benchmark.cvr),
            percentDiff=safe_divide(cvr - benchmark.cvr, benchmark.cvr) * 100,
        ),
        cac=BenchmarkMetric(
            actual=cac,
            benchmark=benchmark.cac,
            performance=_cost_performance(cac, benchmark.cac),
            percentDiff=safe_divide(benchmark.cac - cac, benchmark.cac) * 100,
        ),
    )


# =============================================================================
# Efficiency Scoring
# =============================================================================

def calculate_efficiency_score(
    cac: float,
    ctr: float,
    cvr: float,
    roas: float,
    benchmark: ChannelBenchmark
) -> int:
    """
    Composite 0-100 efficiency score.

    Each term is capped before it is added; the clamp to [0, 100] happens once
    on the rounded total.
    """
    score = BASE_EFFICIENCY_SCORE

    if cac > 0 and benchmark.cac > 0:
        cac_ratio = benchmark.cac / cac
        score += min(CAC_TERM_CAP, cac_ratio * 15 - 15)

    if ctr > 0 and benchmark.ctr > 0:
        ctr_ratio = ctr / benchmark.ctr
        score += min(CTR_TERM_CAP, ctr_ratio * 12.5 - 12.5)

    if cvr > 0 and benchmark.cvr > 0:
        cvr_ratio = cvr / benchmark.cvr
        score += min(CVR_TERM_CAP, cvr_ratio * 12.5 - 12.5)

    if roas > 2:
        score += min(ROAS_BONUS_CAP, (roas - 2) * 10)
    elif roas < 1:
        score -= ROAS_PENALTY

    return int(max(0, min(100, round_half_up(score))))


def grade_for_score(score: int) -> Grade:
    """Letter grade for an efficiency score."""
    for minimum, grade in GRADE_THRESHOLDS:
        if score >= minimum:
            return grade
    return Grade.F


# =============================================================================
# Aggregation
# =============================================================================

@dataclass
class ChannelAccumulator:
    """Running totals for one channel during aggregation."""
    spend: float = 0.0
    customers: float = 0.0
    clicks: float = 0.0
    impressions: float = 0.0
    revenue: float = 0.0
    dates: Set[str] = field(default_factory=set)
    campaigns: Set[str] = field(default_factory=set)


def accumulate_channels(
    marketing: Sequence[MarketingRow],
    revenue: Sequence[RevenueRow]
) -> Dict[str, ChannelAccumulator]:
    """
    Sum marketing and revenue rows per channel.

    Channels appear in order of first occurrence in the marketing rows.
    """
    accumulators: Dict[str, ChannelAccumulator] = {}

    for row in marketing:
        acc = accumulators.setdefault(row.channel, ChannelAccumulator())
        acc.spend += row.spend
        acc.customers += row.customers
        acc.clicks += row.clicks
        acc.impressions += row.impressions
        if row.date:
            acc.dates.add(row.date)
        if row.campaign_name:
            acc.campaigns.add(row.campaign_name)

    dropped = 0
    for row in revenue:
        acc = accumulators.get(row.channel)
        if acc is None:
            dropped += 1
            continue
        acc.revenue += row.revenue

    if dropped:
        logger.debug(f"Dropped {dropped} revenue rows for channels without marketing data")

    return accumulators


def build_channel_stats(channel: str, acc: ChannelAccumulator) -> ChannelStats:
    """Derive ratios, benchmark comparison, score and grade for one channel."""
    cac = safe_divide(acc.spend, acc.customers)
    ctr = safe_divide(acc.clicks, acc.impressions) * 100
    cvr = safe_divide(acc.customers, acc.clicks) * 100
    cpc = safe_divide(acc.spend, acc.clicks)
    roas = safe_divide(acc.revenue, acc.spend)

    days = len(acc.dates)
    avg_revenue_per_customer = safe_divide(acc.revenue, acc.customers)

    benchmark = get_benchmark(channel)
    efficiency_score = calculate_efficiency_score(cac, ctr, cvr, roas, benchmark)

    return ChannelStats(
        spend=acc.spend,
        customers=acc.customers,
        clicks=acc.clicks,
        impressions=acc.impressions,
        revenue=acc.revenue,
        days=days,
        campaigns=len(acc.campaigns),
        cac=cac,
        ctr=ctr,
        cvr=cvr,
        cpc=cpc,
        roas=roas,
        avgDailySpend=safe_divide(acc.spend, days),
        costPerImpression=safe_divide(acc.spend, acc.impressions) * 1000,
        benchmark=compare_to_benchmark(ctr, cvr, cac, benchmark),
        efficiencyScore=efficiency_score,
        grade=grade_for_score(efficiency_score),
        avgRevenuePerCustomer=avg_revenue_per_customer,
        ltv=avg_revenue_per_customer,
        ltvCacRatio=safe_divide(avg_revenue_per_customer, cac),
    )


def analyze_channel_performance(
    marketing: Sequence[MarketingRow],
    revenue: Sequence[RevenueRow]
) -> Dict[str, ChannelStats]:
    """
    Build ChannelStats for every channel present in the marketing rows.

    Args:
        marketing: Normalized marketing rows
        revenue: Normalized revenue rows

    Returns:
        Mapping of channel name to ChannelStats, in first-seen order
    """
    accumulators = accumulate_channels(marketing, revenue)
    results = {
        channel: build_channel_stats(channel, acc)
        for channel, acc in accumulators.items()
    }
    logger.info(f"Analyzed {len(results)} channels from {len(marketing)} marketing rows")
    return results


__all__ = [
    'ChannelBenchmark',
    'CHANNEL_BENCHMARKS',
    'DEFAULT_BENCHMARK_KEY',
    'BELOW_BENCHMARK_TOLERANCE',
    'GRADE_THRESHOLDS',
    'get_benchmark',
    'compare_to_benchmark',
    'calculate_efficiency_score',
    'grade_for_score',
    'ChannelAccumulator',
    'accumulate_channels',
    'build_channel_stats',
    'analyze_channel_performance',
]
