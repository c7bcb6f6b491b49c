"""
Time-Series Analysis Service

Buckets marketing and revenue rows by day, week and month, and classifies CAC
trends from windowed comparisons of the buckets.

Bucketing rules:
- Rows without a date are skipped here (they still count for channel totals).
- Daily buckets are keyed by the raw date string. Weekly (YYYY-Www) and monthly
  (YYYY-MM) keys need a parseable date.
- Week number is ceil((dayOfYear + 1) / 7) with a zero-based day of year, so
  weeks always start on January 1st. This is NOT the ISO-8601 week.
- Spend and customers come from marketing rows. Revenue is added only to a
  bucket that marketing data already created, independently per granularity.

Trend rules:
- cac_trend: needs >= 14 daily buckets; CAC of the last 7 vs the previous 7
  (keys sorted ascending). > +10% increasing, < -10% decreasing.
- weekly_performance: needs >= 4 weekly buckets; last 2 vs previous 2.
  > +15% deteriorating, < -15% improving.
- A window whose CAC is zero or undefined gives no signal; the label stays stable.
"""

from dataclasses import dataclass, field
from datetime import date
import logging
import math
from typing import Dict, List, Mapping, Optional, Sequence, Set

from cac_backend.models.enums import PerformanceTrend, TrendDirection
from cac_backend.models.schemas import (
    DailyBucketStats,
    TimeAnalysis,
    TimeBucketStats,
    Trends,
)
from cac_backend.services.normalization import (
    MarketingRow,
    RevenueRow,
    parse_row_date,
    safe_divide,
)

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS - Trend Windows and Thresholds
# =============================================================================

DAILY_TREND_WINDOW: int = 7
DAILY_TREND_THRESHOLD_PCT: float = 10.0

WEEKLY_TREND_WINDOW: int = 2
WEEKLY_TREND_THRESHOLD_PCT: float = 15.0


# =============================================================================
# Bucket Keys
# =============================================================================

def week_key(day: date) -> str:
    """
    Week bucket key, e.g. '2024-W01'.

    Days 1-7 of the year are week 1, days 8-14 week 2, and so on.
    """
    day_of_year = (day - date(day.year, 1, 1)).days
    week = math.ceil((day_of_year + 1) / 7)
    return f"{day.year}-W{week:02d}"


def month_key(day: date) -> str:
    """Month bucket key, e.g. '2024-01'."""
    return f"{day.year}-{day.month:02d}"


# =============================================================================
# Accumulation
# =============================================================================

@dataclass
class BucketAccumulator:
    spend: float = 0.0
    customers: float = 0.0
    revenue: float = 0.0
    channels: Set[str] = field(default_factory=set)


def _to_bucket(acc: BucketAccumulator) -> TimeBucketStats:
    return TimeBucketStats(
        spend=acc.spend,
        customers=acc.customers,
        revenue=acc.revenue,
        cac=safe_divide(acc.spend, acc.customers),
        roas=safe_divide(acc.revenue, acc.spend),
    )


def _to_daily_bucket(acc: BucketAccumulator) -> DailyBucketStats:
    return DailyBucketStats(
        **_to_bucket(acc).model_dump(),
        channels=sorted(acc.channels),
    )


def bucket_rows(
    marketing: Sequence[MarketingRow],
    revenue: Sequence[RevenueRow]
) -> Dict[str, Dict[str, BucketAccumulator]]:
    """
    Accumulate rows into daily, weekly and monthly buckets.

    Returns:
        {'daily': {...}, 'weekly': {...}, 'monthly': {...}} of accumulators
    """
    daily: Dict[str, BucketAccumulator] = {}
    weekly: Dict[str, BucketAccumulator] = {}
    monthly: Dict[str, BucketAccumulator] = {}

    for row in marketing:
        if not row.date:
            continue

        day_acc = daily.setdefault(row.date, BucketAccumulator())
        day_acc.spend += row.spend
        day_acc.customers += row.customers
        day_acc.channels.add(row.channel)

        parsed = parse_row_date(row.date)
        if parsed is None:
            continue

        for buckets, key in ((weekly, week_key(parsed)), (monthly, month_key(parsed))):
            acc = buckets.setdefault(key, BucketAccumulator())
            acc.spend += row.spend
            acc.customers += row.customers

    for row in revenue:
        if not row.date:
            continue

        if row.date in daily:
            daily[row.date].revenue += row.revenue

        parsed = parse_row_date(row.date)
        if parsed is None:
            continue

        for buckets, key in ((weekly, week_key(parsed)), (monthly, month_key(parsed))):
            if key in buckets:
                buckets[key].revenue += row.revenue

    return {'daily': daily, 'weekly': weekly, 'monthly': monthly}


# =============================================================================
# Trends
# =============================================================================

def calculate_period_cac(
    keys: Sequence[str],
    buckets: Mapping[str, TimeBucketStats]
) -> Optional[float]:
    """
    Blended CAC over a set of buckets: total spend / total customers.

    Returns None when the window has no customers.
    """
    total_spend = 0.0
    total_customers = 0.0
    for key in keys:
        bucket = buckets.get(key)
        if bucket is not None:
            total_spend += bucket.spend
            total_customers += bucket.customers

    if total_customers > 0:
        return total_spend / total_customers
    return None


def _window_change_pct(
    buckets: Mapping[str, TimeBucketStats],
    window: int
) -> Optional[float]:
    # Percentage change of the last `window` buckets vs the `window` before them
    keys: List[str] = sorted(buckets)
    if len(keys) < window * 2:
        return None

    recent_cac = calculate_period_cac(keys[-window:], buckets)
    previous_cac = calculate_period_cac(keys[-window * 2:-window], buckets)

    if not recent_cac or not previous_cac:
        return None
    return (recent_cac - previous_cac) / previous_cac * 100


def calculate_trends(
    daily: Mapping[str, TimeBucketStats],
    weekly: Mapping[str, TimeBucketStats],
    monthly: Mapping[str, TimeBucketStats]
) -> Trends:
    """
    Classify CAC trends from bucketed stats.

    spend_trend, customer_trend and monthly_performance keep their 'stable'
    default; only cac_trend and weekly_performance are computed.
    """
    trends = Trends()

    daily_change = _window_change_pct(daily, DAILY_TREND_WINDOW)
    if daily_change is not None:
        if daily_change > DAILY_TREND_THRESHOLD_PCT:
            trends.cac_trend = TrendDirection.INCREASING
        elif daily_change < -DAILY_TREND_THRESHOLD_PCT:
            trends.cac_trend = TrendDirection.DECREASING

    # Rising CAC week over week is a worse result
    weekly_change = _window_change_pct(weekly, WEEKLY_TREND_WINDOW)
    if weekly_change is not None:
        if weekly_change > WEEKLY_TREND_THRESHOLD_PCT:
            trends.weekly_performance = PerformanceTrend.DETERIORATING
        elif weekly_change < -WEEKLY_TREND_THRESHOLD_PCT:
            trends.weekly_performance = PerformanceTrend.IMPROVING

    return trends


# =============================================================================
# Entry Point
# =============================================================================

def analyze_time_performance(
    marketing: Sequence[MarketingRow],
    revenue: Sequence[RevenueRow]
) -> TimeAnalysis:
    """
    Build daily/weekly/monthly buckets and trend labels.

    Args:
        marketing: Normalized marketing rows
        revenue: Normalized revenue rows

    Returns:
        TimeAnalysis with the three bucket maps and Trends
    """
    accumulators = bucket_rows(marketing, revenue)

    daily = {key: _to_daily_bucket(acc) for key, acc in accumulators['daily'].items()}
    weekly = {key: _to_bucket(acc) for key, acc in accumulators['weekly'].items()}
    monthly = {key: _to_bucket(acc) for key, acc in accumulators['monthly'].items()}

    trends = calculate_trends(daily, weekly, monthly)

    logger.info(
        f"Bucketed time series: {len(daily)} days, {len(weekly)} weeks, "
        f"{len(monthly)} months (cac_trend={trends.cac_trend.value}, "
        f"weekly_performance={trends.weekly_performance.value})"
    )

    return TimeAnalysis(daily=daily, weekly=weekly, monthly=monthly, trends=trends)


__all__ = [
    'DAILY_TREND_WINDOW',
    'DAILY_TREND_THRESHOLD_PCT',
    'WEEKLY_TREND_WINDOW',
    'WEEKLY_TREND_THRESHOLD_PCT',
    'week_key',
    'month_key',
    'BucketAccumulator',
    'bucket_rows',
    'calculate_period_cac',
    'calculate_trends',
    'analyze_time_performance',
]
