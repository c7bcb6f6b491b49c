"""
Row Normalizer Service

Coerces arbitrary tabular rows (header name -> string | number | None) into the
canonical rows consumed by the metrics engine.

Each canonical field is resolved from an ordered list of candidate column names.
The first candidate that is present and non-empty wins; its value is parsed as a
float with leading-number semantics ("12.5 USD" -> 12.5, "n/a" -> 0). Values
that cannot be parsed, are not finite, or are negative resolve to 0. A missing
channel resolves to "Unknown". No row is ever rejected.
"""

from dataclasses import dataclass
from datetime import date
from functools import lru_cache
import math
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

# =============================================================================
# CONSTANTS - Candidate Field Names (priority order)
# =============================================================================

UNKNOWN_CHANNEL: str = 'Unknown'

# Distinct date strings kept by parse_row_date
DATE_CACHE_SIZE: int = 65536

MARKETING_FIELDS: Dict[str, Tuple[str, ...]] = {
    'date': ('date',),
    'channel': ('channel', 'source'),
    'campaign_name': ('campaign_name', 'campaign', 'campaignName'),
    'spend': ('spend', 'amount', 'cost'),
    'clicks': ('clicks',),
    'impressions': ('impressions',),
    'customers': ('customers', 'conversions', 'new_customers', 'acquisitions'),
}

REVENUE_FIELDS: Dict[str, Tuple[str, ...]] = {
    'date': ('date',),
    'channel': ('channel', 'source'),
    'revenue': ('revenue',),
    'customers': ('customers', 'new_customers', 'acquisitions'),
    'ltv': ('ltv', 'clv', 'value'),
}

CUSTOMER_FIELDS: Dict[str, Tuple[str, ...]] = {
    'ltv': ('ltv', 'clv', 'value'),
}

# Leading decimal number, optionally signed, with optional exponent
_LEADING_NUMBER = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')


# =============================================================================
# CANONICAL ROW TYPES
# =============================================================================

@dataclass(frozen=True)
class MarketingRow:
    """One row of marketing spend data."""
    date: Optional[str]
    channel: str
    campaign_name: Optional[str]
    spend: float = 0.0
    clicks: float = 0.0
    impressions: float = 0.0
    customers: float = 0.0


@dataclass(frozen=True)
class RevenueRow:
    """One row of revenue / acquisition data."""
    date: Optional[str]
    channel: str
    revenue: float = 0.0
    customers: float = 0.0
    ltv: Optional[float] = None


@dataclass(frozen=True)
class CustomerRecord:
    """One customer-level record, used for contribution-margin CAC."""
    ltv: float = 0.0


# =============================================================================
# FIELD RESOLUTION
# =============================================================================

def parse_number(value: Any) -> float:
    """
    Parse a raw cell into a finite float.

    Numbers pass through; strings are read up to the first character that
    cannot continue a decimal number. Anything else, or a non-finite result,
    yields 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    try:
        if isinstance(value, (int, float)):
            number = float(value)
        else:
            match = _LEADING_NUMBER.match(str(value))
            if not match:
                return 0.0
            number = float(match.group(1))
    except (OverflowError, ValueError):
        return 0.0

    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up (2.5 -> 3), unlike the built-in banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def safe_divide(numerator: float, denominator: float) -> float:
    """Divide, returning 0.0 instead of raising or producing inf/NaN when the denominator is 0."""
    if not denominator:
        return 0.0
    return numerator / denominator


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ''


def first_present(row: Mapping[str, Any], candidates: Iterable[str]) -> Any:
    """Return the first candidate value that is present and non-empty, else None."""
    for name in candidates:
        value = row.get(name)
        if not _is_blank(value):
            return value
    return None


def read_number(row: Mapping[str, Any], candidates: Iterable[str]) -> float:
    """Resolve a non-negative numeric field; missing or unparseable is 0."""
    number = parse_number(first_present(row, candidates))
    return number if number > 0 else 0.0


def _to_text(value: Any) -> str:
    # Spreadsheet parsers turn numeric-looking labels into floats
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def read_text(
    row: Mapping[str, Any],
    candidates: Iterable[str],
    default: Optional[str] = None
) -> Optional[str]:
    """Resolve a string field, falling back to `default` when absent."""
    value = first_present(row, candidates)
    if value is None:
        return default
    return _to_text(value)


@lru_cache(maxsize=DATE_CACHE_SIZE)
def parse_row_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a row's date string into a calendar date.

    Returns None for missing or unparseable dates. Results are memoized per
    distinct string.
    """
    if value is None:
        return None
    parsed = pd.to_datetime(value, errors='coerce')
    if pd.isna(parsed):
        return None
    return parsed.date()


# =============================================================================
# ROW NORMALIZATION
# =============================================================================

def normalize_marketing_row(row: Mapping[str, Any]) -> MarketingRow:
    """Build a MarketingRow from a raw row."""
    return MarketingRow(
        date=read_text(row, MARKETING_FIELDS['date']),
        channel=read_text(row, MARKETING_FIELDS['channel'], UNKNOWN_CHANNEL),
        campaign_name=read_text(row, MARKETING_FIELDS['campaign_name']),
        spend=read_number(row, MARKETING_FIELDS['spend']),
        clicks=read_number(row, MARKETING_FIELDS['clicks']),
        impressions=read_number(row, MARKETING_FIELDS['impressions']),
        customers=read_number(row, MARKETING_FIELDS['customers']),
    )


def normalize_revenue_row(row: Mapping[str, Any]) -> RevenueRow:
    """Build a RevenueRow from a raw row."""
    ltv_value = first_present(row, REVENUE_FIELDS['ltv'])
    return RevenueRow(
        date=read_text(row, REVENUE_FIELDS['date']),
        channel=read_text(row, REVENUE_FIELDS['channel'], UNKNOWN_CHANNEL),
        revenue=read_number(row, REVENUE_FIELDS['revenue']),
        customers=read_number(row, REVENUE_FIELDS['customers']),
        ltv=read_number(row, REVENUE_FIELDS['ltv']) if ltv_value is not None else None,
    )


def normalize_customer_record(row: Mapping[str, Any]) -> CustomerRecord:
    """Build a CustomerRecord from a raw row."""
    return CustomerRecord(ltv=read_number(row, CUSTOMER_FIELDS['ltv']))


def normalize_marketing_rows(rows: Iterable[Mapping[str, Any]]) -> List[MarketingRow]:
    return [normalize_marketing_row(row) for row in rows]


def normalize_revenue_rows(rows: Iterable[Mapping[str, Any]]) -> List[RevenueRow]:
    return [normalize_revenue_row(row) for row in rows]


def normalize_customer_records(rows: Iterable[Mapping[str, Any]]) -> List[CustomerRecord]:
    return [normalize_customer_record(row) for row in rows]


__all__ = [
    'UNKNOWN_CHANNEL',
    'MARKETING_FIELDS',
    'REVENUE_FIELDS',
    'CUSTOMER_FIELDS',
    'MarketingRow',
    'RevenueRow',
    'CustomerRecord',
    'parse_number',
    'round_half_up',
    'safe_divide',
    'first_present',
    'read_number',
    'read_text',
    'parse_row_date',
    'normalize_marketing_row',
    'normalize_revenue_row',
    'normalize_customer_record',
    'normalize_marketing_rows',
    'normalize_revenue_rows',
    'normalize_customer_records',
]
