"""
Enumeration definitions for the CAC Calculator backend.

All enums inherit from both `str` and `Enum` so they serialize as plain strings
in pydantic models and JSON responses.
"""

from enum import Enum


class PerformanceLevel(str, Enum):
    """
    Position of a channel metric relative to its benchmark.

    - above: better than benchmark (higher CTR/CVR, lower CAC)
    - average: within the 20% tolerance band
    - below: more than 20% worse than benchmark
    """
    ABOVE = "above"
    AVERAGE = "average"
    BELOW = "below"


class Grade(str, Enum):
    """Letter grade derived from the 0-100 efficiency score."""
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


class TrendDirection(str, Enum):
    """Raw direction label for CAC, spend and customer trends."""
    STABLE = "stable"
    INCREASING = "increasing"
    DECREASING = "decreasing"


class PerformanceTrend(str, Enum):
    """
    Judgment label for weekly/monthly performance.

    A rising CAC is 'deteriorating', a falling CAC is 'improving'.
    """
    STABLE = "stable"
    IMPROVING = "improving"
    DETERIORATING = "deteriorating"


class OpportunityType(str, Enum):
    """Kinds of optimization action emitted by the opportunity ranker."""
    BUDGET_REALLOCATION = "budget_reallocation"
    CREATIVE_OPTIMIZATION = "creative_optimization"
    FUNNEL_OPTIMIZATION = "funnel_optimization"
    PROFITABILITY_OPTIMIZATION = "profitability_optimization"
    STRATEGIC_REALLOCATION = "strategic_reallocation"


class Priority(str, Enum):
    """Opportunity priority. Ranked high > medium > low."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendationType(str, Enum):
    """Category of a CAC-analysis recommendation."""
    QUICK_WIN = "quick_win"
    STRATEGIC = "strategic"
    RED_FLAG = "red_flag"


class InsightLevel(str, Enum):
    """Severity of a report key insight."""
    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"


class FileType(str, Enum):
    """Source format of an uploaded data file."""
    CSV = "csv"
    EXCEL = "excel"
