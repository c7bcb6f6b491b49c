"""
Backend Services Module

Business logic for the CAC Calculator. Every engine service is stateless: it
takes complete row sequences and returns complete results.

Services:
- normalization: Raw rows -> canonical MarketingRow / RevenueRow / CustomerRecord
- channel_performance: Per-channel totals, ratios, benchmarks, efficiency score
- time_analysis: Daily / weekly / monthly buckets and CAC trend labels
- opportunities: Prioritized optimization actions from channel stats
- cac_methods: Five CAC methodologies, data quality, recommendations
- analysis: analyze() and analyze_cac() orchestration
- insights: Report payload and key insights
- ingestion: CSV / Excel upload parsing and the upload cache

All services are designed to be consumed by the API layer (cac_backend/api/).
"""

# =============================================================================
# Normalization Exports
# =============================================================================

from cac_backend.services.normalization import (
    MarketingRow,
    RevenueRow,
    CustomerRecord,
    normalize_marketing_rows,
    normalize_revenue_rows,
    normalize_customer_records,
    parse_number,
    round_half_up,
    safe_divide,
)

# =============================================================================
# Channel Performance Exports
# =============================================================================

from cac_backend.services.channel_performance import (
    CHANNEL_BENCHMARKS,
    analyze_channel_performance,
    calculate_efficiency_score,
    compare_to_benchmark,
    grade_for_score,
)

# =============================================================================
# Time Analysis Exports
# =============================================================================

from cac_backend.services.time_analysis import (
    analyze_time_performance,
    calculate_period_cac,
    calculate_trends,
    month_key,
    week_key,
)

# =============================================================================
# Opportunity Exports
# =============================================================================

from cac_backend.services.opportunities import (
    identify_optimization_opportunities,
    PRIORITY_RANK,
)

# =============================================================================
# CAC Methodology Exports
# =============================================================================

from cac_backend.services.cac_methods import (
    DEFAULT_CONTRIBUTION_MARGIN,
    calculate_all_methodologies,
    calculate_simple_blended_cac,
    calculate_fully_loaded_cac,
    calculate_channel_specific_cac,
    calculate_cohort_based_cac,
    calculate_contribution_margin_cac,
    assess_data_quality,
    generate_recommendations,
    calculate_overall_confidence,
)

# =============================================================================
# Orchestration Exports
# =============================================================================

from cac_backend.services.analysis import (
    analyze,
    analyze_cac,
    calculate_core_metrics,
    assess_basic_data_quality,
)

from cac_backend.services.insights import (
    build_report_data,
    generate_key_insights,
)

# =============================================================================
# Ingestion Exports
# =============================================================================

from cac_backend.services.ingestion import (
    UploadCache,
    UploadValidationError,
    parse_csv,
    parse_excel,
    parse_upload,
)


__all__ = [
    # Normalization
    'MarketingRow',
    'RevenueRow',
    'CustomerRecord',
    'normalize_marketing_rows',
    'normalize_revenue_rows',
    'normalize_customer_records',
    'parse_number',
    'round_half_up',
    'safe_divide',
    # Channel performance
    'CHANNEL_BENCHMARKS',
    'analyze_channel_performance',
    'calculate_efficiency_score',
    'compare_to_benchmark',
    'grade_for_score',
    # Time analysis
    'analyze_time_performance',
    'calculate_period_cac',
    'calculate_trends',
    'month_key',
    'week_key',
    # Opportunities
    'identify_optimization_opportunities',
    'PRIORITY_RANK',
    # CAC methodologies
    'DEFAULT_CONTRIBUTION_MARGIN',
    'calculate_all_methodologies',
    'calculate_simple_blended_cac',
    'calculate_fully_loaded_cac',
    'calculate_channel_specific_cac',
    'calculate_cohort_based_cac',
    'calculate_contribution_margin_cac',
    'assess_data_quality',
    'generate_recommendations',
    'calculate_overall_confidence',
    # Orchestration
    'analyze',
    'analyze_cac',
    'calculate_core_metrics',
    'assess_basic_data_quality',
    'build_report_data',
    'generate_key_insights',
    # Ingestion
    'UploadCache',
    'UploadValidationError',
    'parse_csv',
    'parse_excel',
    'parse_upload',
]
