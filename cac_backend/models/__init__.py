"""
Package initialization file for backend models.

Re-exports all pydantic schemas and enumerations so other modules can write
`from cac_backend.models import ChannelStats, Priority`.
"""

# =============================================================================
# Enums
# =============================================================================

from cac_backend.models.enums import (
    FileType,
    Grade,
    InsightLevel,
    OpportunityType,
    PerformanceLevel,
    PerformanceTrend,
    Priority,
    RecommendationType,
    TrendDirection,
)

# =============================================================================
# Schemas
# =============================================================================

from cac_backend.models.schemas import (
    RawRow,
    # Channel performance
    BenchmarkMetric,
    BenchmarkComparison,
    ChannelStats,
    # Time analysis
    TimeBucketStats,
    DailyBucketStats,
    Trends,
    TimeAnalysis,
    # Opportunities
    BudgetMove,
    ReallocationMetrics,
    CreativeExpectedResults,
    FunnelExpectedResults,
    ProfitabilityMetrics,
    BudgetImpact,
    Opportunity,
    # Analyze endpoint
    AnalysisDataQuality,
    AnalyzeRequest,
    AnalysisResponse,
    # CAC methodologies
    AdditionalCosts,
    FormulaCalculation,
    SimpleBlendedCalculation,
    FullyLoadedCalculation,
    ContributionMarginCalculation,
    SegmentCAC,
    MethodologyResult,
    SimpleBlendedResult,
    FullyLoadedResult,
    ChannelSpecificResult,
    CohortBasedResult,
    ContributionMarginResult,
    CACCalculations,
    DataQualityAssessment,
    Recommendation,
    CACMetadata,
    CACAnalysisRequest,
    CACAnalysisResponse,
    # Upload
    UploadResponse,
    # Report data
    KeyInsight,
    BusinessConfig,
    KeyMetrics,
    ReportSummary,
    ReportDataRequest,
    ReportDataResponse,
)


__all__ = [
    # Enums
    'FileType',
    'Grade',
    'InsightLevel',
    'OpportunityType',
    'PerformanceLevel',
    'PerformanceTrend',
    'Priority',
    'RecommendationType',
    'TrendDirection',
    # Schemas
    'RawRow',
    'BenchmarkMetric',
    'BenchmarkComparison',
    'ChannelStats',
    'TimeBucketStats',
    'DailyBucketStats',
    'Trends',
    'TimeAnalysis',
    'BudgetMove',
    'ReallocationMetrics',
    'CreativeExpectedResults',
    'FunnelExpectedResults',
    'ProfitabilityMetrics',
    'BudgetImpact',
    'Opportunity',
    'AnalysisDataQuality',
    'AnalyzeRequest',
    'AnalysisResponse',
    'AdditionalCosts',
    'FormulaCalculation',
    'SimpleBlendedCalculation',
    'FullyLoadedCalculation',
    'ContributionMarginCalculation',
    'SegmentCAC',
    'MethodologyResult',
    'SimpleBlendedResult',
    'FullyLoadedResult',
    'ChannelSpecificResult',
    'CohortBasedResult',
    'ContributionMarginResult',
    'CACCalculations',
    'DataQualityAssessment',
    'Recommendation',
    'CACMetadata',
    'CACAnalysisRequest',
    'CACAnalysisResponse',
    'UploadResponse',
    'KeyInsight',
    'BusinessConfig',
    'KeyMetrics',
    'ReportSummary',
    'ReportDataRequest',
    'ReportDataResponse',
]
