"""
Pydantic request/response models for the CAC Calculator backend.

This module provides type-safe validation and serialization for the metrics
engine outputs and the API contracts built on them:
- Channel performance (ChannelStats with benchmark comparison)
- Time-series buckets and trend labels
- Optimization opportunities
- The five CAC methodology results and their analysis envelope
- Upload and report-data payloads

Field names are camelCase because they are the JSON contract consumed by the
browser UI. All models use Pydantic v2 syntax.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

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


# Raw tabular row as produced by the upload parser: header -> str | number
RawRow = Dict[str, Any]


# =============================================================================
# Channel Performance
# =============================================================================


class BenchmarkMetric(BaseModel):
    """Comparison of one channel metric against its benchmark value."""
    actual: float = Field(..., description="Observed metric value")
    benchmark: float = Field(..., description="Benchmark value for the channel")
    performance: PerformanceLevel = Field(..., description="above / average / below")
    percentDiff: float = Field(
        ...,
        description="Signed percentage difference; positive is favorable"
    )


class BenchmarkComparison(BaseModel):
    """CTR, CVR and CAC benchmark comparisons for a channel."""
    ctr: BenchmarkMetric
    cvr: BenchmarkMetric
    cac: BenchmarkMetric


class ChannelStats(BaseModel):
    """
    Aggregated performance for one channel key.

    Accumulators are summed over marketing rows (revenue from revenue rows whose
    channel already exists). `days` and `campaigns` are distinct-value counts.
    Every ratio is 0 when its denominator is 0.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "spend": 1000.0,
                "customers": 20.0,
                "clicks": 500.0,
                "impressions": 10000.0,
                "revenue": 5000.0,
                "days": 1,
                "campaigns": 1,
                "cac": 50.0,
                "ctr": 5.0,
                "cvr": 4.0,
                "cpc": 2.0,
                "roas": 5.0,
                "avgDailySpend": 1000.0,
                "efficiencyScore": 100,
                "grade": "A",
            }
        }
    )

    spend: float = Field(default=0.0, ge=0.0)
    customers: float = Field(default=0.0, ge=0.0)
    clicks: float = Field(default=0.0, ge=0.0)
    impressions: float = Field(default=0.0, ge=0.0)
    revenue: float = Field(default=0.0, ge=0.0)
    days: int = Field(default=0, ge=0, description="Distinct dates seen")
    campaigns: int = Field(default=0, ge=0, description="Distinct campaign names seen")

    cac: float = Field(default=0.0, ge=0.0, description="spend / customers")
    ctr: float = Field(default=0.0, ge=0.0, description="clicks / impressions x 100")
    cvr: float = Field(default=0.0, ge=0.0, description="customers / clicks x 100")
    cpc: float = Field(default=0.0, ge=0.0, description="spend / clicks")
    roas: float = Field(default=0.0, ge=0.0, description="revenue / spend")
    avgDailySpend: float = Field(default=0.0, ge=0.0, description="spend / days")
    costPerImpression: float = Field(default=0.0, ge=0.0, description="CPM")

    benchmark: BenchmarkComparison
    efficiencyScore: int = Field(..., ge=0, le=100)
    grade: Grade

    avgRevenuePerCustomer: float = Field(default=0.0, ge=0.0)
    ltv: float = Field(default=0.0, ge=0.0)
    ltvCacRatio: float = Field(default=0.0, ge=0.0)


# =============================================================================
# Time Analysis
# =============================================================================


class TimeBucketStats(BaseModel):
    """Spend, customers and revenue accumulated into one time bucket."""
    spend: float = 0.0
    customers: float = 0.0
    revenue: float = 0.0
    cac: float = 0.0
    roas: float = 0.0


class DailyBucketStats(TimeBucketStats):
    """Daily bucket; also lists the channels active that day."""
    channels: List[str] = Field(default_factory=list)


class Trends(BaseModel):
    """Trend labels computed once per analysis from bucketed stats."""
    cac_trend: TrendDirection = TrendDirection.STABLE
    spend_trend: TrendDirection = TrendDirection.STABLE
    customer_trend: TrendDirection = TrendDirection.STABLE
    weekly_performance: PerformanceTrend = PerformanceTrend.STABLE
    monthly_performance: PerformanceTrend = PerformanceTrend.STABLE


class TimeAnalysis(BaseModel):
    """Daily (raw date), weekly (YYYY-Www) and monthly (YYYY-MM) buckets."""
    daily: Dict[str, DailyBucketStats] = Field(default_factory=dict)
    weekly: Dict[str, TimeBucketStats] = Field(default_factory=dict)
    monthly: Dict[str, TimeBucketStats] = Field(default_factory=dict)
    trends: Trends = Field(default_factory=Trends)


# =============================================================================
# Optimization Opportunities
# =============================================================================


class BudgetMove(BaseModel):
    """Daily budget shift between two channels."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: str = Field(..., alias="from")
    to: str
    amount: int = Field(..., ge=0)
    frequency: str = "daily"


class ReallocationMetrics(BaseModel):
    """CAC targets attached to a budget_reallocation opportunity."""
    model_config = ConfigDict(frozen=True)

    currentCAC: float
    targetCAC: float
    expectedROI: int = Field(..., description="Projected monthly return in dollars")


class CreativeExpectedResults(BaseModel):
    """Projected click lift from a creative refresh."""
    model_config = ConfigDict(frozen=True)

    currentClicks: int
    projectedClicks: int
    additionalCustomers: int


class FunnelExpectedResults(BaseModel):
    """Projected conversion lift from funnel fixes."""
    model_config = ConfigDict(frozen=True)

    currentConversions: int
    projectedConversions: int
    cacImprovement: float


class ProfitabilityMetrics(BaseModel):
    """Current unit economics for a profitability_optimization opportunity."""
    model_config = ConfigDict(frozen=True)

    roas: float
    avgCustomerValue: float
    ltvCacRatio: float


class BudgetImpact(BaseModel):
    """Monthly view of a strategic reallocation."""
    model_config = ConfigDict(frozen=True)

    monthlyReallocation: int
    projectedSavings: int
    riskLevel: str = "low"


class Opportunity(BaseModel):
    """
    A prioritized optimization action.

    Immutable once emitted. `channel` is omitted for strategic_reallocation,
    which spans the best and worst channels.
    """
    model_config = ConfigDict(frozen=True)

    type: OpportunityType
    channel: Optional[str] = None
    issue: str
    recommendation: str
    specificActions: List[str] = Field(default_factory=list)
    impact: str
    timeline: str
    priority: Priority
    budgetMove: Optional[BudgetMove] = None
    metrics: Optional[ReallocationMetrics] = None
    expectedResults: Optional[Union[CreativeExpectedResults, FunnelExpectedResults]] = None
    currentMetrics: Optional[ProfitabilityMetrics] = None
    budgetImpact: Optional[BudgetImpact] = None


# =============================================================================
# Analyze Endpoint
# =============================================================================


class AnalysisDataQuality(BaseModel):
    """Field-presence completeness of the analyzed inputs."""
    completeness: str = Field(..., description="Percentage string, e.g. '83%'")
    marketingRows: int = Field(..., ge=0)
    revenueRows: int = Field(..., ge=0)


class AnalyzeRequest(BaseModel):
    """Request body for POST /api/analyze."""
    marketing: List[RawRow] = Field(default_factory=list)
    revenue: List[RawRow] = Field(default_factory=list)
    businessModel: Dict[str, Any] = Field(default_factory=dict)
    projectConfig: Dict[str, Any] = Field(default_factory=dict)


class AnalysisResponse(BaseModel):
    """Complete result of one analyze() invocation."""
    blendedCAC: float = Field(..., ge=0.0)
    totalSpend: float = Field(..., ge=0.0)
    totalCustomers: float = Field(..., ge=0.0)
    totalRevenue: float = Field(..., ge=0.0)
    channelPerformance: Dict[str, ChannelStats] = Field(default_factory=dict)
    timeAnalysis: TimeAnalysis = Field(default_factory=TimeAnalysis)
    opportunities: List[Opportunity] = Field(default_factory=list)
    dataQuality: AnalysisDataQuality
    rawData: Optional[Dict[str, List[RawRow]]] = None


# =============================================================================
# CAC Methodologies
# =============================================================================


class AdditionalCosts(BaseModel):
    """Non-media acquisition costs folded into fully-loaded CAC."""
    teamCosts: float = 0.0
    toolCosts: float = 0.0
    overheadCosts: float = 0.0


class FormulaCalculation(BaseModel):
    formula: str


class SimpleBlendedCalculation(FormulaCalculation):
    totalSpend: float
    totalCustomers: float


class FullyLoadedCalculation(FormulaCalculation):
    marketingSpend: float
    teamCosts: float
    toolCosts: float
    overheadCosts: float
    totalCosts: float
    totalCustomers: float


class ContributionMarginCalculation(FormulaCalculation):
    totalSpend: float
    totalCustomers: float
    averageContributionMargin: int = Field(..., description="Margin as a whole percentage")


class SegmentCAC(BaseModel):
    """CAC for one channel or cohort."""
    value: float
    spend: float
    customers: float
    confidence: int = Field(..., ge=1, le=5)


class MethodologyResult(BaseModel):
    """Explanation triple and confidence shared by every methodology."""
    explanation: str
    useCase: str
    limitations: str
    confidence: int = Field(..., ge=1, le=5)


class SimpleBlendedResult(MethodologyResult):
    value: float
    calculation: SimpleBlendedCalculation


class FullyLoadedResult(MethodologyResult):
    value: float
    calculation: FullyLoadedCalculation


class ChannelSpecificResult(MethodologyResult):
    channels: Dict[str, SegmentCAC] = Field(default_factory=dict)
    calculation: FormulaCalculation


class CohortBasedResult(MethodologyResult):
    cohorts: Dict[str, SegmentCAC] = Field(default_factory=dict)
    calculation: FormulaCalculation


class ContributionMarginResult(MethodologyResult):
    value: float
    calculation: ContributionMarginCalculation


class CACCalculations(BaseModel):
    """The five independent CAC methodology results."""
    simpleBlended: SimpleBlendedResult
    fullyLoaded: FullyLoadedResult
    channelSpecific: ChannelSpecificResult
    cohortBased: CohortBasedResult
    contributionMargin: ContributionMarginResult

    def confidences(self) -> List[int]:
        return [
            self.simpleBlended.confidence,
            self.fullyLoaded.confidence,
            self.channelSpecific.confidence,
            self.cohortBased.confidence,
            self.contributionMargin.confidence,
        ]


class DataQualityAssessment(BaseModel):
    """Data quality scoring for the CAC methodology analysis."""
    completeness: float = 0.0
    consistency: float = 0.0
    accuracy: float = 0.0
    coverage: float = 0.0
    overall: float = 0.0
    issues: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class Recommendation(BaseModel):
    """Recommendation attached to a CAC analysis."""
    type: RecommendationType
    priority: Priority
    title: str
    description: str
    action: str


class CACMetadata(BaseModel):
    analysisDate: str
    businessModel: Optional[Any] = None
    timeRange: Optional[Any] = None
    confidence: float


class CACAnalysisRequest(BaseModel):
    """Request body for POST /api/analyze-cac."""
    businessModel: Optional[Any] = None
    marketingData: Optional[List[RawRow]] = None
    revenueData: Optional[List[RawRow]] = None
    customerData: Optional[List[RawRow]] = None
    additionalCosts: Optional[AdditionalCosts] = None
    analysisConfig: Optional[Dict[str, Any]] = None


class CACAnalysisResponse(BaseModel):
    """Complete result of one analyzeCAC() invocation."""
    calculations: CACCalculations
    dataQuality: DataQualityAssessment
    recommendations: List[Recommendation] = Field(default_factory=list)
    metadata: CACMetadata


# =============================================================================
# Upload
# =============================================================================


class UploadResponse(BaseModel):
    """Parsed upload returned to the browser before analysis."""
    headers: List[str]
    data: List[RawRow]
    rowCount: int = Field(..., ge=0)
    filename: str
    fileType: FileType


# =============================================================================
# Report Data
# =============================================================================


class KeyInsight(BaseModel):
    type: str
    level: InsightLevel
    title: str
    description: str
    recommendation: str


class BusinessConfig(BaseModel):
    businessType: str = "Not specified"
    revenueModel: str = "Not specified"
    customerDefinition: str = "Not specified"
    analysisDate: str
    analysisPeriod: Any = "Full dataset"


class KeyMetrics(BaseModel):
    totalSpend: float = 0.0
    totalCustomers: float = 0.0
    totalRevenue: float = 0.0
    averageOrderValue: float = 0.0
    totalCampaigns: int = 0


class ReportSummary(BaseModel):
    businessConfig: BusinessConfig
    keyMetrics: KeyMetrics


class ReportDataRequest(BaseModel):
    """Request body for POST /api/generate-report-data."""
    results: Optional[CACAnalysisResponse] = None
    businessModel: Optional[Dict[str, Any]] = None
    analysisConfig: Optional[Dict[str, Any]] = None
    marketingData: Optional[List[RawRow]] = None
    revenueData: Optional[List[RawRow]] = None


class ReportDataResponse(BaseModel):
    summary: ReportSummary
    cacBreakdown: Optional[CACCalculations] = None
    dataQuality: Optional[DataQualityAssessment] = None
    recommendations: List[Recommendation] = Field(default_factory=list)
    channelAnalysis: Dict[str, ChannelStats] = Field(default_factory=dict)
    timeAnalysis: Optional[TimeAnalysis] = None
    insights: List[KeyInsight] = Field(default_factory=list)
