"""Analytics result data models.

Every model has defaults that describe the empty result, so a payload built
from zero scans is fully populated and never needs null checks per field.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .compliance import ComplianceResult
from .scan import Impact, ImpactCounts


class BucketWidth(str, Enum):
    DAY = "day"
    WEEK = "week"


class TrendBucket(BaseModel):
    bucket_key: str
    average_score: Optional[int] = None
    total_issues: int = 0
    average_secondary_metrics: dict[str, Optional[float]] = {}
    sample_count: int = 0


class TrendReport(BaseModel):
    bucket_width: BucketWidth = BucketWidth.DAY
    buckets: list[TrendBucket] = []


class TrendPattern(BaseModel):
    kind: str
    description: str
    impact: str


class TrendInsights(BaseModel):
    overall_trend: str = "stable"
    trend_percentage: float = 0.0
    average_score_change: float = 0.0
    sudden_changes: int = 0
    best_performing_site: str = ""
    worst_performing_site: str = ""
    patterns: list[TrendPattern] = []
    recommendations: list[str] = []
    predicted_next_week_score: float = 0.0
    prediction_confidence: int = 0
    prediction_factors: list[str] = []


class CorrelationResult(BaseModel):
    coefficient: float = 0.0
    sample_size: int = 0
    mean_a: Optional[float] = None
    mean_b: Optional[float] = None


class PerformanceCorrelation(BaseModel):
    metric: str = "performanceScore"
    correlation: float = 0.0
    sample_size: int = 0
    average_performance: Optional[int] = None
    average_fcp: Optional[int] = None
    average_lcp: Optional[int] = None
    message: str = ""


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class RiskAssessment(BaseModel):
    risk_level: RiskLevel = RiskLevel.LOW
    risk_trend_delta: float = 0.0
    high_risk_count: int = 0
    critical_issue_count: int = 0
    sample_count: int = 0


class AccountHealthFlags(BaseModel):
    """Health signals for one account, supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    account_id: str
    days_since_last_activity: Optional[int] = None
    trial_ending_soon: bool = False
    usage_percent: float = 0.0
    failed_scans: int = 0
    payment_status: str = "active"


class AccountRisk(BaseModel):
    account_id: str
    risk_score: int = 0
    risk_factors: list[str] = []
    risk_label: Optional[str] = None
    at_risk: bool = False


class PortfolioRiskReport(BaseModel):
    at_risk: list[AccountRisk] = []
    total_at_risk: int = 0
    inactive_30_days: int = 0
    trials_ending: int = 0
    payment_issues: int = 0
    high_error_rates: int = 0


class RegressionResult(BaseModel):
    detected: bool = False
    kind: Optional[str] = None
    severity: str = "LOW"
    message: str = "No regression detected"
    current_score: float
    previous_score: Optional[float] = None
    threshold: float


class LeaderboardEntry(BaseModel):
    rank: int
    rule_id: str
    occurrence_count: int
    impact: Optional[Impact] = None
    title: str
    remediation_hint: str


class IssueAnalysis(BaseModel):
    top_issues: list[LeaderboardEntry] = []
    total_unique_rules: int = 0
    issue_frequency: dict[str, int] = {}


class BenchmarkCohort(BaseModel):
    model_config = ConfigDict(frozen=True)

    industry: str
    avg_score: float
    avg_critical: float
    avg_serious: float
    avg_wcag_aa: float
    avg_wcag_aaa: float
    avg_performance: Optional[float] = None
    sample_size: int = 0


class UserStats(BaseModel):
    avg_score: int = 0
    avg_wcag: int = 0
    avg_performance: int = 0
    avg_critical: int = 0
    avg_serious: int = 0
    sample_size: int = 0


class MetricComparison(BaseModel):
    user: int
    industry: int
    difference: int


class CohortComparison(BaseModel):
    industry: str
    score: MetricComparison
    critical: MetricComparison
    serious: MetricComparison
    wcag_aa: MetricComparison
    percentile: str
    overall_ranking: str
    recommendations: list[str] = []


class BenchmarkComparison(BaseModel):
    user_stats: UserStats = UserStats()
    industry_benchmarks: dict[str, BenchmarkCohort] = {}
    comparison: Optional[CohortComparison] = None


class RecentScan(BaseModel):
    id: str
    score: Optional[float] = None
    issues: int = 0
    timestamp: Optional[datetime] = None
    site: Optional[str] = None


class OverviewMetrics(BaseModel):
    total_scans: int = 0
    average_score: int = 0
    total_issues: int = 0
    recent_scans: list[RecentScan] = []
    impact_distribution: ImpactCounts = ImpactCounts()


class WcagAverages(BaseModel):
    aa: int = 0
    aaa: int = 0
    wcag21: int = 0
    wcag22: int = 0


class ComplianceTracking(BaseModel):
    wcag_compliance: WcagAverages = WcagAverages()
    risk_distribution: dict[str, int] = {}
    results: dict[str, ComplianceResult] = {}


AnalyticsGroup = Union[
    OverviewMetrics,
    TrendReport,
    IssueAnalysis,
    PerformanceCorrelation,
    ComplianceTracking,
    RiskAssessment,
    BenchmarkComparison,
]


class AnalyticsPayload(BaseModel):
    """The single result object handed to presentation layers."""

    has_data: bool = False
    time_range: str = "30d"
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    sample_size: int = 0
    analytics: dict[str, AnalyticsGroup] = Field(default_factory=dict)
