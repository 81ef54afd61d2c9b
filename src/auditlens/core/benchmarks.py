"""Comparison of a caller's averages with static industry cohorts.

No statistical test is made; cohorts are reference numbers shown side by side
with the caller's own averages.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional, Sequence

from ..errors import BenchmarkNotFoundError
from ..models.analytics import (
    BenchmarkCohort,
    BenchmarkComparison,
    CohortComparison,
    MetricComparison,
    UserStats,
)
from ..models.scan import ScanSummary
from ..utils.numbers import mean, round_int


def _cohort(industry, score, critical, serious, wcag_aa, wcag_aaa, sample_size, performance=None):
    return BenchmarkCohort(
        industry=industry,
        avg_score=score,
        avg_critical=critical,
        avg_serious=serious,
        avg_wcag_aa=wcag_aa,
        avg_wcag_aaa=wcag_aaa,
        avg_performance=performance,
        sample_size=sample_size,
    )


INDUSTRY_BENCHMARKS: Mapping[str, BenchmarkCohort] = MappingProxyType({
    c.industry: c
    for c in (
        _cohort("ecommerce", 75.2, 3.1, 7.8, 68.3, 45.7, 2847, performance=72),
        _cohort("healthcare", 82.1, 2.3, 5.9, 78.5, 62.1, 1234, performance=68),
        _cohort("education", 79.4, 2.8, 6.5, 74.2, 55.8, 1567, performance=71),
        _cohort("government", 87.9, 1.4, 3.2, 85.7, 71.3, 892, performance=66),
        _cohort("finance", 81.6, 2.1, 5.3, 76.8, 58.4, 1045),
        _cohort("media", 73.8, 3.7, 8.9, 65.9, 41.2, 1823),
        _cohort("technology", 77.3, 2.9, 7.1, 71.5, 48.9, 3156),
        _cohort("nonprofit", 71.2, 4.1, 9.7, 62.7, 38.5, 967),
        _cohort("travel", 74.6, 3.4, 8.2, 67.1, 43.6, 1378),
        _cohort("general", 76.8, 2.9, 7.4, 70.9, 49.7, 15234, performance=70),
    )
})

PERCENTILE_BANDS = (
    (20, "95th percentile"),
    (15, "90th percentile"),
    (10, "80th percentile"),
    (5, "70th percentile"),
    (0, "60th percentile"),
    (-5, "40th percentile"),
    (-10, "30th percentile"),
    (-15, "20th percentile"),
    (-20, "10th percentile"),
)

RANKING_BANDS = (
    (80, "Excellent - Top 10%"),
    (60, "Good - Above Average"),
    (40, "Average - Industry Standard"),
    (20, "Below Average"),
)


def _avg(values) -> int:
    value = mean(values)
    return round_int(value) if value is not None else 0


def user_stats(scans: Sequence[ScanSummary]) -> UserStats:
    return UserStats(
        avg_score=_avg(s.overall_score for s in scans if s.overall_score is not None),
        avg_wcag=_avg(v for v in (s.metric("wcagAACompliance") for s in scans) if v is not None),
        avg_performance=_avg(v for v in (s.metric("performanceScore") for s in scans) if v is not None),
        avg_critical=_avg(s.impact_counts.critical for s in scans),
        avg_serious=_avg(s.impact_counts.serious for s in scans),
        sample_size=len(scans),
    )


def percentile_label(user_score: float, industry_score: float) -> str:
    difference = user_score - industry_score
    for floor, label in PERCENTILE_BANDS:
        if difference >= floor:
            return label
    return "5th percentile"


def overall_ranking(stats: UserStats, cohort: BenchmarkCohort) -> str:
    """Points: score 30, WCAG AA 30, critical issues 40 (fewer is better)."""
    points = 0

    if stats.avg_score > cohort.avg_score:
        points += 30
    elif stats.avg_score >= cohort.avg_score * 0.9:
        points += 20
    elif stats.avg_score >= cohort.avg_score * 0.8:
        points += 10

    if stats.avg_wcag > cohort.avg_wcag_aa:
        points += 30
    elif stats.avg_wcag >= cohort.avg_wcag_aa * 0.9:
        points += 20
    elif stats.avg_wcag >= cohort.avg_wcag_aa * 0.8:
        points += 10

    if stats.avg_critical < cohort.avg_critical:
        points += 40
    elif stats.avg_critical <= cohort.avg_critical * 1.1:
        points += 30
    elif stats.avg_critical <= cohort.avg_critical * 1.2:
        points += 20
    elif stats.avg_critical <= cohort.avg_critical * 1.5:
        points += 10

    for floor, label in RANKING_BANDS:
        if points >= floor:
            return label
    return "Needs Improvement"


def _metric(user: int, industry: float) -> MetricComparison:
    rounded = round_int(industry)
    return MetricComparison(user=user, industry=rounded, difference=user - rounded)


def _recommendations(score: MetricComparison, critical: MetricComparison, wcag: MetricComparison) -> list[str]:
    recommendations = []
    if score.difference < 0:
        recommendations.append(
            "Focus on improving overall accessibility score through systematic issue resolution"
        )
    if critical.difference > 0:
        recommendations.append(
            "Prioritize reducing critical accessibility issues to match industry standards"
        )
    if wcag.difference < 0:
        recommendations.append("Improve WCAG 2.1 AA compliance to exceed industry benchmarks")
    if score.user < 80:
        recommendations.append(
            "Implement comprehensive accessibility testing in your development workflow"
        )
    if critical.user > 2:
        recommendations.append(
            "Address critical issues immediately as they pose significant barriers to users"
        )
    if not recommendations:
        recommendations = [
            "Excellent work! Continue monitoring and maintaining high accessibility standards",
            "Consider becoming an accessibility leader by sharing best practices",
        ]
    return recommendations


def compare_cohort(stats: UserStats, cohort: BenchmarkCohort) -> CohortComparison:
    score = _metric(stats.avg_score, cohort.avg_score)
    critical = _metric(stats.avg_critical, cohort.avg_critical)
    serious = _metric(stats.avg_serious, cohort.avg_serious)
    wcag = _metric(stats.avg_wcag, cohort.avg_wcag_aa)
    return CohortComparison(
        industry=cohort.industry,
        score=score,
        critical=critical,
        serious=serious,
        wcag_aa=wcag,
        percentile=percentile_label(stats.avg_score, cohort.avg_score),
        overall_ranking=overall_ranking(stats, cohort),
        recommendations=_recommendations(score, critical, wcag),
    )


def compare_to_benchmarks(
    scans: Sequence[ScanSummary],
    industry: Optional[str] = None,
    benchmarks: Optional[Mapping[str, BenchmarkCohort]] = None,
) -> BenchmarkComparison:
    """User averages next to every cohort, plus a detailed comparison for one industry.

    Raises BenchmarkNotFoundError for an unknown industry.
    """
    table = INDUSTRY_BENCHMARKS if benchmarks is None else benchmarks
    stats = user_stats(scans)

    comparison = None
    if industry is not None:
        cohort = table.get(industry)
        if cohort is None:
            raise BenchmarkNotFoundError(industry, list(table))
        comparison = compare_cohort(stats, cohort)

    return BenchmarkComparison(
        user_stats=stats,
        industry_benchmarks=dict(table),
        comparison=comparison,
    )
