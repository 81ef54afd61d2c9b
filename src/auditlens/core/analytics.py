"""Analytics payload assembly.

Filters raw scan payloads once and narrows them to the requested time window,
then computes each requested metric group independently over the same scans.
With no real scans left every group is its empty shape and ``has_data`` is
False, so presentation code never needs per-field checks.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

from ..compliance.registry import TemplateRegistry, default_registry
from ..compliance.scorer import calculate_compliance_score
from ..errors import BenchmarkNotFoundError
from ..models.analytics import (
    AnalyticsGroup,
    AnalyticsPayload,
    BenchmarkComparison,
    ComplianceTracking,
    IssueAnalysis,
    OverviewMetrics,
    PerformanceCorrelation,
    RecentScan,
    RiskAssessment,
    TrendReport,
    WcagAverages,
)
from ..models.scan import ImpactCounts, ScanSummary
from ..utils.numbers import mean, round_int
from ..utils.timestamps import sort_key, to_utc
from .benchmarks import INDUSTRY_BENCHMARKS, compare_to_benchmarks
from .correlation import NO_PERFORMANCE_DATA, performance_correlation
from .leaderboard import issue_analysis
from .normalizer import filter_synthetic
from .risk import assess_risk
from .trends import aggregate_trends, choose_bucket_width

logger = logging.getLogger(__name__)

METRIC_GROUPS = ("overview", "trends", "issues", "performance", "compliance", "risk", "benchmarks")

TIME_RANGES: dict[str, timedelta] = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
    "1y": timedelta(days=365),
}
DEFAULT_TIME_RANGE = "30d"

RECENT_SCAN_COUNT = 5


@dataclass
class _Request:
    """Inputs shared by every group computation for one payload."""

    scans: list[ScanSummary]
    start: Optional[datetime]
    end: Optional[datetime]
    industry: Optional[str]
    template_ids: Optional[Sequence[str]]
    registry: Optional[TemplateRegistry]
    config: Optional[dict]


def resolve_time_range(
    time_range: str,
    end: Optional[datetime],
    scans: Sequence[ScanSummary],
) -> tuple[str, Optional[datetime], Optional[datetime]]:
    """Normalize the range name and derive [start, end].

    Without an explicit end the window closes at the newest scan, so the
    result does not depend on the wall clock.
    """
    if time_range not in TIME_RANGES:
        logger.debug("Unknown time range %r, using %s", time_range, DEFAULT_TIME_RANGE)
        time_range = DEFAULT_TIME_RANGE
    if end is not None:
        end = to_utc(end)
    else:
        stamps = [to_utc(s.timestamp) for s in scans if s.timestamp is not None]
        end = max(stamps) if stamps else None
    if end is None:
        return time_range, None, None
    return time_range, end - TIME_RANGES[time_range], end


def overview_metrics(scans: Sequence[ScanSummary]) -> OverviewMetrics:
    if not scans:
        return OverviewMetrics()
    average = mean(s.overall_score for s in scans if s.overall_score is not None)

    dated = [s for s in scans if s.timestamp is not None]
    dated.sort(key=lambda s: sort_key(s.timestamp), reverse=True)
    recent = [
        RecentScan(id=s.id, score=s.overall_score, issues=s.issue_count, timestamp=s.timestamp, site=s.site)
        for s in dated[:RECENT_SCAN_COUNT]
    ]

    return OverviewMetrics(
        total_scans=len(scans),
        average_score=round_int(average) if average is not None else 0,
        total_issues=sum(s.issue_count for s in scans),
        recent_scans=recent,
        impact_distribution=ImpactCounts(
            critical=sum(s.impact_counts.critical for s in scans),
            serious=sum(s.impact_counts.serious for s in scans),
            moderate=sum(s.impact_counts.moderate for s in scans),
            minor=sum(s.impact_counts.minor for s in scans),
        ),
    )


def _metric_average(scans: Sequence[ScanSummary], name: str) -> int:
    value = mean(v for v in (s.metric(name) for s in scans) if v is not None)
    return round_int(value) if value is not None else 0


def compliance_tracking(
    scans: Sequence[ScanSummary],
    template_ids: Optional[Sequence[str]] = None,
    registry: Optional[TemplateRegistry] = None,
    config: Optional[dict] = None,
) -> ComplianceTracking:
    """WCAG averages, ADA risk distribution and one ComplianceResult per template."""
    if not scans:
        return ComplianceTracking()
    registry = registry or default_registry()
    ids = list(template_ids) if template_ids is not None else registry.ids()

    distribution = Counter(s.ada_risk_level.lower() for s in scans if s.ada_risk_level)

    return ComplianceTracking(
        wcag_compliance=WcagAverages(
            aa=_metric_average(scans, "wcagAACompliance"),
            aaa=_metric_average(scans, "wcagAAACompliance"),
            wcag21=_metric_average(scans, "wcag21Compliance"),
            wcag22=_metric_average(scans, "wcag22Compliance"),
        ),
        risk_distribution=dict(distribution),
        results={
            template_id: calculate_compliance_score(scans, registry.get(template_id), config)
            for template_id in ids
        },
    )


def _trends(request: _Request) -> TrendReport:
    if request.start is None or request.end is None:
        return TrendReport()
    return aggregate_trends(request.scans, request.start, request.end, request.config)


def _issues(request: _Request) -> IssueAnalysis:
    return issue_analysis(request.scans, config=request.config)


def _performance(request: _Request) -> PerformanceCorrelation:
    return performance_correlation(request.scans)


def _compliance(request: _Request) -> ComplianceTracking:
    return compliance_tracking(request.scans, request.template_ids, request.registry, request.config)


def _risk(request: _Request) -> RiskAssessment:
    return assess_risk(request.scans, request.config)


def _benchmarks(request: _Request) -> BenchmarkComparison:
    return compare_to_benchmarks(request.scans, request.industry)


GROUP_BUILDERS: dict[str, Callable[[_Request], AnalyticsGroup]] = {
    "overview": lambda request: overview_metrics(request.scans),
    "trends": _trends,
    "issues": _issues,
    "performance": _performance,
    "compliance": _compliance,
    "risk": _risk,
    "benchmarks": _benchmarks,
}


def empty_group(name: str, request: Optional[_Request] = None) -> AnalyticsGroup:
    """The defined zero shape of a metric group."""
    if name == "trends" and request is not None and request.start and request.end:
        return TrendReport(bucket_width=choose_bucket_width(request.start, request.end, request.config))
    if name == "performance":
        return PerformanceCorrelation(message=NO_PERFORMANCE_DATA)
    return {
        "overview": OverviewMetrics,
        "trends": TrendReport,
        "issues": IssueAnalysis,
        "compliance": ComplianceTracking,
        "risk": RiskAssessment,
        "benchmarks": BenchmarkComparison,
    }[name]()


def _requested_groups(metrics: Union[str, Iterable[str]]) -> list[str]:
    if isinstance(metrics, str):
        metrics = metrics.split(",")
    groups: list[str] = []
    for name in metrics:
        name = name.strip()
        if not name or name in groups:
            continue
        if name not in GROUP_BUILDERS:
            raise ValueError(
                f"Unknown analytics metric group: {name} (available: {', '.join(METRIC_GROUPS)})"
            )
        groups.append(name)
    return groups


def _prepare(
    payloads: Iterable[Any],
    metrics: Iterable[str],
    time_range: str,
    end: Optional[datetime],
    industry: Optional[str],
    template_ids: Optional[Sequence[str]],
    registry: Optional[TemplateRegistry],
    config: Optional[dict],
) -> tuple[list[str], str, _Request]:
    groups = _requested_groups(metrics)

    # configuration errors surface even when no scan survives the filter
    if "benchmarks" in groups and industry is not None and industry not in INDUSTRY_BENCHMARKS:
        raise BenchmarkNotFoundError(industry, list(INDUSTRY_BENCHMARKS))
    if "compliance" in groups and template_ids is not None:
        registry = registry or default_registry()
        for template_id in template_ids:
            registry.get(template_id)

    scans = filter_synthetic(payloads)
    time_range, start, end = resolve_time_range(time_range, end, scans)
    if start is not None and end is not None:
        scans = [
            s for s in scans
            if s.timestamp is not None and start <= to_utc(s.timestamp) <= end
        ]
    request = _Request(scans, start, end, industry, template_ids, registry, config)
    return groups, time_range, request


def _compute(name: str, request: _Request) -> AnalyticsGroup:
    if not request.scans:
        return empty_group(name, request)
    logger.debug("Computing analytics group %s over %d scans", name, len(request.scans))
    return GROUP_BUILDERS[name](request)


def _assemble(
    time_range: str,
    request: _Request,
    results: Mapping[str, AnalyticsGroup],
) -> AnalyticsPayload:
    return AnalyticsPayload(
        has_data=bool(request.scans),
        time_range=time_range,
        start=request.start,
        end=request.end,
        sample_size=len(request.scans),
        analytics=dict(results),
    )


def build_analytics_payload(
    payloads: Iterable[Any],
    metrics: Iterable[str] = ("overview",),
    time_range: str = DEFAULT_TIME_RANGE,
    end: Optional[datetime] = None,
    industry: Optional[str] = None,
    template_ids: Optional[Sequence[str]] = None,
    registry: Optional[TemplateRegistry] = None,
    config: Optional[dict] = None,
) -> AnalyticsPayload:
    """Compute the requested metric groups over the real (non-synthetic) scans.

    Raises ValueError for an unknown group name and propagates configuration
    errors (unknown template or industry).
    """
    groups, time_range, request = _prepare(
        payloads, metrics, time_range, end, industry, template_ids, registry, config
    )
    results = {name: _compute(name, request) for name in groups}
    return _assemble(time_range, request, results)


async def gather_analytics(
    payloads: Iterable[Any],
    metrics: Iterable[str] = ("overview",),
    time_range: str = DEFAULT_TIME_RANGE,
    end: Optional[datetime] = None,
    industry: Optional[str] = None,
    template_ids: Optional[Sequence[str]] = None,
    registry: Optional[TemplateRegistry] = None,
    config: Optional[dict] = None,
) -> AnalyticsPayload:
    """Same payload as build_analytics_payload, groups computed concurrently."""
    groups, time_range, request = _prepare(
        payloads, metrics, time_range, end, industry, template_ids, registry, config
    )
    computed = await asyncio.gather(
        *(asyncio.to_thread(_compute, name, request) for name in groups)
    )
    return _assemble(time_range, request, dict(zip(groups, computed)))
