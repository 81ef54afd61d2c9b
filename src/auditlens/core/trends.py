"""Historical trend bucketing and trend insights."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..models.analytics import BucketWidth, TrendBucket, TrendInsights, TrendPattern, TrendReport
from ..models.scan import ScanSummary
from ..utils.numbers import mean, round_half_up, round_int
from ..utils.timestamps import sort_key, to_utc
from .config import section as config_section

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA_RECOMMENDATION = "Run more scans to generate meaningful trend analysis"

TREND_RECOMMENDATIONS = {
    "declining": [
        "Schedule regular accessibility audits to prevent further regression",
        "Implement automated testing in your CI/CD pipeline",
    ],
    "improving": [
        "Continue current remediation efforts - they are working well",
        "Consider sharing best practices across all sites",
    ],
    "stable": [
        "Establish consistent accessibility monitoring schedule",
        "Focus on proactive improvements rather than reactive fixes",
    ],
}

PREDICTION_FACTORS = [
    "Historical trend analysis",
    "Seasonal accessibility patterns",
    "Site update frequency correlation",
]


def choose_bucket_width(start: datetime, end: datetime, config: Optional[dict] = None) -> BucketWidth:
    """Weekly buckets for ranges longer than the configured day count."""
    limit = config_section(config, "trends")["week_bucket_after_days"]
    days = math.ceil((to_utc(end) - to_utc(start)) / timedelta(days=1))
    return BucketWidth.WEEK if days > limit else BucketWidth.DAY


def bucket_key(timestamp: datetime, width: BucketWidth) -> str:
    day: date = to_utc(timestamp).date()
    if width is BucketWidth.WEEK:
        # weeks start on the Sunday on or before the scan date
        day = day - timedelta(days=(day.weekday() + 1) % 7)
    return day.isoformat()


def _bucket(key: str, scans: list[ScanSummary]) -> TrendBucket:
    scores = [s.overall_score for s in scans if s.overall_score is not None]
    average = mean(scores)

    metric_names = sorted({name for s in scans for name in s.secondary_metrics})
    metrics: dict[str, Optional[float]] = {}
    for name in metric_names:
        value = mean(s.secondary_metrics[name] for s in scans if name in s.secondary_metrics)
        metrics[name] = round_half_up(value, 2) if value is not None else None

    return TrendBucket(
        bucket_key=key,
        average_score=round_int(average) if average is not None else None,
        total_issues=sum(s.issue_count for s in scans),
        average_secondary_metrics=metrics,
        sample_count=len(scans),
    )


def aggregate_trends(
    scans: Sequence[ScanSummary],
    start: datetime,
    end: datetime,
    config: Optional[dict] = None,
) -> TrendReport:
    """Group scans inside [start, end] into day or week buckets.

    Only keys with at least one scan produce a bucket.
    """
    width = choose_bucket_width(start, end, config)
    start_utc, end_utc = to_utc(start), to_utc(end)

    grouped: dict[str, list[ScanSummary]] = defaultdict(list)
    for scan in scans:
        if scan.timestamp is None:
            continue
        if not start_utc <= to_utc(scan.timestamp) <= end_utc:
            continue
        grouped[bucket_key(scan.timestamp, width)].append(scan)

    buckets = [_bucket(key, grouped[key]) for key in sorted(grouped)]
    logger.debug("Built %d %s buckets from %d scans", len(buckets), width.value, len(scans))
    return TrendReport(bucket_width=width, buckets=buckets)


def _chronological(scans: Sequence[ScanSummary]) -> list[ScanSummary]:
    return sorted(scans, key=lambda s: sort_key(s.timestamp))


def _site_extremes(scans: Sequence[ScanSummary]) -> tuple[str, str]:
    by_site: dict[str, list[float]] = defaultdict(list)
    for scan in scans:
        if scan.site and scan.overall_score:
            by_site[scan.site].append(scan.overall_score)

    best, worst = "", ""
    best_avg, worst_avg = 0.0, 100.0
    for site, scores in by_site.items():
        avg = sum(scores) / len(scores)
        if avg > best_avg:
            best_avg, best = avg, site
        if avg < worst_avg:
            worst_avg, worst = avg, site
    return best, worst


def _predict(scores: list[float], min_samples: int) -> tuple[float, float]:
    """Least-squares projection seven samples ahead and a 30-95 confidence."""
    last = scores[-1]
    n = len(scores)
    if n < min_samples:
        return last, 50.0

    xs = range(n)
    sum_x = sum(xs)
    sum_y = sum(scores)
    sum_xy = sum(x * y for x, y in zip(xs, scores))
    sum_xx = sum(x * x for x in xs)
    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)

    mean_x, mean_y = sum_x / n, sum_y / n
    variance = sum((y - (mean_y + slope * (x - mean_x))) ** 2 for x, y in zip(xs, scores)) / n
    confidence = max(30.0, min(95.0, 100 - variance * 2))
    return last + slope * 7, confidence


def analyze_trend(scans: Sequence[ScanSummary], config: Optional[dict] = None) -> TrendInsights:
    """Direction, volatility and a short-term projection of the score history."""
    settings = config_section(config, "trends")
    ordered = _chronological(scans)

    if len(ordered) < 2:
        return TrendInsights(recommendations=[INSUFFICIENT_DATA_RECOMMENDATION])

    scores = [s.overall_score or 0.0 for s in ordered]
    first, last = scores[0], scores[-1]
    trend_percentage = (last - first) / first * 100 if first > 0 else 0.0

    threshold = settings["trend_percent"]
    if trend_percentage > threshold:
        overall = "improving"
    elif trend_percentage < -threshold:
        overall = "declining"
    else:
        overall = "stable"

    # consecutive changes between scored scans only
    deltas = [
        b.overall_score - a.overall_score
        for a, b in zip(ordered, ordered[1:])
        if a.overall_score and b.overall_score
    ]
    avg_change = sum(deltas) / len(deltas) if deltas else 0.0
    magnitudes = [abs(d) for d in deltas]
    avg_magnitude = sum(magnitudes) / len(magnitudes) if magnitudes else 0.0
    sudden = [m for m in magnitudes if m > avg_magnitude * settings["sudden_change_factor"]]

    patterns: list[TrendPattern] = []
    if trend_percentage > settings["gradual_change_percent"]:
        patterns.append(TrendPattern(
            kind="gradual",
            description="Consistent improvement over time indicates effective remediation efforts",
            impact="positive",
        ))
    if sudden:
        patterns.append(TrendPattern(
            kind="sudden",
            description=f"Detected {len(sudden)} sudden score changes, indicating major site updates",
            impact="neutral",
        ))
    if len(ordered) >= settings["weekly_pattern_samples"]:
        patterns.append(TrendPattern(
            kind="weekly",
            description="Analyzing weekly patterns in accessibility scores",
            impact="neutral",
        ))

    recommendations = list(TREND_RECOMMENDATIONS[overall])
    warning = settings["wcag_aa_warning"]
    if any(0 < (s.metric("wcagAACompliance") or 0) < warning for s in ordered):
        recommendations.append("Prioritize WCAG AA compliance issues for legal risk mitigation")

    predicted, confidence = _predict(scores, settings["prediction_min_samples"])
    factors = list(PREDICTION_FACTORS)
    if avg_change > 0:
        factors.append("Positive improvement momentum")

    best, worst = _site_extremes(ordered)

    return TrendInsights(
        overall_trend=overall,
        trend_percentage=round_half_up(trend_percentage, 1),
        average_score_change=round_half_up(avg_change, 1),
        sudden_changes=len(sudden),
        best_performing_site=best,
        worst_performing_site=worst,
        patterns=patterns,
        recommendations=recommendations,
        predicted_next_week_score=round_half_up(predicted, 1),
        prediction_confidence=round_int(confidence),
        prediction_factors=factors,
    )
