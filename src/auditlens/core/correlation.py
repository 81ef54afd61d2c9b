"""Pearson correlation between paired quality metrics."""

from __future__ import annotations

import math
from typing import Sequence

from ..models.analytics import CorrelationResult, PerformanceCorrelation
from ..models.scan import ScanSummary
from ..utils.numbers import mean, round_half_up, round_int

NO_PERFORMANCE_DATA = "No performance data available"


def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Pearson r, or 0.0 for fewer than two pairs or zero variance."""
    n = len(xs)
    if n < 2:
        return 0.0

    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    sum_xx = sum(x * x for x in xs)
    sum_yy = sum(y * y for y in ys)

    numerator = n * sum_xy - sum_x * sum_y
    denominator = math.sqrt(max(0.0, (n * sum_xx - sum_x ** 2) * (n * sum_yy - sum_y ** 2)))
    if denominator == 0:
        return 0.0
    # float error can push |r| a hair past 1
    return max(-1.0, min(1.0, numerator / denominator))


def correlate(series_a: Sequence[float], series_b: Sequence[float]) -> CorrelationResult:
    """Correlate two index-aligned series.

    Callers should treat results with fewer than three samples as not
    meaningful; the coefficient is still returned.
    """
    if len(series_a) != len(series_b):
        raise ValueError(
            f"Series must have equal length ({len(series_a)} != {len(series_b)})"
        )
    a = [float(x) for x in series_a]
    b = [float(y) for y in series_b]
    return CorrelationResult(
        coefficient=pearson(a, b),
        sample_size=len(a),
        mean_a=mean(a),
        mean_b=mean(b),
    )


def _average_positive(scans: Sequence[ScanSummary], metric: str):
    # zero readings mean "not measured" for paint timings
    values = [v for v in (s.metric(metric) for s in scans) if v]
    average = mean(values)
    return round_int(average) if average is not None else None


def performance_correlation(
    scans: Sequence[ScanSummary],
    metric: str = "performanceScore",
) -> PerformanceCorrelation:
    """Correlate accessibility score with a second metric across scans.

    Pairs are taken per scan but scans of different pages and times are
    pooled together; a scan without an accessibility score counts as 0.
    """
    paired = [s for s in scans if s.metric(metric) is not None]
    if not paired:
        return PerformanceCorrelation(metric=metric, message=NO_PERFORMANCE_DATA)

    scores = [s.overall_score or 0.0 for s in paired]
    values = [s.metric(metric) or 0.0 for s in paired]
    result = correlate(scores, values)

    return PerformanceCorrelation(
        metric=metric,
        correlation=round_half_up(result.coefficient, 2),
        sample_size=result.sample_size,
        average_performance=round_int(result.mean_b) if result.mean_b is not None else None,
        average_fcp=_average_positive(paired, "firstContentfulPaint"),
        average_lcp=_average_positive(paired, "largestContentfulPaint"),
    )
