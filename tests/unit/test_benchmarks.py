"""Tests for industry benchmark comparison."""

import pytest

from auditlens.core.benchmarks import (
    INDUSTRY_BENCHMARKS,
    compare_to_benchmarks,
    overall_ranking,
    percentile_label,
    user_stats,
)
from auditlens.core.normalizer import filter_synthetic
from auditlens.errors import BenchmarkNotFoundError
from auditlens.models.analytics import UserStats


class TestUserStats:
    def test_sample(self, sample_payloads):
        stats = user_stats(filter_synthetic(sample_payloads))
        assert stats.avg_score == 80
        assert stats.avg_wcag == 75
        assert stats.avg_performance == 60
        assert stats.avg_critical == 0
        assert stats.avg_serious == 1
        assert stats.sample_size == 3

    def test_empty(self):
        assert user_stats([]) == UserStats()


class TestPercentileLabel:
    @pytest.mark.parametrize(
        "user,industry,label",
        [
            (96, 76, "95th percentile"),
            (80, 75.2, "60th percentile"),
            (70, 75, "40th percentile"),
            (80, 87.9, "30th percentile"),
            (40, 80, "5th percentile"),
        ],
    )
    def test_bands(self, user, industry, label):
        assert percentile_label(user, industry) == label


class TestOverallRanking:
    def test_excellent(self):
        stats = UserStats(avg_score=80, avg_wcag=75, avg_critical=0)
        assert overall_ranking(stats, INDUSTRY_BENCHMARKS["ecommerce"]) == "Excellent - Top 10%"

    def test_needs_improvement(self):
        stats = UserStats(avg_score=30, avg_wcag=20, avg_critical=9)
        assert overall_ranking(stats, INDUSTRY_BENCHMARKS["general"]) == "Needs Improvement"


class TestCompareToBenchmarks:
    def test_all_cohorts_without_industry(self, sample_payloads):
        result = compare_to_benchmarks(filter_synthetic(sample_payloads))
        assert result.comparison is None
        assert set(result.industry_benchmarks) == set(INDUSTRY_BENCHMARKS)
        assert len(result.industry_benchmarks) == 10

    def test_above_cohort(self, sample_payloads):
        result = compare_to_benchmarks(filter_synthetic(sample_payloads), "ecommerce")
        comparison = result.comparison
        assert comparison.score.user == 80
        assert comparison.score.industry == 75
        assert comparison.score.difference == 5
        assert comparison.overall_ranking == "Excellent - Top 10%"
        assert comparison.recommendations[0].startswith("Excellent work!")

    def test_below_cohort(self, sample_payloads):
        comparison = compare_to_benchmarks(filter_synthetic(sample_payloads), "government").comparison
        assert comparison.percentile == "30th percentile"
        assert comparison.overall_ranking == "Good - Above Average"
        assert comparison.recommendations == [
            "Focus on improving overall accessibility score through systematic issue resolution",
            "Improve WCAG 2.1 AA compliance to exceed industry benchmarks",
        ]

    def test_unknown_industry(self):
        with pytest.raises(BenchmarkNotFoundError) as exc_info:
            compare_to_benchmarks([], "aerospace")
        assert "aerospace" in str(exc_info.value)

    def test_performance_cohorts(self):
        assert INDUSTRY_BENCHMARKS["healthcare"].avg_performance == 68
        assert INDUSTRY_BENCHMARKS["finance"].avg_performance is None
