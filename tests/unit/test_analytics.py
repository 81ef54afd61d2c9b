"""Tests for analytics payload assembly."""

from datetime import datetime, timedelta, timezone

import pytest

from auditlens.core.analytics import (
    METRIC_GROUPS,
    build_analytics_payload,
    compliance_tracking,
    gather_analytics,
    overview_metrics,
    resolve_time_range,
)
from auditlens.core.correlation import NO_PERFORMANCE_DATA
from auditlens.core.normalizer import filter_synthetic
from auditlens.errors import BenchmarkNotFoundError, TemplateNotFoundError
from auditlens.models.analytics import (
    BenchmarkComparison,
    ComplianceTracking,
    IssueAnalysis,
    OverviewMetrics,
    RiskAssessment,
    TrendReport,
)

NEWEST = datetime(2024, 3, 3, 12, 0, tzinfo=timezone.utc)


class TestResolveTimeRange:
    def test_end_defaults_to_newest_scan(self, sample_payloads):
        scans = filter_synthetic(sample_payloads)
        name, start, end = resolve_time_range("7d", None, scans)
        assert name == "7d"
        assert end == NEWEST
        assert start == NEWEST - timedelta(days=7)

    def test_unknown_range_falls_back(self):
        name, start, end = resolve_time_range("fortnight", NEWEST, [])
        assert name == "30d"
        assert end - start == timedelta(days=30)

    def test_year(self):
        _, start, end = resolve_time_range("1y", NEWEST, [])
        assert end - start == timedelta(days=365)

    def test_no_dated_scans(self):
        assert resolve_time_range("30d", None, []) == ("30d", None, None)


class TestOverview:
    def test_sample(self, sample_payloads):
        overview = overview_metrics(filter_synthetic(sample_payloads))
        assert overview.total_scans == 3
        assert overview.average_score == 80
        assert overview.total_issues == 6
        assert [r.id for r in overview.recent_scans] == ["scan-3", "scan-2", "scan-1"]
        assert overview.impact_distribution.critical == 1
        assert overview.impact_distribution.serious == 3
        assert overview.impact_distribution.moderate == 2

    def test_empty(self):
        assert overview_metrics([]) == OverviewMetrics()


class TestComplianceTracking:
    def test_all_templates_by_default(self, sample_payloads):
        tracking = compliance_tracking(filter_synthetic(sample_payloads))
        assert list(tracking.results) == ["wcag21_aa", "ada_compliance", "en301549", "section508"]
        assert tracking.wcag_compliance.aa == 75

    def test_selected_templates(self, sample_payloads):
        tracking = compliance_tracking(filter_synthetic(sample_payloads), ["section508"])
        assert list(tracking.results) == ["section508"]

    def test_risk_distribution(self, payload):
        scans = filter_synthetic([
            payload("a", adaRiskLevel="high"),
            payload("b", adaRiskLevel="HIGH"),
            payload("c", adaRiskLevel="low"),
            payload("d"),
        ])
        assert compliance_tracking(scans).risk_distribution == {"high": 2, "low": 1}


class TestBuildAnalyticsPayload:
    def test_default_overview_only(self, sample_payloads):
        payload = build_analytics_payload(sample_payloads)
        assert payload.has_data is True
        assert payload.sample_size == 3
        assert list(payload.analytics) == ["overview"]
        assert payload.end == NEWEST

    def test_all_groups(self, sample_payloads):
        payload = build_analytics_payload(sample_payloads, metrics=METRIC_GROUPS, industry="ecommerce")
        assert list(payload.analytics) == list(METRIC_GROUPS)
        assert isinstance(payload.analytics["trends"], TrendReport)
        assert len(payload.analytics["trends"].buckets) == 3
        assert isinstance(payload.analytics["issues"], IssueAnalysis)
        assert payload.analytics["performance"].correlation == 1.0
        assert isinstance(payload.analytics["risk"], RiskAssessment)
        assert payload.analytics["benchmarks"].comparison.industry == "ecommerce"

    def test_comma_separated_metrics(self, sample_payloads):
        payload = build_analytics_payload(sample_payloads, metrics="risk, issues,risk")
        assert list(payload.analytics) == ["risk", "issues"]

    def test_unknown_metric(self, sample_payloads):
        with pytest.raises(ValueError, match="Unknown analytics metric group"):
            build_analytics_payload(sample_payloads, metrics=["overview", "funnel"])

    def test_synthetic_only_gives_empty_shapes(self, payload):
        records = [payload("m1", isMock=True), payload("m2", engineName="fallback-mock")]
        result = build_analytics_payload(records, metrics=METRIC_GROUPS)
        assert result.has_data is False
        assert result.sample_size == 0
        assert result.start is None and result.end is None
        assert result.analytics["overview"] == OverviewMetrics()
        assert result.analytics["trends"] == TrendReport()
        assert result.analytics["compliance"] == ComplianceTracking()
        assert result.analytics["benchmarks"] == BenchmarkComparison()
        assert result.analytics["performance"].message == NO_PERFORMANCE_DATA

    def test_empty_input(self):
        result = build_analytics_payload([], metrics=["overview", "risk"])
        assert result.has_data is False
        assert result.analytics["risk"] == RiskAssessment()

    def test_time_range_window(self, sample_payloads):
        end = NEWEST
        payload = build_analytics_payload(sample_payloads, metrics=["trends"], time_range="7d", end=end)
        assert payload.time_range == "7d"
        assert payload.start == end - timedelta(days=7)

        narrow = build_analytics_payload(
            sample_payloads, metrics=["trends"], end=NEWEST - timedelta(days=1), time_range="7d"
        )
        assert [b.bucket_key for b in narrow.analytics["trends"].buckets] == ["2024-03-01", "2024-03-02"]

    def test_time_range_scopes_every_group(self, payload):
        days = list(range(0, 171, 10)) + [175, 177, 179, 180]
        records = [payload(f"s{d}", score=70, days=d, issues=1) for d in days]
        result = build_analytics_payload(records, metrics=["overview", "trends", "risk"], time_range="7d")
        bucketed = sum(b.sample_count for b in result.analytics["trends"].buckets)
        assert result.sample_size == 4
        assert result.analytics["overview"].total_scans == 4
        assert result.analytics["overview"].total_issues == 4
        assert bucketed == 4
        assert result.analytics["risk"].sample_count == 4

    def test_naive_end_is_utc(self, sample_payloads):
        result = build_analytics_payload(sample_payloads, time_range="7d", end=NEWEST.replace(tzinfo=None))
        assert result.end == NEWEST
        assert result.sample_size == 3

    def test_unknown_industry_raised_without_data(self):
        with pytest.raises(BenchmarkNotFoundError):
            build_analytics_payload([], metrics=["benchmarks"], industry="aerospace")

    def test_unknown_template_raised_without_data(self):
        with pytest.raises(TemplateNotFoundError):
            build_analytics_payload([], metrics=["compliance"], template_ids=["iso_9999"])

    def test_idempotent(self, sample_payloads):
        first = build_analytics_payload(sample_payloads, metrics=METRIC_GROUPS)
        second = build_analytics_payload(sample_payloads, metrics=METRIC_GROUPS)
        assert first.model_dump() == second.model_dump()

    def test_serializes(self, sample_payloads):
        payload = build_analytics_payload(sample_payloads, metrics=METRIC_GROUPS)
        text = payload.model_dump_json()
        assert '"has_data":true' in text
        assert '"color-contrast"' in text


class TestGatherAnalytics:
    @pytest.mark.asyncio
    async def test_matches_sequential_build(self, sample_payloads):
        concurrent = await gather_analytics(sample_payloads, metrics=METRIC_GROUPS, industry="general")
        sequential = build_analytics_payload(sample_payloads, metrics=METRIC_GROUPS, industry="general")
        assert concurrent.model_dump() == sequential.model_dump()

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        with pytest.raises(ValueError):
            await gather_analytics([], metrics=["nope"])
