"""Tests for weighted compliance scoring."""

import pytest

from auditlens.compliance.loader import parse_template
from auditlens.compliance.registry import default_registry
from auditlens.compliance.scorer import (
    FALLBACK_RECOMMENDATION,
    aggregate_score,
    calculate_compliance_score,
    generate_recommendations,
    score,
    score_section,
)
from auditlens.core.config import DEFAULT_CONFIG
from auditlens.errors import TemplateNotFoundError
from auditlens.models.compliance import Section, SectionResult
from auditlens.models.scan import ScanSummary


def scans_with(*scores):
    return [ScanSummary(id=f"s{i}", overall_score=s) for i, s in enumerate(scores)]


THRESHOLDS = DEFAULT_CONFIG["scoring"]


class TestAggregateScore:
    def test_mean_of_scored_scans(self):
        scans = scans_with(80, 90) + [ScanSummary(id="unscored")]
        assert aggregate_score(scans) == 85

    def test_no_scores(self):
        assert aggregate_score([ScanSummary(id="a")]) is None
        assert aggregate_score([]) is None


class TestScoreSection:
    def test_empty_section_scores_full(self):
        result = score_section(Section(id="e", title="Empty", weight=1), 10, THRESHOLDS)
        assert result.score == 100
        assert result.total_criteria == 0

    def test_automated_critical_below_50(self):
        section = parse_template({
            "id": "t", "name": "T",
            "sections": [{
                "id": "s", "title": "S", "weight": 1,
                "criteria": [
                    {"id": "a", "title": "A", "test_method": "automated"},
                    {"id": "m", "title": "M", "test_method": "manual"},
                ],
            }],
        }).sections[0]
        result = score_section(section, 49.9, THRESHOLDS)
        assert result.passed_criteria == 0
        assert result.critical_issue_count == 1

        result = score_section(section, 50, THRESHOLDS)
        assert result.critical_issue_count == 0

    def test_hybrid_uses_manual_threshold(self):
        section = parse_template({
            "id": "t", "name": "T",
            "sections": [{
                "id": "s", "title": "S", "weight": 1,
                "criteria": [{"id": "h", "title": "H", "test_method": "hybrid"}],
            }],
        }).sections[0]
        assert score_section(section, 79, THRESHOLDS).passed_criteria == 0
        assert score_section(section, 80, THRESHOLDS).passed_criteria == 1


class TestCalculateComplianceScore:
    def test_all_pass(self):
        template = default_registry().get("wcag21_aa")
        result = calculate_compliance_score(scans_with(85), template)
        assert result.overall_score == 100
        assert result.compliance_level == "Full Compliance"
        assert result.recommendations == [FALLBACK_RECOMMENDATION]
        assert result.aggregate_score == 85
        assert result.sample_size == 1

    def test_automated_only_pass(self):
        template = default_registry().get("wcag21_aa")
        result = calculate_compliance_score(scans_with(75), template)
        assert [r.score for r in result.section_results] == [67, 33, 33, 100]
        # weighted mean of 58.25 rounds to 58
        assert result.overall_score == 58
        assert result.compliance_level == "Non-Compliant"
        assert "Improve 1. Perceivable: 2/3 criteria met" in result.recommendations

    def test_critical_failures(self):
        template = default_registry().get("wcag21_aa")
        result = calculate_compliance_score(scans_with(40), template)
        assert result.overall_score == 0
        assert result.section_results[0].critical_issue_count == 2
        assert "Address 2 critical issues in 1. Perceivable" in result.recommendations

    def test_ada_weights(self):
        template = default_registry().get("ada_compliance")
        result = calculate_compliance_score(scans_with(75), template)
        assert result.overall_score == 30
        assert result.compliance_level == "Critical Risk"

    def test_ada_low_risk(self):
        template = default_registry().get("ada_compliance")
        result = calculate_compliance_score(scans_with(90, 80), template)
        assert result.overall_score == 100
        assert result.compliance_level == "Low Risk"

    def test_no_scored_scans(self):
        template = default_registry().get("section508")
        result = calculate_compliance_score([ScanSummary(id="x")], template)
        assert result.aggregate_score is None
        assert result.overall_score == 0
        assert result.sample_size == 1

    def test_zero_total_weight(self):
        template = parse_template({
            "id": "z", "name": "Z",
            "sections": [{"id": "s", "title": "S", "weight": 0}],
        })
        result = calculate_compliance_score(scans_with(90), template)
        assert result.overall_score == 0

    def test_config_thresholds(self):
        template = default_registry().get("wcag21_aa")
        config = {"scoring": {"manual_pass": 70}}
        result = calculate_compliance_score(scans_with(75), template, config)
        assert result.overall_score == 100

    def test_deterministic(self):
        template = default_registry().get("en301549")
        scans = scans_with(72, 64, 91)
        assert calculate_compliance_score(scans, template) == calculate_compliance_score(scans, template)


class TestGenerateRecommendations:
    def test_fallback_when_everything_passes(self):
        results = [SectionResult(section_id="a", title="A", score=90, passed_criteria=1, total_criteria=1, weight=1)]
        assert generate_recommendations(results) == [FALLBACK_RECOMMENDATION]

    def test_threshold(self):
        results = [SectionResult(section_id="a", title="A", score=79, passed_criteria=3, total_criteria=4, weight=1)]
        assert generate_recommendations(results) == ["Improve A: 3/4 criteria met"]
        assert generate_recommendations(results, below=70) == [FALLBACK_RECOMMENDATION]


class TestScoreById:
    def test_score(self):
        result = score(scans_with(85), "section508")
        assert result.template_id == "section508"
        assert result.standard == "Section 508"
        assert result.version == "2018"

    def test_unknown_template(self):
        with pytest.raises(TemplateNotFoundError):
            score(scans_with(85), "iso_9999")
