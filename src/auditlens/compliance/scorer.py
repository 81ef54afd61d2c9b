"""Weighted multi-section compliance scoring.

Criteria are judged from the aggregate scan score. Each test method has its
own evaluation strategy; manual and hybrid criteria need a higher score than
automated ones because automated data alone cannot certify them.
"""

from __future__ import annotations

import logging
from typing import Callable, NamedTuple, Optional, Sequence

from ..core.config import section as config_section
from ..models.compliance import (
    ComplianceResult,
    ComplianceTemplate,
    Criterion,
    Section,
    SectionResult,
    TestMethod,
)
from ..models.scan import ScanSummary
from ..utils.numbers import mean, round_half_up, round_int
from .registry import TemplateRegistry, default_registry

logger = logging.getLogger(__name__)

FALLBACK_RECOMMENDATION = "Excellent compliance! Continue monitoring and testing."


class CriterionOutcome(NamedTuple):
    passed: bool
    critical: bool = False


CriterionStrategy = Callable[[Criterion, float, dict], CriterionOutcome]


def _evaluate_automated(criterion: Criterion, aggregate: float, thresholds: dict) -> CriterionOutcome:
    if aggregate >= thresholds["automated_pass"]:
        return CriterionOutcome(passed=True)
    return CriterionOutcome(passed=False, critical=aggregate < thresholds["automated_critical"])


def _evaluate_manual(criterion: Criterion, aggregate: float, thresholds: dict) -> CriterionOutcome:
    return CriterionOutcome(passed=aggregate >= thresholds["manual_pass"])


CRITERION_STRATEGIES: dict[TestMethod, CriterionStrategy] = {
    TestMethod.AUTOMATED: _evaluate_automated,
    TestMethod.MANUAL: _evaluate_manual,
    TestMethod.HYBRID: _evaluate_manual,
}


def aggregate_score(scans: Sequence[ScanSummary]) -> Optional[float]:
    """Mean overall score of the scans that carry one."""
    return mean(s.overall_score for s in scans if s.overall_score is not None)


def score_section(section: Section, aggregate: float, thresholds: dict) -> SectionResult:
    passed = 0
    critical = 0
    for criterion in section.criteria:
        outcome = CRITERION_STRATEGIES[criterion.test_method](criterion, aggregate, thresholds)
        if outcome.passed:
            passed += 1
        if outcome.critical:
            critical += 1

    total = len(section.criteria)
    # an empty section has nothing to fail
    section_score = 100.0 * passed / total if total else 100.0

    return SectionResult(
        section_id=section.id,
        title=section.title,
        score=round_int(section_score),
        passed_criteria=passed,
        total_criteria=total,
        critical_issue_count=critical,
        weight=section.weight,
    )


def generate_recommendations(results: Sequence[SectionResult], below: float = 80) -> list[str]:
    recommendations: list[str] = []
    for result in results:
        if result.score < below:
            recommendations.append(
                f"Improve {result.title}: {result.passed_criteria}/{result.total_criteria} criteria met"
            )
        if result.critical_issue_count > 0:
            recommendations.append(
                f"Address {result.critical_issue_count} critical issues in {result.title}"
            )
    if not recommendations:
        recommendations.append(FALLBACK_RECOMMENDATION)
    return recommendations


def calculate_compliance_score(
    scans: Sequence[ScanSummary],
    template: ComplianceTemplate,
    config: Optional[dict] = None,
) -> ComplianceResult:
    """Score a set of scans against one template."""
    thresholds = config_section(config, "scoring")
    aggregate = aggregate_score(scans)
    effective = aggregate if aggregate is not None else 0.0

    section_results = [score_section(s, effective, thresholds) for s in template.sections]

    total_weight = sum(r.weight for r in section_results)
    if total_weight > 0:
        overall = sum(r.score * r.weight for r in section_results) / total_weight
    else:
        overall = 0.0
    overall = min(100.0, max(0.0, overall))

    logger.debug(
        "Scored %d scans against %s: %.2f", len(scans), template.id, overall
    )

    return ComplianceResult(
        template_id=template.id,
        template_name=template.name,
        standard=template.standard,
        version=template.version,
        overall_score=round_int(overall),
        compliance_level=template.compliance_level(overall),
        section_results=section_results,
        recommendations=generate_recommendations(
            section_results, thresholds["recommendation_below"]
        ),
        aggregate_score=round_half_up(aggregate, 2) if aggregate is not None else None,
        sample_size=len(scans),
    )


def score(
    scans: Sequence[ScanSummary],
    template_id: str,
    registry: Optional[TemplateRegistry] = None,
    config: Optional[dict] = None,
) -> ComplianceResult:
    """Look up a template by id and score the scans against it.

    Raises TemplateNotFoundError for an unknown id.
    """
    template = (registry or default_registry()).get(template_id)
    return calculate_compliance_score(scans, template, config)
