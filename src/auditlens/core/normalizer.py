"""Scan payload normalization and synthetic-record filtering.

Raw payloads come from the scan store in whatever shape the scanner wrote
them. Everything downstream works on ScanSummary; ``is_synthetic`` is decided
here once and the raw payload is never inspected again.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Union

from ..models.scan import IMPACT_PRIORITY, Impact, ImpactCounts, ScanSummary, Violation
from ..utils.numbers import coerce_count, coerce_float

logger = logging.getLogger(__name__)

SYNTHETIC_ENGINE_NAMES = frozenset({"fallback-mock"})

SECONDARY_METRIC_KEYS = (
    "performanceScore",
    "seoScore",
    "bestPracticesScore",
    "wcagAACompliance",
    "wcagAAACompliance",
    "wcag21Compliance",
    "wcag22Compliance",
    "firstContentfulPaint",
    "largestContentfulPaint",
    "cumulativeLayoutShift",
)

_IMPACT_KEYS = {
    "critical": "impactCritical",
    "serious": "impactSerious",
    "moderate": "impactModerate",
    "minor": "impactMinor",
}


def _flag(payload: Mapping, *keys: str) -> bool:
    return any(payload.get(key) is True for key in keys)


def _has_synthetic_marker(payload: Mapping) -> bool:
    if _flag(payload, "__demo", "isDemo", "mock", "isMock"):
        return True
    names = [payload.get("engineName")]
    engine = payload.get("engine")
    if isinstance(engine, Mapping):
        names.append(engine.get("name"))
    return any(isinstance(name, str) and name in SYNTHETIC_ENGINE_NAMES for name in names)


def is_synthetic(payload: Any) -> bool:
    """True when a payload carries a demo, mock or synthetic-engine marker.

    Markers are looked for on the payload and on a nested ``raw`` or
    ``result`` document. Anything malformed counts as real.
    """
    if isinstance(payload, ScanSummary):
        return payload.is_synthetic
    if not isinstance(payload, Mapping):
        return False
    if _has_synthetic_marker(payload):
        return True
    for nested_key in ("raw", "result"):
        nested = payload.get(nested_key)
        if isinstance(nested, Mapping) and _has_synthetic_marker(nested):
            return True
    return False


def parse_impact(value: Any) -> Optional[Impact]:
    if isinstance(value, Impact):
        return value
    if isinstance(value, str):
        try:
            return Impact(value.strip().lower())
        except ValueError:
            return None
    return None


def normalize_violations(raw: Any) -> list[Violation]:
    """Canonical violation records from an axe-style list, a wrapper or a count map.

    Accepted shapes:
      [{"id": "image-alt", "impact": "critical", "nodes": [...]}, ...]
      {"violations": [...]}
      {"image-alt": 3, "label": 1}
    """
    if isinstance(raw, Mapping):
        if "violations" in raw:
            return normalize_violations(raw.get("violations"))
        return [
            Violation(rule_id=str(rule), affected_element_count=coerce_count(count))
            for rule, count in raw.items()
        ]

    if not isinstance(raw, (list, tuple)):
        return []

    violations: list[Violation] = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        rule_id = item.get("id") or item.get("ruleId") or item.get("rule_id")
        if not rule_id:
            logger.debug("Skipping violation without rule id: %r", item)
            continue
        nodes = item.get("nodes")
        if isinstance(nodes, (list, tuple)):
            count = max(1, len(nodes))
        elif "affectedElementCount" in item:
            count = coerce_count(item.get("affectedElementCount"))
        else:
            count = 1
        violations.append(
            Violation(
                rule_id=str(rule_id),
                impact=parse_impact(item.get("impact")),
                affected_element_count=count,
            )
        )
    return violations


def parse_timestamp(value: Any) -> Optional[datetime]:
    """A timezone-aware datetime, or None. Naive values are taken as UTC."""
    parsed: Optional[datetime] = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Unparsable timestamp %r", value)
            return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _score(value: Any) -> Optional[float]:
    number = coerce_float(value)
    if number is None or not 0 <= number <= 100:
        if value is not None:
            logger.debug("Discarding out-of-range score %r", value)
        return None
    return number


def _secondary_metrics(payload: Mapping) -> dict[str, float]:
    metrics: dict[str, float] = {}
    for container_key in ("metrics", "secondaryMetrics"):
        container = payload.get(container_key)
        if isinstance(container, Mapping):
            for name, value in container.items():
                number = coerce_float(value)
                if number is not None:
                    metrics[str(name)] = number
    for name in SECONDARY_METRIC_KEYS:
        if name in payload:
            number = coerce_float(payload[name])
            if number is not None:
                metrics[name] = number
    return metrics


def _impact_counts(payload: Mapping, violations: list[Violation]) -> ImpactCounts:
    nested = payload.get("impactCounts")
    if isinstance(nested, Mapping):
        return ImpactCounts(**{k: coerce_count(nested.get(k)) for k in _IMPACT_KEYS})
    if any(key in payload for key in _IMPACT_KEYS.values()):
        return ImpactCounts(**{k: coerce_count(payload.get(v)) for k, v in _IMPACT_KEYS.items()})
    counts = {k: 0 for k in _IMPACT_KEYS}
    for violation in violations:
        if violation.impact is not None:
            counts[violation.impact.value] += 1
    return ImpactCounts(**counts)


def _rule_counts(payload: Mapping, violations: list[Violation]) -> dict[str, int]:
    by_rule = payload.get("violationsByRule")
    raw = payload.get("violations")
    if not isinstance(by_rule, Mapping) and isinstance(raw, Mapping) and "violations" not in raw:
        by_rule = raw
    if isinstance(by_rule, Mapping):
        return {
            str(rule): coerce_count(count)
            for rule, count in by_rule.items()
            if coerce_count(count) > 0
        }
    counts: dict[str, int] = {}
    for violation in violations:
        counts[violation.rule_id] = counts.get(violation.rule_id, 0) + 1
    return counts


def _rule_impacts(violations: list[Violation]) -> dict[str, Impact]:
    impacts: dict[str, Impact] = {}
    for violation in violations:
        if violation.impact is None:
            continue
        known = impacts.get(violation.rule_id)
        if known is None or IMPACT_PRIORITY[violation.impact] < IMPACT_PRIORITY[known]:
            impacts[violation.rule_id] = violation.impact
    return impacts


def normalize_scan(payload: Any) -> Optional[ScanSummary]:
    """Build a ScanSummary from one raw payload.

    Bad fields are dropped one by one; only a payload that is not a mapping
    at all yields None.
    """
    if isinstance(payload, ScanSummary):
        return payload
    if not isinstance(payload, Mapping):
        logger.info("Dropping non-mapping scan payload of type %s", type(payload).__name__)
        return None

    violations = normalize_violations(payload.get("violations"))
    issues = payload.get("issues", payload.get("issueCount"))
    issue_count = coerce_count(issues) if issues is not None else len(violations)

    site = payload.get("site") or payload.get("siteUrl")
    if isinstance(site, Mapping):
        site = site.get("url") or site.get("name")

    ada_risk = payload.get("adaRiskLevel")

    return ScanSummary(
        id=str(payload.get("id") or ""),
        timestamp=parse_timestamp(payload.get("createdAt", payload.get("timestamp"))),
        overall_score=_score(payload.get("score", payload.get("overallScore"))),
        issue_count=issue_count,
        impact_counts=_impact_counts(payload, violations),
        secondary_metrics=_secondary_metrics(payload),
        rule_violation_counts=_rule_counts(payload, violations),
        rule_impacts=_rule_impacts(violations),
        ada_risk_level=ada_risk.upper() if isinstance(ada_risk, str) else None,
        site=str(site) if site else None,
        is_synthetic=is_synthetic(payload),
    )


def filter_synthetic(payloads: Iterable[Union[Mapping, ScanSummary]]) -> list[ScanSummary]:
    """Normalize every payload and drop synthetic records.

    Must run once before any other computation.
    """
    real: list[ScanSummary] = []
    dropped = 0
    for payload in payloads:
        scan = normalize_scan(payload)
        if scan is None:
            continue
        if scan.is_synthetic:
            dropped += 1
            continue
        real.append(scan)
    if dropped:
        logger.info("Dropped %d synthetic scan records", dropped)
    return real
