"""Most frequent violated rules across a set of scans."""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from ..models.analytics import IssueAnalysis, LeaderboardEntry
from ..models.scan import IMPACT_PRIORITY, Impact, ScanSummary
from .config import section as config_section
from .remediation import RemediationHint, get_remediation_hint

# rules whose impact was never reported sort after minor
UNKNOWN_IMPACT_PRIORITY = len(IMPACT_PRIORITY)


def rule_frequency(scans: Sequence[ScanSummary]) -> dict[str, int]:
    """Occurrences per rule id summed across scans, in first-seen order."""
    totals: dict[str, int] = {}
    for scan in scans:
        for rule, count in scan.rule_violation_counts.items():
            totals[rule] = totals.get(rule, 0) + count
    return totals


def rule_impacts(scans: Sequence[ScanSummary]) -> dict[str, Impact]:
    """Most severe impact reported for each rule."""
    impacts: dict[str, Impact] = {}
    for scan in scans:
        for rule, impact in scan.rule_impacts.items():
            known = impacts.get(rule)
            if known is None or IMPACT_PRIORITY[impact] < IMPACT_PRIORITY[known]:
                impacts[rule] = impact
    return impacts


def top_violations(
    scans: Sequence[ScanSummary],
    k: Optional[int] = None,
    hints: Optional[Mapping[str, RemediationHint]] = None,
    config: Optional[dict] = None,
) -> list[LeaderboardEntry]:
    """Top-k rules by occurrence count.

    Ties go to the more severe impact, then to first-seen order (the sort is
    stable).
    """
    if k is None:
        k = config_section(config, "leaderboard")["top_k"]
    totals = rule_frequency(scans)
    impacts = rule_impacts(scans)

    def sort_key(item: tuple[str, int]) -> tuple[int, int]:
        rule, count = item
        impact = impacts.get(rule)
        priority = IMPACT_PRIORITY[impact] if impact is not None else UNKNOWN_IMPACT_PRIORITY
        return -count, priority

    ranked = sorted(totals.items(), key=sort_key)[:max(0, k)]

    entries = []
    for position, (rule, count) in enumerate(ranked, start=1):
        hint = get_remediation_hint(rule, hints)
        entries.append(LeaderboardEntry(
            rank=position,
            rule_id=rule,
            occurrence_count=count,
            impact=impacts.get(rule),
            title=hint.title,
            remediation_hint=hint.recommendation,
        ))
    return entries


def issue_analysis(
    scans: Sequence[ScanSummary],
    k: Optional[int] = None,
    hints: Optional[Mapping[str, RemediationHint]] = None,
    config: Optional[dict] = None,
) -> IssueAnalysis:
    frequency = rule_frequency(scans)
    return IssueAnalysis(
        top_issues=top_violations(scans, k, hints, config),
        total_unique_rules=len(frequency),
        issue_frequency=frequency,
    )
