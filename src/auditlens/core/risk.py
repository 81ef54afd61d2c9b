"""Risk classification for scan windows and account portfolios."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from ..models.analytics import (
    AccountHealthFlags,
    AccountRisk,
    PortfolioRiskReport,
    RegressionResult,
    RiskAssessment,
    RiskLevel,
)
from ..models.scan import ScanSummary
from ..utils.numbers import mean
from ..utils.timestamps import sort_key
from .config import section as config_section

logger = logging.getLogger(__name__)

# days used when an account has never been active
NEVER_ACTIVE_DAYS = 999


def is_high_risk(scan: ScanSummary, settings: dict) -> bool:
    levels = {str(level).upper() for level in settings["high_risk_levels"]}
    if scan.ada_risk_level and scan.ada_risk_level.upper() in levels:
        return True
    return scan.overall_score is not None and scan.overall_score < settings["high_risk_score"]


def assess_risk(window: Sequence[ScanSummary], config: Optional[dict] = None) -> RiskAssessment:
    """Risk level and direction of travel over the trailing scan window.

    The delta is the mean score of the newest ``delta_samples`` scans minus
    the mean of the oldest ``delta_samples``. With fewer than twice that many
    scored scans the two groups share scans.
    """
    settings = config_section(config, "risk")
    ordered = sorted(window, key=lambda s: sort_key(s.timestamp))[-settings["window_size"]:]

    high_risk = sum(1 for s in ordered if is_high_risk(s, settings))
    if high_risk > settings["high_count"]:
        level = RiskLevel.HIGH
    elif high_risk > settings["medium_count"]:
        level = RiskLevel.MEDIUM
    else:
        level = RiskLevel.LOW

    scores = [s.overall_score for s in ordered if s.overall_score is not None]
    k = settings["delta_samples"]
    delta = 0.0
    if scores and k > 0:
        delta = (mean(scores[-k:]) or 0.0) - (mean(scores[:k]) or 0.0)

    return RiskAssessment(
        risk_level=level,
        risk_trend_delta=delta,
        high_risk_count=high_risk,
        critical_issue_count=sum(s.impact_counts.critical for s in ordered),
        sample_count=len(ordered),
    )


def _risk_label(score: int, settings: dict) -> Optional[str]:
    if score < settings["at_risk"]:
        return None
    if score >= settings["critical"]:
        return "Critical"
    if score >= settings["high"]:
        return "High"
    return "Medium"


def score_account(flags: AccountHealthFlags, config: Optional[dict] = None) -> AccountRisk:
    settings = config_section(config, "portfolio")
    weights = settings["weights"]

    days = flags.days_since_last_activity
    if days is None:
        days = NEVER_ACTIVE_DAYS

    score = 0
    factors: list[str] = []
    if days > settings["inactive_days"]:
        score += weights["inactive"]
        factors.append("Inactive for 30+ days")
    elif days > settings["idle_days"]:
        score += weights["idle"]
        factors.append("No activity for 2+ weeks")
    if flags.trial_ending_soon:
        score += weights["trial_ending"]
        factors.append("Trial ending soon")
    if flags.usage_percent >= settings["usage_percent"]:
        score += weights["usage"]
        factors.append("Approaching plan limits")
    if flags.failed_scans >= settings["failed_scans"]:
        score += weights["failed_scans"]
        factors.append("High scan failure rate")
    if flags.payment_status in settings["payment_statuses"]:
        score += weights["payment"]
        factors.append("Payment issue")

    label = _risk_label(score, settings)
    return AccountRisk(
        account_id=flags.account_id,
        risk_score=score,
        risk_factors=factors,
        risk_label=label,
        at_risk=label is not None,
    )


def assess_portfolio_risk(
    accounts: Iterable[AccountHealthFlags],
    config: Optional[dict] = None,
) -> PortfolioRiskReport:
    """Score every account and list the ones at risk, highest score first."""
    settings = config_section(config, "portfolio")
    accounts = list(accounts)
    scored = [score_account(a, config) for a in accounts]
    at_risk = sorted((r for r in scored if r.at_risk), key=lambda r: -r.risk_score)

    def inactive(a: AccountHealthFlags) -> bool:
        days = a.days_since_last_activity
        return (NEVER_ACTIVE_DAYS if days is None else days) > settings["inactive_days"]

    logger.debug("%d of %d accounts at risk", len(at_risk), len(accounts))
    return PortfolioRiskReport(
        at_risk=at_risk,
        total_at_risk=len(at_risk),
        inactive_30_days=sum(1 for a in accounts if inactive(a)),
        trials_ending=sum(1 for a in accounts if a.trial_ending_soon),
        payment_issues=sum(1 for a in accounts if a.payment_status in settings["payment_statuses"]),
        high_error_rates=sum(1 for a in accounts if a.failed_scans >= settings["failed_scans"]),
    )


def _fmt(value: float) -> str:
    return f"{value:g}"


def detect_regression(
    current: ScanSummary,
    previous: Optional[ScanSummary] = None,
    threshold: Optional[float] = None,
    config: Optional[dict] = None,
) -> RegressionResult:
    """Compare a new scan with the monitoring threshold and the previous scan."""
    settings = config_section(config, "risk")
    if threshold is None:
        threshold = settings["regression_threshold"]
    score = current.overall_score or 0.0
    previous_score = previous.overall_score if previous is not None else None

    base = {"current_score": score, "previous_score": previous_score, "threshold": threshold}

    if score < settings["regression_critical"]:
        return RegressionResult(
            detected=True,
            kind="REGRESSION",
            severity="CRITICAL",
            message=f"Critical regression: Score dropped to {_fmt(score)} (threshold: {_fmt(threshold)})",
            **base,
        )
    if score < threshold:
        return RegressionResult(
            detected=True,
            kind="REGRESSION",
            severity="HIGH",
            message=f"Score dropped below threshold: {_fmt(score)} < {_fmt(threshold)}",
            **base,
        )
    if previous_score and previous_score - score >= settings["score_drop"]:
        return RegressionResult(
            detected=True,
            kind="SCORE_DROP",
            severity="MEDIUM",
            message=(
                f"Significant score decrease detected: {_fmt(previous_score)} → {_fmt(score)} "
                f"(-{_fmt(previous_score - score)} points)"
            ),
            **base,
        )

    previous_critical = previous.impact_counts.critical if previous is not None else 0
    new_critical = current.impact_counts.critical - previous_critical
    if current.impact_counts.critical > 0 and new_critical > 0:
        noun = "issue" if new_critical == 1 else "issues"
        return RegressionResult(
            detected=True,
            kind="CRITICAL_ISSUES",
            severity="HIGH",
            message=f"{new_critical} new critical accessibility {noun} detected",
            **base,
        )

    return RegressionResult(**base)
