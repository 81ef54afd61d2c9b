"""Scan summary data models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Impact(str, Enum):
    CRITICAL = "critical"
    SERIOUS = "serious"
    MODERATE = "moderate"
    MINOR = "minor"


# Lower value sorts first.
IMPACT_PRIORITY: dict[Impact, int] = {
    Impact.CRITICAL: 0,
    Impact.SERIOUS: 1,
    Impact.MODERATE: 2,
    Impact.MINOR: 3,
}


class ImpactCounts(BaseModel):
    model_config = ConfigDict(frozen=True)

    critical: int = Field(default=0, ge=0)
    serious: int = Field(default=0, ge=0)
    moderate: int = Field(default=0, ge=0)
    minor: int = Field(default=0, ge=0)


class Violation(BaseModel):
    """One canonical rule violation."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    impact: Optional[Impact] = None
    affected_element_count: int = Field(default=1, ge=0)


class ScanSummary(BaseModel):
    """One completed scan of one page or site at one point in time.

    Built by the normalizer; ``is_synthetic`` is computed there once and no
    other component looks at the raw payload again.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: Optional[datetime] = None
    overall_score: Optional[float] = Field(default=None, ge=0, le=100)
    issue_count: int = Field(default=0, ge=0)
    impact_counts: ImpactCounts = ImpactCounts()
    secondary_metrics: dict[str, float] = {}
    rule_violation_counts: dict[str, int] = {}
    rule_impacts: dict[str, Impact] = {}
    ada_risk_level: Optional[str] = None
    site: Optional[str] = None
    is_synthetic: bool = False

    def metric(self, name: str) -> Optional[float]:
        return self.secondary_metrics.get(name)
