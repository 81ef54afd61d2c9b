"""Compliance template and result data models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ConformanceLevel(str, Enum):
    A = "A"
    AA = "AA"
    AAA = "AAA"

    @property
    def rank(self) -> int:
        return {"A": 1, "AA": 2, "AAA": 3}[self.value]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ConformanceLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, ConformanceLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, ConformanceLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, ConformanceLevel):
            return NotImplemented
        return self.rank >= other.rank


class TestMethod(str, Enum):
    __test__ = False  # not a pytest class

    AUTOMATED = "automated"
    MANUAL = "manual"
    HYBRID = "hybrid"


class Criterion(BaseModel):
    """A single testable rule within a standard."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    level: ConformanceLevel = ConformanceLevel.AA
    principle: str = ""
    test_method: TestMethod = TestMethod.AUTOMATED
    required_for_compliance: bool = True


class Section(BaseModel):
    """A weighted group of criteria."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    weight: float = Field(ge=0)
    criteria: list[Criterion] = []


class LevelBand(BaseModel):
    """One row of a compliance-level table: scores >= min_score get label."""

    model_config = ConfigDict(frozen=True)

    min_score: float
    label: str


class ComplianceTemplate(BaseModel):
    """A named, versioned scoring scheme for one standard."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    standard: str = ""
    version: str = ""
    sections: list[Section] = []
    level_bands: list[LevelBand] = []
    fallback_level: str = "Poor"

    @field_validator("sections")
    @classmethod
    def _unique_section_ids(cls, sections: list[Section]) -> list[Section]:
        seen: set[str] = set()
        for section in sections:
            if section.id in seen:
                raise ValueError(f"duplicate section id: {section.id}")
            seen.add(section.id)
        return sections

    @property
    def total_weight(self) -> float:
        return sum(s.weight for s in self.sections)

    def compliance_level(self, score: float) -> str:
        for band in sorted(self.level_bands, key=lambda b: b.min_score, reverse=True):
            if score >= band.min_score:
                return band.label
        return self.fallback_level


class SectionResult(BaseModel):
    section_id: str
    title: str
    score: int
    passed_criteria: int
    total_criteria: int
    critical_issue_count: int = 0
    weight: float


class ComplianceResult(BaseModel):
    """Outcome of scoring a set of scans against one template."""

    template_id: str
    template_name: str
    standard: str
    version: str
    overall_score: int = 0
    compliance_level: str
    section_results: list[SectionResult] = []
    recommendations: list[str] = []
    aggregate_score: Optional[float] = None
    sample_size: int = 0
