"""Shared fixtures for auditlens tests."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_payload(
    scan_id: str = "scan-1",
    score: float | None = 85,
    days: int = 0,
    **extra,
) -> dict:
    """A raw scan payload as the scan store exports it."""
    payload = {
        "id": scan_id,
        "createdAt": (BASE_TIME + timedelta(days=days)).isoformat().replace("+00:00", "Z"),
        "issues": 0,
    }
    if score is not None:
        payload["score"] = score
    payload.update(extra)
    return payload


@pytest.fixture
def payload():
    """Factory for raw scan payloads."""
    return make_payload


@pytest.fixture
def sample_payloads() -> list[dict]:
    """Three real scans over three days and one demo record."""
    return [
        make_payload(
            "scan-1",
            score=80,
            days=0,
            issues=3,
            impactCritical=1,
            impactSerious=2,
            violations=[
                {"id": "color-contrast", "impact": "serious", "nodes": [{}, {}]},
                {"id": "image-alt", "impact": "critical", "nodes": [{}]},
                {"id": "color-contrast", "impact": "serious", "nodes": [{}]},
            ],
            performanceScore=60,
            wcagAACompliance=75,
            site="https://example.com",
        ),
        make_payload(
            "scan-2",
            score=90,
            days=1,
            issues=1,
            impactSerious=1,
            violations=[{"id": "color-contrast", "impact": "serious", "nodes": [{}]}],
            performanceScore=80,
            wcagAACompliance=85,
            site="https://example.com",
        ),
        make_payload(
            "scan-3",
            score=70,
            days=2,
            issues=2,
            impactModerate=2,
            violations=[
                {"id": "label", "impact": "moderate", "nodes": [{}]},
                {"id": "region", "impact": "moderate", "nodes": [{}]},
            ],
            performanceScore=40,
            wcagAACompliance=65,
            site="https://shop.example.com",
        ),
        make_payload("demo-1", score=100, days=1, __demo=True),
    ]


@pytest.fixture
def scans_file(tmp_path: Path, sample_payloads: list[dict]) -> Path:
    path = tmp_path / "scans.json"
    path.write_text(json.dumps({"scans": sample_payloads}, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """A project with a .auditlens/config.yaml."""
    project = tmp_path / "site-audits"
    project.mkdir()
    cfg_dir = project / ".auditlens"
    cfg_dir.mkdir()
    (cfg_dir / "config.yaml").write_text(
        "scoring:\n  manual_pass: 90\nleaderboard:\n  top_k: 3\n",
        encoding="utf-8",
    )
    return project


CUSTOM_TEMPLATE_YAML = """\
id: internal_policy
name: Internal Accessibility Policy
standard: Internal
version: 1.0
sections:
  - id: core
    title: Core Checks
    weight: 1
    criteria:
      - id: contrast
        title: Contrast
        level: AA
        test_method: automated
compliance_levels:
  - min_score: 50
    label: Acceptable
fallback_level: Unacceptable
"""


@pytest.fixture
def custom_template_dir(tmp_path: Path) -> Path:
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "internal.yaml").write_text(CUSTOM_TEMPLATE_YAML, encoding="utf-8")
    return templates
