"""3-layer configuration system for auditlens.

Loads and merges configuration from:
1. Default settings (built-in)
2. Project config (.auditlens/config.yaml)
3. Caller / CLI overrides
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Optional

import yaml

from ..errors import ConfigError

CONFIG_DIR = ".auditlens"

DEFAULT_CONFIG: dict = {
    "scoring": {
        "automated_pass": 70,
        "automated_critical": 50,
        "manual_pass": 80,
        "recommendation_below": 80,
    },
    "trends": {
        "week_bucket_after_days": 60,
        "trend_percent": 5,
        "sudden_change_factor": 2,
        "gradual_change_percent": 10,
        "weekly_pattern_samples": 14,
        "prediction_min_samples": 5,
        "wcag_aa_warning": 70,
    },
    "risk": {
        "window_size": 30,
        "delta_samples": 10,
        "high_risk_score": 70,
        "high_risk_levels": ["HIGH", "CRITICAL"],
        "high_count": 5,
        "medium_count": 2,
        "regression_critical": 60,
        "regression_threshold": 70,
        "score_drop": 10,
    },
    "portfolio": {
        "inactive_days": 30,
        "idle_days": 14,
        "usage_percent": 80,
        "failed_scans": 3,
        "payment_statuses": ["past_due", "canceled"],
        "weights": {
            "inactive": 40,
            "idle": 20,
            "trial_ending": 30,
            "usage": 15,
            "failed_scans": 25,
            "payment": 50,
        },
        "at_risk": 20,
        "high": 30,
        "critical": 50,
    },
    "leaderboard": {
        "top_k": 10,
    },
    "templates": {
        "dir": "",
        "remote": [],
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def load_project_config(project_path: Path) -> dict:
    """Load project configuration from .auditlens/config.yaml."""
    config_path = project_path / CONFIG_DIR / "config.yaml"
    if not config_path.exists():
        return {}
    try:
        content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        data = yaml.safe_load(content)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read {config_path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: expected a mapping at top level")
    return data


def get_effective_config(
    project_path: Optional[Path] = None,
    overrides: Optional[dict] = None,
) -> dict:
    """Merge defaults, project config and explicit overrides."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    if project_path is not None:
        config = deep_merge(config, load_project_config(project_path))
    if overrides:
        config = deep_merge(config, overrides)
    return config


def section(config: Optional[dict], name: str) -> dict:
    """One config section with defaults filled in for missing keys."""
    overrides = (config or {}).get(name) or {}
    # callers get their own copy
    return copy.deepcopy(deep_merge(DEFAULT_CONFIG[name], overrides))
