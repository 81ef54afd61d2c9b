"""Tests for the configuration system."""

import pytest

from auditlens.core.config import (
    DEFAULT_CONFIG,
    deep_merge,
    get_effective_config,
    load_project_config,
    section,
)
from auditlens.errors import ConfigError


class TestDeepMerge:
    def test_simple_merge(self):
        base = {"a": 1, "b": 2}
        override = {"b": 3, "c": 4}
        assert deep_merge(base, override) == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self):
        base = {"risk": {"window_size": 30, "high_count": 5}}
        override = {"risk": {"high_count": 8}}
        assert deep_merge(base, override) == {"risk": {"window_size": 30, "high_count": 8}}

    def test_arrays_replaced(self):
        base = {"levels": ["HIGH", "CRITICAL"]}
        override = {"levels": ["CRITICAL"]}
        assert deep_merge(base, override) == {"levels": ["CRITICAL"]}

    def test_does_not_mutate_base(self):
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}


class TestLoadProjectConfig:
    def test_missing(self, tmp_path):
        assert load_project_config(tmp_path) == {}

    def test_loads(self, tmp_project):
        config = load_project_config(tmp_project)
        assert config["scoring"] == {"manual_pass": 90}

    def test_bom(self, tmp_path):
        cfg_dir = tmp_path / ".auditlens"
        cfg_dir.mkdir()
        (cfg_dir / "config.yaml").write_text("\ufeffleaderboard:\n  top_k: 5\n", encoding="utf-8")
        assert load_project_config(tmp_path)["leaderboard"]["top_k"] == 5

    def test_empty_file(self, tmp_path):
        cfg_dir = tmp_path / ".auditlens"
        cfg_dir.mkdir()
        (cfg_dir / "config.yaml").write_text("", encoding="utf-8")
        assert load_project_config(tmp_path) == {}

    def test_invalid_yaml(self, tmp_path):
        cfg_dir = tmp_path / ".auditlens"
        cfg_dir.mkdir()
        (cfg_dir / "config.yaml").write_text("{{{{invalid yaml", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_project_config(tmp_path)

    def test_not_a_mapping(self, tmp_path):
        cfg_dir = tmp_path / ".auditlens"
        cfg_dir.mkdir()
        (cfg_dir / "config.yaml").write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="mapping"):
            load_project_config(tmp_path)


class TestEffectiveConfig:
    def test_defaults(self):
        config = get_effective_config()
        assert config == DEFAULT_CONFIG
        assert config is not DEFAULT_CONFIG

    def test_project_layer(self, tmp_project):
        config = get_effective_config(tmp_project)
        assert config["scoring"]["manual_pass"] == 90
        assert config["scoring"]["automated_pass"] == 70
        assert config["leaderboard"]["top_k"] == 3

    def test_overrides_win(self, tmp_project):
        config = get_effective_config(tmp_project, {"leaderboard": {"top_k": 7}})
        assert config["leaderboard"]["top_k"] == 7

    def test_mutation_does_not_leak(self):
        config = get_effective_config()
        config["risk"]["high_risk_levels"].append("MEDIUM")
        assert DEFAULT_CONFIG["risk"]["high_risk_levels"] == ["HIGH", "CRITICAL"]


class TestSection:
    def test_none_config(self):
        assert section(None, "risk") == DEFAULT_CONFIG["risk"]

    def test_partial_section(self):
        merged = section({"portfolio": {"weights": {"payment": 10}}}, "portfolio")
        assert merged["weights"]["payment"] == 10
        assert merged["weights"]["inactive"] == 40
        assert merged["at_risk"] == 20

    def test_missing_section(self):
        assert section({"scoring": {}}, "trends") == DEFAULT_CONFIG["trends"]

    def test_result_is_a_copy(self):
        risk = section(None, "risk")
        risk["high_risk_levels"].append("MEDIUM")
        risk["window_size"] = 1
        section({}, "portfolio")["weights"]["inactive"] = 0
        assert DEFAULT_CONFIG["risk"]["high_risk_levels"] == ["HIGH", "CRITICAL"]
        assert DEFAULT_CONFIG["risk"]["window_size"] == 30
        assert DEFAULT_CONFIG["portfolio"]["weights"]["inactive"] == 40
