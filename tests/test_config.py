"""Tests for config loading — defaults, YAML sections, env overrides."""

from __future__ import annotations

import pytest


class TestDefaults:

    def test_missing_file_uses_defaults(self, tmp_path, monkeypatch):
        from polydash.config import DEFAULT_AGENT_FIELDS, load_config
        monkeypatch.delenv("BUNDLE_FINDER_URL", raising=False)
        monkeypatch.delenv("DASHBOARD_DB_PATH", raising=False)
        cfg = load_config(tmp_path / "absent.yaml")
        assert cfg.storage.sqlite_path == "data/dashboard.db"
        assert cfg.predictions.agent_fields == DEFAULT_AGENT_FIELDS
        assert cfg.predictions.exclusive_price_ceiling == 0.97
        assert cfg.activity.utc_offset_hours == 8
        assert cfg.market_cap.default_window_hours == 24
        assert cfg.bundle_finder.scope == "middle"
        assert cfg.bundle_finder.precision == "precise"

    def test_default_lists_not_shared(self):
        from polydash.config import DashboardConfig
        a, b = DashboardConfig(), DashboardConfig()
        a.activity.handles.append("@new")
        assert "@new" not in b.activity.handles


class TestYaml:

    def test_sections_loaded(self, tmp_path, monkeypatch):
        from polydash.config import load_config
        monkeypatch.delenv("BUNDLE_FINDER_URL", raising=False)
        monkeypatch.delenv("DASHBOARD_DB_PATH", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text(
            "storage:\n"
            "  sqlite_path: /tmp/x.db\n"
            "predictions:\n"
            "  agent_fields: [human_outcome, ai_outcome]\n"
            "  exclusive_price_ceiling: 0.9\n"
            "activity:\n"
            "  handles: ['@a']\n"
        )
        cfg = load_config(path)
        assert cfg.storage.sqlite_path == "/tmp/x.db"
        assert cfg.predictions.agent_fields == ["human_outcome", "ai_outcome"]
        assert cfg.predictions.exclusive_price_ceiling == 0.9
        assert cfg.activity.handles == ["@a"]
        assert cfg.activity.default_category == "all"

    def test_empty_file(self, tmp_path):
        from polydash.config import load_config
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path).observability.log_level == "INFO"

    def test_invalid_value_raises(self, tmp_path):
        from pydantic import ValidationError
        from polydash.config import load_config
        path = tmp_path / "config.yaml"
        path.write_text("bundle_finder:\n  timeout_secs: soon\n")
        with pytest.raises(ValidationError):
            load_config(path)


class TestEnvOverrides:

    def test_env_overrides(self, tmp_path, monkeypatch):
        from polydash.config import load_config
        monkeypatch.setenv("BUNDLE_FINDER_URL", "http://finder:9000/api/analyze")
        monkeypatch.setenv("DASHBOARD_DB_PATH", str(tmp_path / "env.db"))
        cfg = load_config(tmp_path / "absent.yaml")
        assert cfg.bundle_finder.api_url == "http://finder:9000/api/analyze"
        assert cfg.storage.sqlite_path == str(tmp_path / "env.db")
