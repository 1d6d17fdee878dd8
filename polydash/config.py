"""Shared configuration loader and Pydantic settings.

Supports:
  - YAML file loading with env var overrides
  - Storage, observability, bundle-finder, prediction scoring,
    activity profile and market-cap chart sections
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


_PROJECT_ROOT = Path(__file__).resolve().parent.parent

DEFAULT_AGENT_FIELDS = ["human_outcome", "ai_outcome", "grok_outcome", "doubao_outcome"]

DEFAULT_HANDLES = [
    "@cz_binance",
    "@heyibinance",
    "@nina_rong",
    "@Binance_intern",
    "@binancezh",
    "@binance",
]


class StorageConfig(BaseModel):
    db_type: str = "sqlite"
    sqlite_path: str = "data/dashboard.db"


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: str = "logs/dashboard.log"


class BundleFinderConfig(BaseModel):
    """External wallet-bundle analysis server."""
    api_url: str = "http://127.0.0.1:5000/api/analyze"
    timeout_secs: float = 120.0
    max_retries: int = 3
    retry_backoff_secs: float = 1.0
    scope: str = "middle"
    precision: str = "precise"
    default_chain_id: str = "56"
    default_token_count: int = 10
    default_history_limit: int = 100


class PredictionsConfig(BaseModel):
    """Human vs AI scoreboard settings."""
    agent_fields: list[str] = Field(default_factory=lambda: list(DEFAULT_AGENT_FIELDS))
    exclusive_price_ceiling: float = 0.97


class ActivityConfig(BaseModel):
    """Hourly posting-probability profiles."""
    handles: list[str] = Field(default_factory=lambda: list(DEFAULT_HANDLES))
    default_category: str = "all"
    utc_offset_hours: int = 8


class MarketCapConfig(BaseModel):
    default_window_hours: int = 24


class DashboardConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    bundle_finder: BundleFinderConfig = Field(default_factory=BundleFinderConfig)
    predictions: PredictionsConfig = Field(default_factory=PredictionsConfig)
    activity: ActivityConfig = Field(default_factory=ActivityConfig)
    market_cap: MarketCapConfig = Field(default_factory=MarketCapConfig)


def load_config(path: str | Path | None = None) -> DashboardConfig:
    """Load config from YAML file, falling back to defaults."""
    if path is None:
        path = _PROJECT_ROOT / "config.yaml"
    path = Path(path)
    if path.exists():
        with open(path) as f:
            raw: dict[str, Any] = yaml.safe_load(f) or {}
        cfg = DashboardConfig(**raw)
    else:
        cfg = DashboardConfig()
    return _apply_env_overrides(cfg)


def _apply_env_overrides(cfg: DashboardConfig) -> DashboardConfig:
    url = os.environ.get("BUNDLE_FINDER_URL", "")
    if url:
        cfg.bundle_finder.api_url = url
    db_path = os.environ.get("DASHBOARD_DB_PATH", "")
    if db_path:
        cfg.storage.sqlite_path = db_path
    return cfg
