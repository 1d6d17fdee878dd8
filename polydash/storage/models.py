"""Database models — Pydantic models for stored rows.

Rows are read-only snapshots once fetched; the analytics layer never
mutates them.
"""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


class TradeRecord(BaseModel):
    """A copy-trade executed on behalf of a followed wallet."""
    id: str
    proxy_wallet: str = ""
    label: str | None = None
    condition_id: str = ""
    asset_id: str | None = None
    title: str | None = None
    invested_amount: float = 0.0
    realized_pnl: float = 0.0
    status: str = "OPEN"  # OPEN | CLOSED
    timestamp: str | None = None
    created_at: str | None = Field(default_factory=_now_iso)

    @field_validator("proxy_wallet", "condition_id", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("status", mode="before")
    @classmethod
    def null_status_open(cls, v: Any) -> Any:
        return "OPEN" if v is None else v


class PredictionRecord(BaseModel):
    """Human and AI predictions for one market, with its settlement."""
    slug: str
    title: str = ""
    question: str = ""
    ai_outcome: str | None = None
    ai_reasoning: str | None = None
    grok_outcome: str | None = None
    grok_reasoning: str | None = None
    doubao_outcome: str | None = None
    human_outcome: str | None = None
    real_outcome: str | None = None
    market_status: str = "OPEN"
    human_price: float | None = None
    is_excluded: bool = False

    @field_validator("title", "question", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("market_status", mode="before")
    @classmethod
    def null_status_open(cls, v: Any) -> Any:
        return "OPEN" if v is None else v

    @field_validator("is_excluded", mode="before")
    @classmethod
    def null_not_excluded(cls, v: Any) -> Any:
        """NULL in the column means the market was never excluded."""
        return False if v is None else v


class ActivityProfileRow(BaseModel):
    """Posting probability of a handle for one (weekday, hour) slot."""
    handle: str
    hour: int
    day_of_week: int = 0  # 0 = Monday
    category: str = "all"
    probability: float = 0.0


class SmartWalletRecord(BaseModel):
    """Pre-computed performance stats of a smart-money wallet."""
    address: str
    label: str | None = None
    total_trades: int = 0
    total_profit: float = 0.0
    avg_profit_per_trade: float = 0.0
    avg_profit_rate: float = 0.0
    win_rate: float = 0.0
    avg_total_profit: float = 0.0
    top5_profit_ratio: float = 0.0
    top10_profit_ratio: float = 0.0
    top5_loss_ratio: float = 0.0
    top10_loss_ratio: float = 0.0
    updated_at: str | None = Field(default_factory=_now_iso)


class MarketCapRow(BaseModel):
    """Peak market cap of a newly launched token (in units of 10k USD)."""
    address: str = ""
    short_name: str | None = None
    create_date_ms: float | None = None
    max_market_cap_wan: float | None = None
    is_eligible: bool | None = None
    is_binance: bool | None = None


# ── Arbitrage payloads (stored as raw JSON) ──────────────────────────

class OpinionStats(BaseModel):
    volume24h: str | None = "0"
    volume7d: str | None = "0"


class PolymarketStats(BaseModel):
    volume24hr: float | None = 0.0
    volume1wk: float | None = 0.0


class ArbitrageMarket(BaseModel):
    model_config = ConfigDict(extra="allow")

    opinion_outcome: str = ""
    polymarket_outcome: str = ""
    outcome_match_score: float = 0.0
    opinion_market_id: int | None = None
    opinion_price: str | None = None
    polymarket_prices: list[str] = Field(default_factory=list)
    polymarket_market_id: str = ""
    polymarket_volume: str = "0"


class ArbitrageEvent(BaseModel):
    """An event listed on both Opinion and Polymarket."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    event_title: str
    polymarket_event_title: str = ""
    match_score: float = 0.0
    cutoff_at: float | None = Field(default=None, alias="cutoffAt")
    opinion_stats: OpinionStats = Field(default_factory=OpinionStats)
    polymarket_stats: PolymarketStats = Field(default_factory=PolymarketStats)
    markets: list[ArbitrageMarket] = Field(default_factory=list)


class ClosingMarket(BaseModel):
    """An Opinion market approaching its cutoff."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    market_id: str | int = Field(alias="marketId")
    market_title: str = Field(default="", alias="marketTitle")
    volume: str | None = "0"
    volume24h: str | None = "0"
    cutoff_at: float = Field(default=0.0, alias="cutoffAt")
    child_markets: list[dict[str, Any]] = Field(default_factory=list, alias="childMarkets")
