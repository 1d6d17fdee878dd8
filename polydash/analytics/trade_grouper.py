"""Copy-trading leaderboard.

Groups flat copy-trade rows by the followed wallet (``proxy_wallet``)
and ranks wallets by realised PnL. Input is expected newest-first, so
each wallet's trade list stays newest-first too.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable

from polydash.observability.logger import get_logger
from polydash.storage.models import SmartWalletRecord, TradeRecord

log = get_logger(__name__)

UNKNOWN_LABEL = "Unknown"


@dataclass
class TraderStats:
    """Totals for one followed wallet."""
    label: str
    proxy_wallet: str
    total_trades: int = 0
    total_invested: float = 0.0
    total_realized_pnl: float = 0.0
    trades: list[TradeRecord] = field(default_factory=list)

    def add(self, trade: TradeRecord) -> None:
        self.total_trades += 1
        self.total_invested += trade.invested_amount
        self.total_realized_pnl += trade.realized_pnl
        self.trades.append(trade)

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "proxy_wallet": self.proxy_wallet,
            "total_trades": self.total_trades,
            "total_invested": round(self.total_invested, 2),
            "total_realized_pnl": round(self.total_realized_pnl, 2),
            "trades": [t.model_dump() for t in self.trades],
        }


@dataclass
class LeaderboardSummary:
    """Headline cards above the leaderboard."""
    total_realized_pnl: float = 0.0
    total_invested: float = 0.0
    total_trades: int = 0
    trader_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_realized_pnl": round(self.total_realized_pnl, 2),
            "total_invested": round(self.total_invested, 2),
            "total_trades": self.total_trades,
            "trader_count": self.trader_count,
        }


def _is_usable(trade: TradeRecord) -> bool:
    return (
        bool(trade.proxy_wallet)
        and math.isfinite(trade.invested_amount)
        and math.isfinite(trade.realized_pnl)
    )


def group_trades(trades: Iterable[TradeRecord]) -> list[TraderStats]:
    """Group trades per wallet, sorted by realised PnL (highest first)."""
    stats: dict[str, TraderStats] = {}
    skipped = 0

    for trade in trades:
        if not _is_usable(trade):
            skipped += 1
            continue
        key = trade.proxy_wallet
        if key not in stats:
            stats[key] = TraderStats(
                label=trade.label or UNKNOWN_LABEL,
                proxy_wallet=key,
            )
        stats[key].add(trade)

    if skipped:
        log.debug("trade_grouper.skipped_rows", count=skipped)

    # sorted() is stable: ties keep first-seen order
    return sorted(stats.values(), key=lambda s: s.total_realized_pnl, reverse=True)


def summarize_leaderboard(groups: Iterable[TraderStats]) -> LeaderboardSummary:
    summary = LeaderboardSummary()
    for g in groups:
        summary.total_realized_pnl += g.total_realized_pnl
        summary.total_invested += g.total_invested
        summary.total_trades += g.total_trades
        summary.trader_count += 1
    return summary


def rank_smart_wallets(wallets: Iterable[SmartWalletRecord]) -> list[SmartWalletRecord]:
    """Smart-money wallets by total profit, highest first."""
    usable = [w for w in wallets if w.address and math.isfinite(w.total_profit)]
    return sorted(usable, key=lambda w: w.total_profit, reverse=True)
