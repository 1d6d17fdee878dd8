"""Database — SQLite persistence layer.

Manages connections, runs migrations, and provides the row-oriented
query interface the dashboard views read from.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from pathlib import Path
from typing import Any, Callable, Iterable, TypeVar

from pydantic import BaseModel, ValidationError

from polydash.config import StorageConfig
from polydash.observability.logger import get_logger
from polydash.storage.migrations import run_migrations
from polydash.storage.models import (
    ActivityProfileRow,
    ArbitrageEvent,
    ClosingMarket,
    MarketCapRow,
    PredictionRecord,
    SmartWalletRecord,
    TradeRecord,
)

log = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class Database:
    """SQLite database for the dashboard."""

    def __init__(self, config: StorageConfig):
        self._config = config
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Open database connection and run migrations."""
        db_path = Path(self._config.sqlite_path)
        if self._config.sqlite_path != ":memory:":
            db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(db_path))
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        run_migrations(self._conn)
        log.info("database.connected", path=str(db_path))

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._conn

    # ── Trades ───────────────────────────────────────────────────────

    def insert_trade(self, trade: TradeRecord) -> str:
        tid = trade.id or str(uuid.uuid4())
        self.conn.execute(
            """
            INSERT OR REPLACE INTO trades
                (id, proxy_wallet, label, condition_id, asset_id, title,
                 invested_amount, realized_pnl, status, timestamp, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                tid, trade.proxy_wallet, trade.label, trade.condition_id,
                trade.asset_id, trade.title, trade.invested_amount,
                trade.realized_pnl, trade.status, trade.timestamp,
                trade.created_at,
            ),
        )
        self.conn.commit()
        return tid

    def get_trades(self) -> list[TradeRecord]:
        """All copy-trades, most recent first."""
        rows = self.conn.execute(
            "SELECT * FROM trades ORDER BY timestamp DESC"
        ).fetchall()
        return _parse_rows(rows, TradeRecord, "trades")

    # ── Smart wallets ────────────────────────────────────────────────

    def upsert_smart_wallet(self, wallet: SmartWalletRecord) -> None:
        self.conn.execute(
            """
            INSERT OR REPLACE INTO smart_wallets
                (address, label, total_trades, total_profit,
                 avg_profit_per_trade, avg_profit_rate, win_rate,
                 avg_total_profit, top5_profit_ratio, top10_profit_ratio,
                 top5_loss_ratio, top10_loss_ratio, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                wallet.address, wallet.label, wallet.total_trades,
                wallet.total_profit, wallet.avg_profit_per_trade,
                wallet.avg_profit_rate, wallet.win_rate,
                wallet.avg_total_profit, wallet.top5_profit_ratio,
                wallet.top10_profit_ratio, wallet.top5_loss_ratio,
                wallet.top10_loss_ratio, wallet.updated_at,
            ),
        )
        self.conn.commit()

    def get_smart_wallets(self) -> list[SmartWalletRecord]:
        rows = self.conn.execute(
            "SELECT * FROM smart_wallets ORDER BY total_profit DESC"
        ).fetchall()
        return _parse_rows(rows, SmartWalletRecord, "smart_wallets")

    # ── Predictions ──────────────────────────────────────────────────

    def upsert_prediction(self, pred: PredictionRecord) -> None:
        self.conn.execute(
            """
            INSERT OR REPLACE INTO ai_predictions
                (slug, title, question, ai_outcome, ai_reasoning,
                 grok_outcome, grok_reasoning, doubao_outcome,
                 human_outcome, real_outcome, market_status,
                 human_price, is_excluded)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                pred.slug, pred.title, pred.question, pred.ai_outcome,
                pred.ai_reasoning, pred.grok_outcome, pred.grok_reasoning,
                pred.doubao_outcome, pred.human_outcome, pred.real_outcome,
                pred.market_status, pred.human_price, int(pred.is_excluded),
            ),
        )
        self.conn.commit()

    def get_predictions(self, market_status: str | None = None) -> list[PredictionRecord]:
        if market_status:
            rows = self.conn.execute(
                "SELECT * FROM ai_predictions WHERE market_status = ? ORDER BY title",
                (market_status,),
            ).fetchall()
        else:
            rows = self.conn.execute(
                "SELECT * FROM ai_predictions ORDER BY title"
            ).fetchall()
        return _parse_rows(rows, PredictionRecord, "ai_predictions")

    # ── Activity profiles ────────────────────────────────────────────

    def upsert_activity_profile(self, row: ActivityProfileRow) -> None:
        self.conn.execute(
            """
            INSERT OR REPLACE INTO user_activity_profiles
                (handle, day_of_week, hour, category, probability)
            VALUES (?, ?, ?, ?, ?)
            """,
            (row.handle, row.day_of_week, row.hour, row.category, row.probability),
        )
        self.conn.commit()

    def get_activity_profiles(
        self,
        handles: Iterable[str],
        day_of_week: int,
        category: str | None = None,
    ) -> list[ActivityProfileRow]:
        handles = list(handles)
        if not handles:
            return []
        placeholders = ", ".join("?" for _ in handles)
        sql = (
            "SELECT handle, day_of_week, hour, category, probability "
            f"FROM user_activity_profiles WHERE handle IN ({placeholders}) "
            "AND day_of_week = ?"
        )
        params: list[Any] = [*handles, day_of_week]
        if category is not None:
            sql += " AND category = ?"
            params.append(category)
        sql += " ORDER BY hour ASC"
        rows = self.conn.execute(sql, params).fetchall()
        return _parse_rows(rows, ActivityProfileRow, "user_activity_profiles")

    # ── Market cap ceiling ───────────────────────────────────────────

    def insert_market_cap_row(self, row: MarketCapRow) -> None:
        self.conn.execute(
            """
            INSERT INTO daily_market_cap_ceiling
                (address, short_name, create_date_ms, max_market_cap_wan,
                 is_eligible, is_binance)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                row.address, row.short_name, row.create_date_ms,
                row.max_market_cap_wan,
                None if row.is_eligible is None else int(row.is_eligible),
                None if row.is_binance is None else int(row.is_binance),
            ),
        )
        self.conn.commit()

    def get_market_cap_rows(self, since_ms: float) -> list[MarketCapRow]:
        """Eligible launches created at or after ``since_ms``, oldest first."""
        rows = self.conn.execute(
            """
            SELECT address, short_name, create_date_ms, max_market_cap_wan,
                   is_eligible, is_binance
            FROM daily_market_cap_ceiling
            WHERE create_date_ms >= ? AND is_eligible = 1
            ORDER BY create_date_ms ASC
            """,
            (since_ms,),
        ).fetchall()
        return _parse_rows(rows, MarketCapRow, "daily_market_cap_ceiling")

    # ── Arbitrage snapshots ──────────────────────────────────────────

    def insert_arbitrage_event(self, raw: dict[str, Any]) -> None:
        self.conn.execute(
            "INSERT INTO opinion_arbitrage (raw_data) VALUES (?)",
            (json.dumps(raw),),
        )
        self.conn.commit()

    def get_arbitrage_events(self) -> list[ArbitrageEvent]:
        rows = self.conn.execute(
            "SELECT raw_data FROM opinion_arbitrage ORDER BY id ASC"
        ).fetchall()
        return _parse_json_rows(rows, ArbitrageEvent.model_validate, "opinion_arbitrage")

    def insert_closing_market(self, raw: dict[str, Any]) -> None:
        self.conn.execute(
            "INSERT INTO opinion_closing (raw_data) VALUES (?)",
            (json.dumps(raw),),
        )
        self.conn.commit()

    def get_closing_markets(self) -> list[ClosingMarket]:
        rows = self.conn.execute(
            "SELECT raw_data FROM opinion_closing ORDER BY id ASC"
        ).fetchall()
        return _parse_json_rows(rows, ClosingMarket.model_validate, "opinion_closing")


# ── Row parsing ──────────────────────────────────────────────────────

def _parse_rows(rows: list[sqlite3.Row], model: type[M], table: str) -> list[M]:
    """Validate rows into records, skipping any that do not fit the model."""
    records: list[M] = []
    for r in rows:
        try:
            records.append(model(**dict(r)))
        except ValidationError as e:
            log.warning("database.invalid_row", table=table, error=str(e))
    return records


def _parse_json_rows(
    rows: list[sqlite3.Row], parse: Callable[[Any], M], table: str,
) -> list[M]:
    records: list[M] = []
    for r in rows:
        try:
            records.append(parse(json.loads(r["raw_data"])))
        except (ValueError, ValidationError) as e:
            log.warning("database.invalid_row", table=table, error=str(e))
    return records
