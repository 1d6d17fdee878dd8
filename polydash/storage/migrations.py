"""Database migrations — create and upgrade schema."""

from __future__ import annotations

import sqlite3

from polydash.observability.logger import get_logger

log = get_logger(__name__)

SCHEMA_VERSION = 3

_MIGRATIONS: dict[int, list[str]] = {
    1: [
        """
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY
        );
        """,
        """
        CREATE TABLE IF NOT EXISTS trades (
            id TEXT PRIMARY KEY,
            proxy_wallet TEXT,
            label TEXT,
            condition_id TEXT,
            asset_id TEXT,
            title TEXT,
            invested_amount REAL,
            realized_pnl REAL,
            status TEXT DEFAULT 'OPEN',
            timestamp TEXT,
            created_at TEXT
        );
        """,
        """
        CREATE INDEX IF NOT EXISTS idx_trades_timestamp ON trades(timestamp);
        """,
        """
        CREATE INDEX IF NOT EXISTS idx_trades_wallet ON trades(proxy_wallet);
        """,
        """
        CREATE TABLE IF NOT EXISTS smart_wallets (
            address TEXT PRIMARY KEY,
            label TEXT,
            total_trades INTEGER DEFAULT 0,
            total_profit REAL DEFAULT 0,
            avg_profit_per_trade REAL DEFAULT 0,
            avg_profit_rate REAL DEFAULT 0,
            win_rate REAL DEFAULT 0,
            avg_total_profit REAL DEFAULT 0,
            top5_profit_ratio REAL DEFAULT 0,
            top10_profit_ratio REAL DEFAULT 0,
            top5_loss_ratio REAL DEFAULT 0,
            top10_loss_ratio REAL DEFAULT 0,
            updated_at TEXT
        );
        """,
    ],
    2: [
        # Human vs AI predictions
        """
        CREATE TABLE IF NOT EXISTS ai_predictions (
            slug TEXT PRIMARY KEY,
            title TEXT,
            question TEXT,
            ai_outcome TEXT,
            ai_reasoning TEXT,
            grok_outcome TEXT,
            grok_reasoning TEXT,
            doubao_outcome TEXT,
            human_outcome TEXT,
            real_outcome TEXT,
            market_status TEXT DEFAULT 'OPEN',
            human_price REAL,
            is_excluded INTEGER DEFAULT 0
        );
        """,
        """
        CREATE INDEX IF NOT EXISTS idx_predictions_status ON ai_predictions(market_status);
        """,
        # Hourly posting probabilities
        """
        CREATE TABLE IF NOT EXISTS user_activity_profiles (
            handle TEXT NOT NULL,
            day_of_week INTEGER NOT NULL,
            hour INTEGER NOT NULL,
            category TEXT NOT NULL DEFAULT 'all',
            probability REAL,
            PRIMARY KEY (handle, day_of_week, hour, category)
        );
        """,
    ],
    3: [
        # New-token market cap ceilings
        """
        CREATE TABLE IF NOT EXISTS daily_market_cap_ceiling (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            address TEXT,
            short_name TEXT,
            create_date_ms REAL,
            max_market_cap_wan REAL,
            is_eligible INTEGER,
            is_binance INTEGER
        );
        """,
        """
        CREATE INDEX IF NOT EXISTS idx_market_cap_created
            ON daily_market_cap_ceiling(create_date_ms);
        """,
        # Arbitrage snapshots, stored as raw JSON payloads
        """
        CREATE TABLE IF NOT EXISTS opinion_arbitrage (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            raw_data TEXT NOT NULL
        );
        """,
        """
        CREATE TABLE IF NOT EXISTS opinion_closing (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            raw_data TEXT NOT NULL
        );
        """,
    ],
}


def run_migrations(conn: sqlite3.Connection) -> None:
    """Run all pending migrations."""
    conn.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER PRIMARY KEY)")
    conn.commit()

    current = _get_current_version(conn)

    for version in sorted(_MIGRATIONS.keys()):
        if version <= current:
            continue
        log.info("migrations.running", version=version)
        for sql in _MIGRATIONS[version]:
            conn.execute(sql)
        conn.execute(
            "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
            (version,),
        )
        conn.commit()
        log.info("migrations.applied", version=version)

    final = _get_current_version(conn)
    log.info("migrations.complete", version=final)


def _get_current_version(conn: sqlite3.Connection) -> int:
    try:
        row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] if row and row[0] else 0
    except sqlite3.Error:
        return 0
