"""Seed the database with sample data for dashboard demo."""

from __future__ import annotations

import datetime as dt
import random
import sys
import time
import uuid
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from polydash.config import DEFAULT_HANDLES, load_config  # noqa: E402
from polydash.storage.database import Database  # noqa: E402
from polydash.storage.models import (  # noqa: E402
    ActivityProfileRow,
    MarketCapRow,
    PredictionRecord,
    SmartWalletRecord,
    TradeRecord,
)


def seed() -> None:
    cfg = load_config()
    db = Database(cfg.storage)
    db.connect()

    now = dt.datetime.now(dt.timezone.utc)
    now_ms = int(time.time() * 1000)

    # ── Copy trades ──
    followed = [
        ("0xfa11ce0000000000000000000000000000000001", "whale-alpha"),
        ("0xfa11ce0000000000000000000000000000000002", "sports-guru"),
        ("0xfa11ce0000000000000000000000000000000003", None),
    ]
    titles = [
        "Will the Fed cut rates at the March 2026 meeting?",
        "Will the Chiefs win Super Bowl LXI?",
        "Will BTC close above $150k on Dec 31?",
        "Will Tesla deliver >500K vehicles in Q1 2026?",
    ]
    for wallet, label in followed:
        for i in range(random.randint(3, 6)):
            invested = round(random.uniform(20, 400), 2)
            closed = random.random() < 0.6
            db.insert_trade(TradeRecord(
                id=str(uuid.uuid4()),
                proxy_wallet=wallet,
                label=label,
                condition_id=f"0xcond{random.randint(1000, 9999)}",
                title=random.choice(titles),
                invested_amount=invested,
                realized_pnl=round(random.uniform(-0.6, 0.9) * invested, 2) if closed else 0.0,
                status="CLOSED" if closed else "OPEN",
                timestamp=(now - dt.timedelta(hours=i * 7)).isoformat(),
            ))

    # ── Smart wallets ──
    for n in range(8):
        trades = random.randint(20, 300)
        profit = round(random.uniform(-5000, 60000), 2)
        db.upsert_smart_wallet(SmartWalletRecord(
            address=f"0x5ma7{n:036x}",
            label=random.choice(["whale", "insider", "bot", None]),
            total_trades=trades,
            total_profit=profit,
            avg_profit_per_trade=round(profit / trades, 2),
            avg_profit_rate=round(random.uniform(-0.2, 0.8), 3),
            win_rate=round(random.uniform(0.35, 0.85), 3),
            avg_total_profit=round(profit / max(trades // 5, 1), 2),
            top5_profit_ratio=round(random.uniform(0.1, 0.9), 3),
            top10_profit_ratio=round(random.uniform(0.2, 1.0), 3),
            top5_loss_ratio=round(random.uniform(0.1, 0.9), 3),
            top10_loss_ratio=round(random.uniform(0.2, 1.0), 3),
        ))

    # ── Human vs AI predictions ──
    predictions = [
        # (slug, title, real, status, human, ai, grok, doubao, price)
        ("fed-cut-march", "Fed cuts in March?", "No", "CLOSED", "No", "No", "Yes", "No", 0.82),
        ("btc-150k", "BTC above $150k?", "No", "CLOSED", "No", "Yes", "No", None, 0.98),
        ("super-bowl", "Super Bowl LXI winner", "Kansas City Chiefs", "CLOSED",
         "Chiefs", "Kansas City Chiefs", "Eagles", "Chiefs", 0.41),
        ("cpi-jan", "CPI above 3.0%?", "Yes", "CLOSED", "Yes", "Yes", "Yes", "No", 0.66),
        ("oscars-best-picture", "Best Picture 2026", None, "OPEN", "Anora", "Anora", None, None, 0.35),
    ]
    for slug, title, real, status, human, ai, grok, doubao, price in predictions:
        db.upsert_prediction(PredictionRecord(
            slug=slug,
            title=title,
            question=title,
            real_outcome=real,
            market_status=status,
            human_outcome=human,
            ai_outcome=ai,
            grok_outcome=grok,
            doubao_outcome=doubao,
            human_price=price,
        ))

    # ── Activity profiles ──
    for handle in DEFAULT_HANDLES:
        peak = random.randint(8, 22)
        for day in range(7):
            for hour in range(24):
                distance = min(abs(hour - peak), 24 - abs(hour - peak))
                db.upsert_activity_profile(ActivityProfileRow(
                    handle=handle,
                    day_of_week=day,
                    hour=hour,
                    category="all",
                    probability=round(max(0.02, 0.9 - distance * 0.08) * random.uniform(0.7, 1.0), 3),
                ))

    # ── New-token market caps ──
    for i in range(40):
        address = f"0x{uuid.uuid4().hex}{uuid.uuid4().hex[:8]}"
        db.insert_market_cap_row(MarketCapRow(
            address=address,
            short_name=random.choice(["PEPE2", "DOGEAI", "BNBCAT", None]),
            create_date_ms=now_ms - random.randint(0, 30) * 3_600_000 - random.randint(0, 3_599_999),
            max_market_cap_wan=round(random.lognormvariate(3, 1.2), 2),
            is_eligible=random.random() < 0.9,
            is_binance=random.random() < 0.2,
        ))

    # ── Arbitrage snapshots ──
    cutoff = int(now.timestamp())
    for i, title in enumerate(titles):
        db.insert_arbitrage_event({
            "event_title": title,
            "polymarket_event_title": title,
            "match_score": round(random.uniform(0.7, 1.0), 3),
            "cutoffAt": cutoff + (i + 1) * 86_400,
            "opinion_stats": {"volume24h": f"{random.uniform(1e3, 5e5):.2f}", "volume7d": "0"},
            "polymarket_stats": {"volume24hr": random.uniform(1e3, 5e5), "volume1wk": 0},
            "markets": [],
        })
        db.insert_closing_market({
            "marketId": 1000 + i,
            "marketTitle": title,
            "volume": f"{random.uniform(1e3, 1e6):.2f}",
            "volume24h": f"{random.uniform(1e2, 1e5):.2f}",
            "cutoffAt": cutoff + random.randint(1, 48) * 3600,
            "childMarkets": [],
        })

    db.close()
    print(f"Seeded demo data into {cfg.storage.sqlite_path}")


if __name__ == "__main__":
    seed()
