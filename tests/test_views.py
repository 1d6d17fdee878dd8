"""Tests for dashboard views — fetch, transform and error handling
end to end against an in-memory database."""

from __future__ import annotations

import datetime as dt

H = 60 * 60 * 1000


def _views(db, **kwargs):
    from polydash.dashboard.views import DashboardViews
    return DashboardViews(db, **kwargs)


def _unconnected_db():
    from polydash.config import StorageConfig
    from polydash.storage.database import Database
    return Database(StorageConfig(sqlite_path=":memory:"))


# ═══════════════════════════════════════════════════════════════════
#  FETCH FAILURES
# ═══════════════════════════════════════════════════════════════════

class TestFetchFailure:

    def test_copy_trading_empty_with_error(self):
        result = _views(_unconnected_db()).copy_trading()
        assert not result.ok
        assert "not connected" in result.error
        assert result.data["traders"] == []
        assert result.data["summary"]["trader_count"] == 0

    def test_speech_still_has_24_buckets(self):
        result = _views(_unconnected_db()).speech_probability()
        assert result.error is not None
        assert len(result.data["series"]) == 24

    def test_every_view_degrades(self):
        views = _views(_unconnected_db())
        for result in (
            views.smart_wallets(),
            views.human_vs_ai(),
            views.market_cap_scatter(now_ms=100 * H),
            views.arbitrage(),
            views.closing_markets(),
        ):
            assert result.error is not None

    def test_to_dict(self):
        d = _views(_unconnected_db()).closing_markets().to_dict()
        assert d["name"] == "closing_markets"
        assert d["data"] == {"markets": []}
        assert d["error"]


# ═══════════════════════════════════════════════════════════════════
#  PAGES
# ═══════════════════════════════════════════════════════════════════

class TestCopyTrading:

    def test_leaderboard(self, db):
        from polydash.storage.models import TradeRecord
        db.insert_trade(TradeRecord(id="1", proxy_wallet="0xA", label="a", invested_amount=10, realized_pnl=1))
        db.insert_trade(TradeRecord(id="2", proxy_wallet="0xB", label="b", invested_amount=10, realized_pnl=5))
        result = _views(db).copy_trading()
        assert result.ok
        assert [t["proxy_wallet"] for t in result.data["traders"]] == ["0xB", "0xA"]
        assert result.data["summary"]["total_realized_pnl"] == 6


class TestHumanVsAI:

    def _seed(self, db):
        from polydash.storage.models import PredictionRecord
        db.upsert_prediction(PredictionRecord(
            slug="a", title="A", market_status="CLOSED", real_outcome="Yes",
            human_outcome="Yes", ai_outcome="No", human_price=0.99,
        ))
        db.upsert_prediction(PredictionRecord(
            slug="b", title="B", market_status="CLOSED", real_outcome="No",
            human_outcome="No", ai_outcome="No", human_price=0.4,
        ))
        db.upsert_prediction(PredictionRecord(
            slug="c", title="C", market_status="OPEN", human_outcome="Yes",
        ))

    def test_scoreboard_from_settled_markets(self, db):
        self._seed(db)
        result = _views(db).human_vs_ai()
        results = result.data["scoreboard"]["results"]
        assert results["human_outcome"] == {"rate": "100.0", "correct": 2, "total": 2}
        assert results["ai_outcome"] == {"rate": "50.0", "correct": 1, "total": 2}
        assert [r["slug"] for r in result.data["rows"]] == ["a", "b"]

    def test_exclusive(self, db):
        self._seed(db)
        result = _views(db).human_vs_ai(exclusive=True)
        assert result.data["scoreboard"]["results"]["ai_outcome"]["total"] == 1
        assert [r["slug"] for r in result.data["rows"]] == ["b"]

    def test_fallback_only_when_db_empty(self, db):
        from polydash.storage.models import PredictionRecord
        fallback = [PredictionRecord(
            slug="f", title="F", market_status="CLOSED", real_outcome="Yes", human_outcome="Yes",
        )]
        result = _views(db, fallback_predictions=fallback).human_vs_ai()
        assert [r["slug"] for r in result.data["rows"]] == ["f"]

        self._seed(db)
        result = _views(db, fallback_predictions=fallback).human_vs_ai()
        assert "f" not in [r["slug"] for r in result.data["rows"]]

    def test_excluded_rows_hidden(self, db):
        from polydash.storage.models import PredictionRecord
        db.upsert_prediction(PredictionRecord(
            slug="x", market_status="CLOSED", real_outcome="Yes", human_outcome="Yes", is_excluded=True,
        ))
        db.upsert_prediction(PredictionRecord(
            slug="y", market_status="CLOSED", real_outcome="Yes",
            human_outcome="Unknown", ai_outcome="Unknown", grok_outcome="  ",
        ))
        result = _views(db).human_vs_ai()
        assert result.data["rows"] == []
        assert result.data["scoreboard"]["results"]["human_outcome"]["total"] == 0

    def test_null_columns_still_scored(self, db):
        db.conn.execute(
            "INSERT INTO ai_predictions (slug, title, market_status, real_outcome, human_outcome, is_excluded) "
            "VALUES ('a', NULL, 'CLOSED', 'Yes', 'Yes', 0)"
        )
        db.conn.execute(
            "INSERT INTO ai_predictions (slug, title, market_status, real_outcome, human_outcome, is_excluded) "
            "VALUES ('b', 'B', 'CLOSED', 'Yes', 'Yes', NULL)"
        )
        db.conn.commit()
        result = _views(db).human_vs_ai()
        assert result.data["scoreboard"]["results"]["human_outcome"] == {"rate": "100.0", "correct": 2, "total": 2}
        assert sorted(r["slug"] for r in result.data["rows"]) == ["a", "b"]


class TestSpeechProbability:

    def test_current_slot_estimates(self, db):
        from polydash.storage.models import ActivityProfileRow
        # Monday 20:00 UTC -> Tuesday (1) 04:00 Beijing
        now = dt.datetime(2024, 1, 1, 20, 0, tzinfo=dt.timezone.utc)
        db.upsert_activity_profile(ActivityProfileRow(handle="@a", day_of_week=1, hour=4, probability=0.3))
        db.upsert_activity_profile(ActivityProfileRow(handle="@a", day_of_week=1, hour=5, probability=0.6))
        db.upsert_activity_profile(ActivityProfileRow(handle="@a", day_of_week=0, hour=4, probability=0.9))
        result = _views(db).speech_probability(handles=["@a"], now=now)
        assert (result.data["day_of_week"], result.data["hour"]) == (1, 4)
        assert result.data["estimates"]["@a"] == {"current": 0.3, "next": 0.6}
        assert result.data["series"][4] == {"hour": 4, "@a": 0.3}

    def test_default_handles_from_config(self, db):
        from polydash.config import DEFAULT_HANDLES
        result = _views(db).speech_probability()
        assert list(result.data["estimates"]) == DEFAULT_HANDLES
        assert result.data["category"] == "all"


class TestMarketCapScatter:

    def test_window_and_ceiling(self, db):
        from polydash.storage.models import MarketCapRow
        now = 100 * H
        for addr, created, cap, binance in (
            ("0xold", now - 30 * H, 500.0, False),
            ("0xa", now - 5 * H, 10.0, False),
            ("0xb", now - 2 * H, 80.0, True),
        ):
            db.insert_market_cap_row(MarketCapRow(
                address=addr, create_date_ms=created, max_market_cap_wan=cap,
                is_eligible=True, is_binance=binance,
            ))
        result = _views(db).market_cap_scatter(y_ceiling_text="50", now_ms=now)
        summary = result.data["summary"]
        assert summary["launch_count"] == 2
        assert summary["avg_normal"] == 10.0
        assert summary["avg_binance"] == 80.0
        assert summary["auto_y_max"] == 10.0
        assert result.data["axis"]["step_hours"] == 3
        assert result.data["window_hours"] == 24


class TestArbitrageViews:

    def test_sorted_events_and_chart(self, db):
        db.insert_arbitrage_event({"event_title": "small", "opinion_stats": {"volume24h": "5"}})
        db.insert_arbitrage_event({"event_title": "big", "opinion_stats": {"volume24h": "500"}})
        result = _views(db).arbitrage()
        assert [e["event_title"] for e in result.data["events"]] == ["big", "small"]
        assert result.data["chart"][0]["opinion_volume"] == 500.0

    def test_closing_soonest_first(self, db):
        db.insert_closing_market({"marketId": 1, "cutoffAt": 300})
        db.insert_closing_market({"marketId": 2, "cutoffAt": 100})
        result = _views(db).closing_markets()
        assert [m["market_id"] for m in result.data["markets"]] == [2, 1]
