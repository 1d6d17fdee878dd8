"""Dashboard views — fetch rows, run the analytics, return view models.

Each view owns one page of the dashboard. A database failure never
propagates out of a view: it is logged and the page gets an empty
result carrying the error message.

All data is read from the SQLite database. The human-vs-AI views can
be given a static fallback set of predictions, used only when the
database has none.
"""

from __future__ import annotations

import datetime as dt
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Sequence, TypeVar

from polydash.analytics.activity_profile import (
    current_slot,
    point_estimates,
    reduce_profiles,
)
from polydash.analytics.arbitrage import (
    sort_arbitrage_events,
    sort_closing_markets,
    volume_chart,
)
from polydash.analytics.market_cap import build_points, parse_y_ceiling, summarize
from polydash.analytics.time_axis import MS_PER_HOUR, time_window
from polydash.analytics.trade_grouper import (
    group_trades,
    rank_smart_wallets,
    summarize_leaderboard,
)
from polydash.analytics.win_rate import (
    build_prediction_rows,
    build_scoreboard,
    filter_exclusive_settled,
    filter_scorable,
)
from polydash.config import DashboardConfig
from polydash.observability.logger import get_logger
from polydash.storage.database import Database
from polydash.storage.models import PredictionRecord

log = get_logger(__name__)

T = TypeVar("T")


@dataclass
class ViewResult:
    """A page's view model, plus the fetch error if there was one."""
    name: str
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "data": self.data, "error": self.error}


class DashboardViews:
    """Page-level composition of queries and analytics."""

    def __init__(
        self,
        db: Database,
        config: DashboardConfig | None = None,
        fallback_predictions: Sequence[PredictionRecord] = (),
    ):
        self._db = db
        self._config = config or DashboardConfig()
        self._fallback_predictions = list(fallback_predictions)

    def _fetch(self, view: str, query: Callable[[], T], empty: T) -> tuple[T, str | None]:
        try:
            return query(), None
        except Exception as e:
            log.error("views.fetch_failed", view=view, error=str(e))
            return empty, str(e)

    # ── Copy trading ─────────────────────────────────────────────────

    def copy_trading(self) -> ViewResult:
        trades, error = self._fetch("copy_trading", self._db.get_trades, [])
        groups = group_trades(trades)
        summary = summarize_leaderboard(groups)
        return ViewResult(
            name="copy_trading",
            data={
                "summary": summary.to_dict(),
                "traders": [g.to_dict() for g in groups],
            },
            error=error,
        )

    def smart_wallets(self) -> ViewResult:
        wallets, error = self._fetch("smart_wallets", self._db.get_smart_wallets, [])
        ranked = rank_smart_wallets(wallets)
        return ViewResult(
            name="smart_wallets",
            data={
                "count": len(ranked),
                "wallets": [w.model_dump() for w in ranked],
            },
            error=error,
        )

    # ── Human vs AI ──────────────────────────────────────────────────

    def _predictions(self, market_status: str | None) -> tuple[list[PredictionRecord], str | None]:
        records, error = self._fetch(
            "human_vs_ai", lambda: self._db.get_predictions(market_status), [],
        )
        if not records and self._fallback_predictions:
            records = [
                p for p in self._fallback_predictions
                if market_status is None or p.market_status == market_status
            ]
            log.info("views.using_fallback_predictions", count=len(records))
        return records, error

    def human_vs_ai(self, exclusive: bool = False) -> ViewResult:
        """Scoreboard over settled markets plus a badge row per market."""
        cfg = self._config.predictions
        records, error = self._predictions("CLOSED")
        board = build_scoreboard(
            records,
            cfg.agent_fields,
            exclusive=exclusive,
            price_ceiling=cfg.exclusive_price_ceiling,
        )
        if exclusive:
            visible = filter_exclusive_settled(
                records, cfg.agent_fields, cfg.exclusive_price_ceiling,
            )
        else:
            visible = filter_scorable(records, cfg.agent_fields)
        rows = build_prediction_rows(visible, cfg.agent_fields)
        return ViewResult(
            name="human_vs_ai",
            data={
                "exclusive": exclusive,
                "scoreboard": board.to_dict(),
                "rows": [r.to_dict() for r in rows],
            },
            error=error,
        )

    # ── Speech probability ───────────────────────────────────────────

    def speech_probability(
        self,
        handles: Iterable[str] | None = None,
        category: str | None = None,
        now: dt.datetime | None = None,
    ) -> ViewResult:
        cfg = self._config.activity
        tracked = list(handles) if handles is not None else list(cfg.handles)
        day, hour = current_slot(now, cfg.utc_offset_hours)
        category = category or cfg.default_category

        rows, error = self._fetch(
            "speech_probability",
            lambda: self._db.get_activity_profiles(tracked, day, category),
            [],
        )
        series = reduce_profiles(rows, tracked)
        estimates = point_estimates(series, tracked, hour)
        return ViewResult(
            name="speech_probability",
            data={
                "day_of_week": day,
                "hour": hour,
                "category": category,
                "series": [b.to_dict() for b in series],
                "estimates": {h: e.to_dict() for h, e in estimates.items()},
            },
            error=error,
        )

    # ── Market cap ceiling ───────────────────────────────────────────

    def market_cap_scatter(
        self,
        window_hours: float | None = None,
        y_ceiling_text: str | None = "",
        now_ms: int | None = None,
    ) -> ViewResult:
        if window_hours is None:
            window_hours = self._config.market_cap.default_window_hours
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        cutoff = now_ms - window_hours * MS_PER_HOUR

        rows, error = self._fetch(
            "market_cap_scatter", lambda: self._db.get_market_cap_rows(cutoff), [],
        )
        points = build_points(rows)
        summary = summarize(points, parse_y_ceiling(y_ceiling_text))
        window = time_window(window_hours, now_ms)
        return ViewResult(
            name="market_cap_scatter",
            data={
                "window_hours": window_hours,
                "summary": summary.to_dict(),
                "axis": window.to_dict(),
            },
            error=error,
        )

    # ── Arbitrage ────────────────────────────────────────────────────

    def arbitrage(self, sort_key: str = "opinion_volume", descending: bool = True) -> ViewResult:
        events, error = self._fetch("arbitrage", self._db.get_arbitrage_events, [])
        ordered = sort_arbitrage_events(events, sort_key, descending)
        return ViewResult(
            name="arbitrage",
            data={
                "events": [e.model_dump() for e in ordered],
                "chart": volume_chart(ordered),
            },
            error=error,
        )

    def closing_markets(
        self, sort_key: str = "cutoff", descending: bool | None = None,
    ) -> ViewResult:
        markets, error = self._fetch("closing_markets", self._db.get_closing_markets, [])
        ordered = sort_closing_markets(markets, sort_key, descending)
        return ViewResult(
            name="closing_markets",
            data={"markets": [m.model_dump() for m in ordered]},
            error=error,
        )
