"""Opinion vs Polymarket arbitrage lists.

Sorting and chart series for the arbitrage and closing-soon pages.
Volumes arrive as strings from Opinion and as numbers from Polymarket;
anything unparsable sorts as 0.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Sequence

from polydash.storage.models import ArbitrageEvent, ClosingMarket

ARBITRAGE_SORT_KEYS = ("opinion_volume", "polymarket_volume", "cutoff")
CLOSING_SORT_KEYS = ("cutoff", "volume")


def to_number(value: Any) -> float:
    """Lenient numeric parse; None, blanks, garbage and NaN become 0."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


_EVENT_KEYS: dict[str, Callable[[ArbitrageEvent], float]] = {
    "opinion_volume": lambda e: to_number(e.opinion_stats.volume24h),
    "polymarket_volume": lambda e: to_number(e.polymarket_stats.volume24hr),
    "cutoff": lambda e: to_number(e.cutoff_at),
}

_CLOSING_KEYS: dict[str, Callable[[ClosingMarket], float]] = {
    "cutoff": lambda m: to_number(m.cutoff_at),
    "volume": lambda m: to_number(m.volume),
}


def sort_arbitrage_events(
    events: Sequence[ArbitrageEvent],
    key: str = "opinion_volume",
    descending: bool = True,
) -> list[ArbitrageEvent]:
    if key not in _EVENT_KEYS:
        raise ValueError(f"Unknown sort key: {key!r} (expected one of {ARBITRAGE_SORT_KEYS})")
    return sorted(events, key=_EVENT_KEYS[key], reverse=descending)


def volume_chart(events: Sequence[ArbitrageEvent], limit: int = 20) -> list[dict[str, Any]]:
    """Bar-chart rows for the first ``limit`` events of a sorted list."""
    return [
        {
            "name": e.event_title,
            "opinion_volume": to_number(e.opinion_stats.volume24h),
            "polymarket_volume": to_number(e.polymarket_stats.volume24hr),
        }
        for e in events[:limit]
    ]


def sort_closing_markets(
    markets: Sequence[ClosingMarket],
    key: str = "cutoff",
    descending: bool | None = None,
) -> list[ClosingMarket]:
    """Nearest cutoff first by default; volume sorts default to largest first."""
    if key not in _CLOSING_KEYS:
        raise ValueError(f"Unknown sort key: {key!r} (expected one of {CLOSING_SORT_KEYS})")
    if descending is None:
        descending = key != "cutoff"
    return sorted(markets, key=_CLOSING_KEYS[key], reverse=descending)
