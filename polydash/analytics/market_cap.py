"""New-token market-cap scatter.

Each eligible launch becomes a point (launch time, peak market cap in
units of 10k USD). Binance-listed launches are averaged separately from
the rest. An optional user-entered y ceiling hides outliers; the
automatic axis maximum then follows the visible points.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from polydash.analytics.time_axis import auto_y_max
from polydash.observability.logger import get_logger
from polydash.storage.models import MarketCapRow

log = get_logger(__name__)


@dataclass
class ScatterPoint:
    x: float          # launch time, epoch ms
    y: float          # peak market cap, 10k USD
    address: str
    short_name: str
    is_binance: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "address": self.address,
            "short_name": self.short_name,
            "is_binance": self.is_binance,
        }


@dataclass
class ScatterSummary:
    launch_count: int = 0
    avg_normal: float | None = None
    avg_binance: float | None = None
    auto_y_max: float = 0
    points: list[ScatterPoint] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "launch_count": self.launch_count,
            "avg_normal": self.avg_normal,
            "avg_binance": self.avg_binance,
            "auto_y_max": self.auto_y_max,
            "points": [p.to_dict() for p in self.points],
        }


def _finite(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


def build_points(rows: Iterable[MarketCapRow]) -> list[ScatterPoint]:
    """Convert rows to points, dropping rows without address or numbers."""
    points = []
    skipped = 0
    for r in rows:
        if not r.address or not _finite(r.create_date_ms) or not _finite(r.max_market_cap_wan):
            skipped += 1
            continue
        points.append(ScatterPoint(
            x=r.create_date_ms,
            y=r.max_market_cap_wan,
            address=r.address,
            short_name=r.short_name if r.short_name is not None else r.address[:8],
            is_binance=bool(r.is_binance),
        ))
    if skipped:
        log.debug("market_cap.skipped_rows", count=skipped)
    return points


def parse_y_ceiling(text: str | None) -> float | None:
    """User input to a positive ceiling; anything else means no ceiling."""
    if text is None or not str(text).strip():
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def filter_by_ceiling(
    points: Sequence[ScatterPoint], ceiling: float | None,
) -> list[ScatterPoint]:
    if not ceiling:
        return list(points)
    return [p for p in points if p.y <= ceiling]


def _mean(values: list[float]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)


def summarize(
    points: Sequence[ScatterPoint], ceiling: float | None = None,
) -> ScatterSummary:
    """Headline numbers over all points; the visible set drives the y axis."""
    visible = filter_by_ceiling(points, ceiling)
    return ScatterSummary(
        launch_count=len(points),
        avg_normal=_mean([p.y for p in points if not p.is_binance]),
        avg_binance=_mean([p.y for p in points if p.is_binance]),
        auto_y_max=auto_y_max(visible),
        points=visible,
    )
