"""Chart time axis: lookback window, tick grid, and automatic y ceiling.

Ticks are aligned to the step grid in absolute epoch time, not to
calendar hours in the display timezone.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol

MS_PER_HOUR = 60 * 60 * 1000


class _HasY(Protocol):
    y: float


@dataclass
class TimeWindow:
    domain: tuple[int, int]
    step_hours: int
    ticks: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": list(self.domain),
            "step_hours": self.step_hours,
            "ticks": list(self.ticks),
        }


def build_ticks(domain: tuple[int, int], step_hours: int) -> list[int]:
    """Evenly spaced ticks inside ``domain``; falls back to [min, max]."""
    lo, hi = domain
    step_ms = step_hours * MS_PER_HOUR
    start = math.ceil(lo / step_ms) * step_ms
    ticks: list[int] = []
    t = start
    while t <= hi:
        ticks.append(t)
        t += step_ms
    return ticks if ticks else [lo, hi]


def tick_step_hours(window_hours: float) -> int:
    """Shorter windows get finer ticks."""
    if window_hours <= 6:
        return 1
    if window_hours <= 12:
        return 2
    if window_hours <= 24:
        return 3
    return 6


def time_window(window_hours: float, now_ms: int | None = None) -> TimeWindow:
    """Domain ending now and reaching ``window_hours`` back, with its ticks."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    lo = int(now_ms - window_hours * MS_PER_HOUR)
    step = tick_step_hours(window_hours)
    return TimeWindow(
        domain=(lo, now_ms),
        step_hours=step,
        ticks=build_ticks((lo, now_ms), step),
    )


def auto_y_max(points: Iterable[_HasY]) -> float:
    """Largest y in the point set, 0 when empty."""
    ys = [p.y for p in points]
    return max(ys) if ys else 0
