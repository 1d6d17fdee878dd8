"""Hourly posting-probability profiles.

Stored rows are sparse (handle, weekday, hour, probability) tuples.
The chart needs a dense 24-slot series per tracked handle, and the
headline cards need the probability for the current and next hour.

"Now" is Beijing time computed as a flat UTC+8 shift. There is no
timezone database lookup, so DST rules never apply.
"""

from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from polydash.storage.models import ActivityProfileRow

HOURS_PER_DAY = 24
BEIJING_UTC_OFFSET_HOURS = 8


@dataclass
class HourlyBucket:
    """Probabilities of every tracked handle for one hour of the day."""
    hour: int
    values: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"hour": self.hour, **self.values}


@dataclass
class PointEstimate:
    current: float = 0.0
    next: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"current": self.current, "next": self.next}


def reduce_profiles(
    rows: Iterable[ActivityProfileRow],
    handles: Iterable[str],
) -> list[HourlyBucket]:
    """Dense 24-entry series; index == hour, missing slots are 0."""
    tracked = list(dict.fromkeys(handles))
    tracked_set = set(tracked)
    series = [
        HourlyBucket(hour=h, values={handle: 0.0 for handle in tracked})
        for h in range(HOURS_PER_DAY)
    ]

    for row in rows:
        if not 0 <= row.hour < HOURS_PER_DAY:
            continue
        if row.handle not in tracked_set:
            continue
        if not math.isfinite(row.probability):
            continue
        # Last write wins on duplicate (handle, hour)
        series[row.hour].values[row.handle] = row.probability

    return series


def point_estimates(
    series: Sequence[HourlyBucket],
    handles: Iterable[str],
    current_hour: int,
) -> dict[str, PointEstimate]:
    """Probability for the current and the following hour, per handle."""
    next_hour = (current_hour + 1) % HOURS_PER_DAY

    def _value(hour: int, handle: str) -> float:
        if 0 <= hour < len(series):
            return series[hour].values.get(handle, 0.0) or 0.0
        return 0.0

    return {
        h: PointEstimate(current=_value(current_hour, h), next=_value(next_hour, h))
        for h in handles
    }


# ── Clock ────────────────────────────────────────────────────────────

def beijing_now(
    now: dt.datetime | None = None,
    offset_hours: int = BEIJING_UTC_OFFSET_HOURS,
) -> dt.datetime:
    """Wall-clock time at a fixed UTC offset, as a naive datetime.

    Naive inputs are taken to be UTC.
    """
    if now is None:
        now = dt.datetime.now(dt.timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return now + dt.timedelta(hours=offset_hours)


def storage_day_of_week(js_weekday: int) -> int:
    """Map a Sunday-first weekday (0 = Sunday) to the stored convention (0 = Monday)."""
    return (js_weekday + 6) % 7


def current_slot(
    now: dt.datetime | None = None,
    offset_hours: int = BEIJING_UTC_OFFSET_HOURS,
) -> tuple[int, int]:
    """(day_of_week, hour) of the current Beijing time, Monday = 0."""
    local = beijing_now(now, offset_hours)
    sunday_first = (local.weekday() + 1) % 7
    return storage_day_of_week(sunday_first), local.hour
