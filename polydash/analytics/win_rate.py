"""Human vs AI win rates.

Scores each agent (human position, Gemini, Grok, Doubao, ...) against
settled markets. The denominator is per agent: an agent that abstained
on a market is not penalised for it.

Upstream filters decide which markets are scored at all:
  - excluded markets are dropped
  - markets no agent produced an answer for are dropped
  - the exclusive view also drops near-certain markets whose human
    price was already at or above the ceiling (default 0.97)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Sequence

from polydash.analytics.outcomes import (
    UNDETERMINED_OUTCOMES,
    is_correct,
    is_prediction_correct,
)
from polydash.config import DEFAULT_AGENT_FIELDS
from polydash.observability.logger import get_logger
from polydash.storage.models import PredictionRecord

log = get_logger(__name__)

DEFAULT_PRICE_CEILING = 0.97


@dataclass
class WinRateResult:
    """Accuracy of one agent over its valid attempts."""
    rate: str = "0.0"   # percentage with one decimal
    correct: int = 0
    total: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"rate": self.rate, "correct": self.correct, "total": self.total}


@dataclass
class AgentScoreboard:
    """Win rates for every tracked agent over one filtered record set."""
    results: dict[str, WinRateResult] = field(default_factory=dict)
    scored_records: int = 0
    settled_records: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": {k: v.to_dict() for k, v in self.results.items()},
            "scored_records": self.scored_records,
            "settled_records": self.settled_records,
        }


@dataclass
class PredictionRow:
    """One market with a tri-state verdict per agent, for badge colouring."""
    slug: str
    title: str
    real_outcome: str | None
    market_status: str
    verdicts: dict[str, bool | None] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "title": self.title,
            "real_outcome": self.real_outcome,
            "market_status": self.market_status,
            "verdicts": dict(self.verdicts),
        }


# ── Predicates ───────────────────────────────────────────────────────

def has_valid_outcome(value: str | None) -> bool:
    """Agent answered: non-blank and not "Unknown"."""
    if value is None:
        return False
    stripped = value.strip()
    return bool(stripped) and stripped != "Unknown"


def is_settled(record: PredictionRecord) -> bool:
    return (
        record.market_status == "CLOSED"
        and record.real_outcome is not None
        and record.real_outcome not in UNDETERMINED_OUTCOMES
    )


def _agent_value(record: PredictionRecord, agent_field: str) -> str | None:
    return getattr(record, agent_field, None)


# ── Filters ──────────────────────────────────────────────────────────

def filter_scorable(
    records: Iterable[PredictionRecord],
    agent_fields: Sequence[str] = DEFAULT_AGENT_FIELDS,
) -> list[PredictionRecord]:
    """Drop excluded records and records no agent engaged with."""
    kept = []
    for r in records:
        if r.is_excluded:
            continue
        if not any(has_valid_outcome(_agent_value(r, f)) for f in agent_fields):
            continue
        kept.append(r)
    return kept


def filter_exclusive_settled(
    records: Iterable[PredictionRecord],
    agent_fields: Sequence[str] = DEFAULT_AGENT_FIELDS,
    price_ceiling: float = DEFAULT_PRICE_CEILING,
) -> list[PredictionRecord]:
    """Scorable records minus closed markets that were already near-certain."""
    kept = []
    for r in filter_scorable(records, agent_fields):
        if (
            r.market_status == "CLOSED"
            and r.human_price is not None
            and r.human_price >= price_ceiling
        ):
            continue
        kept.append(r)
    return kept


# ── Aggregation ──────────────────────────────────────────────────────

def format_rate(percent: float) -> str:
    """One decimal place, exact ties rounded up (0.25 -> "0.3")."""
    return str(Decimal(percent).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def calc_rate(records: Iterable[PredictionRecord], agent_field: str) -> WinRateResult:
    """Win rate of one agent over settled records."""
    settled = [r for r in records if is_settled(r)]
    attempts = [r for r in settled if has_valid_outcome(_agent_value(r, agent_field))]

    total = len(attempts)
    if total == 0:
        return WinRateResult()

    correct = sum(
        1 for r in attempts
        if is_prediction_correct(_agent_value(r, agent_field), r.real_outcome)
    )
    return WinRateResult(rate=format_rate(correct / total * 100), correct=correct, total=total)


def build_scoreboard(
    records: Iterable[PredictionRecord],
    agent_fields: Sequence[str] = DEFAULT_AGENT_FIELDS,
    exclusive: bool = False,
    price_ceiling: float = DEFAULT_PRICE_CEILING,
) -> AgentScoreboard:
    """Apply the upstream filter, then score every agent."""
    if exclusive:
        scored = filter_exclusive_settled(records, agent_fields, price_ceiling)
    else:
        scored = filter_scorable(records, agent_fields)

    board = AgentScoreboard(
        scored_records=len(scored),
        settled_records=sum(1 for r in scored if is_settled(r)),
    )
    for f in agent_fields:
        board.results[f] = calc_rate(scored, f)

    log.debug(
        "win_rate.scoreboard_built",
        agents=len(agent_fields),
        scored=board.scored_records,
        settled=board.settled_records,
        exclusive=exclusive,
    )
    return board


def build_prediction_rows(
    records: Iterable[PredictionRecord],
    agent_fields: Sequence[str] = DEFAULT_AGENT_FIELDS,
) -> list[PredictionRow]:
    return [
        PredictionRow(
            slug=r.slug,
            title=r.title or r.question,
            real_outcome=r.real_outcome,
            market_status=r.market_status,
            verdicts={f: is_correct(_agent_value(r, f), r.real_outcome) for f in agent_fields},
        )
        for r in records
    ]
