"""Outcome matching — decide whether a predicted outcome hit the real one.

Three judgments live here, each used by a different view:

  - is_prediction_correct: strict boolean, used for win-rate math.
    Binary markets ("Yes"/"No") need an exact match; free-text outcomes
    match on substring inclusion in either direction.
  - is_correct: tri-state (True / False / None) for result badges.
    None means no verdict yet. Always one-way substring inclusion.
  - judge_prediction: overview-table verdict that also accounts for
    market status and missing predictions.

The strict and lenient forms disagree on some inputs, e.g. "No" vs
real "no way", or "Yes, maybe" vs real "yes".
"""

from __future__ import annotations

from enum import Enum

UNDETERMINED_OUTCOMES = frozenset({"Unknown", "Parse Error"})

_BINARY_OUTCOMES = frozenset({"yes", "no"})


def _normalize(value: str | None) -> str:
    return (value or "").strip().lower()


def is_undetermined(real: str | None) -> bool:
    """True when a market has no usable settlement value."""
    return not real or real in UNDETERMINED_OUTCOMES


def is_prediction_correct(prediction: str | None, real: str | None) -> bool:
    """Strict correctness check used for win rates."""
    pred = _normalize(prediction)
    actual = _normalize(real)
    if not pred or not actual:
        return False

    if actual in _BINARY_OUTCOMES:
        return pred == actual

    return actual in pred or pred in actual


def is_correct(prediction: str | None, real: str | None) -> bool | None:
    """Tri-state correctness: None while the outcome is undetermined."""
    if not prediction or is_undetermined(real):
        return None
    return real.lower() in prediction.lower()


class Verdict(str, Enum):
    CORRECT = "CORRECT"
    INCORRECT = "INCORRECT"
    PENDING = "PENDING"
    NO_PREDICTION = "NO_PREDICTION"


def judge_prediction(
    prediction: str | None,
    real: str | None,
    market_status: str | None,
) -> Verdict:
    """Verdict for one agent's cell in the performance overview table."""
    if market_status != "CLOSED" or is_undetermined(real):
        return Verdict.PENDING
    if not prediction:
        return Verdict.NO_PREDICTION
    if real.lower() in prediction.lower():
        return Verdict.CORRECT
    return Verdict.INCORRECT
