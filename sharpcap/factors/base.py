"""Shared saturation and sign-split helpers for factor functions."""

from dataclasses import replace
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple
import math
import numbers

from sharpcap.constants import AWAY, HOME, MAX_FACTOR_POINTS, OVER, UNDER
from sharpcap.schema import FactorSignal

BAD_INPUT = "bad_input"
INVALID_INPUT = "invalid_input"
DISABLED = "disabled"

SPREAD_SIDES: Tuple[str, str] = (AWAY, HOME)
TOTAL_SIDES: Tuple[str, str] = (OVER, UNDER)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def is_finite(*values: Any) -> bool:
    """True when every value is a real number (not a bool or a numeric string) and finite."""
    for value in values:
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            return False
        if not math.isfinite(value):
            return False
    return True


def is_positive(*values: Any) -> bool:
    return is_finite(*values) and all(value > 0 for value in values)


def saturate(raw: float, scale: float) -> float:
    """tanh(raw / scale), clamped to [-1, 1]."""
    return _clamp(math.tanh(raw / scale), -1.0, 1.0)


def split_points(
    signal: float,
    sides: Tuple[str, str] = SPREAD_SIDES,
    max_points: float = MAX_FACTOR_POINTS,
) -> Dict[str, float]:
    """Positive signal scores the first side, negative the second; zero scores neither."""
    positive, negative = sides
    scores = {positive: 0.0, negative: 0.0}
    if signal > 0:
        scores[positive] = abs(signal) * max_points
    elif signal < 0:
        scores[negative] = abs(signal) * max_points
    return scores


def build_signal(
    key: str,
    name: str,
    signal: float,
    sides: Tuple[str, str] = SPREAD_SIDES,
    meta: Optional[Mapping[str, Any]] = None,
    max_points: float = MAX_FACTOR_POINTS,
) -> FactorSignal:
    return FactorSignal(
        key=key,
        name=name,
        signal=signal,
        scores=split_points(signal, sides, max_points),
        meta=dict(meta or {}),
    )


def neutral_signal(
    key: str,
    name: str,
    reason: str,
    sides: Tuple[str, str] = SPREAD_SIDES,
    meta: Optional[Mapping[str, Any]] = None,
) -> FactorSignal:
    """Zero signal, both sides zero, tagged with why."""
    payload = dict(meta or {})
    payload["reason"] = reason
    return FactorSignal(
        key=key,
        name=name,
        signal=0.0,
        scores={sides[0]: 0.0, sides[1]: 0.0},
        meta=payload,
        reason=reason,
    )


def with_meta(signal: FactorSignal, **extra: Any) -> FactorSignal:
    return replace(signal, meta={**signal.meta, **extra})


def annotate_fallbacks(signals: Iterable[FactorSignal], fallbacks: Iterable[str]) -> list:
    """Copy the bundle's fallback field list into each signal's metadata."""
    fallbacks = list(fallbacks)
    if not fallbacks:
        return list(signals)
    return [with_meta(signal, fallbacks=fallbacks) for signal in signals]
