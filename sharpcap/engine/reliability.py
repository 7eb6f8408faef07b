"""Reliability weighting, shrinkage and de-duplication of factors."""

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import math
import re

import numpy as np

from sharpcap.constants import (
    NBA,
    NEUTRAL_IMPACT_BAND,
    SHRINKAGE_K,
    SOFT_CAPS,
    UNIT_POINTS,
)
from sharpcap.exceptions import ComputationError
from sharpcap.schema import Factor

MIN_RESIDUAL_HISTORY = 10


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def shrinkage_k(category: str, sport: str = NBA) -> float:
    table = SHRINKAGE_K.get(sport, SHRINKAGE_K[NBA])
    return float(table.get(category, table["default"]))


def soft_cap(category: str, unit: str = UNIT_POINTS) -> float:
    table = SOFT_CAPS.get(unit, SOFT_CAPS[UNIT_POINTS])
    return float(table.get(category, table["default"]))


def reliability(n: float, k: float, recency: float = 1.0, quality: float = 1.0) -> float:
    """
    sqrt(n / (n + k)) * recency * quality.

    Negative or non-finite sample sizes count as zero evidence; recency and
    quality are clamped into [0, 1]. The result lies in [0, recency * quality]
    and never decreases as ``n`` grows.
    """
    if not (k > 0) or not math.isfinite(k):
        raise ComputationError("reliability", f"shrinkage constant must be positive, got {k}")
    if not math.isfinite(n) or n < 0:
        n = 0.0
    recency = _clamp(recency, 0.0, 1.0) if math.isfinite(recency) else 0.0
    quality = _clamp(quality, 0.0, 1.0) if math.isfinite(quality) else 0.0
    return math.sqrt(n / (n + k)) * recency * quality


def contribution(effect: float, cap: float, weight_reliability: float, learned_weight: float = 1.0) -> float:
    """clamp(learned_weight * effect, +-cap) * reliability."""
    if not math.isfinite(effect):
        return 0.0
    return _clamp(learned_weight * effect, -cap, cap) * weight_reliability


def impact_label(value: float) -> str:
    if value > NEUTRAL_IMPACT_BAND:
        return "positive"
    if value < -NEUTRAL_IMPACT_BAND:
        return "negative"
    return "neutral"


def calibrate(factor: Factor, sport: str = NBA, learned_weight: float = 1.0) -> Factor:
    """Return a copy of ``factor`` with reliability, soft cap and contribution filled in."""
    rel = reliability(
        factor.sample_size,
        shrinkage_k(factor.category, sport),
        factor.recency,
        factor.data_quality,
    )
    cap = soft_cap(factor.category, factor.unit)
    value = contribution(factor.effect_size, cap, rel, learned_weight)
    return replace(
        factor,
        reliability=rel,
        soft_cap=cap,
        contribution=value,
        impact=impact_label(value),
    )


def normalize_factor_name(name: str) -> str:
    text = (name or "").lower()
    text = re.sub(r"[^a-z0-9\s]", "", text)
    return " ".join(text.split())


def deduplicate(factors: Iterable[Factor]) -> List[Factor]:
    """
    Merge factors whose normalized names collide.

    The highest-reliability instance wins; reasoning strings from every
    instance are joined with " | " and sources are unioned in first-seen order.
    Output keeps the position of each group's first occurrence.
    """
    groups: Dict[str, List[Factor]] = {}
    order: List[str] = []
    for factor in factors:
        key = normalize_factor_name(factor.name)
        if key not in groups:
            groups[key] = []
            order.append(key)
        groups[key].append(factor)

    merged: List[Factor] = []
    for key in order:
        members = groups[key]
        if len(members) == 1:
            merged.append(members[0])
            continue
        best = max(members, key=lambda f: f.reliability)
        reasoning = " | ".join(f.reasoning for f in members if f.reasoning)
        sources: List[str] = []
        for member in members:
            for source in member.sources:
                if source not in sources:
                    sources.append(source)
        merged.append(replace(best, reasoning=reasoning, sources=tuple(sources)))
    return merged


@dataclass
class ResidualFit:
    intercept: float
    slope: float
    samples: int

    def predict(self, line: float) -> float:
        return self.intercept + self.slope * line


def fit_against_line(history: Sequence[Tuple[float, float]]) -> Optional[ResidualFit]:
    """Least-squares fit of feature = a + b * line over (feature, line) pairs."""
    if len(history) < MIN_RESIDUAL_HISTORY:
        return None
    data = np.asarray(history, dtype=float)
    features, lines = data[:, 0], data[:, 1]
    line_mean = lines.mean()
    feature_mean = features.mean()
    denominator = float(np.sum((lines - line_mean) ** 2))
    if denominator == 0:
        slope = 0.0
    else:
        slope = float(np.sum((lines - line_mean) * (features - feature_mean)) / denominator)
    intercept = float(feature_mean - slope * line_mean)
    return ResidualFit(intercept=intercept, slope=slope, samples=len(history))


def residualize(feature: float, line: float, history: Sequence[Tuple[float, float]]) -> float:
    """Part of ``feature`` the market line does not already explain."""
    fit = fit_against_line(history)
    if fit is None:
        return feature
    return feature - fit.predict(line)
