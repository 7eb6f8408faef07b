"""Sum calibrated factor contributions into one edge, with explainability views."""

from typing import Dict, Iterable, List, Mapping, Optional, Tuple
import logging
import math

import pandas as pd

from sharpcap.config import LeagueParameters
from sharpcap.constants import (
    MONEYLINE,
    NBA,
    SPREAD,
    TOTAL,
    UNIT_LOG_ODDS,
    UNIT_POINTS,
)
from sharpcap.engine.reliability import calibrate, deduplicate
from sharpcap.exceptions import ComputationError
from sharpcap.schema import Factor, FactorSignal
from sharpcap.utils.odds import expected_value, normal_cdf, sigmoid

logger = logging.getLogger(__name__)

_FRAME_COLUMNS = [
    "name",
    "category",
    "weight",
    "effect_size",
    "sample_size",
    "reliability",
    "soft_cap",
    "contribution",
    "impact",
    "reasoning",
]


def _signal_reasoning(signal: FactorSignal, favored_label: Optional[str]) -> str:
    if signal.reason:
        detail = signal.meta.get("error") if signal.meta else None
        text = f"{signal.name}: neutral ({signal.reason})"
        return f"{text}: {detail}" if detail else text
    if favored_label is None:
        return f"{signal.name}: no edge (signal 0.00)"
    return f"{signal.name}: favors {favored_label} (signal {signal.signal:+.2f}, {signal.points:.2f} pts)"


class FactorAggregator:
    """
    Collects factors for one game and one market and sums their contributions.

    Each added factor is calibrated (reliability, soft cap, contribution)
    on the way in. The total is computed with ``math.fsum`` so it does not
    depend on insertion order.
    """

    def __init__(
        self,
        sport: str = NBA,
        unit: str = UNIT_POINTS,
        learned_weights: Optional[Mapping[str, float]] = None,
        max_edge: float = 15.0,
    ) -> None:
        self.sport = sport
        self.unit = unit
        self.max_edge = max_edge
        self._learned_weights = dict(learned_weights or {})
        self._factors: List[Factor] = []

    def add_factor(self, factor: Factor) -> Factor:
        learned = self._learned_weights.get(factor.name, 1.0)
        calibrated = calibrate(factor, sport=self.sport, learned_weight=learned)
        self._factors.append(calibrated)
        return calibrated

    def add_signal(
        self,
        signal: FactorSignal,
        category: str,
        favor: str,
        weight: float = 1.0,
        sample_size: float = 0.0,
        recency: float = 1.0,
        data_quality: float = 1.0,
        source: str = "",
    ) -> Factor:
        """
        Convert a library signal into a Factor and add it.

        ``favor`` names the side whose score counts as a positive effect
        (home for spreads, over for totals); the other side counts negative.
        """
        effect = 0.0
        for side, score in signal.scores.items():
            effect += score if side == favor else -score
        factor = Factor(
            name=signal.name,
            category=category,
            effect_size=weight * effect,
            weight=weight,
            sample_size=sample_size,
            recency=recency,
            data_quality=data_quality,
            unit=self.unit,
            reasoning=_signal_reasoning(signal, signal.favored),
            sources=(source,) if source else (),
        )
        return self.add_factor(factor)

    def deduplicate(self) -> None:
        self._factors = deduplicate(self._factors)

    @property
    def factors(self) -> Tuple[Factor, ...]:
        return tuple(self._factors)

    def total_contribution(self) -> float:
        total = math.fsum(f.contribution for f in self._factors)
        if not math.isfinite(total):
            raise ComputationError("aggregation", f"non-finite total contribution: {total}")
        return total

    def edge(self) -> float:
        """Total contribution clamped to +-max_edge."""
        return max(-self.max_edge, min(self.max_edge, self.total_contribution()))

    def by_impact(self) -> List[Factor]:
        return sorted(self._factors, key=lambda f: (-abs(f.contribution), f.name))

    def positives(self) -> List[Factor]:
        return [f for f in self.by_impact() if f.contribution > 0]

    def negatives(self) -> List[Factor]:
        return [f for f in self.by_impact() if f.contribution < 0]

    def breakdown(self) -> List[Dict]:
        return [f.to_dict() for f in self.by_impact()]

    def reasoning(self, limit: Optional[int] = None) -> List[str]:
        """Reasoning strings of contributing factors, biggest impact first."""
        rows = [f for f in self.by_impact() if f.contribution != 0 and f.reasoning]
        if limit is not None:
            rows = rows[:limit]
        return [f"{f.reasoning} [{f.contribution:+.2f}]" for f in rows]

    def to_frame(self) -> pd.DataFrame:
        if not self._factors:
            return pd.DataFrame(columns=_FRAME_COLUMNS)
        frame = pd.DataFrame([f.to_dict() for f in self._factors])
        frame = frame[_FRAME_COLUMNS]
        frame["abs_contribution"] = frame["contribution"].abs()
        return frame.sort_values(["abs_contribution", "name"], ascending=[False, True]).drop(
            columns="abs_contribution"
        ).reset_index(drop=True)

    def summary(self) -> Dict:
        return {
            "unit": self.unit,
            "factor_count": len(self._factors),
            "total_contribution": self.total_contribution(),
            "edge": self.edge(),
            "positive_count": len(self.positives()),
            "negative_count": len(self.negatives()),
        }


def aggregate(factors: Iterable[Factor], **kwargs) -> FactorAggregator:
    aggregator = FactorAggregator(**kwargs)
    for factor in factors:
        aggregator.add_factor(factor)
    return aggregator


# =============================================================================
# PRICING HELPERS
# =============================================================================

def effect_to_probability(effect: float, unit: str, sigma: float) -> float:
    """Win probability of an edge: normal CDF for points, logistic for log-odds."""
    if unit == UNIT_LOG_ODDS:
        return sigmoid(effect)
    if sigma <= 0:
        raise ComputationError("effect_to_probability", f"sigma must be positive, got {sigma}")
    return normal_cdf(effect / sigma)


def meets_threshold(
    bet_type: str,
    effect: float,
    ev: float,
    odds: int,
    params: LeagueParameters,
) -> Tuple[bool, str]:
    """Deviation, EV and max-lay checks for one priced selection."""
    reasons: List[str] = []
    if bet_type == SPREAD:
        if abs(effect) < params.min_spread_deviation:
            reasons.append(f"Deviation {abs(effect):.2f} < {params.min_spread_deviation} points")
        if ev < params.min_ev_spread:
            reasons.append(f"EV {ev * 100:.2f}% < {params.min_ev_spread * 100:.1f}%")
    elif bet_type == TOTAL:
        if abs(effect) < params.min_total_deviation:
            reasons.append(f"Deviation {abs(effect):.2f} < {params.min_total_deviation} points")
        if ev < params.min_ev_total:
            reasons.append(f"EV {ev * 100:.2f}% < {params.min_ev_total * 100:.1f}%")
    elif bet_type == MONEYLINE:
        favorite = odds < 0
        min_ev = params.min_ev_moneyline_fav if favorite else params.min_ev_moneyline_dog
        if ev < min_ev:
            reasons.append(f"EV {ev * 100:.2f}% < {min_ev * 100:.1f}%")
        if favorite and odds < params.max_moneyline_lay:
            reasons.append(f"Laying {odds} worse than {params.max_moneyline_lay}")
    else:
        reasons.append(f"Unknown bet type {bet_type}")

    if reasons:
        return False, "; ".join(reasons)
    return True, "All thresholds met"


def price_selection(
    bet_type: str,
    effect: float,
    odds: int,
    params: LeagueParameters,
    unit: str = UNIT_POINTS,
) -> Dict:
    """Probability, EV and threshold verdict for one selection."""
    sigma = params.total_sigma if bet_type == TOTAL else params.spread_sigma
    probability = effect_to_probability(abs(effect), unit, sigma)
    ev = expected_value(probability, odds)
    meets, reason = meets_threshold(bet_type, effect, ev, odds, params)
    return {"probability": probability, "ev": ev, "meets": meets, "reason": reason}
