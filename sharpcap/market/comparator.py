"""
Market comparator.

Turns the gap between a score prediction and the market lines into a
confidence per bet type (0-10). The function is pure: same prediction and
lines in, same result out.
"""

from typing import Optional, Sequence, Tuple

from sharpcap.config import MarketTiers
from sharpcap.constants import AWAY, HOME, OVER, UNDER
from sharpcap.schema import ConfidenceResult, ScorePrediction


def tier_for(value: float, tiers: Sequence[Tuple[float, float]], floor: float) -> Tuple[float, str]:
    """
    First tier whose threshold ``value`` reaches (>=), else the floor.

    Returns the confidence and a label for the reasoning trail.
    """
    for threshold, confidence in tiers:
        if value >= threshold:
            return confidence, f">= {threshold:g}"
    return floor, f"< {tiers[-1][0]:g}" if tiers else "floor"


def _side_label(side: str) -> str:
    return "Home" if side == HOME else "Away"


def compare(
    prediction: ScorePrediction,
    total_line: Optional[float],
    spread_line: Optional[float],
    tiers: MarketTiers = MarketTiers(),
) -> ConfidenceResult:
    result = ConfidenceResult()
    reasoning = result.reasoning

    if total_line is not None:
        gap = abs(prediction.total - total_line)
        confidence, label = tier_for(gap, tiers.total, tiers.total_floor)
        result.total = confidence
        result.total_side = OVER if prediction.total > total_line else UNDER
        reasoning.append(
            f"Total: predicted {prediction.total:.1f} vs line {total_line:.1f} "
            f"(gap {gap:.1f}, {label}) -> {result.total_side} {confidence:.1f}"
        )
    else:
        reasoning.append("Total: no market line")

    if spread_line is None:
        reasoning.append("Spread/moneyline: no market line")
        return result

    predicted_winner = prediction.winner
    market_favorite = HOME if spread_line < 0 else AWAY
    margin = abs(prediction.margin)
    result.spread_side = predicted_winner
    result.moneyline_side = predicted_winner

    if predicted_winner != market_favorite:
        result.spread = tiers.spread_upset
        result.moneyline = tiers.moneyline_upset
        reasoning.append(
            f"Model picks {_side_label(predicted_winner)} by {margin:.1f}; "
            f"market favors {_side_label(market_favorite)} ({spread_line:+.1f}) "
            f"-> spread {result.spread:.1f}, moneyline {result.moneyline:.1f}"
        )
        return result

    diff = margin - abs(spread_line)
    result.spread, spread_label = tier_for(diff, tiers.spread, tiers.spread_floor)
    result.moneyline, moneyline_label = tier_for(margin, tiers.moneyline, tiers.moneyline_floor)
    reasoning.append(
        f"Spread: {_side_label(predicted_winner)} by {margin:.1f} vs line {spread_line:+.1f} "
        f"(diff {diff:+.1f}, {spread_label}) -> {result.spread:.1f}"
    )
    reasoning.append(
        f"Moneyline: margin {margin:.1f} ({moneyline_label}) -> {result.moneyline:.1f}"
    )
    return result
