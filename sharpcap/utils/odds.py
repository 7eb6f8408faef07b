"""
Odds conversion and pricing math.

Provides:
- Odds format conversions (American, Decimal, Implied Probability)
- Vig removal
- Expected value of a single price
- Normal CDF / logistic used to turn an edge into a win probability
"""

import logging
import math
from typing import Tuple

from sharpcap.constants import VIG_HAIRCUT

logger = logging.getLogger(__name__)

# Defer scipy import for faster module load
_stats = None


def _get_stats():
    """Lazy import of scipy.stats."""
    global _stats
    if _stats is None:
        from scipy import stats
        _stats = stats
    return _stats


# =============================================================================
# ODDS CONVERSIONS
# =============================================================================

def american_to_decimal(odds: int) -> float:
    """
    Convert American odds to decimal odds.

    Examples:
        +150 -> 2.50 (risk $100 to win $150, total return $250)
        -150 -> 1.67 (risk $150 to win $100, total return $250)
    """
    if odds > 0:
        return (odds / 100) + 1
    else:
        return (100 / abs(odds)) + 1


def decimal_to_american(decimal: float) -> int:
    """
    Convert decimal odds back to American, rounded to the nearest integer.

    Examples:
        2.50 -> +150
        1.50 -> -200
    """
    if decimal >= 2.0:
        return int(round((decimal - 1) * 100))
    return int(round(-100 / (decimal - 1)))


def american_to_implied_prob(odds: int, strip_vig: bool = False) -> float:
    """
    Convert American odds to implied probability.

    With ``strip_vig`` the single-sided price is haircut by the average
    book overround, for when the other side of the market is unknown.

    Examples:
        -110 -> 0.524 (52.4% implied)
        +100 -> 0.500 (50.0% implied)
        -200 -> 0.667 (66.7% implied)
    """
    if odds > 0:
        prob = 100 / (odds + 100)
    else:
        prob = abs(odds) / (abs(odds) + 100)
    if strip_vig:
        prob *= VIG_HAIRCUT
    return prob


def remove_vig(prob_a: float, prob_b: float) -> Tuple[float, float]:
    """
    Normalize a two-way market so both sides sum to 1.0.

    Example:
        remove_vig(0.524, 0.524) -> (0.5, 0.5)
    """
    total = prob_a + prob_b
    if total == 0:
        return (0.5, 0.5)
    return (prob_a / total, prob_b / total)


# =============================================================================
# EXPECTED VALUE
# =============================================================================

def expected_value(probability: float, odds: int, stake: float = 1.0) -> float:
    """EV per ``stake`` wagered: p * decimal_payout * stake - stake."""
    return probability * american_to_decimal(odds) * stake - stake


def calculate_edge(prob_win: float, odds: int) -> float:
    """Our probability minus the price's implied probability."""
    return prob_win - american_to_implied_prob(odds)


# =============================================================================
# DISTRIBUTIONS
# =============================================================================

def normal_cdf(x: float) -> float:
    return float(_get_stats().norm.cdf(x))


def sigmoid(x: float) -> float:
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)
