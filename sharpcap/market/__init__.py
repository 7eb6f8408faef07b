"""Market lines and the prediction-vs-market comparator."""

from sharpcap.market.comparator import compare, tier_for
from sharpcap.market.lines import (
    average_odds,
    best_odds,
    selection_odds,
    spread_line,
    team_role,
    total_line,
)

__all__ = [
    "average_odds",
    "best_odds",
    "compare",
    "selection_odds",
    "spread_line",
    "team_role",
    "tier_for",
    "total_line",
]
