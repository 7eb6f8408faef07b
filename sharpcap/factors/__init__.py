"""Signal factor library."""

from sharpcap.constants import (
    CATEGORY_CONTEXT,
    CATEGORY_FORM,
    CATEGORY_INJURIES,
    CATEGORY_MATCHUP,
)
from sharpcap.factors.injuries import injury_availability, injury_scoring_impact
from sharpcap.factors.spread import compute_spread_factors
from sharpcap.factors.totals import compute_totals_factors

# Shrinkage/soft-cap category of each library factor
SIGNAL_CATEGORIES = {
    "net_rating": CATEGORY_MATCHUP,
    "turnover_diff": CATEGORY_MATCHUP,
    "rebounding": CATEGORY_MATCHUP,
    "home_away_splits": CATEGORY_CONTEXT,
    "four_factors": CATEGORY_MATCHUP,
    "momentum": CATEGORY_FORM,
    "defensive_pressure": CATEGORY_MATCHUP,
    "assist_efficiency": CATEGORY_MATCHUP,
    "pace_mismatch": CATEGORY_MATCHUP,
    "shooting_momentum": CATEGORY_FORM,
    "pace_index": CATEGORY_FORM,
    "offensive_form": CATEGORY_FORM,
    "three_point_env": CATEGORY_MATCHUP,
    "whistle_env": CATEGORY_MATCHUP,
    "rest_advantage": CATEGORY_CONTEXT,
    "injury_availability": CATEGORY_INJURIES,
    "injury_scoring": CATEGORY_INJURIES,
}

__all__ = [
    "SIGNAL_CATEGORIES",
    "compute_spread_factors",
    "compute_totals_factors",
    "injury_availability",
    "injury_scoring_impact",
]
