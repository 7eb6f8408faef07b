"""
Constants for sharpcap.

Provides bet types, factor categories, league-average fallbacks,
shrinkage constants, soft caps and per-league pricing parameters.
"""

from typing import Dict, Tuple


# =============================================================================
# SPORTS AND BET TYPES
# =============================================================================

NBA = "nba"
NFL = "nfl"
SUPPORTED_SPORTS: Tuple[str, ...] = (NBA, NFL)

MONEYLINE = "moneyline"
SPREAD = "spread"
TOTAL = "total"
TOTAL_OVER = "total_over"
TOTAL_UNDER = "total_under"

# Confidence ties resolve in this order (earlier wins)
BET_TYPE_PRIORITY: Tuple[str, ...] = (TOTAL, SPREAD, MONEYLINE)

HOME = "home"
AWAY = "away"
OVER = "over"
UNDER = "under"


# =============================================================================
# FACTOR CATEGORIES AND UNITS
# =============================================================================

CATEGORY_MARKET = "market"
CATEGORY_FORM = "form"
CATEGORY_MATCHUP = "matchup"
CATEGORY_CONTEXT = "context"
CATEGORY_INJURIES = "injuries"
CATEGORY_WEATHER = "weather"
CATEGORY_AI_RESEARCH = "ai_research"

UNIT_POINTS = "points"
UNIT_LOG_ODDS = "log_odds"

# Sided score ceiling for every library factor
MAX_FACTOR_POINTS = 5.0


# =============================================================================
# SHRINKAGE CONSTANTS (k in sqrt(n / (n + k)))
# =============================================================================

SHRINKAGE_K: Dict[str, Dict[str, float]] = {
    NBA: {
        CATEGORY_FORM: 30,
        CATEGORY_INJURIES: 10,
        CATEGORY_WEATHER: 20,
        CATEGORY_MATCHUP: 40,
        CATEGORY_AI_RESEARCH: 50,
        "default": 40,
    },
    NFL: {
        CATEGORY_FORM: 20,
        CATEGORY_INJURIES: 8,
        CATEGORY_WEATHER: 15,
        CATEGORY_MATCHUP: 30,
        CATEGORY_AI_RESEARCH: 40,
        "default": 30,
    },
}


# =============================================================================
# SOFT CAPS (max |learned_weight * effect| before reliability)
# =============================================================================

SOFT_CAPS: Dict[str, Dict[str, float]] = {
    UNIT_POINTS: {
        CATEGORY_MARKET: 5.0,
        CATEGORY_FORM: 3.0,
        CATEGORY_INJURIES: 4.0,
        CATEGORY_MATCHUP: 3.0,
        CATEGORY_WEATHER: 2.0,
        CATEGORY_AI_RESEARCH: 2.0,
        "default": 2.5,
    },
    UNIT_LOG_ODDS: {
        CATEGORY_MARKET: 0.5,
        CATEGORY_FORM: 0.3,
        CATEGORY_INJURIES: 0.4,
        CATEGORY_MATCHUP: 0.3,
        CATEGORY_WEATHER: 0.2,
        CATEGORY_AI_RESEARCH: 0.2,
        "default": 0.25,
    },
}

# Contributions inside this band are labelled neutral
NEUTRAL_IMPACT_BAND = 0.1


# =============================================================================
# LEAGUE PRICING PARAMETERS
# =============================================================================

LEAGUE_PARAMS: Dict[str, Dict[str, float]] = {
    NBA: {
        "spread_sigma": 12.5,
        "total_sigma": 14.0,
        "min_spread_deviation": 0.75,
        "min_total_deviation": 2.0,
        "min_ev_spread": 0.015,
        "min_ev_total": 0.015,
        "min_ev_moneyline_dog": 0.025,
        "min_ev_moneyline_fav": 0.035,
        "max_moneyline_lay": -250,
    },
    NFL: {
        "spread_sigma": 13.8,
        "total_sigma": 13.5,
        "min_spread_deviation": 0.70,
        "min_total_deviation": 1.5,
        "min_ev_spread": 0.015,
        "min_ev_total": 0.015,
        "min_ev_moneyline_dog": 0.025,
        "min_ev_moneyline_fav": 0.035,
        "max_moneyline_lay": -250,
    },
}

# Single-book prices carry roughly this much overround per side
VIG_HAIRCUT = 0.9775


# =============================================================================
# LEAGUE AVERAGE FALLBACKS (per team, per game unless noted)
# =============================================================================

LEAGUE_PACE = 100.1
LEAGUE_ORTG = 110.0
LEAGUE_DRTG = 110.0
LEAGUE_3PAR = 0.39
LEAGUE_FTR = 0.22

# Score model anchors
PACE_HOME_WEIGHT = 0.52
PACE_AWAY_WEIGHT = 0.48
HOME_COURT_ADVANTAGE = 2.5
BACK_TO_BACK_PENALTY = 2.0

TEAM_STAT_FALLBACKS: Dict[str, float] = {
    "ortg": LEAGUE_ORTG,
    "drtg": LEAGUE_DRTG,
    "pace": LEAGUE_PACE,
    "pace_last10": LEAGUE_PACE,
    "ortg_last10": LEAGUE_ORTG,
    "ortg_last3": LEAGUE_ORTG,
    "tov": 14.0,
    "oreb": 10.5,
    "dreb": 33.5,
    "opp_oreb": 10.5,
    "opp_dreb": 33.5,
    "steals": 7.5,
    "blocks": 5.0,
    "assists": 25.5,
    "efg_pct": 0.54,
    "tov_pct": 0.13,
    "oreb_pct": 0.24,
    "ft_rate": LEAGUE_FTR,
    "three_par": LEAGUE_3PAR,
    "opp_three_par": LEAGUE_3PAR,
    "opp_ft_rate": LEAGUE_FTR,
    "home_net_rating": 0.0,
    "road_net_rating": 0.0,
    "win_streak": 0.0,
    "rest_days": 1.0,
}

# Sample size assumed when a provider omits games played (half an 82-game season)
GAMES_PLAYED_FALLBACK = 41

OREB_PCT_FALLBACK = 0.24
DREB_PCT_FALLBACK = 0.76
