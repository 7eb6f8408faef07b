"""Totals-side factor library. Positive signal leans over, negative under."""

from typing import List, Optional

from sharpcap.constants import LEAGUE_3PAR, LEAGUE_DRTG, LEAGUE_FTR, LEAGUE_ORTG, LEAGUE_PACE
from sharpcap.factors.base import (
    BAD_INPUT,
    TOTAL_SIDES,
    annotate_fallbacks,
    build_signal,
    is_finite,
    is_positive,
    neutral_signal,
    saturate,
)
from sharpcap.schema import FactorSignal, StatsBundle

SEASON_PACE_WEIGHT = 0.6
RECENT_PACE_WEIGHT = 0.4
PACE_SCALE = 6.0
FORM_SCALE = 10.0
THREE_POINT_SCALE = 0.1
WHISTLE_SCALE = 0.06
REST_SCALE = 2.0


def pace_index(
    away_pace: float,
    away_pace_last10: float,
    home_pace: float,
    home_pace_last10: float,
    league_pace: float = LEAGUE_PACE,
) -> FactorSignal:
    """Expected game pace (60/40 season vs last 10) against the league."""
    key, name = "pace_index", "Matchup Pace Index"
    if not is_positive(away_pace, away_pace_last10, home_pace, home_pace_last10, league_pace):
        return neutral_signal(key, name, BAD_INPUT, sides=TOTAL_SIDES)
    away = SEASON_PACE_WEIGHT * away_pace + RECENT_PACE_WEIGHT * away_pace_last10
    home = SEASON_PACE_WEIGHT * home_pace + RECENT_PACE_WEIGHT * home_pace_last10
    expected = (away + home) / 2.0
    delta = expected - league_pace
    return build_signal(
        key,
        name,
        saturate(delta, PACE_SCALE),
        sides=TOTAL_SIDES,
        meta={"expected_pace": expected, "pace_delta": delta, "league_pace": league_pace},
    )


def offensive_form(
    away_ortg_last10: float,
    home_ortg_last10: float,
    away_drtg: float,
    home_drtg: float,
    league_ortg: float = LEAGUE_ORTG,
    league_drtg: float = LEAGUE_DRTG,
) -> FactorSignal:
    """Recent offense adjusted for the opponent's defense, both teams combined."""
    key, name = "offensive_form", "Offensive Form vs Opponent"
    if not is_positive(away_ortg_last10, home_ortg_last10, away_drtg, home_drtg, league_ortg, league_drtg):
        return neutral_signal(key, name, BAD_INPUT, sides=TOTAL_SIDES)
    away_adj = away_ortg_last10 * (home_drtg / league_drtg)
    home_adj = home_ortg_last10 * (away_drtg / league_drtg)
    delta = (away_adj + home_adj) - 2.0 * league_ortg
    return build_signal(
        key,
        name,
        saturate(delta, FORM_SCALE),
        sides=TOTAL_SIDES,
        meta={"away_ortg_adj": away_adj, "home_ortg_adj": home_adj, "form_delta": delta},
    )


def three_point_environment(
    away_three_par: float,
    home_three_par: float,
    away_opp_three_par: float,
    home_opp_three_par: float,
    league_three_par: float = LEAGUE_3PAR,
) -> FactorSignal:
    key, name = "three_point_env", "3PT Environment"
    values = (away_three_par, home_three_par, away_opp_three_par, home_opp_three_par, league_three_par)
    if not is_finite(*values) or any(v < 0 or v > 1 for v in values):
        return neutral_signal(key, name, BAD_INPUT, sides=TOTAL_SIDES)
    env_rate = sum(values[:4]) / 4.0
    delta = env_rate - league_three_par
    return build_signal(
        key,
        name,
        saturate(2.0 * delta, THREE_POINT_SCALE),
        sides=TOTAL_SIDES,
        meta={"env_rate": env_rate, "rate_delta": delta},
    )


def whistle_environment(
    away_ft_rate: float,
    home_ft_rate: float,
    away_opp_ft_rate: float,
    home_opp_ft_rate: float,
    league_ft_rate: float = LEAGUE_FTR,
) -> FactorSignal:
    key, name = "whistle_env", "Free Throw Environment"
    values = (away_ft_rate, home_ft_rate, away_opp_ft_rate, home_opp_ft_rate, league_ft_rate)
    if not is_finite(*values) or any(v < 0 or v > 1 for v in values):
        return neutral_signal(key, name, BAD_INPUT, sides=TOTAL_SIDES)
    env_rate = sum(values[:4]) / 4.0
    delta = env_rate - league_ft_rate
    return build_signal(
        key,
        name,
        saturate(delta, WHISTLE_SCALE),
        sides=TOTAL_SIDES,
        meta={"ftr_env": env_rate, "ftr_delta": delta},
    )


def _rest_score(days: float) -> float:
    if days < 1:
        return -2.0
    if days < 2:
        return 0.0
    if days < 3:
        return 0.5
    return 1.0


def _fatigue_level(away_rest: float, home_rest: float, away_b2b: bool, home_b2b: bool) -> str:
    if away_b2b and home_b2b:
        return "SEVERE"
    if away_b2b or home_b2b:
        return "MODERATE"
    if away_rest <= 1 or home_rest <= 1:
        return "MILD"
    return "NONE"


def rest_advantage(
    away_rest_days: float,
    home_rest_days: float,
    away_back_to_back: bool = False,
    home_back_to_back: bool = False,
) -> FactorSignal:
    """Combined rest of both teams; tired legs lean under, rested ones over.

    A back-to-back counts as zero days of rest whatever ``rest_days`` says.
    """
    key, name = "rest_advantage", "Rest Advantage"
    if not is_finite(away_rest_days, home_rest_days) or away_rest_days < 0 or home_rest_days < 0:
        return neutral_signal(key, name, BAD_INPUT, sides=TOTAL_SIDES)
    away_rest = 0.0 if away_back_to_back else away_rest_days
    home_rest = 0.0 if home_back_to_back else home_rest_days
    combined = _rest_score(away_rest) + _rest_score(home_rest)
    return build_signal(
        key,
        name,
        saturate(combined, REST_SCALE),
        sides=TOTAL_SIDES,
        meta={
            "away_rest_days": away_rest,
            "home_rest_days": home_rest,
            "rest_impact": combined,
            "fatigue_level": _fatigue_level(
                away_rest, home_rest, bool(away_back_to_back), bool(home_back_to_back)
            ),
        },
    )


def compute_totals_factors(
    bundle: StatsBundle,
    league_pace: Optional[float] = None,
) -> List[FactorSignal]:
    away, home = bundle.away, bundle.home
    signals = [
        pace_index(
            away.pace, away.pace_last10, home.pace, home.pace_last10,
            league_pace if league_pace is not None else LEAGUE_PACE,
        ),
        offensive_form(away.ortg_last10, home.ortg_last10, away.drtg, home.drtg),
        three_point_environment(
            away.three_par, home.three_par, away.opp_three_par, home.opp_three_par
        ),
        whistle_environment(away.ft_rate, home.ft_rate, away.opp_ft_rate, home.opp_ft_rate),
        rest_advantage(away.rest_days, home.rest_days, away.back_to_back, home.back_to_back),
    ]
    return annotate_fallbacks(signals, bundle.fallbacks)
