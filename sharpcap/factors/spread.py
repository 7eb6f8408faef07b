"""Spread-side factor library.

Every function here is pure: same inputs, same signal. A positive signal
favors the away team, a negative one the home team. Inputs that are not
finite (or, where noted, not positive) return a neutral ``bad_input`` signal.
"""

from typing import List, Optional

from sharpcap.constants import DREB_PCT_FALLBACK, OREB_PCT_FALLBACK
from sharpcap.factors.base import (
    BAD_INPUT,
    INVALID_INPUT,
    _clamp,
    annotate_fallbacks,
    build_signal,
    is_finite,
    is_positive,
    neutral_signal,
    saturate,
)
from sharpcap.schema import FactorSignal, StatsBundle

NET_RATING_SCALE = 3.5
NET_RATING_EDGE_CAP = 20.0
TURNOVER_POINTS_PER_TOV = 1.1
TURNOVER_SCALE = 5.0
REBOUNDING_SCALE = 10.0
SPLITS_SCALE = 6.0
FOUR_FACTORS_WEIGHTS = {"efg": 0.50, "tov": 0.30, "oreb": 0.15, "ftr": 0.05}
FOUR_FACTORS_POINTS = 120.0
FOUR_FACTORS_SCALE = 8.0
MOMENTUM_SCALE = 4.0
PRESSURE_STEAL_WEIGHT = 1.5
PRESSURE_BLOCK_WEIGHT = 0.8
PRESSURE_SCALE = 4.0
ASSIST_SCALE = 0.5
PACE_MISMATCH_IMPACT = 0.3
PACE_MISMATCH_SCALE = 3.0
SHOOTING_WEIGHTS = {"efg": 0.7, "ftr": 0.3}
SHOOTING_MOMENTUM_SCALE = 6.0


def net_rating_differential(
    away_ortg: float,
    away_drtg: float,
    home_ortg: float,
    home_drtg: float,
    pace: float,
    spread_line: Optional[float] = None,
) -> FactorSignal:
    """Pace-adjusted net rating gap, optionally measured against the spread.

    ``spread_line`` is quoted for the home side (-4.5 means home favored by 4.5).
    """
    key, name = "net_rating", "Net Rating Differential"
    if not is_positive(away_ortg, away_drtg, home_ortg, home_drtg, pace):
        return neutral_signal(key, name, BAD_INPUT)
    if spread_line is not None and not is_finite(spread_line):
        return neutral_signal(key, name, BAD_INPUT)

    away_net = away_ortg - away_drtg
    home_net = home_ortg - home_drtg
    expected_margin = (away_net - home_net) * (pace / 100.0)
    edge = expected_margin if spread_line is None else expected_margin - spread_line
    capped = _clamp(edge, -NET_RATING_EDGE_CAP, NET_RATING_EDGE_CAP)
    meta = {
        "away_net_rating": away_net,
        "home_net_rating": home_net,
        "expected_margin": expected_margin,
    }
    if spread_line is not None:
        meta["spread_edge"] = edge
    return build_signal(key, name, saturate(capped, NET_RATING_SCALE), meta=meta)


def turnover_differential(away_tov: float, home_tov: float) -> FactorSignal:
    key, name = "turnover_diff", "Turnover Differential"
    if not is_finite(away_tov, home_tov) or away_tov < 0 or home_tov < 0:
        return neutral_signal(key, name, BAD_INPUT)
    diff = home_tov - away_tov
    expected_points = diff * TURNOVER_POINTS_PER_TOV
    return build_signal(
        key,
        name,
        saturate(expected_points, TURNOVER_SCALE),
        meta={"turnover_diff": diff, "expected_point_impact": expected_points},
    )


def _rebound_pct(own: float, opponent: float, fallback: float) -> float:
    denominator = own + opponent
    return own / denominator if denominator > 0 else fallback


def rebounding_differential(
    away_oreb: float,
    away_dreb: float,
    away_opp_oreb: float,
    away_opp_dreb: float,
    home_oreb: float,
    home_dreb: float,
    home_opp_oreb: float,
    home_opp_dreb: float,
) -> FactorSignal:
    """Combined OREB% + DREB% gap; ``opp_*`` are what opponents grab against the team."""
    key, name = "rebounding", "Rebounding Differential"
    values = (
        away_oreb, away_dreb, away_opp_oreb, away_opp_dreb,
        home_oreb, home_dreb, home_opp_oreb, home_opp_dreb,
    )
    if not is_finite(*values) or any(v < 0 for v in values):
        return neutral_signal(key, name, BAD_INPUT)

    away_total = (
        _rebound_pct(away_oreb, away_opp_dreb, OREB_PCT_FALLBACK)
        + _rebound_pct(away_dreb, away_opp_oreb, DREB_PCT_FALLBACK)
    )
    home_total = (
        _rebound_pct(home_oreb, home_opp_dreb, OREB_PCT_FALLBACK)
        + _rebound_pct(home_dreb, home_opp_oreb, DREB_PCT_FALLBACK)
    )
    differential = away_total - home_total
    expected_points = differential * 100.0
    return build_signal(
        key,
        name,
        saturate(expected_points, REBOUNDING_SCALE),
        meta={
            "away_total_reb_pct": away_total,
            "home_total_reb_pct": home_total,
            "expected_point_impact": expected_points,
        },
    )


def home_away_splits(away_road_net: float, home_home_net: float) -> FactorSignal:
    key, name = "home_away_splits", "Home/Away Splits"
    if not is_finite(away_road_net, home_home_net):
        return neutral_signal(key, name, BAD_INPUT)
    advantage = away_road_net - home_home_net
    return build_signal(
        key,
        name,
        saturate(advantage, SPLITS_SCALE),
        meta={
            "away_road_net_rating": away_road_net,
            "home_home_net_rating": home_home_net,
            "context_advantage": advantage,
        },
    )


def _four_factors_rating(efg: float, tov_pct: float, oreb_pct: float, ftr: float) -> float:
    w = FOUR_FACTORS_WEIGHTS
    return w["efg"] * efg - w["tov"] * tov_pct + w["oreb"] * oreb_pct + w["ftr"] * ftr


def four_factors_differential(
    away_efg: float,
    away_tov_pct: float,
    away_oreb_pct: float,
    away_ftr: float,
    home_efg: float,
    home_tov_pct: float,
    home_oreb_pct: float,
    home_ftr: float,
) -> FactorSignal:
    """Dean Oliver's four factors, all as fractions (0.54, not 54)."""
    key, name = "four_factors", "Four Factors Differential"
    values = (
        away_efg, away_tov_pct, away_oreb_pct, away_ftr,
        home_efg, home_tov_pct, home_oreb_pct, home_ftr,
    )
    if not is_finite(*values) or any(v < 0 or v > 1.5 for v in values):
        return neutral_signal(key, name, BAD_INPUT)

    away_rating = _four_factors_rating(away_efg, away_tov_pct, away_oreb_pct, away_ftr)
    home_rating = _four_factors_rating(home_efg, home_tov_pct, home_oreb_pct, home_ftr)
    expected_margin = (away_rating - home_rating) * FOUR_FACTORS_POINTS
    return build_signal(
        key,
        name,
        saturate(expected_margin, FOUR_FACTORS_SCALE),
        meta={
            "away_rating": away_rating,
            "home_rating": home_rating,
            "expected_margin": expected_margin,
        },
    )


def _team_momentum(streak: float, wins: int, losses: int) -> float:
    streak_score = _clamp(streak, -5.0, 5.0) * 0.5
    last10_score = ((wins - losses) / 10.0) * 2.5
    return streak_score + last10_score


def _streak_type(streak: float) -> str:
    if streak >= 2:
        return "WIN"
    if streak <= -2:
        return "LOSS"
    return "NEUTRAL"


def momentum_index(
    away_streak: float,
    home_streak: float,
    away_last10: Optional[tuple],
    home_last10: Optional[tuple],
) -> FactorSignal:
    """Win streak (negative for losing streaks) plus last-10 (wins, losses)."""
    key, name = "momentum", "Momentum Index"
    if not away_last10 or not home_last10:
        return neutral_signal(key, name, INVALID_INPUT)
    if not is_finite(away_streak, home_streak, *away_last10, *home_last10):
        return neutral_signal(key, name, BAD_INPUT)

    away_momentum = _team_momentum(away_streak, *away_last10)
    home_momentum = _team_momentum(home_streak, *home_last10)
    diff = away_momentum - home_momentum
    return build_signal(
        key,
        name,
        saturate(diff, MOMENTUM_SCALE),
        meta={
            "away_momentum": away_momentum,
            "home_momentum": home_momentum,
            "momentum_diff": diff,
            "away_streak_type": _streak_type(away_streak),
            "home_streak_type": _streak_type(home_streak),
        },
    )


def defensive_pressure(
    away_steals: float,
    away_blocks: float,
    home_steals: float,
    home_blocks: float,
) -> FactorSignal:
    key, name = "defensive_pressure", "Defensive Pressure"
    values = (away_steals, away_blocks, home_steals, home_blocks)
    if not is_finite(*values) or any(v < 0 for v in values):
        return neutral_signal(key, name, BAD_INPUT)
    away_disruption = away_steals * PRESSURE_STEAL_WEIGHT + away_blocks * PRESSURE_BLOCK_WEIGHT
    home_disruption = home_steals * PRESSURE_STEAL_WEIGHT + home_blocks * PRESSURE_BLOCK_WEIGHT
    diff = away_disruption - home_disruption
    return build_signal(
        key,
        name,
        saturate(diff, PRESSURE_SCALE),
        meta={
            "away_disruption": away_disruption,
            "home_disruption": home_disruption,
            "disruption_diff": diff,
        },
    )


def _assist_ratio(assists: float, turnovers: float) -> float:
    if turnovers > 0:
        return assists / turnovers
    return 3.0 if assists > 0 else 1.0


def assist_efficiency(
    away_assists: float,
    away_turnovers: float,
    home_assists: float,
    home_turnovers: float,
) -> FactorSignal:
    key, name = "assist_efficiency", "Assist Efficiency"
    values = (away_assists, away_turnovers, home_assists, home_turnovers)
    if not is_finite(*values) or any(v < 0 for v in values):
        return neutral_signal(key, name, BAD_INPUT)
    away_ratio = _assist_ratio(away_assists, away_turnovers)
    home_ratio = _assist_ratio(home_assists, home_turnovers)
    diff = away_ratio - home_ratio
    return build_signal(
        key,
        name,
        saturate(diff, ASSIST_SCALE),
        meta={"away_ast_tov": away_ratio, "home_ast_tov": home_ratio, "ast_tov_diff": diff},
    )


def _pace_category(gap: float) -> str:
    if gap > 8:
        return "Extreme"
    if gap > 5:
        return "High"
    if gap > 3:
        return "Moderate"
    return "Minimal"


def pace_mismatch(away_pace_last10: float, home_pace_last10: float) -> FactorSignal:
    """Recent pace gap; the slower side controls tempo, so a faster away team leans home."""
    key, name = "pace_mismatch", "Pace Mismatch"
    if not is_positive(away_pace_last10, home_pace_last10):
        return neutral_signal(key, name, BAD_INPUT)
    diff = away_pace_last10 - home_pace_last10
    expected_points = -diff * PACE_MISMATCH_IMPACT
    return build_signal(
        key,
        name,
        saturate(expected_points, PACE_MISMATCH_SCALE),
        meta={
            "pace_diff": diff,
            "expected_point_impact": expected_points,
            "pace_category": _pace_category(abs(diff)),
        },
    )


def _trend(ortg_last3: float, ortg_last10: float) -> float:
    return (ortg_last3 - ortg_last10) / ortg_last10


def shooting_momentum(
    away_efg: float,
    away_ftr: float,
    away_ortg_last3: float,
    away_ortg_last10: float,
    home_efg: float,
    home_ftr: float,
    home_ortg_last3: float,
    home_ortg_last10: float,
) -> FactorSignal:
    """Shooting quality (eFG%, FT rate) blended 60/40 with last-3 vs last-10 offensive trend."""
    key, name = "shooting_momentum", "Shooting Efficiency + Momentum"
    if not is_finite(away_efg, away_ftr, home_efg, home_ftr) or any(
        v < 0 or v > 1.5 for v in (away_efg, away_ftr, home_efg, home_ftr)
    ):
        return neutral_signal(key, name, BAD_INPUT)
    if not is_positive(away_ortg_last3, away_ortg_last10, home_ortg_last3, home_ortg_last10):
        return neutral_signal(key, name, BAD_INPUT)

    w = SHOOTING_WEIGHTS
    away_shooting = away_efg * w["efg"] + away_ftr * w["ftr"]
    home_shooting = home_efg * w["efg"] + home_ftr * w["ftr"]
    away_trend = _trend(away_ortg_last3, away_ortg_last10)
    home_trend = _trend(home_ortg_last3, home_ortg_last10)
    shooting_diff = away_shooting - home_shooting
    trend_diff = away_trend - home_trend
    combined = (shooting_diff * 100.0) * 0.6 + (trend_diff * 50.0) * 0.4
    return build_signal(
        key,
        name,
        saturate(combined, SHOOTING_MOMENTUM_SCALE),
        meta={
            "away_shooting": away_shooting,
            "home_shooting": home_shooting,
            "away_trend": away_trend,
            "home_trend": home_trend,
            "combined": combined,
        },
    )


def _last10(stats) -> Optional[tuple]:
    if stats.last10_wins is None or stats.last10_losses is None:
        return None
    return (stats.last10_wins, stats.last10_losses)


def compute_spread_factors(
    bundle: StatsBundle,
    spread_line: Optional[float] = None,
) -> List[FactorSignal]:
    """Run every spread factor over a stats bundle."""
    away, home = bundle.away, bundle.home
    pace = None
    if is_finite(away.pace, home.pace):
        pace = (away.pace + home.pace) / 2.0

    signals = [
        net_rating_differential(
            away.ortg, away.drtg, home.ortg, home.drtg, pace, spread_line
        ),
        turnover_differential(away.tov, home.tov),
        rebounding_differential(
            away.oreb, away.dreb, away.opp_oreb, away.opp_dreb,
            home.oreb, home.dreb, home.opp_oreb, home.opp_dreb,
        ),
        home_away_splits(away.road_net_rating, home.home_net_rating),
        four_factors_differential(
            away.efg_pct, away.tov_pct, away.oreb_pct, away.ft_rate,
            home.efg_pct, home.tov_pct, home.oreb_pct, home.ft_rate,
        ),
        momentum_index(away.win_streak, home.win_streak, _last10(away), _last10(home)),
        defensive_pressure(away.steals, away.blocks, home.steals, home.blocks),
        assist_efficiency(away.assists, away.tov, home.assists, home.tov),
        pace_mismatch(away.pace_last10, home.pace_last10),
        shooting_momentum(
            away.efg_pct, away.ft_rate, away.ortg_last3, away.ortg_last10,
            home.efg_pct, home.ft_rate, home.ortg_last3, home.ortg_last10,
        ),
    ]
    return annotate_fallbacks(signals, bundle.fallbacks)
