"""Injury factors: availability for the spread, scoring impact for the total.

Neither factor falls back to a league average. When the injury report
could not be fetched each disables itself: zero scores, ``reason="disabled"``
and the fetch error in ``meta["error"]``.
"""

from typing import Dict, List, Optional, Tuple

from sharpcap.constants import AWAY, HOME
from sharpcap.factors.base import (
    BAD_INPUT,
    DISABLED,
    TOTAL_SIDES,
    build_signal,
    is_finite,
    neutral_signal,
    saturate,
)
from sharpcap.schema import FactorSignal, InjuredPlayer, InjuryReport

KEY = "injury_availability"
NAME = "Injury Availability"

INJURY_SCALE = 5.0
MIN_MINUTES = 15.0

STATUS_MULTIPLIERS: Dict[str, float] = {
    "OUT": 1.0,
    "DOUBTFUL": 0.75,
    "QUESTIONABLE": 0.5,
    "PROBABLE": 0.25,
}

# (injured count threshold, team multiplier), checked in order
_DEPTH_MULTIPLIERS: Tuple[Tuple[int, float], ...] = ((3, 1.5), (2, 1.3))


def status_multiplier(status: Optional[str]) -> float:
    if not status:
        return 0.0
    return STATUS_MULTIPLIERS.get(status.strip().upper(), 0.0)


def player_impact(player: InjuredPlayer) -> float:
    """Points-equivalent impact of one absence; rotation players only."""
    if player.mpg < MIN_MINUTES:
        return 0.0
    base = (player.ppg / 10.0) + (player.mpg / 48.0) * 2.0
    return base * status_multiplier(player.status)


def team_impact(players: List[InjuredPlayer]) -> Tuple[float, List[Dict]]:
    injured = [p for p in players if status_multiplier(p.status) > 0]
    details = []
    total = 0.0
    for player in injured:
        impact = player_impact(player)
        if impact <= 0:
            continue
        total += impact
        details.append({
            "name": player.name,
            "status": player.status.upper(),
            "ppg": player.ppg,
            "mpg": player.mpg,
            "impact": impact,
        })
    for threshold, multiplier in _DEPTH_MULTIPLIERS:
        if len(injured) >= threshold:
            total *= multiplier
            break
    details.sort(key=lambda row: row["impact"], reverse=True)
    return total, details


def injury_availability(
    report: Optional[InjuryReport],
    error: Optional[str] = None,
) -> FactorSignal:
    """Net injury impact; positive signal means the home side is more depleted (away edge)."""
    if report is None or error:
        return neutral_signal(
            KEY,
            NAME,
            DISABLED,
            meta={"error": error or "injury report unavailable"},
        )

    for player in report.players:
        if not is_finite(player.ppg, player.mpg) or player.ppg < 0 or player.mpg < 0:
            return neutral_signal(KEY, NAME, BAD_INPUT, meta={"player": player.name})

    away_impact, away_details = team_impact(report.for_side(AWAY))
    home_impact, home_details = team_impact(report.for_side(HOME))
    net = away_impact - home_impact
    signal = -saturate(net, INJURY_SCALE) if net else 0.0
    return build_signal(
        KEY,
        NAME,
        signal,
        meta={
            "away_impact": away_impact,
            "home_impact": home_impact,
            "net_differential": net,
            "away_injuries": away_details,
            "home_injuries": home_details,
            "source": report.source,
        },
    )


SCORING_KEY = "injury_scoring"
SCORING_NAME = "Injury Scoring Impact"
SCORING_SCALE = 8.0

# Checked in order; the first tag found in the position string wins
_POSITION_DEFENSE: Tuple[Tuple[str, float], ...] = (("C", 2.5), ("F", 1.5), ("G", 1.0))


def defensive_value(player: InjuredPlayer) -> float:
    """Rim and perimeter defense lost, scaled by minutes and stocks (blocks + steals)."""
    position = (player.position or "").upper()
    base = next((value for tag, value in _POSITION_DEFENSE if tag in position), 0.0)
    minutes_factor = min(player.mpg / 36.0, 1.0)
    stats_factor = min(((player.blocks + player.steals) / 2.0) / 1.5, 1.5)
    return base * minutes_factor * stats_factor


def team_scoring_impact(players: List[InjuredPlayer]) -> Tuple[float, List[Dict]]:
    """Net scoring swing of a team's absences: lost defense adds points, lost offense removes them."""
    injured = [p for p in players if status_multiplier(p.status) > 0]
    details = []
    net = 0.0
    for player in injured:
        if player.mpg < MIN_MINUTES:
            continue
        multiplier = status_multiplier(player.status)
        offense = (player.ppg / 10.0) * multiplier
        defense = defensive_value(player) * multiplier
        net += defense - offense
        details.append({
            "name": player.name,
            "status": player.status.upper(),
            "position": player.position,
            "offensive_impact": offense,
            "defensive_impact": defense,
        })
    for threshold, multiplier in _DEPTH_MULTIPLIERS:
        if len(injured) >= threshold:
            net *= multiplier
            break
    return net, details


def injury_scoring_impact(
    report: Optional[InjuryReport],
    error: Optional[str] = None,
) -> FactorSignal:
    """Totals view of the injury report; positive signal leans over."""
    if report is None or error:
        return neutral_signal(
            SCORING_KEY,
            SCORING_NAME,
            DISABLED,
            sides=TOTAL_SIDES,
            meta={"error": error or "injury report unavailable"},
        )

    for player in report.players:
        values = (player.ppg, player.mpg, player.blocks, player.steals)
        if not is_finite(*values) or any(v < 0 for v in values):
            return neutral_signal(
                SCORING_KEY, SCORING_NAME, BAD_INPUT, sides=TOTAL_SIDES, meta={"player": player.name}
            )

    away_net, away_details = team_scoring_impact(report.for_side(AWAY))
    home_net, home_details = team_scoring_impact(report.for_side(HOME))
    total = away_net + home_net
    return build_signal(
        SCORING_KEY,
        SCORING_NAME,
        saturate(total, SCORING_SCALE) if total else 0.0,
        sides=TOTAL_SIDES,
        meta={
            "away_net": away_net,
            "home_net": home_net,
            "total_impact": total,
            "away_injuries": away_details,
            "home_injuries": home_details,
            "source": report.source,
        },
    )
