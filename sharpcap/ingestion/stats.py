"""
Team statistics collaborators.

How the numbers are sourced is up to the provider. This module fixes the
contract (``fetch(game) -> StatsBundle``, possibly partial) and fills the
gaps with league averages, or a mid-season count for ``games_played``,
recording each filled field so the loss of fidelity stays visible downstream.
"""

from dataclasses import fields, replace
from typing import Any, Dict, List, Mapping, Optional
import logging

from sharpcap.constants import AWAY, GAMES_PLAYED_FALLBACK, HOME, TEAM_STAT_FALLBACKS
from sharpcap.exceptions import DataUnavailableError
from sharpcap.schema import Game, StatsBundle, TeamStats

logger = logging.getLogger(__name__)

SOURCE_NAME = "team_stats"
LEAGUE_AVERAGE_SOURCE = "league_average"


class StatsProvider:
    def fetch(self, game: Game) -> StatsBundle:
        raise NotImplementedError


def _fill_team(stats: TeamStats, side: str, filled: List[str]) -> TeamStats:
    updates: Dict[str, Any] = {}
    for name, default in TEAM_STAT_FALLBACKS.items():
        if getattr(stats, name) is None:
            updates[name] = default
            filled.append(f"{side}.{name}")
    if stats.games_played is None:
        updates["games_played"] = GAMES_PLAYED_FALLBACK
        filled.append(f"{side}.games_played")
    return replace(stats, **updates) if updates else stats


def fill_fallbacks(bundle: StatsBundle) -> StatsBundle:
    """Return a copy with missing fields set to league averages, listed in ``fallbacks``."""
    filled: List[str] = list(bundle.fallbacks)
    away = _fill_team(bundle.away, AWAY, filled)
    home = _fill_team(bundle.home, HOME, filled)
    return StatsBundle(
        away=away,
        home=home,
        fallbacks=filled,
        errors=list(bundle.errors),
        source=bundle.source,
    )


def league_average_bundle(error: Optional[str] = None) -> StatsBundle:
    """Both teams at league average with zero games played."""
    bundle = fill_fallbacks(StatsBundle(
        away=TeamStats(games_played=0),
        home=TeamStats(games_played=0),
        source=LEAGUE_AVERAGE_SOURCE,
    ))
    if error:
        bundle.errors.append(error)
    return bundle


class StaticStatsProvider(StatsProvider):
    """Serves stats from a mapping of team name -> stat fields (e.g. a slate file)."""

    def __init__(self, teams: Optional[Mapping[str, Mapping[str, Any]]] = None) -> None:
        known = {f.name for f in fields(TeamStats)}
        self._teams = {
            str(team): {k: v for k, v in (values or {}).items() if k in known}
            for team, values in (teams or {}).items()
        }

    def fetch(self, game: Game) -> StatsBundle:
        missing = [team for team in (game.away_team, game.home_team) if team not in self._teams]
        if len(missing) == 2:
            raise DataUnavailableError(SOURCE_NAME, f"no stats for {game.matchup}")
        errors = [f"no stats for {team}" for team in missing]
        if errors:
            logger.warning("Partial stats for %s: %s", game.game_id, "; ".join(errors))
        return StatsBundle(
            away=TeamStats.from_dict(self._teams.get(game.away_team, {})),
            home=TeamStats.from_dict(self._teams.get(game.home_team, {})),
            errors=errors,
            source=SOURCE_NAME,
        )
