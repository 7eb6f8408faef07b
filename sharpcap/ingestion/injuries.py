"""Injury report collaborators."""

from typing import Any, Iterable, Mapping, Optional
import logging

from sharpcap.constants import AWAY, HOME
from sharpcap.exceptions import DataUnavailableError
from sharpcap.schema import Game, InjuredPlayer, InjuryReport

logger = logging.getLogger(__name__)

SOURCE_NAME = "injury_report"


class InjuryProvider:
    def fetch(self, game: Game) -> InjuryReport:
        raise NotImplementedError


def _to_float(value: Any) -> float:
    if value in (None, ""):
        return 0.0
    return float(value)


def _player(entry: Mapping[str, Any], side: str) -> Optional[InjuredPlayer]:
    name = entry.get("name") or entry.get("player")
    if not name:
        return None
    return InjuredPlayer(
        name=str(name).strip(),
        team_side=side,
        status=str(entry.get("status") or "").strip(),
        ppg=_to_float(entry.get("ppg")),
        mpg=_to_float(entry.get("mpg")),
        position=str(entry.get("position") or "").strip(),
        blocks=_to_float(entry.get("blocks")),
        steals=_to_float(entry.get("steals")),
    )


class StaticInjuryProvider(InjuryProvider):
    """
    Serves injuries from a mapping of team name -> list of player entries.

    Entries carry ``name`` (or ``player``), ``status``, ``ppg`` and ``mpg``, plus optional
    ``position``, ``blocks`` and ``steals`` for the scoring-impact factor.
    Teams absent from the mapping are treated as healthy.
    """

    def __init__(self, teams: Optional[Mapping[str, Iterable[Mapping[str, Any]]]] = None) -> None:
        self._teams = {str(team): list(entries or []) for team, entries in (teams or {}).items()}

    def fetch(self, game: Game) -> InjuryReport:
        players = []
        for side in (AWAY, HOME):
            for entry in self._teams.get(game.team_for(side), []):
                if not isinstance(entry, Mapping):
                    raise DataUnavailableError(SOURCE_NAME, f"bad injury entry for {game.team_for(side)}")
                player = _player(entry, side)
                if player is not None:
                    players.append(player)
        logger.debug("Injury report for %s: %d players", game.game_id, len(players))
        return InjuryReport(players=players, source=SOURCE_NAME)
