"""Game-time eligibility gate."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sharpcap.schema import Game

DEFAULT_BUFFER_MINUTES = 15


@dataclass(frozen=True)
class TimingResult:
    is_valid: bool
    reason: Optional[str] = None
    minutes_until_start: Optional[float] = None


def validate_game_timing(
    start_time: Optional[datetime],
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
    now: Optional[datetime] = None,
) -> TimingResult:
    """
    A game is eligible only if it starts at least ``buffer_minutes`` from now.

    Naive datetimes are treated as UTC.
    """
    if start_time is None:
        return TimingResult(False, "Game start time not available")
    if start_time.tzinfo is None:
        start_time = start_time.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    minutes = (start_time - now).total_seconds() / 60.0
    if minutes < 0:
        return TimingResult(
            False,
            f"Game already started {abs(round(minutes))} minutes ago",
            minutes,
        )
    if minutes < buffer_minutes:
        return TimingResult(
            False,
            f"Game starting in {round(minutes)} minutes (< {buffer_minutes} min buffer)",
            minutes,
        )
    return TimingResult(True, None, minutes)


def filter_eligible_games(
    games: Iterable[Game],
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
    now: Optional[datetime] = None,
) -> List[Game]:
    return [
        game for game in games
        if validate_game_timing(game.start_time, buffer_minutes, now).is_valid
    ]
