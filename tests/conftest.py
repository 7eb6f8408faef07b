"""
Pytest configuration and shared fixtures for the decision engine tests.
"""

from datetime import timedelta

import pytest

from sharpcap.schema import Game, StatsBundle, TeamStats
from tests.fixtures.sample_slate import (
    AWAY_TEAM,
    FIXED_NOW,
    HOME_TEAM,
    default_odds,
    team_stats_dict,
)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def clock():
    """Fixed wall clock for the batch timing gate."""
    return lambda: FIXED_NOW


@pytest.fixture
def make_game():
    """Factory for games starting three hours after FIXED_NOW by default."""

    def _make(
        game_id="g1",
        home_team=HOME_TEAM,
        away_team=AWAY_TEAM,
        minutes_until_start=180,
        odds=None,
        sport="nba",
    ):
        return Game.from_dict({
            "game_id": game_id,
            "sport": sport,
            "home_team": home_team,
            "away_team": away_team,
            "start_time": (FIXED_NOW + timedelta(minutes=minutes_until_start)).isoformat(),
            "odds": default_odds() if odds is None else odds,
        })

    return _make


@pytest.fixture
def home_stats():
    return team_stats_dict(ortg=117.0, drtg=109.0, win_streak=4, last10_wins=8, last10_losses=2)


@pytest.fixture
def away_stats():
    return team_stats_dict(ortg=111.0, drtg=114.0, win_streak=-2, last10_wins=3, last10_losses=7)


@pytest.fixture
def stats_bundle(home_stats, away_stats):
    return StatsBundle(
        away=TeamStats.from_dict(away_stats),
        home=TeamStats.from_dict(home_stats),
        source="fixture",
    )


@pytest.fixture
def even_bundle():
    """Identical teams: every differential is zero."""
    return StatsBundle(
        away=TeamStats.from_dict(team_stats_dict(home_net_rating=0.0, road_net_rating=0.0)),
        home=TeamStats.from_dict(team_stats_dict(home_net_rating=0.0, road_net_rating=0.0)),
        source="fixture",
    )
