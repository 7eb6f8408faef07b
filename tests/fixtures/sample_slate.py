"""Sample slate data shared by unit and integration tests."""

from datetime import datetime, timezone

FIXED_NOW = datetime(2025, 1, 15, 17, 0, tzinfo=timezone.utc)

HOME_TEAM = "Boston Celtics"
AWAY_TEAM = "New York Knicks"


def team_stats_dict(**overrides):
    """A complete, league-average-ish stat line; override what the test cares about."""
    stats = {
        "ortg": 114.0,
        "drtg": 112.0,
        "pace": 99.5,
        "pace_last10": 100.0,
        "ortg_last10": 115.0,
        "tov": 13.5,
        "oreb": 10.5,
        "dreb": 33.5,
        "opp_oreb": 10.0,
        "opp_dreb": 33.0,
        "steals": 7.5,
        "blocks": 5.0,
        "assists": 25.5,
        "efg_pct": 0.54,
        "tov_pct": 0.13,
        "oreb_pct": 0.24,
        "ft_rate": 0.22,
        "three_par": 0.39,
        "opp_three_par": 0.39,
        "opp_ft_rate": 0.22,
        "home_net_rating": 3.0,
        "road_net_rating": -1.0,
        "win_streak": 1,
        "ortg_last3": 115.0,
        "rest_days": 1,
        "last10_wins": 5,
        "last10_losses": 5,
        "back_to_back": False,
        "games_played": 40,
    }
    stats.update(overrides)
    return stats


def default_odds(
    total_line=220.0,
    spread_line=-5.5,
    home_ml=-200,
    away_ml=170,
    spread_home=-110,
    spread_away=-110,
    over=-110,
    under=-110,
):
    return {
        "book_a": {
            "moneyline": {"home": home_ml, "away": away_ml},
            "spread": {"line": spread_line, "home": spread_home, "away": spread_away},
            "total": {"line": total_line, "over": over, "under": under},
        }
    }
