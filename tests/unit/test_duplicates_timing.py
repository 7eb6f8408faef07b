"""Unit tests for existing-pick lookup and the game-time gate."""

from datetime import datetime, timedelta

import pytest

from sharpcap.policy import (
    ExistingPicks,
    TimingResult,
    filter_eligible_games,
    normalize_bet_type,
    validate_game_timing,
)


class TestNormalizeBetType:
    @pytest.mark.parametrize("raw,expected", [
        ("total_over", "total"),
        ("TOTAL_UNDER", "total"),
        (" spread ", "spread"),
        ("Moneyline", "moneyline"),
        ("", ""),
        (None, ""),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_bet_type(raw) == expected


class TestExistingPicks:
    def test_over_claims_whole_total_market(self):
        existing = ExistingPicks({"g1": ["total_over"]})
        assert existing.is_claimed("g1", "total_under")
        assert existing.is_claimed("g1", "total")
        assert not existing.is_claimed("g1", "spread")

    def test_unknown_game(self):
        existing = ExistingPicks({"g1": ["spread"]})
        assert existing.claimed("g9") == frozenset()
        assert not existing.is_claimed("g9", "spread")

    def test_from_rows(self):
        existing = ExistingPicks.from_rows([
            {"game_id": "g1", "pick_type": "spread"},
            {"game_id": "g1", "pick_type": "total_under"},
            {"game_id": 7, "pick_type": "moneyline"},
        ])
        assert existing.claimed("g1") == frozenset({"spread", "total"})
        assert existing.is_claimed("7", "moneyline")
        assert len(existing) == 2

    def test_read_only(self):
        existing = ExistingPicks.from_mapping({"g1": ["spread"]})
        with pytest.raises(TypeError):
            existing._claims["g2"] = frozenset({"total"})

    def test_bare_string_is_one_bet_type(self):
        existing = ExistingPicks({"g1": "spread", "g2": "total_over"})
        assert existing.claimed("g1") == frozenset({"spread"})
        assert existing.is_claimed("g2", "total_under")
        assert not existing.is_claimed("g1", "s")

    def test_empty(self):
        assert len(ExistingPicks()) == 0
        assert len(ExistingPicks.from_mapping(None)) == 0


class TestValidateGameTiming:
    """Games need at least the buffer before tip-off."""

    def test_future_game_is_valid(self, now):
        result = validate_game_timing(now + timedelta(hours=2), now=now)
        assert result.is_valid
        assert result.reason is None
        assert result.minutes_until_start == pytest.approx(120.0)

    def test_started_game(self, now):
        result = validate_game_timing(now - timedelta(minutes=30), now=now)
        assert not result.is_valid
        assert result.reason == "Game already started 30 minutes ago"

    def test_inside_buffer(self, now):
        result = validate_game_timing(now + timedelta(minutes=10), now=now)
        assert not result.is_valid
        assert result.reason == "Game starting in 10 minutes (< 15 min buffer)"

    def test_exactly_at_buffer_is_valid(self, now):
        assert validate_game_timing(now + timedelta(minutes=15), now=now).is_valid

    def test_custom_buffer(self, now):
        result = validate_game_timing(now + timedelta(minutes=40), buffer_minutes=60, now=now)
        assert result.reason == "Game starting in 40 minutes (< 60 min buffer)"

    def test_missing_start_time(self, now):
        assert validate_game_timing(None, now=now) == TimingResult(False, "Game start time not available")

    def test_naive_times_are_utc(self, now):
        naive_start = datetime(2025, 1, 15, 19, 0)
        result = validate_game_timing(naive_start, now=now)
        assert result.minutes_until_start == pytest.approx(120.0)

    def test_filter_eligible_games(self, make_game, now):
        games = [
            make_game("early", minutes_until_start=5),
            make_game("late", minutes_until_start=90),
            make_game("gone", minutes_until_start=-60),
        ]
        assert [g.game_id for g in filter_eligible_games(games, now=now)] == ["late"]
