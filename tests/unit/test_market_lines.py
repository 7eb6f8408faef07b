"""Unit tests for sharpcap/market/lines.py"""

import pytest

from sharpcap.constants import AWAY, HOME, MONEYLINE, OVER, SPREAD, TOTAL, UNDER
from sharpcap.market.lines import (
    average_odds,
    best_odds,
    selection_odds,
    spread_line,
    team_role,
    total_line,
)


@pytest.fixture
def two_book_game(make_game):
    return make_game(odds={
        "book_a": {
            "moneyline": {"home": -110, "away": 100},
            "spread": {"line": -5.5, "home": -110, "away": -110},
            "total": {"line": 220.0, "over": -110, "under": -110},
        },
        "book_b": {
            "moneyline": {"home": 100, "away": -120},
            "spread": {"line": -6.5, "home": -105, "away": -115},
            "total": {"line": 221.0, "over": -105, "under": -115},
        },
    })


class TestAverages:
    """Consensus prices are averaged as decimal odds, then converted back."""

    def test_average_of_minus_110_and_even(self, two_book_game):
        assert average_odds(two_book_game, MONEYLINE, HOME) == -105

    def test_single_book_is_its_own_average(self, make_game):
        game = make_game()
        assert average_odds(game, MONEYLINE, HOME) == -200
        assert average_odds(game, MONEYLINE, AWAY) == 170

    def test_missing_market(self, make_game):
        game = make_game(odds={"book_a": {"moneyline": {"home": -150, "away": 130}}})
        assert average_odds(game, TOTAL, OVER) is None
        assert total_line(game) is None
        assert spread_line(game) is None

    def test_lines_averaged(self, two_book_game):
        assert total_line(two_book_game) == pytest.approx(220.5)
        assert spread_line(two_book_game) == pytest.approx(-6.0)

    def test_books_missing_a_price_are_skipped(self, make_game):
        game = make_game(odds={
            "book_a": {"total": {"line": 220.0, "over": -110}},
            "book_b": {"total": {"line": 222.0, "over": 100, "under": -120}},
        })
        assert average_odds(game, TOTAL, UNDER) == -120
        assert total_line(game) == pytest.approx(221.0)


class TestBestOdds:
    def test_highest_payout_wins(self, two_book_game):
        assert best_odds(two_book_game, MONEYLINE, HOME) == (100, "book_b")
        assert best_odds(two_book_game, SPREAD, AWAY) == (-110, "book_a")

    def test_tie_keeps_earliest_book(self, make_game):
        game = make_game(odds={
            "first": {"total": {"line": 220.0, "over": -110, "under": -110}},
            "second": {"total": {"line": 220.5, "over": -110, "under": -110}},
        })
        assert best_odds(game, TOTAL, OVER) == (-110, "first")

    def test_no_prices(self, make_game):
        assert best_odds(make_game(odds={}), MONEYLINE, HOME) is None


class TestSelectionOdds:
    def test_valid_sides(self, make_game):
        game = make_game()
        assert selection_odds(game, TOTAL, OVER) == -110
        assert selection_odds(game, SPREAD, HOME) == -110
        assert selection_odds(game, MONEYLINE, AWAY) == 170

    @pytest.mark.parametrize("bet_type,side", [
        (TOTAL, HOME),
        (SPREAD, OVER),
        (MONEYLINE, UNDER),
        (SPREAD, None),
    ])
    def test_mismatched_side(self, make_game, bet_type, side):
        assert selection_odds(make_game(), bet_type, side) is None


@pytest.mark.parametrize("odds,role", [
    (-200, "favorite"),
    (-111, "favorite"),
    (-110, "even"),
    (100, "even"),
    (110, "even"),
    (111, "underdog"),
    (250, "underdog"),
])
def test_team_role(odds, role):
    assert team_role(odds) == role
