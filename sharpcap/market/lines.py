"""Consensus prices and lines across bookmakers."""

from typing import List, Optional, Tuple

from sharpcap.constants import AWAY, HOME, MONEYLINE, OVER, SPREAD, TOTAL, UNDER
from sharpcap.schema import BookOdds, Game
from sharpcap.utils.odds import american_to_decimal, decimal_to_american

FAVORITE_THRESHOLD = -110
UNDERDOG_THRESHOLD = 110


def _price(book: BookOdds, market: str, side: str) -> Optional[int]:
    if market == MONEYLINE and book.moneyline:
        return book.moneyline.home if side == HOME else book.moneyline.away
    if market == SPREAD and book.spread:
        return book.spread.home if side == HOME else book.spread.away
    if market == TOTAL and book.total:
        return book.total.over if side == OVER else book.total.under
    return None


def _prices(game: Game, market: str, side: str) -> List[Tuple[str, int]]:
    prices = []
    for bookmaker, book in game.odds.items():
        price = _price(book, market, side)
        if price is not None:
            prices.append((bookmaker, price))
    return prices


def average_odds(game: Game, market: str, side: str) -> Optional[int]:
    """Mean price across books, averaged in decimal space."""
    prices = _prices(game, market, side)
    if not prices:
        return None
    mean_decimal = sum(american_to_decimal(price) for _, price in prices) / len(prices)
    return decimal_to_american(mean_decimal)


def best_odds(game: Game, market: str, side: str) -> Optional[Tuple[int, str]]:
    """Highest-paying price and the book offering it; earliest book wins ties."""
    best: Optional[Tuple[int, str]] = None
    for bookmaker, price in _prices(game, market, side):
        if best is None or american_to_decimal(price) > american_to_decimal(best[0]):
            best = (price, bookmaker)
    return best


def total_line(game: Game) -> Optional[float]:
    lines = [book.total.line for book in game.odds.values() if book.total is not None]
    if not lines:
        return None
    return sum(lines) / len(lines)


def spread_line(game: Game) -> Optional[float]:
    """Average home spread; negative means the home side is favored."""
    lines = [book.spread.line for book in game.odds.values() if book.spread is not None]
    if not lines:
        return None
    return sum(lines) / len(lines)


def team_role(odds: int) -> str:
    if odds < FAVORITE_THRESHOLD:
        return "favorite"
    if odds > UNDERDOG_THRESHOLD:
        return "underdog"
    return "even"


def selection_odds(game: Game, bet_type: str, side: Optional[str]) -> Optional[int]:
    """Consensus price for a side of a market, or None when nobody quotes it."""
    if side is None:
        return None
    if bet_type == TOTAL and side not in (OVER, UNDER):
        return None
    if bet_type in (SPREAD, MONEYLINE) and side not in (HOME, AWAY):
        return None
    return average_odds(game, bet_type, side)
