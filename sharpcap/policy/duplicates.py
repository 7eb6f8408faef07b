"""Picks already on the books, used to block a second pick on the same market."""

from types import MappingProxyType
from typing import FrozenSet, Iterable, List, Mapping, Optional, Union

from sharpcap.constants import TOTAL, TOTAL_OVER, TOTAL_UNDER

_EMPTY: FrozenSet[str] = frozenset()


def _as_types(types: Union[str, Iterable[str], None]) -> List[str]:
    if types is None:
        return []
    if isinstance(types, str):
        return [types]
    return list(types)


def normalize_bet_type(pick_type: str) -> str:
    """Collapse directional totals onto one market: total_over/total_under -> total."""
    value = (pick_type or "").strip().lower()
    if value in (TOTAL_OVER, TOTAL_UNDER):
        return TOTAL
    return value


class ExistingPicks:
    """
    Read-only view of game_id -> set of normalized bet types already claimed.

    Built once per batch; games never write to it. A bare string value
    counts as a single bet type.
    """

    def __init__(self, claims: Optional[Mapping[str, Union[str, Iterable[str]]]] = None) -> None:
        self._claims = MappingProxyType({
            str(game_id): frozenset(normalize_bet_type(t) for t in _as_types(types))
            for game_id, types in (claims or {}).items()
        })

    @classmethod
    def from_mapping(cls, claims: Optional[Mapping[str, Iterable[str]]]) -> "ExistingPicks":
        return cls(claims)

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, str]]) -> "ExistingPicks":
        """Build from pick rows carrying ``game_id`` and ``pick_type``."""
        claims = {}
        for row in rows:
            claims.setdefault(str(row["game_id"]), []).append(row["pick_type"])
        return cls(claims)

    def claimed(self, game_id: str) -> FrozenSet[str]:
        return self._claims.get(game_id, _EMPTY)

    def is_claimed(self, game_id: str, bet_type: str) -> bool:
        return normalize_bet_type(bet_type) in self.claimed(game_id)

    def __len__(self) -> int:
        return len(self._claims)

    def __repr__(self) -> str:
        return f"ExistingPicks({dict(self._claims)!r})"
