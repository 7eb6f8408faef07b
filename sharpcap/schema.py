"""Typed records passed between the engine stages."""

from dataclasses import dataclass, field, fields
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple
import math

from sharpcap.constants import (
    AWAY,
    HOME,
    MONEYLINE,
    SPREAD,
    SUPPORTED_SPORTS,
    TOTAL,
    UNIT_POINTS,
)
from sharpcap.exceptions import InvalidGameError


# =============================================================================
# MARKET INPUT
# =============================================================================

@dataclass(frozen=True)
class MoneylineOdds:
    home: Optional[int] = None
    away: Optional[int] = None


@dataclass(frozen=True)
class SpreadOdds:
    line: float
    home: Optional[int] = None
    away: Optional[int] = None


@dataclass(frozen=True)
class TotalOdds:
    line: float
    over: Optional[int] = None
    under: Optional[int] = None


@dataclass(frozen=True)
class BookOdds:
    """One bookmaker's prices. Spread line is quoted for the home side."""

    moneyline: Optional[MoneylineOdds] = None
    spread: Optional[SpreadOdds] = None
    total: Optional[TotalOdds] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "BookOdds":
        moneyline = payload.get("moneyline")
        spread = payload.get("spread")
        total = payload.get("total")
        return cls(
            moneyline=MoneylineOdds(
                home=_optional_int(moneyline.get("home")),
                away=_optional_int(moneyline.get("away")),
            ) if moneyline else None,
            spread=SpreadOdds(
                line=float(spread["line"]),
                home=_optional_int(spread.get("home")),
                away=_optional_int(spread.get("away")),
            ) if spread and spread.get("line") is not None else None,
            total=TotalOdds(
                line=float(total["line"]),
                over=_optional_int(total.get("over")),
                under=_optional_int(total.get("under")),
            ) if total and total.get("line") is not None else None,
        )


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class Game:
    """A scheduled game and the market around it. Immutable for a run."""

    game_id: str
    sport: str
    home_team: str
    away_team: str
    start_time: datetime
    odds: Mapping[str, BookOdds] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "odds", MappingProxyType(dict(self.odds)))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Game":
        game_id = str(payload.get("game_id") or payload.get("id") or "")
        missing = [
            key for key in ("home_team", "away_team", "start_time")
            if not payload.get(key)
        ]
        if not game_id:
            missing.insert(0, "game_id")
        if missing:
            raise InvalidGameError(game_id, f"missing fields: {', '.join(missing)}")

        sport = str(payload.get("sport", "nba")).lower()
        if sport not in SUPPORTED_SPORTS:
            raise InvalidGameError(game_id, f"unsupported sport '{sport}'")

        start_raw = payload["start_time"]
        try:
            start_time = (
                start_raw if isinstance(start_raw, datetime)
                else datetime.fromisoformat(str(start_raw).replace("Z", "+00:00"))
            )
        except ValueError as exc:
            raise InvalidGameError(game_id, f"bad start_time '{start_raw}'") from exc

        try:
            odds = {
                str(book): BookOdds.from_dict(prices or {})
                for book, prices in (payload.get("odds") or {}).items()
            }
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise InvalidGameError(game_id, f"bad odds payload: {exc}") from exc

        return cls(
            game_id=game_id,
            sport=sport,
            home_team=str(payload["home_team"]),
            away_team=str(payload["away_team"]),
            start_time=start_time,
            odds=odds,
        )

    @property
    def matchup(self) -> str:
        return f"{self.away_team} @ {self.home_team}"

    def team_for(self, side: str) -> str:
        return self.home_team if side == HOME else self.away_team


# =============================================================================
# STATS AND INJURIES
# =============================================================================

_COUNT_FIELDS = ("last10_wins", "last10_losses", "games_played")


def _stat_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def _stat_count(value: Any) -> Optional[int]:
    number = _stat_number(value)
    if number is None or not math.isfinite(number):
        return None
    return int(number)


def _stat_flag(value: Any) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


@dataclass
class TeamStats:
    ortg: Optional[float] = None
    drtg: Optional[float] = None
    pace: Optional[float] = None
    pace_last10: Optional[float] = None
    ortg_last10: Optional[float] = None
    tov: Optional[float] = None
    oreb: Optional[float] = None
    dreb: Optional[float] = None
    opp_oreb: Optional[float] = None
    opp_dreb: Optional[float] = None
    steals: Optional[float] = None
    blocks: Optional[float] = None
    assists: Optional[float] = None
    efg_pct: Optional[float] = None
    tov_pct: Optional[float] = None
    oreb_pct: Optional[float] = None
    ft_rate: Optional[float] = None
    three_par: Optional[float] = None
    opp_three_par: Optional[float] = None
    opp_ft_rate: Optional[float] = None
    home_net_rating: Optional[float] = None
    road_net_rating: Optional[float] = None
    win_streak: Optional[float] = None
    ortg_last3: Optional[float] = None
    rest_days: Optional[float] = None
    last10_wins: Optional[int] = None
    last10_losses: Optional[int] = None
    back_to_back: Optional[bool] = None
    games_played: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TeamStats":
        """Build from a stats payload; numeric strings are parsed, unparseable ones read as missing."""
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in payload.items():
            if key not in known:
                continue
            if key == "back_to_back":
                values[key] = _stat_flag(value)
            elif key in _COUNT_FIELDS:
                values[key] = _stat_count(value)
            else:
                values[key] = _stat_number(value)
        return cls(**values)


@dataclass
class StatsBundle:
    """Both teams' stats plus a record of which fields were filled from league averages."""

    away: TeamStats
    home: TeamStats
    fallbacks: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    source: str = ""

    @property
    def sample_size(self) -> int:
        return min(self.away.games_played or 0, self.home.games_played or 0)


@dataclass(frozen=True)
class InjuredPlayer:
    name: str
    team_side: str
    status: str
    ppg: float = 0.0
    mpg: float = 0.0
    position: str = ""
    blocks: float = 0.0
    steals: float = 0.0


@dataclass
class InjuryReport:
    players: List[InjuredPlayer] = field(default_factory=list)
    source: str = ""

    def for_side(self, side: str) -> List[InjuredPlayer]:
        return [player for player in self.players if player.team_side == side]


# =============================================================================
# FACTORS
# =============================================================================

@dataclass(frozen=True)
class FactorSignal:
    """Bounded output of one library factor.

    ``scores`` holds the two single-sided point scores; at most one is nonzero.
    """

    key: str
    name: str
    signal: float
    scores: Mapping[str, float]
    meta: Mapping[str, Any] = field(default_factory=dict)
    reason: Optional[str] = None

    @property
    def favored(self) -> Optional[str]:
        for side, score in self.scores.items():
            if score > 0:
                return side
        return None

    @property
    def points(self) -> float:
        return max(self.scores.values()) if self.scores else 0.0

    @property
    def is_neutral(self) -> bool:
        return self.points == 0.0


@dataclass(frozen=True)
class Factor:
    name: str
    category: str
    effect_size: float
    weight: float = 1.0
    sample_size: float = 0.0
    recency: float = 1.0
    data_quality: float = 1.0
    unit: str = UNIT_POINTS
    reasoning: str = ""
    sources: Tuple[str, ...] = ()
    reliability: float = 0.0
    soft_cap: float = 0.0
    contribution: float = 0.0
    impact: str = "neutral"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "weight": self.weight,
            "effect_size": self.effect_size,
            "sample_size": self.sample_size,
            "reliability": self.reliability,
            "soft_cap": self.soft_cap,
            "contribution": self.contribution,
            "impact": self.impact,
            "reasoning": self.reasoning,
            "sources": list(self.sources),
        }


# =============================================================================
# PREDICTION AND CONFIDENCE
# =============================================================================

@dataclass
class ScorePrediction:
    home_score: float
    away_score: float
    reasoning: List[str] = field(default_factory=list)

    @property
    def total(self) -> float:
        return self.home_score + self.away_score

    @property
    def margin(self) -> float:
        """Home minus away."""
        return self.home_score - self.away_score

    @property
    def winner(self) -> str:
        return HOME if self.margin > 0 else AWAY


@dataclass
class ConfidenceResult:
    """Per-bet-type confidence on the 0-10 scale, with the side each backs."""

    total: Optional[float] = None
    spread: Optional[float] = None
    moneyline: Optional[float] = None
    total_side: Optional[str] = None
    spread_side: Optional[str] = None
    moneyline_side: Optional[str] = None
    reasoning: List[str] = field(default_factory=list)

    def by_type(self) -> Dict[str, Optional[float]]:
        return {TOTAL: self.total, SPREAD: self.spread, MONEYLINE: self.moneyline}

    def side_for(self, bet_type: str) -> Optional[str]:
        return {
            TOTAL: self.total_side,
            SPREAD: self.spread_side,
            MONEYLINE: self.moneyline_side,
        }.get(bet_type)


# =============================================================================
# OUTPUT
# =============================================================================

class PassKind:
    NO_EDGE = "no_edge"
    DATA_MISSING = "data_missing"
    COMPUTATION_FAULT = "computation_fault"
    INELIGIBLE = "ineligible"
    DUPLICATE = "duplicate"
    BUDGET = "budget"


@dataclass(frozen=True)
class PassRecord:
    game_id: str
    reason: str
    stage: str
    kind: str = PassKind.NO_EDGE

    def to_row(self) -> Dict[str, Any]:
        return {
            "game_id": self.game_id,
            "stage": self.stage,
            "kind": self.kind,
            "reason": self.reason,
        }


@dataclass
class Pick:
    game_id: str
    pick_type: str
    selection: str
    odds: int
    confidence: float
    units: float
    policy: str = ""
    factors: List[Dict[str, Any]] = field(default_factory=list)
    reasoning: List[str] = field(default_factory=list)

    def to_row(self) -> Dict[str, Any]:
        return {
            "game_id": self.game_id,
            "pick_type": self.pick_type,
            "selection": self.selection,
            "odds": self.odds,
            "confidence": round(self.confidence, 2),
            "units": self.units,
            "policy": self.policy,
            "top_factors": "; ".join(
                f"{f['name']}={f['contribution']:+.2f}" for f in self.factors[:3]
            ),
            "reasoning": " | ".join(self.reasoning),
        }
