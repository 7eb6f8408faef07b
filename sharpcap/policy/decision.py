"""
Deterministic go/no-go decision for one game.

The policy takes the comparator's confidences and, in order:

a. drops bet types with no price or already claimed, and passes outright
   when the analysis ran on league-average stats;
b. keeps the most confident survivor (ties: total, spread, moneyline);
c. enforces the minimum confidence;
d. applies the heavy-favorite guard;
e. sizes the stake from the unit tiers.

Every rejection comes back as a PassRecord carrying a readable reason.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union
import logging

from sharpcap.config import PolicyConfig
from sharpcap.constants import (
    BET_TYPE_PRIORITY,
    HOME,
    OVER,
    SPREAD,
    TOTAL,
    TOTAL_OVER,
    TOTAL_UNDER,
)
from sharpcap.market import lines
from sharpcap.policy.duplicates import ExistingPicks
from sharpcap.schema import ConfidenceResult, Game, PassKind, PassRecord, Pick

logger = logging.getLogger(__name__)

Decision = Union[Pick, PassRecord]


class _Candidate:
    __slots__ = ("bet_type", "side", "confidence", "odds")

    def __init__(self, bet_type: str, side: str, confidence: float, odds: int) -> None:
        self.bet_type = bet_type
        self.side = side
        self.confidence = confidence
        self.odds = odds

    def sort_key(self) -> Tuple[float, int]:
        return (-self.confidence, BET_TYPE_PRIORITY.index(self.bet_type))


def pick_type_for(bet_type: str, side: str) -> str:
    if bet_type == TOTAL:
        return TOTAL_OVER if side == OVER else TOTAL_UNDER
    return bet_type


def selection_text(game: Game, bet_type: str, side: str) -> str:
    if bet_type == TOTAL:
        line = lines.total_line(game)
        return f"{side.upper()} {line:.1f}" if line is not None else side.upper()
    team = game.team_for(side)
    if bet_type == SPREAD:
        line = lines.spread_line(game)
        if line is None:
            return team
        side_line = line if side == HOME else -line
        return f"{team} {side_line:+.1f}"
    return f"{team} ML"


class DecisionPolicy:
    def __init__(self, config: Optional[PolicyConfig] = None) -> None:
        self.config = config or PolicyConfig()

    @property
    def name(self) -> str:
        return self.config.name

    def factor_weight(self, key: str) -> float:
        return self.config.factor_weights.get(key, 1.0)

    def units_for(self, confidence: float) -> float:
        for threshold, units in self.config.unit_tiers:
            if confidence >= threshold:
                return units
        return self.config.base_units

    def passes_favorite_guard(self, odds: int, confidence: float) -> bool:
        if odds <= self.config.favorite_guard_odds:
            return confidence >= self.config.favorite_guard_confidence
        return True

    def _candidates(
        self,
        game: Game,
        confidences: ConfidenceResult,
        existing: ExistingPicks,
    ) -> Tuple[List[_Candidate], List[str]]:
        candidates: List[_Candidate] = []
        claimed: List[str] = []
        for bet_type in BET_TYPE_PRIORITY:
            confidence = confidences.by_type().get(bet_type)
            side = confidences.side_for(bet_type)
            if confidence is None or side is None:
                continue
            if existing.is_claimed(game.game_id, bet_type):
                claimed.append(bet_type)
                continue
            odds = lines.selection_odds(game, bet_type, side)
            if odds is None:
                continue
            candidates.append(_Candidate(bet_type, side, confidence, odds))
        return candidates, claimed

    def decide(
        self,
        game: Game,
        confidences: ConfidenceResult,
        existing: Optional[ExistingPicks] = None,
        factors: Optional[Mapping[str, Sequence[Dict[str, Any]]]] = None,
        reasoning: Optional[Sequence[str]] = None,
        data_missing: Optional[str] = None,
    ) -> Decision:
        """
        Return a Pick for the best eligible bet type, or a PassRecord.

        ``factors`` maps bet type to its factor breakdown; the pick carries
        the breakdown of the market it lands on. A non-empty ``data_missing``
        (why the team stats are league averages) turns any pick into a
        ``data_missing`` pass.
        """
        existing = existing or ExistingPicks()
        candidates, claimed = self._candidates(game, confidences, existing)

        if not candidates:
            if claimed:
                return PassRecord(
                    game.game_id,
                    f"Already have picks on {', '.join(claimed)}; no other market available",
                    "selection",
                    PassKind.DUPLICATE,
                )
            return PassRecord(
                game.game_id,
                "No bet type has both a confidence and market odds",
                "selection",
                PassKind.DATA_MISSING,
            )

        if data_missing:
            return PassRecord(
                game.game_id,
                f"Not betting on league-average stats: {data_missing}",
                "stats",
                PassKind.DATA_MISSING,
            )

        best = sorted(candidates, key=_Candidate.sort_key)[0]
        label = f"{best.bet_type} {best.side} {best.confidence:.1f}"

        if best.confidence < self.config.min_confidence:
            return PassRecord(
                game.game_id,
                f"Best option {label} below {self.name} minimum {self.config.min_confidence:.1f}",
                "threshold",
                PassKind.NO_EDGE,
            )

        if not self.passes_favorite_guard(best.odds, best.confidence):
            return PassRecord(
                game.game_id,
                f"Heavy favorite {best.odds} needs confidence >= "
                f"{self.config.favorite_guard_confidence:.1f}, have {best.confidence:.1f}",
                "favorite_guard",
                PassKind.NO_EDGE,
            )

        units = self.units_for(best.confidence)
        trail = list(reasoning or [])
        trail.append(f"{self.name}: {label} at {best.odds:+d} -> {units:g}u")
        logger.debug("Pick %s %s (%s)", game.game_id, label, self.name)
        return Pick(
            game_id=game.game_id,
            pick_type=pick_type_for(best.bet_type, best.side),
            selection=selection_text(game, best.bet_type, best.side),
            odds=best.odds,
            confidence=best.confidence,
            units=units,
            policy=self.name,
            factors=list((factors or {}).get(best.bet_type, [])),
            reasoning=trail,
        )
