"""
Batch orchestration.

Runs every game of a slate through the pipeline with bounded concurrency:

    time gate -> stats / injuries / research (concurrent) -> factors
    -> aggregation -> score prediction -> market comparator -> policy

Collaborator failures degrade a game instead of failing it. Missing stat
fields fall back to league averages; a failed stats fetch puts both teams
at league average, and the game is analyzed but passes as ``data_missing``.
A failed injury fetch disables the injury factors and research that times
out is simply absent. A game id listed twice is analyzed once. Anything that still
goes wrong inside one game becomes a ``computation_fault`` pass and the
rest of the batch carries on.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
import asyncio
import logging
import time
import zlib

import numpy as np

from sharpcap.config import Config, MarketTiers
from sharpcap.constants import (
    CATEGORY_INJURIES,
    HOME,
    MONEYLINE,
    OVER,
    SPREAD,
    TOTAL,
    UNIT_POINTS,
)
from sharpcap.engine.aggregator import FactorAggregator, price_selection
from sharpcap.engine.prediction import ScoreModel
from sharpcap.exceptions import InvalidGameError
from sharpcap.factors import (
    SIGNAL_CATEGORIES,
    compute_spread_factors,
    compute_totals_factors,
    injury_availability,
    injury_scoring_impact,
)
from sharpcap.ingestion.base import call_provider
from sharpcap.ingestion.injuries import InjuryProvider
from sharpcap.ingestion.research import ResearchProvider, fetch_research
from sharpcap.ingestion.stats import (
    LEAGUE_AVERAGE_SOURCE,
    StatsProvider,
    fill_fallbacks,
    league_average_bundle,
)
from sharpcap.market import comparator, lines
from sharpcap.ops.metrics import MetricsRecorder, NullMetricsRecorder
from sharpcap.policy.decision import DecisionPolicy
from sharpcap.policy.duplicates import ExistingPicks
from sharpcap.policy.timing import validate_game_timing
from sharpcap.schema import (
    ConfidenceResult,
    Factor,
    Game,
    InjuryReport,
    PassKind,
    PassRecord,
    Pick,
    ScorePrediction,
    StatsBundle,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Injury reports describe the current roster, not a season sample
INJURY_REPORT_SAMPLE = 30.0
# Stats-derived factors are discounted when any field came from league averages
FALLBACK_DATA_QUALITY = 0.5


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BatchResult:
    picks: List[Pick] = field(default_factory=list)
    passes: List[PassRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        kinds: Dict[str, int] = {}
        for record in self.passes:
            kinds[record.kind] = kinds.get(record.kind, 0) + 1
        return {
            "picks": len(self.picks),
            "passes": len(self.passes),
            "pass_kinds": kinds,
            "errors": len(self.errors),
        }


@dataclass
class GameAnalysis:
    """Everything computed for one game before the policy looks at it."""

    confidences: ConfidenceResult
    factors: Dict[str, List[Dict[str, Any]]]
    reasoning: List[str]


def missing_stats_reason(bundle: StatsBundle) -> Optional[str]:
    """Why the bundle holds league averages instead of team stats, or None."""
    if bundle.source != LEAGUE_AVERAGE_SOURCE:
        return None
    return "; ".join(bundle.errors) or "team stats unavailable"


def games_from_payload(payload: Iterable[Mapping[str, Any]]) -> Tuple[List[Game], List[PassRecord]]:
    """Parse raw game dicts; malformed games become ``ineligible`` passes."""
    games: List[Game] = []
    rejected: List[PassRecord] = []
    for raw in payload:
        try:
            games.append(Game.from_dict(raw))
        except InvalidGameError as e:
            logger.warning("Skipping game: %s", e)
            rejected.append(PassRecord(e.game_id or "?", str(e), "input", PassKind.INELIGIBLE))
    return games, rejected


class BatchOrchestrator:
    def __init__(
        self,
        policy: DecisionPolicy,
        stats_provider: StatsProvider,
        injury_provider: Optional[InjuryProvider] = None,
        research_provider: Optional[ResearchProvider] = None,
        config: Optional[Config] = None,
        metrics: Optional[MetricsRecorder] = None,
        clock: Optional[Clock] = None,
        tiers: Optional[MarketTiers] = None,
    ) -> None:
        self.policy = policy
        self.stats_provider = stats_provider
        self.injury_provider = injury_provider
        self.research_provider = research_provider
        self.config = config or Config()
        self.metrics = metrics or NullMetricsRecorder()
        self._clock = clock or _utc_now
        self.tiers = tiers or MarketTiers()

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    async def run(
        self,
        games: Sequence[Game],
        existing: Union[ExistingPicks, Mapping[str, Iterable[str]], None] = None,
        max_picks: Optional[int] = None,
    ) -> BatchResult:
        if not isinstance(existing, ExistingPicks):
            existing = ExistingPicks.from_mapping(existing)
        budget = self.config.max_picks if max_picks is None else max_picks
        semaphore = asyncio.Semaphore(self.config.max_concurrency)
        result = BatchResult()
        self.metrics.increment("games.total", len(games))
        games = self._unique_games(games, result.passes)

        async def run_with_limit(game: Game):
            async with semaphore:
                return await self._process_game(game, existing, result.errors)

        logger.info("Running %d games with policy %s", len(games), self.policy.name)
        outcomes = await asyncio.gather(
            *(run_with_limit(game) for game in games),
            return_exceptions=True,
        )

        picks: List[Pick] = []
        for game, outcome in zip(games, outcomes):
            if isinstance(outcome, Pick):
                picks.append(outcome)
            elif isinstance(outcome, PassRecord):
                result.passes.append(outcome)
            else:
                result.errors.append(f"{game.game_id}: {outcome}")
                result.passes.append(
                    PassRecord(game.game_id, str(outcome), "batch", PassKind.COMPUTATION_FAULT)
                )

        picks.sort(key=lambda p: (-p.confidence, p.game_id, p.pick_type))
        result.picks = picks[:budget]
        for dropped in picks[budget:]:
            result.passes.append(
                PassRecord(
                    dropped.game_id,
                    f"{dropped.pick_type} {dropped.confidence:.1f} outside the top {budget} picks",
                    "budget",
                    PassKind.BUDGET,
                )
            )

        self.metrics.increment("picks", len(result.picks))
        for record in result.passes:
            self.metrics.increment(f"passes.{record.kind}")
        logger.info(
            "Batch done: %d picks, %d passes, %d errors",
            len(result.picks),
            len(result.passes),
            len(result.errors),
        )
        return result

    @staticmethod
    def _unique_games(games: Sequence[Game], passes: List[PassRecord]) -> List[Game]:
        unique: List[Game] = []
        seen = set()
        for game in games:
            if game.game_id in seen:
                logger.warning("Game %s listed more than once; keeping the first", game.game_id)
                passes.append(PassRecord(
                    game.game_id,
                    "Game listed more than once in the slate",
                    "input",
                    PassKind.DUPLICATE,
                ))
                continue
            seen.add(game.game_id)
            unique.append(game)
        return unique

    def run_batch(
        self,
        games: Sequence[Game],
        existing: Union[ExistingPicks, Mapping[str, Iterable[str]], None] = None,
        max_picks: Optional[int] = None,
    ) -> BatchResult:
        return asyncio.run(self.run(games, existing, max_picks))

    # ------------------------------------------------------------------
    # One game
    # ------------------------------------------------------------------

    async def _process_game(
        self,
        game: Game,
        existing: ExistingPicks,
        errors: List[str],
    ) -> Union[Pick, PassRecord]:
        timing = validate_game_timing(
            game.start_time,
            self.config.time_buffer_minutes,
            now=self._clock(),
        )
        if not timing.is_valid:
            logger.info("Skipping %s: %s", game.game_id, timing.reason)
            return PassRecord(game.game_id, timing.reason or "not eligible", "timing", PassKind.INELIGIBLE)

        started = time.perf_counter()
        try:
            bundle, injuries, injury_error, research = await self._gather_inputs(game, errors)
            analysis = self.analyze(game, bundle, injuries, injury_error, research)
            decision = self.policy.decide(
                game,
                analysis.confidences,
                existing,
                factors=analysis.factors,
                reasoning=analysis.reasoning,
                data_missing=missing_stats_reason(bundle),
            )
        except Exception as e:
            logger.exception("Analysis failed for %s", game.game_id)
            errors.append(f"{game.game_id}: {e}")
            return PassRecord(game.game_id, str(e), "analysis", PassKind.COMPUTATION_FAULT)
        finally:
            self.metrics.timing("game", (time.perf_counter() - started) * 1000.0)

        self.metrics.increment("games.analyzed")
        return decision

    async def _gather_inputs(
        self,
        game: Game,
        errors: List[str],
    ) -> Tuple[StatsBundle, Optional[InjuryReport], Optional[str], Optional[Factor]]:
        stats_call = call_provider(self.stats_provider.fetch, game)
        if self.injury_provider is not None:
            injury_call = call_provider(self.injury_provider.fetch, game)
        else:
            injury_call = _absent()
        research_call = fetch_research(
            self.research_provider,
            game,
            self.config.research_timeout_seconds,
        )
        stats, injuries, research = await asyncio.gather(
            stats_call,
            injury_call,
            research_call,
            return_exceptions=True,
        )

        if isinstance(stats, BaseException):
            logger.warning("Stats unavailable for %s, using league averages: %s", game.game_id, stats)
            errors.append(f"{game.game_id}: stats: {stats}")
            self.metrics.increment("fallback.stats")
            bundle = league_average_bundle(error=str(stats))
        else:
            bundle = fill_fallbacks(stats)

        injury_error: Optional[str] = None
        if isinstance(injuries, BaseException):
            logger.warning("Injuries unavailable for %s: %s", game.game_id, injuries)
            errors.append(f"{game.game_id}: injuries: {injuries}")
            self.metrics.increment("fallback.injuries")
            injury_error = str(injuries)
            injuries = None
        elif injuries is None:
            injury_error = "no injury provider"

        if isinstance(research, BaseException) or research is None:
            if self.research_provider is not None:
                self.metrics.increment("research.absent")
            research = None

        return bundle, injuries, injury_error, research

    def analyze(
        self,
        game: Game,
        bundle: StatsBundle,
        injuries: Optional[InjuryReport] = None,
        injury_error: Optional[str] = None,
        research: Optional[Factor] = None,
    ) -> GameAnalysis:
        """Factors -> aggregation -> prediction -> market comparison for one game."""
        config = self.config
        spread_line = lines.spread_line(game)
        total_line = lines.total_line(game)
        quality = FALLBACK_DATA_QUALITY if bundle.fallbacks else 1.0
        sample = float(bundle.sample_size)

        spread_agg = FactorAggregator(
            game.sport, UNIT_POINTS, config.learned_weights, config.max_edge_points
        )
        for signal in compute_spread_factors(bundle, spread_line):
            spread_agg.add_signal(
                signal,
                SIGNAL_CATEGORIES[signal.key],
                favor=HOME,
                weight=self.policy.factor_weight(signal.key),
                sample_size=sample,
                data_quality=quality,
                source=bundle.source,
            )
        injury_signal = injury_availability(injuries, error=injury_error)
        spread_agg.add_signal(
            injury_signal,
            CATEGORY_INJURIES,
            favor=HOME,
            weight=self.policy.factor_weight(injury_signal.key),
            sample_size=INJURY_REPORT_SAMPLE,
            source=injuries.source if injuries else "",
        )
        if research is not None:
            spread_agg.add_factor(research)
        spread_agg.deduplicate()

        totals_agg = FactorAggregator(
            game.sport, UNIT_POINTS, config.learned_weights, config.max_edge_points
        )
        for signal in compute_totals_factors(bundle):
            totals_agg.add_signal(
                signal,
                SIGNAL_CATEGORIES[signal.key],
                favor=OVER,
                weight=self.policy.factor_weight(signal.key),
                sample_size=sample,
                data_quality=quality,
                source=bundle.source,
            )
        scoring_signal = injury_scoring_impact(injuries, error=injury_error)
        totals_agg.add_signal(
            scoring_signal,
            CATEGORY_INJURIES,
            favor=OVER,
            weight=self.policy.factor_weight(scoring_signal.key),
            sample_size=INJURY_REPORT_SAMPLE,
            source=injuries.source if injuries else "",
        )
        totals_agg.deduplicate()

        prediction = self._score_model(game).predict(
            bundle,
            spread_adjustment=spread_agg.edge(),
            total_adjustment=totals_agg.edge(),
        )
        confidences = comparator.compare(prediction, total_line, spread_line, self.tiers)

        reasoning = [f"{game.matchup}: predicted {prediction.away_score:.1f}-{prediction.home_score:.1f}"]
        reasoning.extend(prediction.reasoning)
        reasoning.extend(confidences.reasoning)
        reasoning.extend(self._pricing_notes(game, prediction, confidences, spread_line, total_line))
        reasoning.extend(spread_agg.reasoning(limit=3))
        reasoning.extend(totals_agg.reasoning(limit=3))

        spread_breakdown = spread_agg.breakdown()
        return GameAnalysis(
            confidences=confidences,
            factors={
                SPREAD: spread_breakdown,
                MONEYLINE: spread_breakdown,
                TOTAL: totals_agg.breakdown(),
            },
            reasoning=reasoning,
        )

    def _pricing_notes(
        self,
        game: Game,
        prediction: ScorePrediction,
        confidences: ConfidenceResult,
        spread_line: Optional[float],
        total_line: Optional[float],
    ) -> List[str]:
        """Win probability and EV of each scored market. Informational; the policy decides on tiers."""
        params = self.config.league_parameters()
        effects: Dict[str, float] = {MONEYLINE: prediction.margin}
        if total_line is not None:
            effects[TOTAL] = prediction.total - total_line
        if spread_line is not None:
            effects[SPREAD] = abs(prediction.margin) - abs(spread_line)

        notes = []
        for bet_type, confidence in confidences.by_type().items():
            side = confidences.side_for(bet_type)
            if confidence is None or side is None or bet_type not in effects:
                continue
            odds = lines.selection_odds(game, bet_type, side)
            if odds is None:
                continue
            priced = price_selection(bet_type, effects[bet_type], odds, params)
            notes.append(
                f"Pricing {bet_type} {side} at {odds:+d}: win {priced['probability']:.1%}, "
                f"EV {priced['ev']:+.1%} ({priced['reason']})"
            )
        return notes

    def _score_model(self, game: Game) -> ScoreModel:
        """Per-game model; the ensemble generator is seeded by (seed, game id) so order does not matter."""
        rng = None
        if self.config.ensemble_seed is not None and self.config.ensemble_size > 0:
            rng = np.random.default_rng([self.config.ensemble_seed, zlib.crc32(game.game_id.encode("utf-8"))])
        return ScoreModel(
            rng=rng,
            ensemble_size=self.config.ensemble_size,
            ensemble_noise=self.config.ensemble_noise,
        )


async def _absent() -> None:
    return None
