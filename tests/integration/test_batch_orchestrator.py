"""Integration tests for the batch orchestrator.

Runs whole slates through the pipeline with fake collaborators to check
budget truncation, failure isolation and graceful degradation.
"""

import asyncio

import pytest

from sharpcap.batch import BatchOrchestrator, games_from_payload
from sharpcap.config import Config, policy_preset
from sharpcap.ops import InMemoryMetricsRecorder
from sharpcap.policy import DecisionPolicy
from sharpcap.constants import HOME
from sharpcap.schema import InjuredPlayer, InjuryReport, PassKind, Pick
from tests.fixtures.sample_slate import default_odds, team_stats_dict
from tests.mocks import (
    ExplodingResearchProvider,
    FailingInjuryProvider,
    FixedResearchProvider,
    MockStatsProvider,
    ScriptedPolicy,
    SlowResearchProvider,
)

EVEN_STATS = (team_stats_dict(), team_stats_dict())


def _orchestrator(clock, policy=None, stats=None, metrics=None, **kwargs):
    config = kwargs.pop("config", None) or Config(max_picks=3, research_timeout_seconds=0.05)
    return BatchOrchestrator(
        policy=policy or DecisionPolicy(policy_preset("baseline")),
        stats_provider=stats or MockStatsProvider(default=EVEN_STATS),
        config=config,
        metrics=metrics,
        clock=clock,
        **kwargs,
    )


class ConcurrencyTracker(MockStatsProvider):
    """Async stats provider that records how many fetches overlap."""

    def __init__(self, **kwargs):
        super().__init__(default=EVEN_STATS, **kwargs)
        self.active = 0
        self.peak = 0

    async def fetch(self, game):
        self.active += 1
        self.peak = max(self.peak, self.active)
        await asyncio.sleep(0.01)
        self.active -= 1
        return MockStatsProvider.fetch(self, game)


class TestBudget:
    """Top picks by confidence survive; the rest become budget passes."""

    @pytest.mark.asyncio
    async def test_truncates_to_top_confidences(self, make_game, clock):
        games = [make_game(f"g{i}") for i in range(10)]
        policy = ScriptedPolicy({f"g{i}": 6.0 + 0.3 * i for i in range(10)})
        metrics = InMemoryMetricsRecorder()
        result = await _orchestrator(clock, policy=policy, metrics=metrics).run(games, max_picks=3)

        assert [p.game_id for p in result.picks] == ["g9", "g8", "g7"]
        confidences = [p.confidence for p in result.picks]
        assert confidences == sorted(confidences, reverse=True)

        budget_passes = [p for p in result.passes if p.kind == PassKind.BUDGET]
        assert len(budget_passes) == 7
        assert {p.game_id for p in budget_passes} == {f"g{i}" for i in range(7)}
        assert metrics.counter("picks") == 3
        assert metrics.counter("passes.budget") == 7
        assert metrics.counter("games.total") == 10

    @pytest.mark.asyncio
    async def test_ties_break_on_game_id(self, make_game, clock):
        games = [make_game(gid) for gid in ("b", "c", "a")]
        policy = ScriptedPolicy({"a": 8.0, "b": 8.0, "c": 8.0})
        result = await _orchestrator(clock, policy=policy).run(games, max_picks=2)
        assert [p.game_id for p in result.picks] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_default_budget_from_config(self, make_game, clock):
        games = [make_game(f"g{i}") for i in range(5)]
        policy = ScriptedPolicy({f"g{i}": 7.0 for i in range(5)})
        result = await _orchestrator(clock, policy=policy).run(games)
        assert len(result.picks) == 3

    @pytest.mark.asyncio
    async def test_zero_budget(self, make_game, clock):
        policy = ScriptedPolicy({"g1": 9.0})
        result = await _orchestrator(clock, policy=policy).run([make_game()], max_picks=0)
        assert result.picks == []
        assert result.passes[0].kind == PassKind.BUDGET


class TestRepeatedGames:
    @pytest.mark.asyncio
    async def test_repeated_game_id_analyzed_once(self, make_game, clock):
        stats = MockStatsProvider(default=EVEN_STATS)
        metrics = InMemoryMetricsRecorder()
        games = [make_game("g1"), make_game("g1"), make_game("g2")]
        policy = ScriptedPolicy({"g1": 8.0, "g2": 7.0})
        result = await _orchestrator(clock, policy=policy, stats=stats, metrics=metrics).run(games)

        assert [p.game_id for p in result.picks] == ["g1", "g2"]
        assert len(result.passes) == 1
        repeat = result.passes[0]
        assert (repeat.game_id, repeat.kind, repeat.stage) == ("g1", PassKind.DUPLICATE, "input")
        assert sorted(stats.calls) == ["g1", "g2"]
        assert metrics.counter("games.total") == 3
        assert metrics.counter("passes.duplicate") == 1

    @pytest.mark.asyncio
    async def test_repeated_game_with_real_policy_yields_one_pick(self, make_game, clock):
        game = make_game(odds=default_odds(total_line=190.0))
        result = await _orchestrator(clock).run([game, game])
        assert len(result.picks) == 1
        assert [p.kind for p in result.passes] == [PassKind.DUPLICATE]


class TestFailureIsolation:
    @pytest.mark.asyncio
    async def test_bad_game_does_not_sink_batch(self, make_game, clock):
        broken = (team_stats_dict(pace=-1.0), team_stats_dict())
        stats = MockStatsProvider(by_game={"bad": broken}, default=EVEN_STATS)
        games = [make_game("ok1"), make_game("bad"), make_game("ok2")]
        policy = ScriptedPolicy({"ok1": 7.0, "bad": 9.0, "ok2": 8.0})
        orchestrator = _orchestrator(clock, policy=policy, stats=stats)
        result = await orchestrator.run(games)

        assert [p.game_id for p in result.picks] == ["ok2", "ok1"]
        fault = next(p for p in result.passes if p.game_id == "bad")
        assert fault.kind == PassKind.COMPUTATION_FAULT
        assert fault.stage == "analysis"
        assert any(e.startswith("bad:") for e in result.errors)

    @pytest.mark.asyncio
    async def test_ineligible_game_skips_collaborators(self, make_game, clock):
        stats = MockStatsProvider(default=EVEN_STATS)
        games = [make_game("soon", minutes_until_start=5), make_game("later")]
        result = await _orchestrator(clock, stats=stats).run(games)

        timing = next(p for p in result.passes if p.game_id == "soon")
        assert timing.kind == PassKind.INELIGIBLE
        assert timing.stage == "timing"
        assert timing.reason == "Game starting in 5 minutes (< 15 min buffer)"
        assert stats.calls == ["later"]

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, make_game, clock):
        tracker = ConcurrencyTracker()
        config = Config(max_concurrency=2)
        games = [make_game(f"g{i}") for i in range(8)]
        await _orchestrator(clock, stats=tracker, config=config).run(games)
        assert tracker.peak <= 2
        assert len(tracker.calls) == 8


class TestDegradation:
    """Collaborator failures degrade a game instead of failing it."""

    @pytest.mark.asyncio
    async def test_stats_failure_passes_as_data_missing(self, make_game, clock):
        stats = MockStatsProvider(default=EVEN_STATS, failing={"g1"})
        metrics = InMemoryMetricsRecorder()
        result = await _orchestrator(clock, stats=stats, metrics=metrics).run([make_game()])

        record = result.passes[0]
        assert record.kind == PassKind.DATA_MISSING
        assert record.stage == "stats"
        assert "no stats for g1" in record.reason
        assert any("g1: stats:" in e for e in result.errors)
        assert metrics.counter("fallback.stats") == 1
        assert metrics.counter("games.analyzed") == 1

    @pytest.mark.asyncio
    async def test_league_average_game_never_picks_on_wide_total(self, make_game, clock):
        stats = MockStatsProvider(default=EVEN_STATS, failing={"g1"})
        game = make_game(odds=default_odds(total_line=204.0))
        result = await _orchestrator(clock, stats=stats).run([game])

        assert result.picks == []
        assert [p.kind for p in result.passes] == [PassKind.DATA_MISSING]

    @pytest.mark.asyncio
    async def test_injury_failure_disables_factor(self, make_game, clock):
        metrics = InMemoryMetricsRecorder()
        orchestrator = _orchestrator(
            clock, metrics=metrics, injury_provider=FailingInjuryProvider(),
        )
        result = await orchestrator.run([make_game()])

        assert len(result.picks) + len(result.passes) == 1
        assert all(p.kind != PassKind.COMPUTATION_FAULT for p in result.passes)
        assert any("injuries" in e and "503" in e for e in result.errors)
        assert metrics.counter("fallback.injuries") == 1

    @pytest.mark.asyncio
    async def test_research_timeout_leaves_factor_absent(self, make_game, clock):
        metrics = InMemoryMetricsRecorder()
        orchestrator = _orchestrator(
            clock, metrics=metrics, research_provider=SlowResearchProvider(delay=5.0),
        )
        result = await orchestrator.run([make_game()])

        assert metrics.counter("research.absent") == 1
        assert metrics.counter("games.analyzed") == 1
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_research_error_leaves_factor_absent(self, make_game, clock):
        metrics = InMemoryMetricsRecorder()
        orchestrator = _orchestrator(
            clock, metrics=metrics, research_provider=ExplodingResearchProvider(),
        )
        await orchestrator.run([make_game()])
        assert metrics.counter("research.absent") == 1

    @pytest.mark.asyncio
    async def test_research_factor_reaches_spread_breakdown(self, make_game, clock):
        orchestrator = _orchestrator(clock, research_provider=FixedResearchProvider())
        bundle, injuries, injury_error, research = await orchestrator._gather_inputs(make_game(), [])
        analysis = orchestrator.analyze(make_game(), bundle, injuries, injury_error, research)

        spread_names = [f["name"] for f in analysis.factors["spread"]]
        total_names = [f["name"] for f in analysis.factors["total"]]
        assert "Sharp Money Report" in spread_names
        assert "Sharp Money Report" not in total_names
        assert analysis.factors["moneyline"] == analysis.factors["spread"]


class TestAnalyze:
    def test_disabled_injury_factor_contributes_nothing(self, make_game, stats_bundle):
        orchestrator = _orchestrator(lambda: None)
        analysis = orchestrator.analyze(make_game(), stats_bundle, injury_error="scraper returned 503")
        injury = next(f for f in analysis.factors["spread"] if f["name"] == "Injury Availability")
        assert injury["contribution"] == 0.0
        assert "disabled" in injury["reasoning"]

    def test_fallbacks_discount_stats_factors(self, make_game, stats_bundle):
        orchestrator = _orchestrator(lambda: None)
        clean = orchestrator.analyze(make_game(), stats_bundle)
        stats_bundle.fallbacks.append("home.blocks")
        degraded = orchestrator.analyze(make_game(), stats_bundle)

        def reliability(analysis, name):
            return next(f["reliability"] for f in analysis.factors["spread"] if f["name"] == name)

        assert reliability(degraded, "Net Rating Differential") == pytest.approx(
            0.5 * reliability(clean, "Net Rating Differential")
        )

    def test_seeded_ensemble_is_order_independent(self, make_game, clock):
        config = Config(ensemble_seed=11, ensemble_size=20)
        games = [make_game(f"g{i}") for i in range(4)]
        policy = ScriptedPolicy({})

        first = _orchestrator(clock, policy=policy, config=config)
        second = _orchestrator(clock, policy=policy, config=config)
        bundle = MockStatsProvider(default=EVEN_STATS).fetch(games[0])

        forward = [first.analyze(g, bundle).reasoning[0] for g in games]
        backward = [second.analyze(g, bundle).reasoning[0] for g in reversed(games)]
        assert forward == list(reversed(backward))

    def test_zero_factor_weight_silences_factor(self, make_game, stats_bundle):
        policy = DecisionPolicy(policy_preset("baseline", factor_weights={"net_rating": 0.0}))
        weighted = _orchestrator(lambda: None, policy=policy).analyze(make_game(), stats_bundle)
        plain = _orchestrator(lambda: None).analyze(make_game(), stats_bundle)

        def net_rating(analysis):
            return next(f for f in analysis.factors["spread"] if f["name"] == "Net Rating Differential")

        assert net_rating(plain)["contribution"] != 0.0
        assert net_rating(weighted)["contribution"] == 0.0
        assert net_rating(weighted)["weight"] == 0.0

    def test_injured_center_leans_total_over(self, make_game, stats_bundle):
        report = InjuryReport(
            players=[
                InjuredPlayer("Rim Protector", HOME, "Out", ppg=8.0, mpg=32.0,
                              position="C", blocks=2.5, steals=1.0),
            ],
            source="mock_injuries",
        )
        analysis = _orchestrator(lambda: None).analyze(make_game(), stats_bundle, injuries=report)
        scoring = next(f for f in analysis.factors["total"] if f["name"] == "Injury Scoring Impact")
        assert scoring["contribution"] > 0
        assert "Injury Scoring Impact" not in [f["name"] for f in analysis.factors["spread"]]

    def test_totals_breakdown_carries_rest_and_injury_factors(self, make_game, stats_bundle):
        analysis = _orchestrator(lambda: None).analyze(
            make_game(), stats_bundle, injury_error="scraper returned 503"
        )
        totals = {f["name"]: f for f in analysis.factors["total"]}
        assert {"Rest Advantage", "Injury Scoring Impact"} <= set(totals)
        assert totals["Injury Scoring Impact"]["contribution"] == 0.0

    def test_reasoning_prices_scored_markets(self, make_game, stats_bundle):
        analysis = _orchestrator(lambda: None).analyze(make_game(), stats_bundle)
        pricing = [line for line in analysis.reasoning if line.startswith("Pricing ")]
        assert any(line.startswith("Pricing total ") for line in pricing)
        assert all("EV " in line for line in pricing)


class TestSyncWrapperAndPayload:
    def test_run_batch(self, make_game, clock):
        policy = ScriptedPolicy({"g1": 7.0})
        result = _orchestrator(clock, policy=policy).run_batch([make_game()], existing={"g9": ["total"]})
        assert isinstance(result.picks[0], Pick)
        assert result.summary() == {"picks": 1, "passes": 0, "pass_kinds": {}, "errors": 0}

    def test_games_from_payload_rejects_malformed(self):
        payload = [
            {
                "game_id": "good",
                "home_team": "Boston Celtics",
                "away_team": "New York Knicks",
                "start_time": "2025-01-15T20:00:00Z",
                "odds": default_odds(),
            },
            {"game_id": "nohome", "away_team": "X", "start_time": "2025-01-15T20:00:00Z"},
            {"game_id": "curl", "sport": "curling", "home_team": "A", "away_team": "B",
             "start_time": "2025-01-15T20:00:00Z"},
        ]
        games, rejected = games_from_payload(payload)
        assert [g.game_id for g in games] == ["good"]
        assert [r.game_id for r in rejected] == ["nohome", "curl"]
        assert all(r.kind == PassKind.INELIGIBLE and r.stage == "input" for r in rejected)
