"""Possession-based score prediction, formed before looking at the market."""

from typing import List, Optional
import logging
import math

import numpy as np

from sharpcap.constants import (
    BACK_TO_BACK_PENALTY,
    HOME_COURT_ADVANTAGE,
    LEAGUE_DRTG,
    PACE_AWAY_WEIGHT,
    PACE_HOME_WEIGHT,
)
from sharpcap.exceptions import ComputationError
from sharpcap.schema import ScorePrediction, StatsBundle

logger = logging.getLogger(__name__)


class ScoreModel:
    """
    Predict both scores from pace and ratings, then shift by factor edges.

    ``spread_adjustment`` moves the margin (positive favors home) and
    ``total_adjustment`` moves the total; each is split evenly across the
    two scores.

    When ``rng`` is given and ``ensemble_size`` > 0, the model also draws
    ``ensemble_size`` perturbed variants and averages them, standing in for a
    panel of models that disagree. The generator is injected so a fixed seed
    reproduces the same prediction.
    """

    def __init__(
        self,
        home_court_advantage: float = HOME_COURT_ADVANTAGE,
        back_to_back_penalty: float = BACK_TO_BACK_PENALTY,
        league_drtg: float = LEAGUE_DRTG,
        rng: Optional[np.random.Generator] = None,
        ensemble_size: int = 0,
        ensemble_noise: float = 1.5,
    ) -> None:
        self.home_court_advantage = home_court_advantage
        self.back_to_back_penalty = back_to_back_penalty
        self.league_drtg = league_drtg
        self._rng = rng
        self.ensemble_size = ensemble_size if rng is not None else 0
        self.ensemble_noise = ensemble_noise

    def predict(
        self,
        bundle: StatsBundle,
        spread_adjustment: float = 0.0,
        total_adjustment: float = 0.0,
    ) -> ScorePrediction:
        away, home = bundle.away, bundle.home
        values = (away.pace, home.pace, away.ortg, home.ortg, away.drtg, home.drtg)
        if any(v is None or not math.isfinite(v) or v <= 0 for v in values):
            raise ComputationError("prediction", "pace and ratings must be positive numbers")

        reasoning: List[str] = []
        pace = home.pace * PACE_HOME_WEIGHT + away.pace * PACE_AWAY_WEIGHT
        home_score = pace * (home.ortg / 100.0) * (away.drtg / self.league_drtg)
        away_score = pace * (away.ortg / 100.0) * (home.drtg / self.league_drtg)
        reasoning.append(
            f"Base: pace {pace:.1f}, {away_score:.1f} away / {home_score:.1f} home"
        )

        home_score += self.home_court_advantage
        reasoning.append(f"Home court +{self.home_court_advantage:.1f}")
        if home.back_to_back:
            home_score -= self.back_to_back_penalty
            reasoning.append(f"Home back-to-back -{self.back_to_back_penalty:.1f}")
        if away.back_to_back:
            away_score -= self.back_to_back_penalty
            reasoning.append(f"Away back-to-back -{self.back_to_back_penalty:.1f}")

        if spread_adjustment:
            home_score += spread_adjustment / 2.0
            away_score -= spread_adjustment / 2.0
            reasoning.append(f"Factor margin adjustment {spread_adjustment:+.2f}")
        if total_adjustment:
            home_score += total_adjustment / 2.0
            away_score += total_adjustment / 2.0
            reasoning.append(f"Factor total adjustment {total_adjustment:+.2f}")

        if self.ensemble_size > 0:
            home_score, away_score = self._ensemble(home_score, away_score)
            reasoning.append(
                f"Ensemble of {self.ensemble_size} variants (noise {self.ensemble_noise:.1f})"
            )

        if bundle.fallbacks:
            reasoning.append(f"League-average fallback for: {', '.join(sorted(set(bundle.fallbacks)))}")

        return ScorePrediction(
            home_score=float(home_score),
            away_score=float(away_score),
            reasoning=reasoning,
        )

    def _ensemble(self, home_score: float, away_score: float):
        noise = self._rng.normal(0.0, self.ensemble_noise, size=(self.ensemble_size, 2))
        variants = np.array([home_score, away_score]) + noise
        means = variants.mean(axis=0)
        return float(means[0]), float(means[1])
