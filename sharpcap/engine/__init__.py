"""Reliability weighting, aggregation and score prediction."""

from sharpcap.engine.aggregator import FactorAggregator, effect_to_probability, meets_threshold
from sharpcap.engine.prediction import ScoreModel
from sharpcap.engine.reliability import calibrate, deduplicate, reliability, residualize

__all__ = [
    "FactorAggregator",
    "ScoreModel",
    "calibrate",
    "deduplicate",
    "effect_to_probability",
    "meets_threshold",
    "reliability",
    "residualize",
]
