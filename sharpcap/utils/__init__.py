"""Utility helpers."""

from sharpcap.utils.odds import (
    american_to_decimal,
    american_to_implied_prob,
    expected_value,
    normal_cdf,
)

__all__ = [
    "american_to_decimal",
    "american_to_implied_prob",
    "expected_value",
    "normal_cdf",
]
