"""Decision policy: eligibility, duplicates, thresholds and sizing."""

from sharpcap.policy.decision import DecisionPolicy, pick_type_for, selection_text
from sharpcap.policy.duplicates import ExistingPicks, normalize_bet_type
from sharpcap.policy.registry import PolicyRegistry
from sharpcap.policy.timing import TimingResult, filter_eligible_games, validate_game_timing

__all__ = [
    "DecisionPolicy",
    "ExistingPicks",
    "PolicyRegistry",
    "TimingResult",
    "filter_eligible_games",
    "normalize_bet_type",
    "pick_type_for",
    "selection_text",
    "validate_game_timing",
]
