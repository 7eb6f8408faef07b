"""Collaborators that supply stats, injuries and research for a game."""

from sharpcap.ingestion.base import call_provider
from sharpcap.ingestion.injuries import InjuryProvider, StaticInjuryProvider
from sharpcap.ingestion.research import ResearchProvider, fetch_research
from sharpcap.ingestion.stats import (
    StaticStatsProvider,
    StatsProvider,
    fill_fallbacks,
    league_average_bundle,
)

__all__ = [
    "InjuryProvider",
    "ResearchProvider",
    "StaticInjuryProvider",
    "StaticStatsProvider",
    "StatsProvider",
    "call_provider",
    "fetch_research",
    "fill_fallbacks",
    "league_average_bundle",
]
