"""Slate-level orchestration."""

from sharpcap.batch.orchestrator import BatchOrchestrator, BatchResult, GameAnalysis, games_from_payload

__all__ = ["BatchOrchestrator", "BatchResult", "GameAnalysis", "games_from_payload"]
