"""Optional qualitative research collaborator."""

from typing import Optional
import asyncio
import logging

from sharpcap.ingestion.base import call_provider
from sharpcap.schema import Factor, Game

logger = logging.getLogger(__name__)


class ResearchProvider:
    """Returns at most one points-unit Factor per game; positive favors home."""

    def fetch(self, game: Game) -> Optional[Factor]:
        raise NotImplementedError


async def fetch_research(
    provider: Optional[ResearchProvider],
    game: Game,
    timeout_seconds: float,
) -> Optional[Factor]:
    """
    Ask the provider for a research factor, giving up after ``timeout_seconds``.

    Timeouts and provider errors leave the factor absent; they never fail the game.
    """
    if provider is None:
        return None
    try:
        factor = await asyncio.wait_for(call_provider(provider.fetch, game), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning("Research for %s timed out after %.1fs", game.game_id, timeout_seconds)
        return None
    except Exception as e:
        logger.warning("Research for %s failed: %s", game.game_id, e)
        return None
    if factor is not None and not isinstance(factor, Factor):
        logger.warning("Research for %s returned %s, ignoring", game.game_id, type(factor).__name__)
        return None
    return factor
