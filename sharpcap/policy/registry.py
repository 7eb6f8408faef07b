"""Named-policy lookup backed by an injected TTL cache."""

from typing import Callable, Optional
import logging

from sharpcap.config import PolicyConfig, policy_preset
from sharpcap.policy.decision import DecisionPolicy
from sharpcap.storage.cache import CacheStore, Clock, MemoryCache

logger = logging.getLogger(__name__)

PolicyLoader = Callable[[str], PolicyConfig]

_KEY_PREFIX = "policy:"


class PolicyRegistry:
    """
    Resolve a policy name to a DecisionPolicy, reloading after ``ttl_seconds``.

    Nothing is shared across registries: each owns the cache it is given,
    or a fresh MemoryCache driven by ``clock``.
    """

    def __init__(
        self,
        cache: Optional[CacheStore] = None,
        loader: PolicyLoader = policy_preset,
        ttl_seconds: float = 300,
        clock: Optional[Clock] = None,
    ) -> None:
        self._cache = cache if cache is not None else MemoryCache(clock=clock)
        self._loader = loader
        self.ttl_seconds = ttl_seconds
        self.loads = 0

    def get(self, name: str) -> DecisionPolicy:
        key = _KEY_PREFIX + name.lower()
        policy = self._cache.get(key)
        if policy is not None:
            return policy
        config = self._loader(name)
        self.loads += 1
        policy = DecisionPolicy(config)
        self._cache.set(key, policy, self.ttl_seconds)
        logger.debug("Loaded policy %s (load #%d)", name, self.loads)
        return policy

    def invalidate(self, name: Optional[str] = None) -> None:
        """Drop one cached policy, or all of them when ``name`` is None."""
        if name is None:
            self._cache.clear()
        else:
            self._cache.invalidate(_KEY_PREFIX + name.lower())
