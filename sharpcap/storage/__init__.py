"""Storage and caching."""

from sharpcap.storage.cache import CacheStore, MemoryCache

__all__ = ["CacheStore", "MemoryCache"]
