"""Cachestore module - Entity cache backends."""

from entitystore_core.cachestore.base import Cachestore, CacheStats
from entitystore_core.cachestore.nostore import Nostore
from entitystore_core.cachestore.memory import MemoryCachestore
from entitystore_core.cachestore.redis import RedisCachestore, RedisCacheConfig

__all__ = [
    "Cachestore",
    "CacheStats",
    "Nostore",
    "MemoryCachestore",
    "RedisCachestore",
    "RedisCacheConfig",
]
