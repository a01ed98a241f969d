"""EntityStore Cachestore - Abstract Entity Cache Interface.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from entitystore_core.model.key import Key, PropertyList

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Cachestore statistics.

    Attributes:
        hits: Keys found by get_entities
        misses: Keys not found by get_entities
        sets: Entries written
        deletes: Keys deleted
        oversized: Entries rejected for exceeding the size limit
        errors: Number of errors
    """

    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    oversized: int = 0
    errors: int = 0
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def record_error(self, error: str) -> None:
        """Record an error."""
        self.errors += 1
        self.last_error = error
        self.last_error_at = datetime.now()


class Cachestore(ABC):
    """Abstract entity cache.

    A cachestore maps entity keys to property lists. Implementations:
    - Nostore: Caching disabled
    - MemoryCachestore: In-process dict
    - RedisCachestore: Redis backend

    Failures are reported by raising CachestoreError (or its subclass
    CacheSizeExceededError). The entity store treats every cachestore
    failure as a warning and falls back to the backing store.
    """

    def __init__(self):
        self._stats = CacheStats()

    @abstractmethod
    def get_entities(self, keys: List[Key]) -> Dict[Key, PropertyList]:
        """Get cached property lists.

        Args:
            keys: Keys to look up

        Returns:
            Dict of key -> property list, containing only keys present
        """
        pass

    @abstractmethod
    def set_entities(self, entries: Dict[Key, PropertyList]) -> None:
        """Store property lists.

        Entries within the size limit are stored even when others in the
        same call are rejected.

        Args:
            entries: Dict of key -> property list

        Raises:
            CacheSizeExceededError: If any entry exceeds the size limit
        """
        pass

    @abstractmethod
    def delete_entities(self, keys: List[Key]) -> None:
        """Delete cached entries.

        Args:
            keys: Keys to delete
        """
        pass

    def get_stats(self) -> CacheStats:
        """Get cachestore statistics."""
        return self._stats

    def reset_stats(self) -> None:
        """Reset statistics."""
        self._stats = CacheStats()

    def close(self) -> None:
        """Release backend resources."""


__all__ = ["Cachestore", "CacheStats"]
