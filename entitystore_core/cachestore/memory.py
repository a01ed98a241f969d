"""EntityStore Memory Cachestore - In-Process Entity Cache.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import copy
import logging
from typing import Dict, List, Optional

from entitystore_core.cachestore.base import Cachestore
from entitystore_core.errors import CacheSizeExceededError
from entitystore_core.model.key import Key, PropertyList
from entitystore_core.protocol.serializer import Serializer, get_serializer

logger = logging.getLogger(__name__)


class MemoryCachestore(Cachestore):
    """In-memory cachestore.

    Keeps deep copies of property lists in a plain dict, so entities loaded
    from an entry never share mutable values with it. Intended for tests and
    single-threaded tools: it does no locking, so concurrent writers must
    supply their own cachestore.

    When max_value_bytes is set, each entry's serialized size is checked
    and oversized entries are rejected with CacheSizeExceededError while
    the rest of the batch is stored.

    Example:
        cache = MemoryCachestore()
        cache.set_entities({key: [Property("Value", "x")]})
        cached = cache.get_entities([key])
    """

    def __init__(
        self,
        max_value_bytes: Optional[int] = None,
        serializer: Optional[Serializer] = None,
    ):
        """Initialize memory cachestore.

        Args:
            max_value_bytes: Per-entry serialized size limit
            serializer: Serializer used to measure entry size
        """
        super().__init__()
        self.max_value_bytes = max_value_bytes
        self.serializer = serializer or get_serializer()
        self.cache: Dict[Key, PropertyList] = {}

    def get_entities(self, keys: List[Key]) -> Dict[Key, PropertyList]:
        result = {}
        for key in keys:
            props = self.cache.get(key)
            if props is not None:
                result[key] = copy.deepcopy(props)
        self._stats.hits += len(result)
        self._stats.misses += len(keys) - len(result)
        return result

    def set_entities(self, entries: Dict[Key, PropertyList]) -> None:
        oversized = []
        for key, props in entries.items():
            if self.max_value_bytes is not None and self.serializer.size_of(props) > self.max_value_bytes:
                oversized.append(key)
                continue
            self.cache[key] = copy.deepcopy(props)
            self._stats.sets += 1

        if oversized:
            self._stats.oversized += len(oversized)
            raise CacheSizeExceededError(oversized, self.max_value_bytes)

    def delete_entities(self, keys: List[Key]) -> None:
        for key in keys:
            if self.cache.pop(key, None) is not None:
                self._stats.deletes += 1

    def clear(self) -> int:
        """Clear all entries.

        Returns:
            Number cleared
        """
        count = len(self.cache)
        self.cache.clear()
        return count

    def __contains__(self, key: Key) -> bool:
        return key in self.cache

    def __len__(self) -> int:
        return len(self.cache)

    def __repr__(self) -> str:
        return f"MemoryCachestore(entries={len(self.cache)})"


__all__ = ["MemoryCachestore"]
