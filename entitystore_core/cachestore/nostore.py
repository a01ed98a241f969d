"""EntityStore Nostore - Disabled Cache.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from typing import Dict, List

from entitystore_core.cachestore.base import Cachestore
from entitystore_core.model.key import Key, PropertyList


class Nostore(Cachestore):
    """Cachestore that caches nothing.

    Used when no cachestore is configured. Every lookup is a miss and
    writes are accepted and dropped.
    """

    def get_entities(self, keys: List[Key]) -> Dict[Key, PropertyList]:
        self._stats.misses += len(keys)
        return {}

    def set_entities(self, entries: Dict[Key, PropertyList]) -> None:
        pass

    def delete_entities(self, keys: List[Key]) -> None:
        pass

    def __eq__(self, other: object) -> bool:
        return type(other) is Nostore

    def __hash__(self) -> int:
        return hash(Nostore)

    def __repr__(self) -> str:
        return "Nostore()"


__all__ = ["Nostore"]
