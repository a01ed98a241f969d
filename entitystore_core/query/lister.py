"""EntityStore Lister - Cursor-Paged Entity Listing.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Tuple

from entitystore_core.model.key import Key
from entitystore_core.query.query import Query

if TYPE_CHECKING:
    from entitystore_core.store.entity_store import EntityStore

logger = logging.getLogger(__name__)

KeyFilter = Callable[[Key], bool]


class EntityLister:
    """Pages through the entities matching a query.

    Keys are read with a keys-only query, optionally filtered on the
    client side, and the page of entities is then loaded through the
    entity store's cache in one batch.

    Example:
        lister = EntityLister(store, Query("Invoice").order("-Total"), Invoice)
        page, cursor = lister.get_list(20)
        while cursor:
            page, cursor = lister.get_list(20, cursor)
    """

    def __init__(self, store: EntityStore, query: Query, factory: Callable[[], Any]):
        """Initialize lister.

        Args:
            store: EntityStore to read through
            query: Query selecting the entities
            factory: Creates an empty entity to load into
        """
        self.store = store
        self.query = query
        self.factory = factory
        self._filter: Optional[KeyFilter] = None

    def with_filter(self, key_filter: KeyFilter) -> EntityLister:
        """Only list entities whose key passes key_filter.

        Filtered-out keys do not count against the page limit.

        Args:
            key_filter: Function(key) -> bool

        Returns:
            Self for chaining
        """
        self._filter = key_filter
        return self

    def _collect_keys(self, limit: int, cursor: str) -> Tuple[List[Key], str]:
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")

        query = self.query
        if cursor:
            query = query.start(cursor)
        itr = self.store.run_keys(query)

        keys: List[Key] = []
        while len(keys) < limit:
            key = next(itr, None)
            if key is None:
                break
            if self._filter is not None and not self._filter(key):
                continue
            keys.append(key)

        next_cursor = ""
        if len(keys) == limit:
            position = itr.cursor()
            # A next page exists only if another result follows
            if next(itr, None) is not None:
                next_cursor = position

        logger.debug(f"Listed {len(keys)} keys of {self.query.kind}, more={bool(next_cursor)}")
        return keys, next_cursor

    def get_list(self, limit: int, cursor: str = "") -> Tuple[List[Any], str]:
        """Get one page of entities.

        Args:
            limit: Maximum entities in the page
            cursor: Cursor from the previous page, "" for the first page

        Returns:
            (entities, next_cursor); next_cursor is "" at the end of the list

        Raises:
            InvalidCursorError: If cursor cannot be decoded
            MultiError: If a listed entity could not be loaded
        """
        keys, next_cursor = self._collect_keys(limit, cursor)
        if not keys:
            return [], ""
        entities = [self.factory() for _ in keys]
        self.store.get_multi(keys, entities)
        return entities, next_cursor

    def get_key_list(self, limit: int, cursor: str = "") -> Tuple[List[Key], str]:
        """Get one page of keys.

        Same paging as get_list, without loading the entities.
        """
        return self._collect_keys(limit, cursor)


__all__ = ["EntityLister", "KeyFilter"]
