"""EntityStore - Read-Through, Write-Invalidate Entity Access.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from entitystore_core.cachestore.base import Cachestore
from entitystore_core.cachestore.nostore import Nostore
from entitystore_core.datastore.client import AggregateValue, AggregationSpec, DatastoreClient, KeyIterator
from entitystore_core.errors import CacheSizeExceededError, EntityStoreError, MultiError, NoSuchEntityError
from entitystore_core.model.codec import entity_to_properties, load_entity
from entitystore_core.model.entity import Entity, stamp_for_put
from entitystore_core.model.key import Key, PropertyList
from entitystore_core.query.query import Query
from entitystore_core.store.config import StoreConfig
from entitystore_core.store.mutation import Mutation
from entitystore_core.store.result import BatchItem, BatchResult

LOG_PREFIX = "[entitystore]"

# Keys per delete call in delete_all
DELETE_BATCH_SIZE = 500


class EntityStore:
    """Entity access over a backing store with an optional cache.

    Reads go through the cachestore first and fall back to the backing
    store for misses, caching what was fetched. Writes go to the backing
    store first and, once committed, invalidate the cached entries of
    every affected key. Cachestore failures are logged as warnings and
    never fail an operation.

    Example:
        store = EntityStore(client, cachestore=MemoryCachestore())

        account = Account(id=1)
        store.get_entity(account)

        account.name = "renamed"
        store.put_entity(account)

        result = store.fetch_many(keys, Account)
    """

    def __init__(
        self,
        client: DatastoreClient,
        cachestore: Optional[Cachestore] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize entity store.

        Args:
            client: Backing store client
            cachestore: Cachestore, None disables caching
            logger: Logger, None for the module logger
        """
        self.client = client
        self.cachestore = cachestore if cachestore is not None else Nostore()
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def connect(cls, config: StoreConfig) -> EntityStore:
        """Create a store backed by Google Cloud Datastore.

        Args:
            config: Store configuration

        Returns:
            EntityStore instance
        """
        from entitystore_core.datastore.google import GoogleDatastoreClient

        client = GoogleDatastoreClient.from_config(config)
        return cls(client, cachestore=config.cachestore, logger=config.logger)

    # Cache access. Failures are warnings only.

    def _cache_get(self, keys: List[Key], op: str) -> Dict[Key, PropertyList]:
        try:
            return self.cachestore.get_entities(keys) or {}
        except Exception as e:
            self.logger.warning(f"{LOG_PREFIX} {op} cache.get_entities error: {e}")
            return {}

    def _cache_set(self, entries: Dict[Key, PropertyList], op: str) -> None:
        if not entries:
            return
        try:
            self.cachestore.set_entities(entries)
        except CacheSizeExceededError as e:
            self.logger.warning(f"{LOG_PREFIX} {op} skipped caching {len(e.keys)} oversized entities: {e}")
        except Exception as e:
            self.logger.warning(f"{LOG_PREFIX} {op} cache.set_entities error: {e}")

    def _invalidate(self, keys: List[Key], op: str) -> None:
        if not keys:
            return
        try:
            self.cachestore.delete_entities(keys)
        except Exception as e:
            self.logger.warning(f"{LOG_PREFIX} {op} cache.delete_entities error: {e}")

    # Reads

    def get(self, key: Key, dst: Any) -> None:
        """Load one entity into dst.

        Args:
            key: Entity key
            dst: Entity instance to populate

        Raises:
            NoSuchEntityError: If the entity does not exist
        """
        cached = self._cache_get([key], "get")
        props = cached.get(key)
        if props is not None:
            load_entity(props, dst)
            return

        props = self.client.get(key)
        load_entity(props, dst)
        self._cache_set({key: props}, "get")

    def _load_multi(self, keys: List[Key], dst: List[Any]) -> List[Optional[BaseException]]:
        """Load entities into dst through the cache.

        Cache hits are loaded directly. The remaining keys are fetched
        from the backing store in one call and the fetched property lists
        are cached. Duplicate keys are fetched once.

        Args:
            keys: Keys to load
            dst: Entity instances, one per key

        Returns:
            Errors by position, None where the position succeeded
        """
        if len(keys) != len(dst):
            raise ValueError(f"keys and dst length mismatch: {len(keys)} != {len(dst)}")
        errors: List[Optional[BaseException]] = [None] * len(keys)
        if not keys:
            return errors

        cached = self._cache_get(list(keys), "get_multi")

        # Unresolved key -> positions in the caller's order
        pending: Dict[Key, List[int]] = {}
        for i, key in enumerate(keys):
            props = cached.get(key)
            if props is not None:
                load_entity(props, dst[i])
            else:
                pending.setdefault(key, []).append(i)

        if not pending:
            self.logger.debug(f"{LOG_PREFIX} get_multi served {len(keys)} keys from cache")
            return errors

        fetch_keys = list(pending)
        results = self.client.get_multi(fetch_keys)
        if len(results) != len(fetch_keys):
            raise EntityStoreError(
                f"backing store returned {len(results)} results for {len(fetch_keys)} keys"
            )

        fetched: Dict[Key, PropertyList] = {}
        for key, result in zip(fetch_keys, results):
            for i in pending[key]:
                if result.error is not None:
                    errors[i] = result.error
                else:
                    load_entity(result.properties, dst[i])
            if result.error is None:
                fetched[key] = result.properties

        self.logger.debug(
            f"{LOG_PREFIX} get_multi keys={len(keys)} cached={len(cached)} fetched={len(fetched)}"
        )
        self._cache_set(fetched, "get_multi")
        return errors

    def get_multi(self, keys: List[Key], dst: List[Any]) -> None:
        """Load entities into dst.

        Args:
            keys: Keys to load
            dst: Entity instances, one per key

        Raises:
            MultiError: If any position failed; errors are positional
        """
        errors = self._load_multi(keys, dst)
        if any(e is not None for e in errors):
            raise MultiError(errors)

    def fetch_many(self, keys: List[Key], factory: Callable[[], Any]) -> BatchResult:
        """Fetch entities as a positional batch result.

        Args:
            keys: Keys to fetch
            factory: Creates an empty entity to load into

        Returns:
            BatchResult aligned with keys
        """
        dst = [factory() for _ in keys]
        errors = self._load_multi(keys, dst)
        return BatchResult([
            BatchItem(key, None if error is not None else entity, error)
            for key, entity, error in zip(keys, dst, errors)
        ])

    def get_entity(self, entity: Entity) -> None:
        """Load an entity by its own key."""
        self.get(entity.key(), entity)

    def get_entity_multi(self, entities: List[Entity]) -> None:
        """Load entities by their own keys.

        Raises:
            MultiError: If any position failed
        """
        self.get_multi([e.key() for e in entities], list(entities))

    def get_entity_all(self, query: Query, factory: Callable[[], Any]) -> List[Any]:
        """Load every entity matching a query.

        The query itself always runs against the backing store; only
        entity hydration uses the cache.

        Args:
            query: Query to run
            factory: Creates an empty entity to load into

        Returns:
            Entities in query order

        Raises:
            MultiError: If any matched entity could not be loaded
        """
        keys = list(self.run_keys(query))
        if not keys:
            return []
        dst = [factory() for _ in keys]
        self.get_multi(keys, dst)
        return dst

    def get_entity_first(self, query: Query, dst: Any) -> None:
        """Load the first entity matching a query.

        Raises:
            NoSuchEntityError: If nothing matches
        """
        key = next(self.run_keys(query.with_limit(1)), None)
        if key is None:
            raise NoSuchEntityError()
        self.get(key, dst)

    def run_keys(self, query: Query) -> KeyIterator:
        """Run a query for keys only against the backing store."""
        return self.client.run_keys(query.as_keys_only())

    def run_aggregation(
        self,
        query: Query,
        aggregations: List[AggregationSpec],
    ) -> Dict[str, Optional[AggregateValue]]:
        """Run aggregations over a query against the backing store.

        Returns:
            Dict of alias -> value; a value may be None when nothing matched
        """
        return self.client.run_aggregation(query, list(aggregations))

    # Writes. Cache entries are invalidated only after the write commits.

    def put(self, key: Key, entity: Any) -> None:
        """Store one entity and invalidate its cache entry."""
        props = entity_to_properties(entity)
        self.client.put(key, props)
        self._invalidate([key], "put")

    def put_multi(self, keys: List[Key], entities: List[Any]) -> None:
        """Store entities and invalidate their cache entries."""
        if len(keys) != len(entities):
            raise ValueError(f"keys and entities length mismatch: {len(keys)} != {len(entities)}")
        property_lists = [entity_to_properties(e) for e in entities]
        self.client.put_multi(list(keys), property_lists)
        self._invalidate(list(keys), "put_multi")

    def delete(self, key: Key) -> None:
        """Delete one entity and its cache entry."""
        self.client.delete(key)
        self._invalidate([key], "delete")

    def delete_multi(self, keys: List[Key]) -> None:
        """Delete entities and their cache entries."""
        self.client.delete_multi(list(keys))
        self._invalidate(list(keys), "delete_multi")

    def mutate(self, *mutations: Mutation) -> List[Key]:
        """Apply mutations as one batch and invalidate every mutated key.

        Args:
            mutations: Mutations to apply

        Returns:
            Keys reported by the backing store
        """
        if not mutations:
            return []
        keys = self.client.mutate(list(mutations))
        self._invalidate([m.key for m in mutations], "mutate")
        return keys

    def put_entity(self, entity: Entity) -> None:
        """Stamp and store an entity under its own key."""
        stamp_for_put(entity)
        self.put(entity.key(), entity)

    def put_entity_multi(self, entities: List[Entity]) -> None:
        """Stamp and store entities under their own keys."""
        for e in entities:
            stamp_for_put(e)
        self.put_multi([e.key() for e in entities], list(entities))

    def delete_entity(self, entity: Entity) -> None:
        self.delete(entity.key())

    def delete_entity_multi(self, entities: List[Entity]) -> None:
        self.delete_multi([e.key() for e in entities])

    def delete_all(self, kind: str) -> int:
        """Delete every entity of a kind.

        Args:
            kind: Entity kind

        Returns:
            Number of entities deleted
        """
        keys = list(self.run_keys(Query(kind)))
        for i in range(0, len(keys), DELETE_BATCH_SIZE):
            self.delete_multi(keys[i:i + DELETE_BATCH_SIZE])
        self.logger.info(f"{LOG_PREFIX} delete_all kind={kind} deleted={len(keys)}")
        return len(keys)

    # Explicit cache control

    def delete_cache_by_keys(self, keys: Iterable[Key]) -> None:
        """Drop cache entries without touching the backing store.

        Raises:
            CachestoreError: If the cachestore fails
        """
        self.cachestore.delete_entities(list(keys))

    def delete_cache_by_entities(self, entities: Iterable[Entity]) -> None:
        """Drop cache entries for entities without touching the backing store."""
        self.delete_cache_by_keys(e.key() for e in entities)

    def close(self) -> None:
        """Close the backing store client and the cachestore."""
        self.client.close()
        self.cachestore.close()

    def __enter__(self) -> EntityStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"EntityStore(client={self.client!r}, cachestore={self.cachestore!r})"


__all__ = ["EntityStore", "DELETE_BATCH_SIZE"]
