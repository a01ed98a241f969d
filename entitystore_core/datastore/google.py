"""EntityStore Google Datastore Client - Cloud Datastore Backing Store.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple

from google.api_core import exceptions as gexc
from google.cloud import datastore
from google.cloud.datastore.query import PropertyFilter as GooglePropertyFilter

from entitystore_core.datastore.client import (
    AggregateValue,
    AggregationKind,
    AggregationSpec,
    DatastoreClient,
    KeyIterator,
)
from entitystore_core.errors import InvalidCursorError, NoSuchEntityError
from entitystore_core.model.key import Key, LookupResult, Property, PropertyList
from entitystore_core.query.query import Query
from entitystore_core.store.config import StoreConfig
from entitystore_core.store.mutation import Mutation, MutationType

logger = logging.getLogger(__name__)

_OPERATORS = {"in": "IN", "not-in": "NOT_IN"}


def to_google_key(client: datastore.Client, key: Key) -> datastore.Key:
    """Convert a Key to a google.cloud.datastore.Key."""
    return client.key(*key.flat_path, namespace=key.namespace or None)


def from_google_key(gkey: datastore.Key) -> Key:
    """Convert a complete google.cloud.datastore.Key to a Key."""
    return Key.from_path(*gkey.flat_path, namespace=gkey.namespace or "")


def _to_google_value(client: datastore.Client, value: Any) -> Any:
    if isinstance(value, Key):
        return to_google_key(client, value)
    if isinstance(value, list):
        return [_to_google_value(client, v) for v in value]
    return value


def _from_google_value(value: Any) -> Any:
    if isinstance(value, datastore.Key):
        return from_google_key(value)
    if isinstance(value, list):
        return [_from_google_value(v) for v in value]
    return value


def to_google_entity(client: datastore.Client, key: Key, properties: PropertyList) -> datastore.Entity:
    """Build a google Entity from a key and property list."""
    entity = datastore.Entity(
        key=to_google_key(client, key),
        exclude_from_indexes=tuple(p.name for p in properties if p.noindex),
    )
    for prop in properties:
        entity[prop.name] = _to_google_value(client, prop.value)
    return entity


def from_google_entity(entity: datastore.Entity) -> PropertyList:
    """Read the property list of a google Entity."""
    unindexed = set(entity.exclude_from_indexes)
    return [
        Property(name, _from_google_value(value), name in unindexed)
        for name, value in entity.items()
    ]


def encode_cursor(page_token: Optional[str], skip: int) -> str:
    """Encode a batch cursor and in-batch offset as an opaque string.

    Args:
        page_token: Cursor at the start of the current batch, None for the query start
        skip: Results consumed since page_token

    Returns:
        Opaque cursor string
    """
    payload = {"c": page_token or "", "o": skip}
    raw = json.dumps(payload, separators=(",", ":")).encode("ascii")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(cursor: str) -> Tuple[Optional[str], int]:
    """Decode a cursor produced by encode_cursor.

    Returns:
        (page_token, skip)

    Raises:
        InvalidCursorError: If the cursor is malformed
    """
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        token, skip = payload["c"], int(payload["o"])
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as e:
        raise InvalidCursorError(f"invalid cursor {cursor!r}: {e}") from e
    if skip < 0 or not isinstance(token, str):
        raise InvalidCursorError(f"invalid cursor {cursor!r}")
    return token or None, skip


class GoogleKeyIterator(KeyIterator):
    """Keys-only result iterator tracking a resumable position.

    The position is the cursor at the start of the current result batch
    plus the number of keys consumed from that batch.
    """

    def __init__(
        self,
        query: datastore.Query,
        start_cursor: Optional[str] = None,
        offset: int = 0,
        limit: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self._iterator = query.fetch(
            start_cursor=start_cursor,
            offset=offset or None,
            limit=limit,
            timeout=timeout,
        )
        self._pages = self._iterator.pages
        self._page_token = start_cursor
        self._skip = offset
        self._items: Iterator[Any] = iter(())
        self._started = False

    def __next__(self) -> Key:
        while True:
            entity = next(self._items, None)
            if entity is not None:
                self._skip += 1
                return from_google_key(entity.key)

            if self._started:
                token = self._iterator.next_page_token
                if token is None:
                    raise StopIteration
                self._page_token = token.decode("ascii") if isinstance(token, bytes) else token
                self._skip = 0

            page = next(self._pages, None)
            self._started = True
            if page is None:
                raise StopIteration
            self._items = iter(page)

    def cursor(self) -> str:
        return encode_cursor(self._page_token, self._skip)


class GoogleDatastoreClient(DatastoreClient):
    """Backing store over google-cloud-datastore.

    Example:
        client = GoogleDatastoreClient.from_config(StoreConfig(project_id="my-project"))
        store = EntityStore(client, cachestore=RedisCachestore())
    """

    def __init__(self, client: datastore.Client, timeout: Optional[float] = None):
        """Initialize client.

        Args:
            client: google.cloud.datastore.Client
            timeout: Per-call deadline in seconds
        """
        self._client = client
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: StoreConfig) -> GoogleDatastoreClient:
        """Create a client from store configuration.

        Args:
            config: Store configuration

        Returns:
            GoogleDatastoreClient instance
        """
        kwargs: Dict[str, Any] = dict(config.client_options)
        if config.project_id:
            kwargs["project"] = config.project_id
        if not config.uses_default_database:
            kwargs["database"] = config.database_id
        client = datastore.Client(**kwargs)
        logger.info(
            f"Connected to Datastore project={client.project} "
            f"database={config.database_id or '(default)'}"
        )
        return cls(client, timeout=config.timeout)

    def _key(self, key: Key) -> datastore.Key:
        return to_google_key(self._client, key)

    def _entity(self, key: Key, properties: PropertyList) -> datastore.Entity:
        return to_google_entity(self._client, key, properties)

    def get(self, key: Key) -> PropertyList:
        entity = self._client.get(self._key(key), timeout=self.timeout)
        if entity is None:
            raise NoSuchEntityError(key)
        return from_google_entity(entity)

    def get_multi(self, keys: List[Key]) -> List[LookupResult]:
        if not keys:
            return []
        found = self._client.get_multi([self._key(k) for k in keys], timeout=self.timeout)
        by_key = {from_google_key(e.key): e for e in found}
        results = []
        for key in keys:
            entity = by_key.get(key)
            if entity is None:
                results.append(LookupResult(None, NoSuchEntityError(key)))
            else:
                results.append(LookupResult(from_google_entity(entity), None))
        return results

    def put(self, key: Key, properties: PropertyList) -> Key:
        self._client.put(self._entity(key, properties), timeout=self.timeout)
        return key

    def put_multi(self, keys: List[Key], property_lists: List[PropertyList]) -> List[Key]:
        entities = [self._entity(k, props) for k, props in zip(keys, property_lists)]
        self._client.put_multi(entities, timeout=self.timeout)
        return list(keys)

    def delete(self, key: Key) -> None:
        self._client.delete(self._key(key), timeout=self.timeout)

    def delete_multi(self, keys: List[Key]) -> None:
        self._client.delete_multi([self._key(k) for k in keys], timeout=self.timeout)

    def mutate(self, mutations: List[Mutation]) -> List[Key]:
        """Apply mutations in one transaction.

        Insert and update preconditions are checked inside the
        transaction before any write is buffered.

        Raises:
            google.api_core.exceptions.AlreadyExists: Insert of an existing entity
            google.api_core.exceptions.NotFound: Update of a missing entity
        """
        with self._client.transaction() as txn:
            checked = [m for m in mutations if m.type in (MutationType.INSERT, MutationType.UPDATE)]
            if checked:
                existing = {
                    from_google_key(e.key)
                    for e in self._client.get_multi(
                        [self._key(m.key) for m in checked],
                        transaction=txn,
                        timeout=self.timeout,
                    )
                }
                for m in checked:
                    if m.type is MutationType.INSERT and m.key in existing:
                        raise gexc.AlreadyExists(f"entity already exists: {m.key}")
                    if m.type is MutationType.UPDATE and m.key not in existing:
                        raise gexc.NotFound(f"no entity to update: {m.key}")

            for m in mutations:
                if m.type is MutationType.DELETE:
                    txn.delete(self._key(m.key))
                else:
                    txn.put(self._entity(m.key, m.properties))
        return [m.key for m in mutations]

    def _query(self, query: Query) -> datastore.Query:
        gq = self._client.query(
            kind=query.kind,
            namespace=query.namespace or None,
            ancestor=self._key(query.ancestor) if query.ancestor else None,
        )
        for f in query.filters:
            gq.add_filter(
                filter=GooglePropertyFilter(
                    f.name,
                    _OPERATORS.get(f.operator, f.operator),
                    _to_google_value(self._client, f.value),
                )
            )
        if query.orders:
            gq.order = list(query.orders)
        if query.projection:
            gq.projection = list(query.projection)
        if query.distinct_on:
            gq.distinct_on = list(query.distinct_on)
        if query.keys_only:
            gq.keys_only()
        return gq

    def run_keys(self, query: Query) -> KeyIterator:
        offset = query.offset
        start_cursor = None
        if query.start_cursor:
            start_cursor, offset = decode_cursor(query.start_cursor)
        return GoogleKeyIterator(
            self._query(query.as_keys_only()),
            start_cursor=start_cursor,
            offset=offset,
            limit=query.limit,
            timeout=self.timeout,
        )

    def run_aggregation(
        self,
        query: Query,
        aggregations: List[AggregationSpec],
    ) -> Dict[str, AggregateValue]:
        aq = self._client.aggregation_query(self._query(query))
        for spec in aggregations:
            if spec.kind is AggregationKind.COUNT:
                aq.count(alias=spec.alias)
            elif spec.kind is AggregationKind.SUM:
                aq.sum(spec.property_name, alias=spec.alias)
            else:
                aq.avg(spec.property_name, alias=spec.alias)

        result: Dict[str, AggregateValue] = {}
        for batch in aq.fetch(timeout=self.timeout):
            for item in batch:
                result[item.alias] = item.value
        return result

    def close(self) -> None:
        self._client.close()

    def __repr__(self) -> str:
        return f"GoogleDatastoreClient(project={self._client.project!r})"


__all__ = [
    "GoogleDatastoreClient",
    "GoogleKeyIterator",
    "to_google_key",
    "from_google_key",
    "to_google_entity",
    "from_google_entity",
    "encode_cursor",
    "decode_cursor",
]
