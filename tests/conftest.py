"""Shared fixtures: an in-memory backing store and sample entities.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import base64
import binascii
import copy
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pytest

from entitystore_core.cachestore.base import Cachestore
from entitystore_core.cachestore.memory import MemoryCachestore
from entitystore_core.datastore.client import AggregationKind, DatastoreClient, KeyIterator
from entitystore_core.errors import CachestoreError, InvalidCursorError, NoSuchEntityError
from entitystore_core.model.entity import EntityBase
from entitystore_core.model.key import Key, LookupResult, Property
from entitystore_core.store.entity_store import EntityStore
from entitystore_core.store.mutation import MutationType


@dataclass
class Item(EntityBase):
    """Sample entity keyed by the string form of its id."""

    id: int = field(default=0, metadata={"datastore": "Id"})
    value: str = field(default="", metadata={"datastore": "Value"})

    def key(self) -> Key:
        return Key.name_key("Item", str(self.id))


@dataclass
class Measure(EntityBase):
    """Sample entity with numeric fields for aggregation."""

    id: int = field(default=0, metadata={"datastore": "Id"})
    value: int = field(default=0, metadata={"datastore": "Value"})
    value2: float = field(default=0.0, metadata={"datastore": "Value2"})

    def key(self) -> Key:
        return Key.id_key("Measure", self.id)


class MemoryKeyIterator(KeyIterator):
    """Key iterator over a precomputed result list."""

    def __init__(self, keys: List[Key], position: int = 0):
        self._keys = keys
        self._position = position

    def __next__(self) -> Key:
        if self._position >= len(self._keys):
            raise StopIteration
        key = self._keys[self._position]
        self._position += 1
        return key

    def cursor(self) -> str:
        return base64.urlsafe_b64encode(f"pos:{self._position}".encode()).decode()


def _decode_position(cursor: str) -> int:
    try:
        text = base64.urlsafe_b64decode(cursor.encode()).decode()
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise InvalidCursorError(str(e)) from e
    if not text.startswith("pos:") or not text[4:].isdigit():
        raise InvalidCursorError(cursor)
    return int(text[4:])


_COMPARE = {
    "=": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
    "in": lambda a, b: a in b,
    "not-in": lambda a, b: a not in b,
}


class MemoryDatastore(DatastoreClient):
    """In-memory backing store that counts calls.

    Attributes:
        entities: Stored property lists by key
        calls: Number of calls per operation
        faults: Per-key errors returned by get_multi
        fail_writes: Raise on every write when set
    """

    def __init__(self):
        self.entities: Dict[Key, List[Property]] = {}
        self.calls: Counter = Counter()
        self.requested: List[List[Key]] = []
        self.faults: Dict[Key, Exception] = {}
        self.fail_writes: Optional[Exception] = None

    def _check_write(self) -> None:
        if self.fail_writes is not None:
            raise self.fail_writes

    def get(self, key):
        self.calls["get"] += 1
        if key not in self.entities:
            raise NoSuchEntityError(key)
        return copy.deepcopy(self.entities[key])

    def get_multi(self, keys):
        self.calls["get_multi"] += 1
        self.requested.append(list(keys))
        results = []
        for key in keys:
            if key in self.faults:
                results.append(LookupResult(None, self.faults[key]))
            elif key in self.entities:
                results.append(LookupResult(copy.deepcopy(self.entities[key]), None))
            else:
                results.append(LookupResult(None, NoSuchEntityError(key)))
        return results

    def put(self, key, properties):
        self.calls["put"] += 1
        self._check_write()
        self.entities[key] = copy.deepcopy(properties)
        return key

    def put_multi(self, keys, property_lists):
        self.calls["put_multi"] += 1
        self._check_write()
        for key, props in zip(keys, property_lists):
            self.entities[key] = copy.deepcopy(props)
        return list(keys)

    def delete(self, key):
        self.calls["delete"] += 1
        self._check_write()
        self.entities.pop(key, None)

    def delete_multi(self, keys):
        self.calls["delete_multi"] += 1
        self._check_write()
        for key in keys:
            self.entities.pop(key, None)

    def mutate(self, mutations):
        self.calls["mutate"] += 1
        self._check_write()
        for m in mutations:
            if m.type is MutationType.INSERT and m.key in self.entities:
                raise ValueError(f"entity already exists: {m.key}")
            if m.type is MutationType.UPDATE and m.key not in self.entities:
                raise ValueError(f"no entity to update: {m.key}")
        for m in mutations:
            if m.type is MutationType.DELETE:
                self.entities.pop(m.key, None)
            else:
                self.entities[m.key] = copy.deepcopy(m.properties)
        return [m.key for m in mutations]

    def _matching(self, query):
        keys = []
        for key, props in self.entities.items():
            if key.kind != query.kind or key.namespace != query.namespace:
                continue
            if query.ancestor is not None and not _has_ancestor(key, query.ancestor):
                continue
            values = {p.name: p.value for p in props}
            if all(f.name in values and _COMPARE[f.operator](values[f.name], f.value) for f in query.filters):
                keys.append(key)
        keys.sort(key=lambda k: k.sort_key)
        for order in reversed(query.orders):
            name = order.lstrip("-")
            keys.sort(
                key=lambda k: next(p.value for p in self.entities[k] if p.name == name),
                reverse=order.startswith("-"),
            )
        return keys

    def run_keys(self, query):
        self.calls["run_keys"] += 1
        position = _decode_position(query.start_cursor) if query.start_cursor else query.offset
        keys = self._matching(query)
        if query.limit is not None:
            keys = keys[:position + query.limit]
        return MemoryKeyIterator(keys, position)

    def run_aggregation(self, query, aggregations):
        self.calls["run_aggregation"] += 1
        keys = self._matching(query)
        result = {}
        for spec in aggregations:
            if spec.kind is AggregationKind.COUNT:
                result[spec.alias] = len(keys)
                continue
            values = [
                p.value for k in keys for p in self.entities[k] if p.name == spec.property_name
            ]
            if spec.kind is AggregationKind.SUM:
                result[spec.alias] = sum(values)
            else:
                # Datastore reports a null average over no entities
                result[spec.alias] = sum(values) / len(values) if values else None
        return result


def _has_ancestor(key: Key, ancestor: Key) -> bool:
    parent = key.parent
    while parent is not None:
        if parent == ancestor:
            return True
        parent = parent.parent
    return False


class FailingCachestore(Cachestore):
    """Cachestore whose every operation fails."""

    def get_entities(self, keys):
        raise CachestoreError("cache unavailable")

    def set_entities(self, entries):
        raise CachestoreError("cache unavailable")

    def delete_entities(self, keys):
        raise CachestoreError("cache unavailable")


@pytest.fixture
def datastore():
    return MemoryDatastore()


@pytest.fixture
def cache():
    return MemoryCachestore()


@pytest.fixture
def store(datastore, cache):
    return EntityStore(datastore, cachestore=cache)
