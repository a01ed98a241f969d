"""EntityStore Datastore Client - Backing Store Interface.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Union

from entitystore_core.model.key import Key, LookupResult, PropertyList
from entitystore_core.query.query import Query

if TYPE_CHECKING:
    from entitystore_core.store.mutation import Mutation

AggregateValue = Union[int, float]


class AggregationKind(Enum):
    """Aggregation functions."""

    COUNT = "count"
    SUM = "sum"
    AVG = "avg"


@dataclass(frozen=True)
class AggregationSpec:
    """One aggregate requested from the backing store.

    Attributes:
        kind: Aggregation function
        alias: Result name
        property_name: Aggregated property, None for count
    """

    kind: AggregationKind
    alias: str
    property_name: Optional[str] = None


class KeyIterator(ABC):
    """Iterator over the keys of a keys-only query.

    Exhaustion is signaled with StopIteration. cursor() returns an opaque
    string positioned after the last key returned by next().
    """

    def __iter__(self) -> Iterator[Key]:
        return self

    @abstractmethod
    def __next__(self) -> Key:
        pass

    @abstractmethod
    def cursor(self) -> str:
        """Get the cursor at the current position."""
        pass


class DatastoreClient(ABC):
    """Abstract backing store client.

    The authoritative document store the entity store reads through and
    writes to. Batch reads report outcomes positionally; all calls raise
    on transport failure or deadline expiry.
    """

    @abstractmethod
    def get(self, key: Key) -> PropertyList:
        """Get one entity.

        Raises:
            NoSuchEntityError: If the entity does not exist
        """
        pass

    @abstractmethod
    def get_multi(self, keys: List[Key]) -> List[LookupResult]:
        """Get entities in one round trip.

        Args:
            keys: Keys to fetch

        Returns:
            One LookupResult per key, in key order. Missing entities carry
            NoSuchEntityError.
        """
        pass

    @abstractmethod
    def put(self, key: Key, properties: PropertyList) -> Key:
        pass

    @abstractmethod
    def put_multi(self, keys: List[Key], property_lists: List[PropertyList]) -> List[Key]:
        pass

    @abstractmethod
    def delete(self, key: Key) -> None:
        pass

    @abstractmethod
    def delete_multi(self, keys: List[Key]) -> None:
        pass

    @abstractmethod
    def mutate(self, mutations: List[Mutation]) -> List[Key]:
        """Apply a batch of mutations atomically.

        Args:
            mutations: Mutations to apply

        Returns:
            Keys of the mutated entities
        """
        pass

    @abstractmethod
    def run_keys(self, query: Query) -> KeyIterator:
        """Run a query for keys only, honoring query.start_cursor.

        Raises:
            InvalidCursorError: If query.start_cursor cannot be decoded
        """
        pass

    @abstractmethod
    def run_aggregation(
        self,
        query: Query,
        aggregations: List[AggregationSpec],
    ) -> Dict[str, AggregateValue]:
        """Run aggregations over a query in one round trip.

        Returns:
            Dict of alias -> value
        """
        pass

    def close(self) -> None:
        """Release client resources."""


__all__ = [
    "DatastoreClient",
    "KeyIterator",
    "AggregationKind",
    "AggregationSpec",
    "AggregateValue",
]
