"""EntityStore Query - Backing Store Query Description.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional, Tuple

from entitystore_core.model.key import Key

OPERATORS = ("=", "!=", "<", "<=", ">", ">=", "in", "not-in")


@dataclass(frozen=True)
class PropertyFilter:
    """A single property comparison.

    Attributes:
        name: Property name
        operator: Comparison operator
        value: Value to compare against
    """

    name: str
    operator: str
    value: Any

    def __post_init__(self):
        if self.operator not in OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.operator!r}")


@dataclass(frozen=True)
class Query:
    """Query over one entity kind.

    Builder methods return a new query and leave the receiver untouched,
    so a base query can be shared and specialized.

    Attributes:
        kind: Entity kind
        namespace: Datastore namespace
        ancestor: Ancestor key restriction
        filters: Property filters, AND-combined
        orders: Sort orders; a leading "-" means descending
        projection: Projected property names
        distinct_on: Distinct-on property names
        keys_only: Return keys only
        limit: Maximum results
        offset: Results to skip
        start_cursor: Opaque cursor to start from

    Example:
        q = Query("Invoice").filter("Total", ">=", 100).order("-Total")
    """

    kind: str
    namespace: str = ""
    ancestor: Optional[Key] = None
    filters: Tuple[PropertyFilter, ...] = field(default_factory=tuple)
    orders: Tuple[str, ...] = field(default_factory=tuple)
    projection: Tuple[str, ...] = field(default_factory=tuple)
    distinct_on: Tuple[str, ...] = field(default_factory=tuple)
    keys_only: bool = False
    limit: Optional[int] = None
    offset: int = 0
    start_cursor: str = ""

    def with_namespace(self, namespace: str) -> Query:
        return replace(self, namespace=namespace)

    def with_ancestor(self, ancestor: Key) -> Query:
        return replace(self, ancestor=ancestor)

    def filter(self, name: str, operator: str, value: Any) -> Query:
        """Add a property filter."""
        return replace(self, filters=self.filters + (PropertyFilter(name, operator, value),))

    def order(self, *names: str) -> Query:
        """Add sort orders, e.g. order("-UpdatedAt")."""
        return replace(self, orders=self.orders + tuple(names))

    def project(self, *names: str) -> Query:
        return replace(self, projection=tuple(names))

    def distinct(self, *names: str) -> Query:
        return replace(self, distinct_on=tuple(names))

    def as_keys_only(self) -> Query:
        return replace(self, keys_only=True)

    def with_limit(self, limit: Optional[int]) -> Query:
        return replace(self, limit=limit)

    def with_offset(self, offset: int) -> Query:
        return replace(self, offset=offset)

    def start(self, cursor: str) -> Query:
        """Resume from an opaque cursor."""
        return replace(self, start_cursor=cursor)


__all__ = ["Query", "PropertyFilter", "OPERATORS"]
