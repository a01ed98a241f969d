"""EntityStore Aggregation - Count, Sum and Average Queries.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Optional

from entitystore_core.datastore.client import AggregateValue, AggregationKind, AggregationSpec
from entitystore_core.errors import AggregationResultMissingError
from entitystore_core.query.query import Query

if TYPE_CHECKING:
    from entitystore_core.store.entity_store import EntityStore

logger = logging.getLogger(__name__)

COUNT_ALIAS = "count"
AVG_PREFIX = "avg_"
INT_SUM_PREFIX = "isum_"
FLOAT_SUM_PREFIX = "fsum_"


def _as_int(value: Optional[AggregateValue]) -> int:
    return 0 if value is None else int(value)


def _as_float(value: Optional[AggregateValue]) -> float:
    # Datastore reports a null average when nothing matched
    return 0.0 if value is None else float(value)


def _run_single(store: EntityStore, query: Query, spec: AggregationSpec) -> Optional[AggregateValue]:
    result = store.run_aggregation(query, [spec])
    if spec.alias not in result:
        raise AggregationResultMissingError(spec.alias)
    return result[spec.alias]


def count(store: EntityStore, query: Query) -> int:
    """Count entities matching a query.

    Args:
        store: EntityStore
        query: Query to count

    Returns:
        Entity count
    """
    return _as_int(_run_single(store, query, AggregationSpec(AggregationKind.COUNT, "count")))


def avg(store: EntityStore, query: Query, field: str) -> float:
    """Average a property over the entities matching a query."""
    return _as_float(_run_single(store, query, AggregationSpec(AggregationKind.AVG, "avg", field)))


def int_sum(store: EntityStore, query: Query, field: str) -> int:
    """Sum an integer property over the entities matching a query."""
    return _as_int(_run_single(store, query, AggregationSpec(AggregationKind.SUM, "sum", field)))


def float_sum(store: EntityStore, query: Query, field: str) -> float:
    """Sum a floating point property over the entities matching a query."""
    return _as_float(_run_single(store, query, AggregationSpec(AggregationKind.SUM, "sum", field)))


class Aggregation:
    """Several aggregates over one query in a single round trip.

    Results are typed by alias prefix: count and isum_* are integers,
    avg_* and fsum_* are floats.

    Example:
        agg = (
            Aggregation(store, Query("Invoice"))
            .with_count()
            .with_avg("Total")
            .with_int_sum("Items")
            .run()
        )
        agg.count(), agg.avg("Total"), agg.int_sum("Items")
    """

    def __init__(self, store: EntityStore, query: Query):
        """Initialize aggregation.

        Args:
            store: EntityStore
            query: Query to aggregate over
        """
        self.store = store
        self.query = query
        self._specs: List[AggregationSpec] = []
        self._int_results: Dict[str, int] = {}
        self._float_results: Dict[str, float] = {}

    def _add(self, spec: AggregationSpec) -> Aggregation:
        if all(s.alias != spec.alias for s in self._specs):
            self._specs.append(spec)
        return self

    def with_count(self) -> Aggregation:
        return self._add(AggregationSpec(AggregationKind.COUNT, COUNT_ALIAS))

    def with_avg(self, field: str) -> Aggregation:
        return self._add(AggregationSpec(AggregationKind.AVG, AVG_PREFIX + field, field))

    def with_int_sum(self, field: str) -> Aggregation:
        return self._add(AggregationSpec(AggregationKind.SUM, INT_SUM_PREFIX + field, field))

    def with_float_sum(self, field: str) -> Aggregation:
        return self._add(AggregationSpec(AggregationKind.SUM, FLOAT_SUM_PREFIX + field, field))

    def run(self) -> Aggregation:
        """Run all requested aggregates.

        Returns:
            Self for chaining
        """
        if not self._specs:
            raise ValueError("Aggregation has no aggregates; add one with with_count/with_avg/...")
        result = self.store.run_aggregation(self.query, self._specs)

        self._int_results.clear()
        self._float_results.clear()
        for alias, value in result.items():
            if alias == COUNT_ALIAS or alias.startswith(INT_SUM_PREFIX):
                self._int_results[alias] = _as_int(value)
            elif alias.startswith(FLOAT_SUM_PREFIX) or alias.startswith(AVG_PREFIX):
                self._float_results[alias] = _as_float(value)
            else:
                logger.debug(f"Ignoring unexpected aggregation result {alias!r}")
        return self

    def _int(self, alias: str) -> int:
        if alias not in self._int_results:
            raise AggregationResultMissingError(alias)
        return self._int_results[alias]

    def _float(self, alias: str) -> float:
        if alias not in self._float_results:
            raise AggregationResultMissingError(alias)
        return self._float_results[alias]

    def count(self) -> int:
        return self._int(COUNT_ALIAS)

    def avg(self, field: str) -> float:
        return self._float(AVG_PREFIX + field)

    def int_sum(self, field: str) -> int:
        return self._int(INT_SUM_PREFIX + field)

    def float_sum(self, field: str) -> float:
        return self._float(FLOAT_SUM_PREFIX + field)


__all__ = [
    "Aggregation",
    "count",
    "avg",
    "int_sum",
    "float_sum",
]
