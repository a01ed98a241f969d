"""Tests for aggregation queries.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import pytest

from entitystore_core.errors import AggregationResultMissingError
from entitystore_core.model.codec import entity_to_properties
from entitystore_core.query.aggregation import Aggregation, avg, count, float_sum, int_sum
from entitystore_core.query.query import Query
from entitystore_core.store.entity_store import EntityStore

from conftest import MemoryDatastore, Measure


@pytest.fixture
def measures(datastore):
    rows = [Measure(id=1, value=1, value2=0.5), Measure(id=2, value=2, value2=1.5), Measure(id=3, value=6, value2=2.5)]
    for m in rows:
        datastore.entities[m.key()] = entity_to_properties(m)
    return rows


class EmptyAggregationDatastore(MemoryDatastore):
    """Backing store that answers aggregations with no results."""

    def run_aggregation(self, query, aggregations):
        return {}


class NullAggregationDatastore(MemoryDatastore):
    """Backing store that answers every aggregation with a null value."""

    def run_aggregation(self, query, aggregations):
        return {spec.alias: None for spec in aggregations}


class TestAggregationFunctions:
    """Tests for single-aggregate functions."""

    def test_count(self, store, measures):
        """Test counting matches."""
        assert count(store, Query("Measure")) == 3
        assert count(store, Query("Measure").filter("Value", ">", 1)) == 2

    def test_sums_and_avg(self, store, measures):
        """Test sums and averages are typed."""
        total = int_sum(store, Query("Measure"), "Value")
        ftotal = float_sum(store, Query("Measure"), "Value2")
        mean = avg(store, Query("Measure"), "Value")

        assert total == 9 and isinstance(total, int)
        assert ftotal == pytest.approx(4.5) and isinstance(ftotal, float)
        assert mean == pytest.approx(3.0)

    def test_missing_result(self):
        """Test a response without the alias raises a typed error."""
        store = EntityStore(EmptyAggregationDatastore())

        with pytest.raises(AggregationResultMissingError) as exc_info:
            count(store, Query("Measure"))
        assert exc_info.value.alias == "count"

    def test_no_matches(self, store, measures):
        """Test aggregates over an empty result set are zero."""
        query = Query("Measure").filter("Value", ">", 100)

        assert count(store, query) == 0
        assert avg(store, query, "Value") == 0.0
        assert int_sum(store, query, "Value") == 0

    def test_null_values(self):
        """Test null aggregate values read as zero."""
        store = EntityStore(NullAggregationDatastore())

        assert avg(store, Query("Measure"), "Value") == 0.0
        assert count(store, Query("Measure")) == 0
        assert float_sum(store, Query("Measure"), "Value2") == 0.0


class TestAggregationBuilder:
    """Tests for batched aggregates."""

    def test_single_round_trip(self, store, datastore, measures):
        """Test several aggregates run in one call."""
        agg = (
            Aggregation(store, Query("Measure"))
            .with_count()
            .with_avg("Value")
            .with_int_sum("Value")
            .with_float_sum("Value2")
            .run()
        )

        assert datastore.calls["run_aggregation"] == 1
        assert agg.count() == 3
        assert agg.avg("Value") == pytest.approx(3.0)
        assert agg.int_sum("Value") == 9
        assert isinstance(agg.int_sum("Value"), int)
        assert agg.float_sum("Value2") == pytest.approx(4.5)
        assert isinstance(agg.float_sum("Value2"), float)

    def test_duplicate_requests(self, store, measures):
        """Test requesting the same aggregate twice sends it once."""
        agg = Aggregation(store, Query("Measure")).with_count().with_count()

        assert len(agg._specs) == 1

    def test_unrequested_result(self, store, measures):
        """Test reading an aggregate that was not requested."""
        agg = Aggregation(store, Query("Measure")).with_count().run()

        with pytest.raises(AggregationResultMissingError):
            agg.int_sum("Value")

    def test_missing_from_response(self):
        """Test aggregates absent from the response raise on access."""
        store = EntityStore(EmptyAggregationDatastore())
        agg = Aggregation(store, Query("Measure")).with_avg("Value").run()

        with pytest.raises(AggregationResultMissingError):
            agg.avg("Value")

    def test_null_values(self):
        """Test null aggregate values read as zero in a batch."""
        store = EntityStore(NullAggregationDatastore())

        agg = (
            Aggregation(store, Query("Measure"))
            .with_count()
            .with_avg("Value")
            .with_int_sum("Value")
            .with_float_sum("Value2")
            .run()
        )

        assert agg.count() == 0
        assert agg.avg("Value") == 0.0
        assert agg.int_sum("Value") == 0
        assert agg.float_sum("Value2") == 0.0

    def test_nothing_requested(self, store):
        """Test running with no aggregates is rejected."""
        with pytest.raises(ValueError):
            Aggregation(store, Query("Measure")).run()
