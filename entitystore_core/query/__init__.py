"""Query module - Queries, listing and aggregation."""

from entitystore_core.query.query import Query, PropertyFilter
from entitystore_core.query.lister import EntityLister
from entitystore_core.query.aggregation import Aggregation, count, avg, int_sum, float_sum

__all__ = [
    "Query",
    "PropertyFilter",
    "EntityLister",
    "Aggregation",
    "count",
    "avg",
    "int_sum",
    "float_sum",
]
