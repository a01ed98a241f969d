"""Datastore module - Backing store interface.

The Google Cloud Datastore implementation lives in
entitystore_core.datastore.google and is imported on demand.
"""

from entitystore_core.datastore.client import (
    DatastoreClient,
    KeyIterator,
    AggregationKind,
    AggregationSpec,
    AggregateValue,
)

__all__ = [
    "DatastoreClient",
    "KeyIterator",
    "AggregationKind",
    "AggregationSpec",
    "AggregateValue",
]
