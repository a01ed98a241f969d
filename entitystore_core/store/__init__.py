"""Store module - Entity store, mutations and configuration."""

from entitystore_core.store.config import StoreConfig, DEFAULT_DATABASE_ID
from entitystore_core.store.mutation import (
    Mutation,
    MutationType,
    new_delete,
    new_insert,
    new_update,
    new_upsert,
)
from entitystore_core.store.result import BatchItem, BatchResult
from entitystore_core.store.entity_store import EntityStore

__all__ = [
    "EntityStore",
    "StoreConfig",
    "DEFAULT_DATABASE_ID",
    "Mutation",
    "MutationType",
    "new_delete",
    "new_insert",
    "new_update",
    "new_upsert",
    "BatchItem",
    "BatchResult",
]
