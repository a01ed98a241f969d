"""EntityStore - Cached Entity Access for Document Databases.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

Typed entity load/store over a document database with:
- Read-through caching of entity property lists
- Write-then-invalidate cache consistency
- Multi-key batch reads with positional per-key errors
- Tagged mutation batches (delete/insert/update/upsert)
- Cursor-paged listing with client-side key filters
- Count, sum and average aggregations

Architecture:
    ┌─────────────────────────────────────────────────────────────────┐
    │                       EntityStore System                        │
    ├─────────────────────────────────────────────────────────────────┤
    │  ┌─────────────┐  ┌─────────────┐  ┌─────────────┐             │
    │  │ EntityStore │  │   Lister    │  │ Aggregation │   ACCESS    │
    │  │ get/put/del │  │ cursor page │  │ count/sum   │   LAYER     │
    │  └──────┬──────┘  └──────┬──────┘  └──────┬──────┘             │
    │         │                │                │                     │
    │  ┌──────┴────────────────┴────────────────┴──────┐             │
    │  │                Entity Codec                    │   MODEL     │
    │  │     Key / Property / PropertyLoadSaver         │   LAYER     │
    │  └──────────────────────┬────────────────────────┘             │
    │                         │                                       │
    │  ┌──────────────────────┴────────────────────────┐             │
    │  │                 Cachestores                    │             │
    │  │   ┌────────┐  ┌────────┐  ┌────────┐          │   CACHE     │
    │  │   │Nostore │  │ Memory │  │ Redis  │          │   LAYER     │
    │  │   └────────┘  └────────┘  └────────┘          │             │
    │  └──────────────────────┬────────────────────────┘             │
    │                         │                                       │
    │  ┌──────────────────────┴────────────────────────┐             │
    │  │              Backing Store Client              │   STORE     │
    │  │          Google Cloud Datastore adapter        │   LAYER     │
    │  └──────────────────────────────────────────────┘             │
    └─────────────────────────────────────────────────────────────────┘

Example Usage:
    from dataclasses import dataclass
    from entitystore_core import EntityBase, EntityStore, Key, StoreConfig
    from entitystore_core import RedisCachestore

    @dataclass
    class Account(EntityBase):
        id: int = 0
        name: str = ""

        def key(self) -> Key:
            return Key.id_key("Account", self.id)

    store = EntityStore.connect(
        StoreConfig(project_id="my-project", cachestore=RedisCachestore())
    )

    # Read through the cache
    account = Account(id=1)
    store.get_entity(account)

    # Write, then invalidate the cached entry
    account.name = "renamed"
    store.put_entity(account)

    # Batch read with per-key outcomes
    result = store.fetch_many([Key.id_key("Account", i) for i in (1, 2, 3)], Account)
    missing = result.failed_keys()
"""

__version__ = "1.0.0"
__author__ = "BlackRoad OS"

from entitystore_core.errors import (
    EntityStoreError,
    NoSuchEntityError,
    MultiError,
    CodecError,
    CachestoreError,
    CacheSizeExceededError,
    InvalidCursorError,
    AggregationResultMissingError,
    is_problem,
)
from entitystore_core.model.key import Key, Property, PropertyList, LookupResult
from entitystore_core.model.entity import Entity, EntityBase
from entitystore_core.model.codec import (
    PropertyLoadSaver,
    entity_to_properties,
    load_entity,
)
from entitystore_core.cachestore.base import Cachestore, CacheStats
from entitystore_core.cachestore.nostore import Nostore
from entitystore_core.cachestore.memory import MemoryCachestore
from entitystore_core.cachestore.redis import RedisCachestore, RedisCacheConfig
from entitystore_core.protocol.serializer import (
    Serializer,
    PickleSerializer,
    MsgPackSerializer,
)
from entitystore_core.query.query import Query
from entitystore_core.datastore.client import DatastoreClient, KeyIterator
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
from entitystore_core.query.lister import EntityLister
from entitystore_core.query.aggregation import Aggregation

__all__ = [
    # Errors
    "EntityStoreError",
    "NoSuchEntityError",
    "MultiError",
    "CodecError",
    "CachestoreError",
    "CacheSizeExceededError",
    "InvalidCursorError",
    "AggregationResultMissingError",
    "is_problem",
    # Model
    "Key",
    "Property",
    "PropertyList",
    "LookupResult",
    "Entity",
    "EntityBase",
    "PropertyLoadSaver",
    "entity_to_properties",
    "load_entity",
    # Cachestores
    "Cachestore",
    "CacheStats",
    "Nostore",
    "MemoryCachestore",
    "RedisCachestore",
    "RedisCacheConfig",
    # Protocol
    "Serializer",
    "PickleSerializer",
    "MsgPackSerializer",
    # Store
    "DatastoreClient",
    "KeyIterator",
    "StoreConfig",
    "DEFAULT_DATABASE_ID",
    "EntityStore",
    "BatchItem",
    "BatchResult",
    "Mutation",
    "MutationType",
    "new_delete",
    "new_insert",
    "new_update",
    "new_upsert",
    # Query
    "Query",
    "EntityLister",
    "Aggregation",
]
