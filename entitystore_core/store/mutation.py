"""EntityStore Mutation - Tagged Batch Write Operations.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional

from entitystore_core.model.codec import entity_to_properties
from entitystore_core.model.entity import Entity, stamp_for_put
from entitystore_core.model.key import Key, PropertyList


class MutationType(Enum):
    """Mutation kinds."""

    DELETE = auto()   # Remove the entity
    INSERT = auto()   # Create; fails if the entity exists
    UPDATE = auto()   # Replace; fails if the entity is missing
    UPSERT = auto()   # Create or replace


@dataclass
class Mutation:
    """One write in a mutation batch.

    Attributes:
        type: Mutation kind
        key: Target key
        properties: Encoded entity, None for deletes
    """

    type: MutationType
    key: Key
    properties: Optional[PropertyList] = None

    def __post_init__(self):
        if self.type is MutationType.DELETE:
            if self.properties is not None:
                raise ValueError("Delete mutation must not carry properties")
        elif self.properties is None:
            raise ValueError(f"{self.type.name.title()} mutation requires properties")

    @classmethod
    def delete(cls, key: Key) -> Mutation:
        return cls(MutationType.DELETE, key)

    @classmethod
    def insert(cls, key: Key, entity: Any) -> Mutation:
        return cls(MutationType.INSERT, key, entity_to_properties(entity))

    @classmethod
    def update(cls, key: Key, entity: Any) -> Mutation:
        return cls(MutationType.UPDATE, key, entity_to_properties(entity))

    @classmethod
    def upsert(cls, key: Key, entity: Any) -> Mutation:
        return cls(MutationType.UPSERT, key, entity_to_properties(entity))


def new_delete(entity: Entity) -> Mutation:
    """Delete mutation for an entity's key."""
    return Mutation.delete(entity.key())


def new_insert(entity: Entity) -> Mutation:
    """Insert mutation; stamps the entity's write metadata."""
    stamp_for_put(entity)
    return Mutation.insert(entity.key(), entity)


def new_update(entity: Entity) -> Mutation:
    """Update mutation; stamps the entity's write metadata."""
    stamp_for_put(entity)
    return Mutation.update(entity.key(), entity)


def new_upsert(entity: Entity) -> Mutation:
    """Upsert mutation; stamps the entity's write metadata."""
    stamp_for_put(entity)
    return Mutation.upsert(entity.key(), entity)


__all__ = [
    "Mutation",
    "MutationType",
    "new_delete",
    "new_insert",
    "new_update",
    "new_upsert",
]
