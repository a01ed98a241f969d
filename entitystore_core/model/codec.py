"""EntityStore Codec - Entity to Property List Conversion.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Dict, List, Protocol, runtime_checkable

from entitystore_core.errors import CodecError
from entitystore_core.model.key import Property, PropertyList

NAME_METADATA = "datastore"
NOINDEX_METADATA = "noindex"
SKIP = "-"


@runtime_checkable
class PropertyLoadSaver(Protocol):
    """Entity that converts itself to and from a property list."""

    def load(self, properties: PropertyList) -> None: ...

    def save(self) -> PropertyList: ...


def _struct_fields(entity: Any) -> List[dataclasses.Field]:
    if not dataclasses.is_dataclass(entity) or isinstance(entity, type):
        raise CodecError(
            f"{type(entity).__name__} is neither a dataclass instance nor a PropertyLoadSaver"
        )
    return [f for f in dataclasses.fields(entity) if f.metadata.get(NAME_METADATA) != SKIP]


def _property_name(f: dataclasses.Field) -> str:
    return f.metadata.get(NAME_METADATA) or f.name


def save_struct(entity: Any) -> PropertyList:
    """Derive a property list from a dataclass entity's fields.

    Args:
        entity: Dataclass instance

    Returns:
        Property list in field declaration order

    Raises:
        CodecError: If the entity is not a dataclass instance
    """
    properties = []
    seen = set()
    for f in _struct_fields(entity):
        name = _property_name(f)
        if name in seen:
            raise CodecError(f"{type(entity).__name__}: duplicate property name {name!r}")
        seen.add(name)
        properties.append(
            Property(name, getattr(entity, f.name), bool(f.metadata.get(NOINDEX_METADATA, False)))
        )
    return properties


def load_struct(entity: Any, properties: PropertyList) -> None:
    """Load a property list into a dataclass entity's fields.

    Args:
        entity: Dataclass instance to populate
        properties: Property list

    Raises:
        CodecError: If a property has no matching field
    """
    by_name: Dict[str, str] = {_property_name(f): f.name for f in _struct_fields(entity)}
    for prop in properties:
        attr = by_name.get(prop.name)
        if attr is None:
            raise CodecError(f"{type(entity).__name__}: no field for property {prop.name!r}")
        setattr(entity, attr, prop.value)


def entity_to_properties(entity: Any) -> PropertyList:
    """Convert an entity to its property list.

    Uses the entity's own save() when it is a PropertyLoadSaver,
    otherwise structural conversion over its dataclass fields.

    Args:
        entity: Entity to convert

    Returns:
        Property list

    Raises:
        CodecError: If conversion fails
    """
    if isinstance(entity, PropertyLoadSaver):
        try:
            return list(entity.save())
        except CodecError:
            raise
        except Exception as e:
            raise CodecError(f"{type(entity).__name__}.save failed: {e}") from e
    return save_struct(entity)


def load_entity(properties: PropertyList, entity: Any) -> None:
    """Load a property list into an entity.

    Args:
        properties: Property list
        entity: Entity to populate

    Raises:
        CodecError: If conversion fails
    """
    if isinstance(entity, PropertyLoadSaver):
        try:
            entity.load(list(properties))
        except CodecError:
            raise
        except Exception as e:
            raise CodecError(f"{type(entity).__name__}.load failed: {e}") from e
        return
    load_struct(entity, properties)


__all__ = [
    "PropertyLoadSaver",
    "save_struct",
    "load_struct",
    "entity_to_properties",
    "load_entity",
]
