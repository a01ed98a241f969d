"""Model module - Keys, entities and the property codec."""

from entitystore_core.model.key import Key, IdOrName, Property, PropertyList, LookupResult
from entitystore_core.model.entity import Entity, EntityBase, stamp_for_put
from entitystore_core.model.codec import (
    PropertyLoadSaver,
    entity_to_properties,
    load_entity,
    load_struct,
    save_struct,
)

__all__ = [
    "Key",
    "IdOrName",
    "Property",
    "PropertyList",
    "LookupResult",
    "Entity",
    "EntityBase",
    "stamp_for_put",
    "PropertyLoadSaver",
    "entity_to_properties",
    "load_entity",
    "load_struct",
    "save_struct",
]
