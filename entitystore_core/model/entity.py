"""EntityStore Entity - Entity Capability and Base Fields.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol, runtime_checkable

from entitystore_core.model.key import Key

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _to_utc(t: datetime) -> datetime:
    """Normalize a timestamp to UTC at microsecond precision."""
    if t.tzinfo is None:
        t = t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)


@runtime_checkable
class Entity(Protocol):
    """Capability of a record managed by the entity store."""

    def key(self) -> Key: ...

    def set_updated_at(self, t: datetime) -> None: ...

    def updated_at(self) -> datetime: ...

    def set_schema_version(self, v: int) -> None: ...

    def schema_version(self) -> int: ...

    def current_schema_version(self) -> int: ...

    def pre_put_action(self) -> None: ...


@dataclass
class EntityBase:
    """Common entity fields.

    Subclass as a dataclass and implement key(). Field defaults are
    required on subclasses since these base fields have defaults.

    Attributes:
        created_at_column: Creation time, stored as CreatedAt
        updated_at_column: Last write time, stored as UpdatedAt
        schema_version_column: Schema version, stored as SchemaVersion

    Example:
        @dataclass
        class Account(EntityBase):
            id: int = 0
            name: str = ""

            def key(self) -> Key:
                return Key.id_key("Account", self.id)
    """

    created_at_column: datetime = field(default=EPOCH, metadata={"datastore": "CreatedAt"})
    updated_at_column: datetime = field(default=EPOCH, metadata={"datastore": "UpdatedAt"})
    schema_version_column: int = field(default=0, metadata={"datastore": "SchemaVersion"})

    def key(self) -> Key:
        raise NotImplementedError(f"{type(self).__name__} must implement key()")

    def set_created_at(self, t: datetime) -> None:
        self.created_at_column = _to_utc(t)

    def created_at(self) -> datetime:
        return self.created_at_column

    def set_updated_at(self, t: datetime) -> None:
        self.updated_at_column = _to_utc(t)

    def updated_at(self) -> datetime:
        return self.updated_at_column

    def set_schema_version(self, v: int) -> None:
        self.schema_version_column = v

    def schema_version(self) -> int:
        return self.schema_version_column

    def current_schema_version(self) -> int:
        return 0

    def pre_put_action(self) -> None:
        """Hook run before every write. Override to validate or derive fields."""


def stamp_for_put(entity: Entity, now: Optional[datetime] = None) -> None:
    """Stamp write metadata on an entity and run its pre-put hook.

    Args:
        entity: Entity about to be written
        now: Write time, defaults to the current UTC time
    """
    now = now or datetime.now(timezone.utc)
    if isinstance(entity, EntityBase) and entity.created_at() == EPOCH:
        entity.set_created_at(now)
    entity.set_updated_at(now)
    entity.set_schema_version(entity.current_schema_version())
    entity.pre_put_action()


__all__ = ["Entity", "EntityBase", "EPOCH", "stamp_for_put"]
