"""EntityStore Key - Entity Keys and Properties.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, List, NamedTuple, Optional, Tuple, Union

from entitystore_core.errors import CodecError

IdOrName = Union[int, str]


@dataclass(frozen=True)
class Key:
    """Identifier of a single entity.

    A key is a kind plus an integer id or a string name, optionally
    nested under a parent key. Keys compare structurally and are hashable,
    so they can be used directly as cache map keys.

    Attributes:
        kind: Entity kind
        id_or_name: Integer id or string name
        parent: Ancestor key
        namespace: Datastore namespace

    Example:
        parent = Key.name_key("Account", "acme")
        key = Key.id_key("Invoice", 42, parent=parent)
    """

    kind: str
    id_or_name: IdOrName
    parent: Optional["Key"] = None
    namespace: str = ""

    def __post_init__(self):
        if not self.kind:
            raise ValueError("Key kind must not be empty")
        if isinstance(self.id_or_name, bool) or not isinstance(self.id_or_name, (int, str)):
            raise TypeError(f"Key id_or_name must be int or str, got {type(self.id_or_name).__name__}")
        if self.parent is not None and self.parent.namespace != self.namespace:
            raise ValueError("Key namespace must match its parent's namespace")

    @classmethod
    def name_key(cls, kind: str, name: str, parent: Optional[Key] = None) -> Key:
        """Create a key with a string name."""
        return cls(kind, str(name), parent, parent.namespace if parent else "")

    @classmethod
    def id_key(cls, kind: str, id: int, parent: Optional[Key] = None) -> Key:
        """Create a key with an integer id."""
        return cls(kind, int(id), parent, parent.namespace if parent else "")

    @property
    def name(self) -> Optional[str]:
        """String name, or None for id keys."""
        return self.id_or_name if isinstance(self.id_or_name, str) else None

    @property
    def id(self) -> Optional[int]:
        """Integer id, or None for name keys."""
        return self.id_or_name if isinstance(self.id_or_name, int) else None

    @property
    def flat_path(self) -> Tuple[IdOrName, ...]:
        """Flattened (kind, id_or_name, ...) path from the root ancestor."""
        path: Tuple[IdOrName, ...] = (self.kind, self.id_or_name)
        if self.parent is None:
            return path
        return self.parent.flat_path + path

    @property
    def sort_key(self) -> Tuple[Any, ...]:
        """Datastore key order: by path, ids before names within a kind."""
        parts: List[Any] = [self.namespace]
        flat = self.flat_path
        for i in range(0, len(flat), 2):
            kind, ident = flat[i], flat[i + 1]
            if isinstance(ident, int):
                parts.append((kind, 0, ident, ""))
            else:
                parts.append((kind, 1, 0, ident))
        return tuple(parts)

    def encode(self) -> str:
        """Encode key as a URL-safe string.

        Returns:
            Reversible string form of the key
        """
        payload = {"ns": self.namespace, "path": list(self.flat_path)}
        raw = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    @classmethod
    def decode(cls, encoded: str) -> Key:
        """Decode a key produced by encode().

        Args:
            encoded: Encoded key string

        Returns:
            Key instance

        Raises:
            CodecError: If the string is not a valid encoded key
        """
        try:
            padded = encoded + "=" * (-len(encoded) % 4)
            payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
            return cls.from_path(*payload["path"], namespace=payload.get("ns", ""))
        except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as e:
            raise CodecError(f"invalid encoded key {encoded!r}: {e}") from e

    @classmethod
    def from_path(cls, *path: IdOrName, namespace: str = "") -> Key:
        """Build a key from a flat (kind, id_or_name, ...) path."""
        if not path or len(path) % 2:
            raise ValueError("Key path must contain (kind, id_or_name) pairs")
        key: Optional[Key] = None
        for i in range(0, len(path), 2):
            key = cls(str(path[i]), path[i + 1], key, namespace)
        return key

    def __str__(self) -> str:
        parts = [f"{self.flat_path[i]},{self.flat_path[i + 1]!r}" for i in range(0, len(self.flat_path), 2)]
        return "/" + "/".join(parts)


@dataclass
class Property:
    """A named entity field value.

    Attributes:
        name: Property name
        value: Property value
        noindex: Exclude from datastore indexes
    """

    name: str
    value: Any
    noindex: bool = False


PropertyList = List[Property]


class LookupResult(NamedTuple):
    """Outcome of one position in a backing store batch get."""

    properties: Optional[PropertyList] = None
    error: Optional[BaseException] = None


__all__ = ["Key", "IdOrName", "Property", "PropertyList", "LookupResult"]
