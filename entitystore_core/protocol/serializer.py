"""EntityStore Serializer - Property List Serialization for Cache Values.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import pickle
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, List, Optional

from entitystore_core.errors import CodecError
from entitystore_core.model.key import Key, Property, PropertyList

logger = logging.getLogger(__name__)

# msgpack extension type codes
EXT_KEY = 1
EXT_DATETIME = 2


class Serializer(ABC):
    """Abstract serializer for cached property lists.

    The byte format is opaque to the entity store; only the cache
    backend reads it back.
    """

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Get format name."""
        pass

    @abstractmethod
    def serialize(self, properties: PropertyList) -> bytes:
        """Serialize a property list to bytes.

        Args:
            properties: Property list

        Returns:
            Serialized bytes
        """
        pass

    @abstractmethod
    def deserialize(self, data: bytes) -> PropertyList:
        """Deserialize bytes to a property list.

        Args:
            data: Serialized bytes

        Returns:
            Property list

        Raises:
            CodecError: If data is corrupt
        """
        pass

    def size_of(self, properties: PropertyList) -> int:
        """Get serialized size in bytes."""
        return len(self.serialize(properties))


class PickleSerializer(Serializer):
    """Pickle serializer.

    Supports any Python value. Not safe for untrusted data.
    """

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL):
        """Initialize pickle serializer.

        Args:
            protocol: Pickle protocol version
        """
        self.protocol = protocol

    @property
    def format_name(self) -> str:
        return "pickle"

    def serialize(self, properties: PropertyList) -> bytes:
        return pickle.dumps(list(properties), protocol=self.protocol)

    def deserialize(self, data: bytes) -> PropertyList:
        try:
            value = pickle.loads(data)
        except Exception as e:
            raise CodecError(f"pickle decode error: {e}") from e
        if not isinstance(value, list):
            raise CodecError(f"pickle decode error: expected list, got {type(value).__name__}")
        return value


class MsgPackSerializer(Serializer):
    """MessagePack serializer.

    Compact binary format. Keys and datetimes are carried as extension
    types; other values must be natively packable.
    """

    @property
    def format_name(self) -> str:
        return "msgpack"

    @staticmethod
    def _default(value: Any) -> Any:
        import msgpack

        if isinstance(value, Key):
            return msgpack.ExtType(EXT_KEY, value.encode().encode("ascii"))
        if isinstance(value, datetime):
            return msgpack.ExtType(EXT_DATETIME, value.isoformat().encode("ascii"))
        raise TypeError(f"cannot serialize {type(value).__name__}")

    @staticmethod
    def _ext_hook(code: int, data: bytes) -> Any:
        import msgpack

        if code == EXT_KEY:
            return Key.decode(data.decode("ascii"))
        if code == EXT_DATETIME:
            return datetime.fromisoformat(data.decode("ascii"))
        return msgpack.ExtType(code, data)

    def serialize(self, properties: PropertyList) -> bytes:
        import msgpack

        rows = [[p.name, p.value, p.noindex] for p in properties]
        try:
            return msgpack.packb(rows, use_bin_type=True, default=self._default)
        except (TypeError, ValueError) as e:
            raise CodecError(f"msgpack encode error: {e}") from e

    def deserialize(self, data: bytes) -> PropertyList:
        import msgpack

        try:
            rows = msgpack.unpackb(data, raw=False, ext_hook=self._ext_hook)
            return [Property(name, value, bool(noindex)) for name, value, noindex in rows]
        except (CodecError, TypeError, ValueError, msgpack.UnpackException) as e:
            raise CodecError(f"msgpack decode error: {e}") from e


class SerializerRegistry:
    """Registry of serializers."""

    def __init__(self):
        self._serializers: dict[str, Serializer] = {}
        self._default: str = "pickle"

        self.register(PickleSerializer())
        self.register(MsgPackSerializer())

    def register(self, serializer: Serializer) -> None:
        """Register a serializer.

        Args:
            serializer: Serializer to register
        """
        self._serializers[serializer.format_name] = serializer

    def get(self, format_name: str) -> Serializer:
        """Get serializer by format.

        Args:
            format_name: Format name

        Returns:
            Serializer instance

        Raises:
            KeyError: If format not found
        """
        if format_name not in self._serializers:
            raise KeyError(f"Unknown serializer format: {format_name}")
        return self._serializers[format_name]

    def get_default(self) -> Serializer:
        """Get default serializer."""
        return self._serializers[self._default]

    def list_formats(self) -> List[str]:
        """List available formats."""
        return list(self._serializers.keys())


# Global registry
_registry = SerializerRegistry()


def get_serializer(format_name: Optional[str] = None) -> Serializer:
    """Get serializer by format.

    Args:
        format_name: Format name or None for default

    Returns:
        Serializer instance
    """
    if format_name is None:
        return _registry.get_default()
    return _registry.get(format_name)


__all__ = [
    "Serializer",
    "PickleSerializer",
    "MsgPackSerializer",
    "SerializerRegistry",
    "get_serializer",
]
