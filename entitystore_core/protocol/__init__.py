"""Protocol module - Cache value serialization."""

from entitystore_core.protocol.serializer import (
    Serializer,
    PickleSerializer,
    MsgPackSerializer,
    SerializerRegistry,
    get_serializer,
)

__all__ = [
    "Serializer",
    "PickleSerializer",
    "MsgPackSerializer",
    "SerializerRegistry",
    "get_serializer",
]
