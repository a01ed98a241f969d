"""Tests for cache value serializers.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from datetime import datetime, timezone

import pytest

from entitystore_core.errors import CodecError
from entitystore_core.model.key import Key, Property
from entitystore_core.protocol.serializer import (
    MsgPackSerializer,
    PickleSerializer,
    get_serializer,
)

PROPERTIES = [
    Property("Owner", Key.name_key("Account", "acme")),
    Property("CreatedAt", datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)),
    Property("Tags", ["a", "b"]),
    Property("Body", "long text", noindex=True),
    Property("Count", 3),
]


class TestSerializers:
    """Tests for serializers."""

    @pytest.mark.parametrize("serializer", [PickleSerializer(), MsgPackSerializer()])
    def test_preserves_values(self, serializer):
        """Test keys, datetimes and noindex survive serialization."""
        data = serializer.serialize(PROPERTIES)

        assert isinstance(data, bytes)
        assert serializer.deserialize(data) == PROPERTIES
        assert serializer.size_of(PROPERTIES) == len(data)

    @pytest.mark.parametrize("serializer", [PickleSerializer(), MsgPackSerializer()])
    def test_corrupt_data(self, serializer):
        """Test corrupt bytes raise CodecError."""
        with pytest.raises(CodecError):
            serializer.deserialize(b"\xc1\x00garbage")

    def test_msgpack_unpackable_value(self):
        """Test values msgpack cannot carry raise CodecError."""
        with pytest.raises(CodecError):
            MsgPackSerializer().serialize([Property("X", object())])

    def test_registry(self):
        """Test serializer lookup by format name."""
        assert get_serializer().format_name == "pickle"
        assert get_serializer("msgpack").format_name == "msgpack"
        with pytest.raises(KeyError):
            get_serializer("yaml")
