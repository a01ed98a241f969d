"""Tests for cachestores.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import pytest

from entitystore_core.cachestore.memory import MemoryCachestore
from entitystore_core.cachestore.nostore import Nostore
from entitystore_core.cachestore.redis import RedisCacheConfig, RedisCachestore, key_hash
from entitystore_core.errors import CachestoreError, CacheSizeExceededError
from entitystore_core.model.key import Key, Property
from entitystore_core.protocol.serializer import MsgPackSerializer

K1 = Key.name_key("Item", "1")
K2 = Key.name_key("Item", "2")
K3 = Key.name_key("Item", "3")


def props(value):
    return [Property("Value", value)]


class FakePipeline:
    """Buffers writes until execute()."""

    def __init__(self, redis):
        self.redis = redis
        self.commands = []

    def set(self, key, value):
        self.commands.append(("set", key, value, None))

    def psetex(self, key, ms, value):
        self.commands.append(("psetex", key, value, ms))

    def execute(self):
        if self.redis.fail:
            raise ConnectionError("connection refused")
        for _, key, value, ms in self.commands:
            self.redis.data[key] = value
            if ms is not None:
                self.redis.ttls[key] = ms
        self.redis.executed.extend(self.commands)
        return [True] * len(self.commands)


class FakeRedis:
    """Minimal redis client over a dict."""

    def __init__(self):
        self.data = {}
        self.ttls = {}
        self.executed = []
        self.fail = False

    def mget(self, keys):
        if self.fail:
            raise ConnectionError("connection refused")
        return [self.data.get(k) for k in keys]

    def pipeline(self):
        return FakePipeline(self)

    def delete(self, *keys):
        if self.fail:
            raise ConnectionError("connection refused")
        return sum(1 for k in keys if self.data.pop(k, None) is not None)


class TestNostore:
    """Tests for Nostore."""

    def test_caches_nothing(self):
        """Test every lookup misses."""
        store = Nostore()
        store.set_entities({K1: props("a")})

        assert store.get_entities([K1]) == {}
        store.delete_entities([K1])
        assert store.get_stats().misses == 1

    def test_equality(self):
        """Test all Nostores are interchangeable."""
        assert Nostore() == Nostore()
        assert Nostore() != MemoryCachestore()


class TestMemoryCachestore:
    """Tests for MemoryCachestore."""

    def test_get_set_delete(self):
        """Test basic operations."""
        cache = MemoryCachestore()
        cache.set_entities({K1: props("a"), K2: props("b")})

        assert cache.get_entities([K1, K2, K3]) == {K1: props("a"), K2: props("b")}

        cache.delete_entities([K1, K3])
        assert K1 not in cache
        assert len(cache) == 1

    def test_stats(self):
        """Test hit and miss counting."""
        cache = MemoryCachestore()
        cache.set_entities({K1: props("a")})
        cache.get_entities([K1, K2])

        stats = cache.get_stats()
        assert stats.hits == 1
        assert stats.misses == 1
        assert stats.sets == 1
        assert stats.hit_rate == 0.5

        cache.reset_stats()
        assert cache.get_stats().hits == 0

    def test_returns_copies(self):
        """Test callers cannot mutate cached lists."""
        cache = MemoryCachestore()
        cache.set_entities({K1: props("a")})

        cache.get_entities([K1])[K1].append(Property("Extra", 1))

        assert cache.get_entities([K1])[K1] == props("a")

    def test_values_are_isolated(self):
        """Test mutable property values are not shared with callers."""
        cache = MemoryCachestore()
        tags = ["a"]
        cache.set_entities({K1: [Property("Tags", tags)]})

        tags.append("after-set")
        cache.get_entities([K1])[K1][0].value.append("after-get")

        assert cache.get_entities([K1])[K1] == [Property("Tags", ["a"])]

    def test_size_limit(self):
        """Test oversized entries are skipped and reported."""
        cache = MemoryCachestore(max_value_bytes=400)

        with pytest.raises(CacheSizeExceededError) as exc_info:
            cache.set_entities({K1: props("small"), K2: props("x" * 1000)})

        assert exc_info.value.keys == [K2]
        assert exc_info.value.limit == 400
        assert K1 in cache
        assert K2 not in cache
        assert cache.get_stats().oversized == 1

    def test_clear(self):
        """Test clear method."""
        cache = MemoryCachestore()
        cache.set_entities({K1: props("a"), K2: props("b")})

        assert cache.clear() == 2
        assert len(cache) == 0


class TestRedisCachestore:
    """Tests for RedisCachestore over a fake client."""

    def test_key_layout(self):
        """Test redis keys are prefix plus md5 of the encoded key."""
        redis = FakeRedis()
        cache = RedisCachestore(client=redis)

        cache.set_entities({K1: props("a")})

        assert list(redis.data) == ["DatastoreCache:" + key_hash(K1)]
        assert len(key_hash(K1)) == 32

    def test_get_set_delete(self):
        """Test basic operations."""
        cache = RedisCachestore(client=FakeRedis())
        cache.set_entities({K1: props("a"), K2: props("b")})

        assert cache.get_entities([K1, K2, K3]) == {K1: props("a"), K2: props("b")}

        cache.delete_entities([K1, K3])
        assert cache.get_entities([K1, K2]) == {K2: props("b")}
        assert cache.get_stats().deletes == 1

    def test_msgpack_serializer(self):
        """Test the configured serializer is used."""
        redis = FakeRedis()
        cache = RedisCachestore(RedisCacheConfig(serializer="msgpack"), client=redis)
        cache.set_entities({K1: props("a")})

        assert isinstance(cache.serializer, MsgPackSerializer)
        assert cache.get_entities([K1]) == {K1: props("a")}

    def test_ttl(self):
        """Test entries expire when a ttl is configured."""
        redis = FakeRedis()
        cache = RedisCachestore(RedisCacheConfig(ttl_seconds=1.5), client=redis)

        cache.set_entities({K1: props("a")})

        assert redis.executed[0][0] == "psetex"
        assert list(redis.ttls.values()) == [1500]

    def test_size_limit(self):
        """Test oversized entries are skipped and the rest written."""
        redis = FakeRedis()
        cache = RedisCachestore(RedisCacheConfig(size_limit=400), client=redis)

        with pytest.raises(CacheSizeExceededError) as exc_info:
            cache.set_entities({K1: props("small"), K2: props("x" * 1000)})

        assert exc_info.value.keys == [K2]
        assert cache.get_entities([K1, K2]) == {K1: props("small")}

    def test_corrupt_entry_is_miss(self):
        """Test undecodable entries are treated as misses."""
        redis = FakeRedis()
        cache = RedisCachestore(client=redis)
        redis.data["DatastoreCache:" + key_hash(K1)] = b"garbage"

        assert cache.get_entities([K1]) == {}
        assert cache.get_stats().errors == 1

    def test_transport_errors(self):
        """Test connection failures raise CachestoreError."""
        redis = FakeRedis()
        redis.fail = True
        cache = RedisCachestore(client=redis)

        with pytest.raises(CachestoreError):
            cache.get_entities([K1])
        with pytest.raises(CachestoreError):
            cache.set_entities({K1: props("a")})
        with pytest.raises(CachestoreError):
            cache.delete_entities([K1])
        assert cache.get_stats().errors == 3
        assert "connection refused" in cache.get_stats().last_error

    def test_empty_calls_skip_redis(self):
        """Test empty batches never touch the client."""
        redis = FakeRedis()
        redis.fail = True
        cache = RedisCachestore(client=redis)

        assert cache.get_entities([]) == {}
        cache.set_entities({})
        cache.delete_entities([])
