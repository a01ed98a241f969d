"""EntityStore Redis Cachestore - Redis-Backed Entity Cache.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from entitystore_core.cachestore.base import Cachestore
from entitystore_core.errors import CachestoreError, CacheSizeExceededError, CodecError
from entitystore_core.model.key import Key, PropertyList
from entitystore_core.protocol.serializer import Serializer, get_serializer

logger = logging.getLogger(__name__)

DEFAULT_SIZE_LIMIT = 950 * 1024
DEFAULT_PREFIX = "DatastoreCache:"


@dataclass
class RedisCacheConfig:
    """Redis cachestore configuration.

    Attributes:
        host: Redis host
        port: Redis port
        db: Redis database number
        password: Redis password
        socket_timeout: Socket timeout
        socket_connect_timeout: Connection timeout
        max_connections: Connection pool size
        prefix: Key prefix
        size_limit: Maximum serialized bytes per entry
        ttl_seconds: Entry expiry, None for no expiry
        serializer: Serializer format name
    """

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0
    max_connections: int = 10
    prefix: str = DEFAULT_PREFIX
    size_limit: int = DEFAULT_SIZE_LIMIT
    ttl_seconds: Optional[float] = None
    serializer: str = "pickle"


def key_hash(key: Key) -> str:
    """Hash an entity key into a fixed-length cache key suffix."""
    return hashlib.md5(key.encode().encode("utf-8")).hexdigest()


class RedisCachestore(Cachestore):
    """Redis cachestore.

    Entity keys are stored as prefix + md5(encoded key) and values as
    serialized property lists. Entries larger than size_limit are not
    written; the rest of the batch is, and CacheSizeExceededError is
    raised afterwards.

    Example:
        cache = RedisCachestore(RedisCacheConfig(host="redis.local"))
        store = EntityStore(client, cachestore=cache)
    """

    def __init__(
        self,
        config: Optional[RedisCacheConfig] = None,
        client: Optional[Any] = None,
        serializer: Optional[Serializer] = None,
    ):
        """Initialize Redis cachestore.

        Args:
            config: Redis configuration
            client: Existing redis.Redis client to use instead of connecting
            serializer: Serializer overriding config.serializer
        """
        super().__init__()
        self.config = config or RedisCacheConfig()
        self.serializer = serializer or get_serializer(self.config.serializer)
        self._client: Optional[Any] = client
        self._pool: Optional[Any] = None

    def _ensure_connected(self) -> Any:
        """Ensure Redis connection exists.

        Returns:
            Redis client
        """
        if self._client is not None:
            return self._client

        import redis

        self._pool = redis.ConnectionPool(
            host=self.config.host,
            port=self.config.port,
            db=self.config.db,
            password=self.config.password,
            socket_timeout=self.config.socket_timeout,
            socket_connect_timeout=self.config.socket_connect_timeout,
            max_connections=self.config.max_connections,
            decode_responses=False,
        )
        self._client = redis.Redis(connection_pool=self._pool)
        logger.info(f"Connected to Redis at {self.config.host}:{self.config.port}")
        return self._client

    def _make_key(self, key: Key) -> str:
        return f"{self.config.prefix}{key_hash(key)}"

    def _fail(self, op: str, e: Exception) -> CachestoreError:
        self._stats.record_error(str(e))
        return CachestoreError(f"redis {op} error: {e}")

    def get_entities(self, keys: List[Key]) -> Dict[Key, PropertyList]:
        if not keys:
            return {}
        redis_keys = [self._make_key(k) for k in keys]
        try:
            values = self._ensure_connected().mget(redis_keys)
        except Exception as e:
            raise self._fail("mget", e) from e

        result = {}
        for key, data in zip(keys, values):
            if data is None:
                continue
            try:
                result[key] = self.serializer.deserialize(data)
            except CodecError as e:
                self._stats.record_error(str(e))
                logger.warning(f"Dropping undecodable cache entry for {key}: {e}")

        self._stats.hits += len(result)
        self._stats.misses += len(keys) - len(result)
        return result

    def set_entities(self, entries: Dict[Key, PropertyList]) -> None:
        if not entries:
            return
        oversized = []
        payloads = {}
        for key, props in entries.items():
            data = self.serializer.serialize(props)
            if len(data) > self.config.size_limit:
                oversized.append(key)
                continue
            payloads[self._make_key(key)] = data

        if payloads:
            try:
                pipe = self._ensure_connected().pipeline()
                for redis_key, data in payloads.items():
                    if self.config.ttl_seconds:
                        pipe.psetex(redis_key, int(self.config.ttl_seconds * 1000), data)
                    else:
                        pipe.set(redis_key, data)
                pipe.execute()
            except Exception as e:
                raise self._fail("set", e) from e
            self._stats.sets += len(payloads)

        if oversized:
            self._stats.oversized += len(oversized)
            raise CacheSizeExceededError(oversized, self.config.size_limit)

    def delete_entities(self, keys: List[Key]) -> None:
        if not keys:
            return
        try:
            deleted = self._ensure_connected().delete(*[self._make_key(k) for k in keys])
        except Exception as e:
            raise self._fail("delete", e) from e
        self._stats.deletes += int(deleted or 0)

    def close(self) -> None:
        """Close Redis connection."""
        if self._pool:
            self._pool.disconnect()
            self._pool = None
            self._client = None

    def __repr__(self) -> str:
        return f"RedisCachestore(host={self.config.host}, port={self.config.port})"


__all__ = ["RedisCachestore", "RedisCacheConfig", "key_hash"]
