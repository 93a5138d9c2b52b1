"""Redis-based cache for tenant lookups.

Every webhook and admin request resolves its tenant, so tenant rows are
cached by id and by code. A missing or failing Redis disables the cache;
callers fall through to the database.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import redis.asyncio as redis

from switchboard.core.config import get_settings

logger = logging.getLogger(__name__)


class CacheService:
    """Async Redis cache with TTL support. Call connect() at startup and disconnect() at shutdown."""

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        self.redis = redis_client
        self.settings = get_settings()
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish Redis connection. Failure leaves the cache disabled."""
        if self.redis is not None:
            return
        try:
            self.redis = redis.Redis(
                host=self.settings.redis_host,
                port=self.settings.redis_port,
                db=self.settings.redis_db,
                password=self.settings.redis_password.get_secret_value() if self.settings.redis_password else None,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_keepalive=True,
            )
            await self.redis.ping()
            self._connected = True
            logger.info("Redis cache connected: %s:%s", self.settings.redis_host, self.settings.redis_port)
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Redis connection failed: %s. Cache disabled.", e)
            self._connected = False
            self.redis = None

    async def disconnect(self) -> None:
        if self.redis:
            await self.redis.close()
            self.redis = None
            self._connected = False
            logger.info("Redis cache disconnected")

    def is_available(self) -> bool:
        return self._connected and self.redis is not None

    async def get(self, key: str) -> Any | None:
        """Return cached value (JSON-deserialized) or None if missing/unavailable."""
        if not self.is_available() or self.redis is None:
            return None
        try:
            value = await self.redis.get(key)
        except redis.RedisError:
            logger.warning("Cache get error for key %s", key, exc_info=True)
            return None
        if value is None:
            logger.debug("Cache MISS: %s", key)
            return None
        logger.debug("Cache HIT: %s", key)
        return json.loads(value)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        if not self.is_available() or self.redis is None:
            return False
        ttl = ttl or self.settings.cache_ttl_tenants
        try:
            await self.redis.setex(key, ttl, json.dumps(value))
        except redis.RedisError:
            logger.warning("Cache set error for key %s", key, exc_info=True)
            return False
        logger.debug("Cache SET: %s (TTL: %ss)", key, ttl)
        return True

