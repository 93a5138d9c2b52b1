"""Cache: Redis-backed tenant lookup cache."""

from switchboard.infrastructure.cache.cache_protocol import CacheProtocol
from switchboard.infrastructure.cache.redis_cache import CacheService

__all__ = ["CacheProtocol", "CacheService"]
