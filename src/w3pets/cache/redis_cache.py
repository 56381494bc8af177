"""
Redis key-value store with expiring entries.
"""

import json
from typing import Optional, Any

import redis
from redis.connection import ConnectionPool

from w3pets.utils.config import get_settings
from w3pets.utils.exceptions import CacheError
from w3pets.utils.logger import get_logger

logger = get_logger(__name__)


class RedisCache:
    """
    Redis client wrapper with connection pooling and JSON values.

    Keys are scoped as ``w3pets:{namespace}:{key}``. Unlike a best-effort
    cache, Redis failures are raised as ``CacheError`` because callers keep
    state here that cannot be recomputed.
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        default_ttl: int = 300,
        max_connections: int = 50,
        client: Optional[redis.Redis] = None,
    ):
        """
        Initialize Redis cache.

        Args:
            redis_url: Redis connection URL (default from settings)
            default_ttl: Default TTL in seconds
            max_connections: Maximum pool connections
            client: Ready-made client, used instead of building a pool
        """
        self.default_ttl = default_ttl

        if client is not None:
            self.client = client
            self.redis_url = None
        else:
            self.redis_url = redis_url or get_settings().redis_url
            self.pool = ConnectionPool.from_url(
                self.redis_url,
                max_connections=max_connections,
                decode_responses=True
            )
            self.client = redis.Redis(connection_pool=self.pool)
            logger.info(f"Redis cache initialized (url={self.redis_url}, pool={max_connections})")

    def _make_key(self, namespace: str, key: str) -> str:
        return f"w3pets:{namespace}:{key}"

    @staticmethod
    def _decode(cache_key: str, value: Any) -> Optional[Any]:
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            logger.error(f"Cache JSON decode error for {cache_key}: {e}")
            return None

    def get(self, namespace: str, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Returns:
            Cached value or None if not found
        """
        cache_key = self._make_key(namespace, key)

        try:
            value = self.client.get(cache_key)
        except redis.RedisError as e:
            logger.error(f"Cache get error for {cache_key}: {e}")
            raise CacheError("Temporary storage unavailable") from e

        if value is None:
            logger.debug(f"Cache miss: {cache_key}")
        return self._decode(cache_key, value)

    def set(self, namespace: str, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """
        Set value with TTL.

        Args:
            namespace: Key namespace
            key: Cache key
            value: JSON-serializable value
            ttl: TTL in seconds (default: self.default_ttl)
        """
        cache_key = self._make_key(namespace, key)
        ttl = ttl or self.default_ttl

        serialized = json.dumps(value)
        try:
            self.client.setex(cache_key, ttl, serialized)
        except redis.RedisError as e:
            logger.error(f"Cache set error for {cache_key}: {e}")
            raise CacheError("Temporary storage unavailable") from e

        logger.debug(f"Cache set: {cache_key} (ttl={ttl}s)")

    def pop(self, namespace: str, key: str) -> Optional[Any]:
        """
        Atomically read and delete a key.

        GET and DEL run in one MULTI/EXEC block, so concurrent callers can
        never both receive the same value.

        Returns:
            The stored value, or None if the key did not exist
        """
        cache_key = self._make_key(namespace, key)

        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.get(cache_key)
            pipe.delete(cache_key)
            value, deleted = pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Cache pop error for {cache_key}: {e}")
            raise CacheError("Temporary storage unavailable") from e

        logger.debug(f"Cache pop: {cache_key} (found={bool(deleted)})")
        return self._decode(cache_key, value)

    def delete(self, namespace: str, key: str) -> bool:
        """
        Delete key from cache.

        Returns:
            True if deleted, False if the key did not exist
        """
        cache_key = self._make_key(namespace, key)

        try:
            result = self.client.delete(cache_key)
        except redis.RedisError as e:
            logger.error(f"Cache delete error for {cache_key}: {e}")
            raise CacheError("Temporary storage unavailable") from e

        logger.debug(f"Cache delete: {cache_key} (deleted={result})")
        return result > 0

    def ping(self) -> bool:
        """Check Redis connectivity."""
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.error(f"Redis ping failed: {e}")
            return False


# Global cache instance
_cache: Optional[RedisCache] = None


def get_cache() -> RedisCache:
    """Get or create global cache instance."""
    global _cache
    if _cache is None:
        _cache = RedisCache()
    return _cache
