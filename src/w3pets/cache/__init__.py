"""
Redis-backed storage for short-lived state.
"""

from .redis_cache import RedisCache, get_cache

__all__ = ["RedisCache", "get_cache"]
