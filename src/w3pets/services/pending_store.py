"""
Time-boxed records for signup verification and password reset.

Records are kept in Redis under a SHA-256 digest of the emailed token, with a
TTL equal to the record lifetime, so they survive restarts and are visible to
every API instance. The creation time is stored as well and checked on read,
which keeps the expiry exact even if a TTL is extended by hand.
"""

import hashlib
from datetime import datetime, timedelta
from typing import Any, Dict

from w3pets.cache.redis_cache import RedisCache
from w3pets.utils.exceptions import ExpiredOrInvalidTokenError
from w3pets.utils.logger import get_logger

logger = get_logger(__name__)


VERIFICATION_LIFETIME = timedelta(hours=24)
RESET_LIFETIME = timedelta(hours=1)


class PendingTokenStore:
    """Expiring, single-use records keyed by an emailed token."""

    def __init__(self, cache: RedisCache, namespace: str, lifetime: timedelta, label: str):
        """
        Args:
            cache: Redis cache
            namespace: Key namespace inside Redis
            lifetime: How long a record stays valid
            label: Human readable name used in error messages ("verification link")
        """
        self.cache = cache
        self.namespace = namespace
        self.lifetime = lifetime
        self.label = label

    @staticmethod
    def _key(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    def put(self, token: str, record: Dict[str, Any]) -> None:
        """Store a record under ``token`` for the configured lifetime."""
        payload = dict(record)
        payload["created_at"] = datetime.utcnow().isoformat()
        self.cache.set(self.namespace, self._key(token), payload, ttl=int(self.lifetime.total_seconds()))
        logger.debug(f"Stored pending {self.namespace} record")

    def _check(self, token: str, record) -> Dict[str, Any]:
        if record is None:
            raise ExpiredOrInvalidTokenError(f"Invalid or expired {self.label}")

        created_at = datetime.fromisoformat(record["created_at"])
        if datetime.utcnow() - created_at > self.lifetime:
            self.discard(token)
            raise ExpiredOrInvalidTokenError(f"{self.label.capitalize()} has expired")

        return record

    def consume(self, token: str) -> Dict[str, Any]:
        """
        Read and delete a record in one atomic step.

        Raises:
            ExpiredOrInvalidTokenError: If the record is missing, already used or expired
        """
        return self._check(token, self.cache.pop(self.namespace, self._key(token)))

    def discard(self, token: str) -> None:
        """Delete a record if present."""
        self.cache.delete(self.namespace, self._key(token))


def verification_store(cache: RedisCache) -> PendingTokenStore:
    """Unverified signups, valid for 24 hours."""
    return PendingTokenStore(cache, "pending_signup", VERIFICATION_LIFETIME, "verification link")


def reset_store(cache: RedisCache) -> PendingTokenStore:
    """Password reset requests, valid for 1 hour."""
    return PendingTokenStore(cache, "password_reset", RESET_LIFETIME, "reset link")
