"""In-process TTL cache of resolved permission sets."""

import threading
import time
from collections.abc import Callable, Hashable
from typing import cast

from loguru import logger

DEFAULT_TTL_SECONDS = 300.0


class _UserEntry:
    __slots__ = ("expires_at", "permissions")

    def __init__(self, expires_at: float) -> None:
        self.expires_at = expires_at
        self.permissions: dict[str, frozenset[str]] = {}


class InMemoryPermissionCache:
    """Per-user cache entries holding one permission set per context key.

    The whole user entry expires ``ttl`` seconds after it was created; expiry
    is checked lazily on access and an expired entry is replaced, not merged.

    Versions are ``(sequence, issued_at)`` pairs. A versioned ``put`` is
    dropped when the user or the whole cache was invalidated after the version
    was issued, or when the version is a full ``ttl`` old. Invalidation
    records therefore only need to be kept for ``ttl`` seconds.

    Args:
        ttl: Lifetime of a user entry in seconds.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl <= 0:
            raise ValueError(f"Cache TTL must be positive, got {ttl}")
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, _UserEntry] = {}
        self._sequence = 0
        self._cleared_at_sequence = 0
        # user_id -> (sequence, invalidated_at), oldest first
        self._invalidations: dict[str, tuple[int, float]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    async def get(self, user_id: str, context_key: str) -> frozenset[str] | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(user_id)
            if entry is None:
                return None
            if entry.expires_at <= now:
                del self._entries[user_id]
                logger.debug(f"Permission cache entry expired for user {user_id}")
                return None
            permissions = entry.permissions.get(context_key)

        if permissions is not None:
            logger.debug(f"Permission cache hit for user {user_id} in context {context_key}")
        return permissions

    async def put(
        self,
        user_id: str,
        context_key: str,
        permissions: frozenset[str],
        version: Hashable | None = None,
    ) -> None:
        now = self._clock()
        with self._lock:
            if version is not None and self._is_stale_locked(user_id, cast(tuple[int, float], version), now):
                logger.debug(f"Dropped stale permission set for user {user_id} in context {context_key}")
                return
            entry = self._entries.get(user_id)
            if entry is None or entry.expires_at <= now:
                entry = _UserEntry(expires_at=now + self.ttl)
                self._entries[user_id] = entry
            entry.permissions[context_key] = permissions

    async def version(self, user_id: str) -> Hashable:
        now = self._clock()
        with self._lock:
            return self._sequence, now

    async def invalidate_user(self, user_id: str) -> None:
        now = self._clock()
        with self._lock:
            self._entries.pop(user_id, None)
            self._sequence += 1
            # Re-insert so the dict stays ordered by invalidation time
            self._invalidations.pop(user_id, None)
            self._invalidations[user_id] = (self._sequence, now)
            self._prune_invalidations_locked(now)
        logger.debug(f"Permission cache invalidated for user {user_id}")

    async def invalidate_all(self) -> None:
        with self._lock:
            self._entries.clear()
            self._invalidations.clear()
            self._sequence += 1
            self._cleared_at_sequence = self._sequence
        logger.debug("Permission cache invalidated for all users")

    def _is_stale_locked(self, user_id: str, version: tuple[int, float], now: float) -> bool:
        sequence, issued_at = version
        if issued_at + self.ttl <= now or sequence < self._cleared_at_sequence:
            return True
        invalidation = self._invalidations.get(user_id)
        return invalidation is not None and sequence < invalidation[0]

    def _prune_invalidations_locked(self, now: float) -> None:
        while self._invalidations:
            user_id, (_, invalidated_at) = next(iter(self._invalidations.items()))
            if invalidated_at + self.ttl > now:
                break
            del self._invalidations[user_id]
