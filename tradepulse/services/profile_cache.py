"""In-memory cache of the signed-in users' profile records."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from threading import Lock
from uuid import UUID

from tradepulse.schemas.profile import ProfileRecord

logger = logging.getLogger(__name__)

ProfileLoader = Callable[[UUID], Awaitable[ProfileRecord]]


class ProfileCache:
    """Thread-safe cache of frozen ProfileRecords keyed by user id.

    Entries are never mutated. A write elsewhere invalidates the entry and
    the next read fetches a fresh record, so holders of an older record
    keep a consistent (stale) copy instead of seeing it change under them.
    """

    def __init__(self) -> None:
        self._cache: dict[UUID, ProfileRecord] = {}
        self._versions: dict[UUID, int] = {}
        self._epoch = 0
        self._lock = Lock()

    def _version(self, user_id: UUID) -> tuple[int, int]:
        """Must be called with lock held."""
        return self._epoch, self._versions.get(user_id, 0)

    def peek(self, user_id: UUID) -> ProfileRecord | None:
        """Return the cached record without loading."""
        with self._lock:
            return self._cache.get(user_id)

    async def get(self, user_id: UUID, loader: ProfileLoader) -> ProfileRecord:
        """Return the cached record, loading it on a miss.

        A record whose load overlapped an invalidation is returned to the
        caller but not stored.
        """
        with self._lock:
            record = self._cache.get(user_id)
            if record is not None:
                logger.debug("Profile cache hit for %s", user_id)
                return record
            version = self._version(user_id)

        logger.debug("Profile cache miss for %s", user_id)
        record = await loader(user_id)

        with self._lock:
            if self._version(user_id) == version:
                self._cache[user_id] = record
        return record

    async def refresh(self, user_id: UUID, loader: ProfileLoader) -> ProfileRecord:
        """Invalidate and reload in one call."""
        self.invalidate(user_id)
        return await self.get(user_id, loader)

    def invalidate(self, user_id: UUID) -> None:
        """Mark the user's entry stale; the next read refetches."""
        with self._lock:
            self._cache.pop(user_id, None)
            self._versions[user_id] = self._versions.get(user_id, 0) + 1
        logger.debug("Profile cache invalidated for %s", user_id)

    def clear(self, user_id: UUID | None = None) -> int:
        """Drop one user's entry (sign-out) or every entry.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            if user_id is not None:
                self._versions[user_id] = self._versions.get(user_id, 0) + 1
                return 1 if self._cache.pop(user_id, None) is not None else 0
            count = len(self._cache)
            self._cache.clear()
            self._versions.clear()
            self._epoch += 1
        logger.info("Cleared %d entries from profile cache", count)
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
