# haul_core/common/cache.py
from __future__ import annotations

import logging
from typing import Any

from django.conf import settings
from django.core.cache import BaseCache, caches

logger = logging.getLogger(__name__)

LISTING_KEY = "records:all"


class _Miss:
    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS = _Miss()


def record_key(short_id: str) -> str:
    return f"record:{short_id}"


def generation_key(key: str) -> str:
    return f"{key}:generation"


def versioned_key(key: str, generation: int) -> str:
    return f"{key}:v{generation}"


class RecordCache:
    """
    Best-effort mirror of hot records and the "all records" listing.

    Every backend failure is logged and degrades to a miss (reads) or a no-op
    (writes/deletes); callers always fall back to the database.
    """

    def __init__(self, backend: BaseCache, *, record_ttl: int | None, listing_ttl: int | None):
        self._backend = backend
        self.record_ttl = record_ttl
        self.listing_ttl = listing_ttl

    @classmethod
    def from_settings(cls) -> "RecordCache":
        return cls(
            caches[getattr(settings, "HAUL_CACHE_ALIAS", "default")],
            record_ttl=getattr(settings, "HAUL_RECORD_CACHE_TTL", 3600),
            listing_ttl=getattr(settings, "HAUL_LISTING_CACHE_TTL", 3600),
        )

    def get(self, key: str) -> Any:
        try:
            value = self._backend.get(key, MISS)
        except Exception:
            logger.warning("cache read failed for %s", key, exc_info=True)
            return MISS
        if value is MISS:
            logger.debug("cache miss for %s", key)
        return value

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """ttl=None keeps the entry until it is invalidated."""
        try:
            self._backend.set(key, value, timeout=ttl)
        except Exception:
            logger.warning("cache write failed for %s", key, exc_info=True)

    def generation(self, key: str) -> int | None:
        """
        Current generation of a generational key (see invalidate). None when
        the backend is unavailable; callers then must not cache under it.
        """
        gen_key = generation_key(key)
        try:
            self._backend.add(gen_key, 0, timeout=None)
            return int(self._backend.get(gen_key, 0))
        except Exception:
            logger.warning("cache generation read failed for %s", key, exc_info=True)
            return None

    def invalidate(self, key: str) -> None:
        """
        Move `key` to a new generation. Entries written under an older
        generation become unreachable, including ones a slow reader stores
        after this call.
        """
        gen_key = generation_key(key)
        try:
            self._backend.add(gen_key, 0, timeout=None)
            self._backend.incr(gen_key)
        except Exception:
            logger.warning("cache invalidation failed for %s", key, exc_info=True)
