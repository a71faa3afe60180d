"""
In-memory cache of validated asset payloads.

Keyed by reference. Entries expire after `ttl_seconds`. When a new entry
would push the cache over `max_bytes`, expired entries are dropped first,
then the oldest 25% of entries, repeated until the new entry fits.
"""

import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import structlog

from tryon_assets.models.asset_models import MeshSummary

logger = structlog.get_logger(__name__)

EVICTION_FRACTION = 0.25


@dataclass
class CacheEntry:
    payload: bytes
    summary: Optional[MeshSummary]
    stored_at: float

    @property
    def size(self) -> int:
        return len(self.payload)


class AssetCache:
    """
    Byte-budgeted asset cache.

    Attributes:
        max_bytes: Total payload budget
        ttl_seconds: Entry lifetime (None = no expiry)
    """

    def __init__(
        self,
        max_bytes: int = 50 * 1024 * 1024,
        ttl_seconds: float | None = 7 * 24 * 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_bytes <= 0:
            raise ValueError("max_bytes must be > 0")
        self.max_bytes = max_bytes
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def get(self, reference: str) -> CacheEntry | None:
        entry = self._entries.get(reference)
        if entry is not None and self._expired(entry):
            del self._entries[reference]
            entry = None

        if entry is None:
            self._misses += 1
            return None
        self._hits += 1
        return entry

    def put(self, reference: str, payload: bytes, summary: MeshSummary | None = None) -> bool:
        """
        Store a payload.

        Returns:
            False if the payload alone exceeds the budget (not cached)
        """
        if len(payload) > self.max_bytes:
            logger.debug("Asset too large to cache", reference=reference, bytes=len(payload))
            return False

        self._entries.pop(reference, None)
        if self.total_bytes + len(payload) > self.max_bytes:
            self.cleanup_expired()
        while self._entries and self.total_bytes + len(payload) > self.max_bytes:
            self._evict_oldest()

        self._entries[reference] = CacheEntry(payload=payload, summary=summary, stored_at=self._clock())
        return True

    def __contains__(self, reference: str) -> bool:
        entry = self._entries.get(reference)
        return entry is not None and not self._expired(entry)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def total_bytes(self) -> int:
        return sum(e.size for e in self._entries.values())

    def cleanup_expired(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        expired = [ref for ref, entry in self._entries.items() if self._expired(entry)]
        for ref in expired:
            del self._entries[ref]
        if expired:
            logger.debug("Removed expired cache entries", count=len(expired))
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def stats(self) -> dict[str, Any]:
        lookups = self._hits + self._misses
        return {
            "entries": len(self._entries),
            "total_bytes": self.total_bytes,
            "max_bytes": self.max_bytes,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / lookups if lookups else 0.0,
        }

    def _expired(self, entry: CacheEntry) -> bool:
        if self.ttl_seconds is None:
            return False
        return self._clock() - entry.stored_at > self.ttl_seconds

    def _evict_oldest(self) -> None:
        by_age = sorted(self._entries.items(), key=lambda item: item[1].stored_at)
        count = max(1, math.floor(len(by_age) * EVICTION_FRACTION))
        for ref, _ in by_age[:count]:
            del self._entries[ref]
        logger.info("Evicted oldest cache entries", count=count, remaining=len(self._entries))
