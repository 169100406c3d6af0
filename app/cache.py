"""In-memory TTL store shared by the catalog engine and its lookups.

Entries carry their own time-to-live; anything stored without one uses the
store default. The store is bounded: once ``maxsize`` entries are held,
expired entries are dropped first and then the least recently used.

Reads return a :class:`CacheLookup` so that ``False``, ``None`` and empty
collections are cacheable values distinct from a miss. The store is best
effort. Backend failures are logged and degrade to a miss.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from contextlib import suppress
from dataclasses import dataclass
from typing import Any, Callable, Hashable, NamedTuple

from cachetools import TLRUCache  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)


class _Missing:
    """Sentinel type for an absent cache entry."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass(frozen=True, slots=True)
class CacheEntry:
    value: Any
    created_at: float
    ttl: float

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl


class CacheLookup(NamedTuple):
    """Result of a cache read; ``value`` is meaningful only when ``hit``."""

    hit: bool
    value: Any = None


_MISS = CacheLookup(False)


def _time_to_use(_key: Hashable, entry: CacheEntry, _now: float) -> float:
    return entry.expires_at


class TTLStore:
    """Keyed store with per-entry TTL, a default TTL and a size bound."""

    def __init__(
        self,
        *,
        default_ttl: float,
        maxsize: int,
        check_period: float = 300,
        enabled: bool = True,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self._default_ttl = default_ttl
        self._check_period = check_period
        self._enabled = enabled
        self._timer = timer
        self._entries: TLRUCache = TLRUCache(
            maxsize=maxsize, ttu=_time_to_use, timer=timer
        )
        self._sweep_task: asyncio.Task[None] | None = None

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    @property
    def maxsize(self) -> int:
        return int(self._entries.maxsize)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return self.lookup(key).hit  # type: ignore[arg-type]

    def lookup(self, key: Hashable) -> CacheLookup:
        """Return the entry for ``key`` if present and not expired."""

        if not self._enabled:
            return _MISS
        try:
            entry = self._entries.get(key)
        except Exception:
            logger.warning("Cache read failed for %s", key, exc_info=True)
            return _MISS
        if entry is None:
            return _MISS
        return CacheLookup(True, entry.value)

    def get(self, key: Hashable, default: Any = MISSING) -> Any:
        result = self.lookup(key)
        return result.value if result.hit else default

    def set(self, key: Hashable, value: Any, ttl: float | None = None) -> None:
        """Store ``value`` under ``key``, replacing any previous entry.

        ``ttl=None`` applies the default TTL; a non-positive TTL never expires.
        """

        if not self._enabled:
            return
        effective = self._default_ttl if ttl is None else ttl
        if effective <= 0:
            effective = math.inf
        entry = CacheEntry(value=value, created_at=self._timer(), ttl=effective)
        try:
            self._entries[key] = entry
        except Exception:
            logger.warning("Cache write failed for %s", key, exc_info=True)

    def delete(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""

        expired = self._entries.expire()
        return len(expired) if expired is not None else 0

    async def start(self) -> None:
        """Launch the periodic expiry sweep."""

        if self._sweep_task is None:
            self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        if self._sweep_task is None:
            return
        self._sweep_task.cancel()
        with suppress(asyncio.CancelledError):
            await self._sweep_task
        self._sweep_task = None

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._check_period)
            try:
                removed = self.purge_expired()
            except Exception as exc:  # pragma: no cover
                logger.exception("Cache sweep failed: %s", exc)
                continue
            if removed:
                logger.debug("Cache sweep removed %s expired entries", removed)
