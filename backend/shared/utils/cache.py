"""
In-process snapshot caches for upstream league data.

TTLCache holds one snapshot that is refetched once it is older than its TTL.
LoadOnceCache holds one value fetched on first use and kept for the process
lifetime.

Both coalesce concurrent misses: the first caller starts the fetch as a
task and every caller arriving while it runs awaits that same task, so a
stale period costs at most one upstream call. A failed fetch never touches
the held snapshot and is not cached; the next miss fetches again.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from shared.utils.logging import get_logger
from shared.utils.metrics import CACHE_LOOKUPS, CACHE_REFRESH_FAILURES

logger = get_logger(__name__)

T = TypeVar("T")

Loader = Callable[[], Awaitable[T]]
Clock = Callable[[], float]


@dataclass(frozen=True)
class CachedSnapshot(Generic[T]):
    """A value plus the clock reading taken when its fetch succeeded."""
    value: T
    fetched_at: float

    def age(self, now: float) -> float:
        return now - self.fetched_at

    def is_fresh(self, now: float, ttl_s: float) -> bool:
        return now - self.fetched_at < ttl_s


class _SingleFlight(Generic[T]):
    """One in-flight load shared by every concurrent caller."""

    def __init__(self, name: str, loader: Loader[T]) -> None:
        self.name = name
        self._loader = loader
        self._inflight: Optional[asyncio.Task[T]] = None

    async def run(self, on_success: Callable[[T], None]) -> T:
        task = self._inflight
        if task is None:
            # No await between the check and the assignment, so only one
            # coroutine can create the task.
            task = asyncio.ensure_future(self._load(on_success))
            self._inflight = task
            task.add_done_callback(_retrieve_exception)
        else:
            logger.debug("cache_fetch_joined", cache=self.name)
        return await asyncio.shield(task)

    async def _load(self, on_success: Callable[[T], None]) -> T:
        try:
            value = await self._loader()
        except Exception as exc:
            CACHE_REFRESH_FAILURES.labels(cache=self.name).inc()
            logger.warning("cache_refresh_failed", cache=self.name, error=str(exc))
            raise
        else:
            on_success(value)
            return value
        finally:
            if self._inflight is asyncio.current_task():
                self._inflight = None


def _retrieve_exception(task: asyncio.Task) -> None:
    # Marks a failure retrieved even when every waiter was cancelled.
    if not task.cancelled():
        task.exception()


class TTLCache(Generic[T]):
    """
    A single snapshot kept for ttl_s seconds.

    get() returns the held value while it is fresh and fetches otherwise.
    On a failed fetch the error propagates and the previous snapshot, fresh
    or stale, stays in place; callers that prefer stale data over an error
    read ``snapshot`` themselves.
    """

    def __init__(
        self,
        name: str,
        loader: Loader[T],
        ttl_s: float,
        clock: Clock = time.monotonic,
    ) -> None:
        self.name = name
        self.ttl_s = ttl_s
        self._clock = clock
        self._snapshot: Optional[CachedSnapshot[T]] = None
        self._flight: _SingleFlight[T] = _SingleFlight(name, loader)

    @property
    def snapshot(self) -> Optional[CachedSnapshot[T]]:
        """The last successfully fetched snapshot, regardless of age."""
        return self._snapshot

    def is_fresh(self) -> bool:
        snap = self._snapshot
        return snap is not None and snap.is_fresh(self._clock(), self.ttl_s)

    def age(self) -> Optional[float]:
        """Seconds since the held snapshot was fetched, None when empty."""
        snap = self._snapshot
        return None if snap is None else snap.age(self._clock())

    async def get(self) -> T:
        snap = self._snapshot
        if snap is not None and snap.is_fresh(self._clock(), self.ttl_s):
            CACHE_LOOKUPS.labels(cache=self.name, result="hit").inc()
            return snap.value
        CACHE_LOOKUPS.labels(cache=self.name, result="stale" if snap else "miss").inc()
        return await self._flight.run(self._store)

    async def refresh(self) -> T:
        """Fetch now, ignoring freshness. Same failure rules as get()."""
        return await self._flight.run(self._store)

    def _store(self, value: T) -> None:
        self._snapshot = CachedSnapshot(value=value, fetched_at=self._clock())
        logger.info("cache_refreshed", cache=self.name, ttl_s=self.ttl_s)


class LoadOnceCache(Generic[T]):
    """
    A value fetched on first use and then served for the process lifetime.

    There is no TTL and no invalidation: the value is never refetched once
    loaded. Until the first successful load every get() tries again.
    """

    def __init__(self, name: str, loader: Loader[T]) -> None:
        self.name = name
        self._value: Optional[T] = None
        self._loaded = False
        self._flight: _SingleFlight[T] = _SingleFlight(name, loader)

    @property
    def loaded(self) -> bool:
        return self._loaded

    def peek(self) -> Optional[T]:
        """The loaded value, or None before the first successful load."""
        return self._value

    async def get(self) -> T:
        if self._loaded:
            CACHE_LOOKUPS.labels(cache=self.name, result="hit").inc()
            return self._value  # type: ignore[return-value]
        CACHE_LOOKUPS.labels(cache=self.name, result="miss").inc()
        return await self._flight.run(self._store)

    def _store(self, value: T) -> None:
        self._value = value
        self._loaded = True
        logger.info("cache_loaded", cache=self.name)
