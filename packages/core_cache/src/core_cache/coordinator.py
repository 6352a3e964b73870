"""
In-process TTL cache with per-key coalescing of concurrent fetches.

Per key the coordinator moves MISS → FETCH_OR_JOIN → RESOLVED:

* :meth:`CacheCoordinator.lookup` answers from a fresh entry or reports a miss.
* :meth:`CacheCoordinator.resolve_or_join` runs at most one producer per key;
  concurrent callers for the same key await the same task and receive the
  same settled value.  The task stores its value, then clears the in-flight
  marker whether the producer succeeded or raised.

The shared fetch is an ``asyncio.Task`` awaited through ``asyncio.shield``:
cancelling one waiter cancels only that wait.  The maps are guarded by a
``threading.Lock`` so check-then-insert and insert-then-clear stay atomic
even when callers live on different threads.
"""
from __future__ import annotations

import asyncio
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, asdict
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Tuple, TypeVar

import core_metrics
from core_logging import (
    get_logger, log_cache_hit, log_cache_miss, log_cache_join, log_cache_set, log_cache_evict,
)

logger = get_logger("core_cache")

T = TypeVar("T")
Producer = Callable[[], Awaitable[T]]


@dataclass
class CacheEntry(Generic[T]):
    timestamp: float
    value: T
    ttl_sec: float

    def is_fresh(self, now: float) -> bool:
        return (now - self.timestamp) <= self.ttl_sec


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    joins: int = 0
    fetches: int = 0
    stores: int = 0
    expirations: int = 0
    evictions: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def _consume_result(task: "asyncio.Task[Any]") -> None:
    # Every waiter may have been cancelled; retrieve the outcome so asyncio
    # does not report an unretrieved exception.
    if not task.cancelled():
        task.exception()


class CacheCoordinator(Generic[T]):
    """
    Injectable TTL cache + in-flight registry.  One instance per app; tests
    build their own with a fake ``clock``.
    """

    def __init__(
        self,
        *,
        ttl_sec: float,
        max_entries: int,
        namespace: str = "options",
        ttl_for: Optional[Callable[[T], float]] = None,
        clock: Callable[[], float] = time.monotonic,
        metric_prefix: str = "navigator",
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.ttl_sec = float(ttl_sec)
        self.max_entries = int(max_entries)
        self.namespace = namespace
        self._ttl_for = ttl_for
        self._clock = clock
        self._metric = f"{metric_prefix}_cache_events_total"
        self._size_metric = f"{metric_prefix}_cache_entries"
        self._entries: "OrderedDict[str, CacheEntry[T]]" = OrderedDict()
        self._inflight: Dict[str, "asyncio.Task[T]"] = {}
        self._lock = threading.Lock()
        self.stats = CacheStats()

    # ------------------------------------------------------------------ #
    # Introspection                                                       #
    # ------------------------------------------------------------------ #
    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def inflight_count(self) -> int:
        with self._lock:
            return len(self._inflight)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    # ------------------------------------------------------------------ #
    # Internals (caller holds self._lock)                                 #
    # ------------------------------------------------------------------ #
    def _event(self, event: str) -> None:
        core_metrics.counter(self._metric, 1, event=event)

    def _purge_locked(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if not e.is_fresh(now)]
        for k in expired:
            del self._entries[k]
            self.stats.expirations += 1
            log_cache_evict(logger, namespace=self.namespace, key=k, reason="expired")
        while len(self._entries) > self.max_entries:
            k, _ = self._entries.popitem(last=False)
            self.stats.evictions += 1
            log_cache_evict(logger, namespace=self.namespace, key=k, reason="capacity")
            self._event("evict")

    def _fresh_locked(self, key: str, now: float) -> Optional[CacheEntry[T]]:
        self._purge_locked(now)
        return self._entries.get(key)

    # ------------------------------------------------------------------ #
    # Public API                                                          #
    # ------------------------------------------------------------------ #
    def lookup(self, key: str) -> Optional[T]:
        """Return the cached value for *key* if still within its TTL."""
        now = self._clock()
        with self._lock:
            entry = self._fresh_locked(key, now)
            if entry is None:
                self.stats.misses += 1
            else:
                self.stats.hits += 1
        if entry is None:
            log_cache_miss(logger, namespace=self.namespace, key=key)
            self._event("miss")
            return None
        log_cache_hit(logger, namespace=self.namespace, key=key,
                      age_ms=int((now - entry.timestamp) * 1000))
        self._event("hit")
        return entry.value

    def store(self, key: str, value: T) -> None:
        """Insert or refresh *key*; a refreshed key moves to the end of insertion order."""
        ttl = float(self._ttl_for(value)) if self._ttl_for is not None else self.ttl_sec
        now = self._clock()
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(timestamp=now, value=value, ttl_sec=ttl)
            self.stats.stores += 1
            self._purge_locked(now)
            size = len(self._entries)
        log_cache_set(logger, namespace=self.namespace, key=key, ttl_ms=int(ttl * 1000), size=size)
        self._event("store")
        core_metrics.gauge(self._size_metric, size)

    async def _run_producer(self, key: str, producer: Producer[T]) -> T:
        try:
            value = await producer()
            self.store(key, value)
            return value
        finally:
            with self._lock:
                if self._inflight.get(key) is asyncio.current_task():
                    del self._inflight[key]

    async def resolve_or_join(self, key: str, producer: Producer[T]) -> T:
        """
        Resolve *key* with *producer*, or join the fetch already underway.

        Every concurrent caller receives the identical settled value.  If the
        producer raises, every waiter sees the exception and nothing is
        stored.  A fresh entry written by a fetch that finished after this
        caller's :meth:`lookup` is returned without starting a new one.
        """
        value, _ = await self.get_or_resolve(key, producer, check_cache=False)
        return value

    async def get_or_resolve(
        self, key: str, producer: Producer[T], *, check_cache: bool = True,
    ) -> Tuple[T, bool]:
        """
        Lookup + resolve in one step.  Returns ``(value, cache_hit)``.
        """
        if check_cache:
            cached = self.lookup(key)
            if cached is not None:
                return cached, True

        now = self._clock()
        with self._lock:
            entry = self._fresh_locked(key, now)
            task = None if entry is not None else self._inflight.get(key)
            joined = task is not None
            if entry is None and task is None:
                task = asyncio.ensure_future(self._run_producer(key, producer))
                task.add_done_callback(_consume_result)
                self._inflight[key] = task
                self.stats.fetches += 1
            elif joined:
                self.stats.joins += 1

        if entry is not None:
            return entry.value, True
        if joined:
            log_cache_join(logger, namespace=self.namespace, key=key)
            self._event("join")
        else:
            self._event("fetch")
        assert task is not None
        return await asyncio.shield(task), False
