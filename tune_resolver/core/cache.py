"""
Key-value cache for asynchronous upstream lookups.

CacheProvider memoizes the result of an async producer, keyed by the
producer's identity plus its serialized arguments, for a per-call TTL.

Behavior:
    - Hit (present and unexpired): returned without calling the producer.
    - Expired entries are dropped whenever a new entry is stored, and at
      most MAX_ENTRIES are kept (least recently used goes first).
    - Single flight: while a fetch for a key is in progress, every other
      caller with the same key awaits that same fetch.
    - Errors are never cached. A failed producer call is raised to every
      caller waiting on it, and the next call tries again.

Usage:
    cache = CacheProvider()

    videos = await cache.wrap(
        client.list_videos,
        ["dQw4w9WgXcQ"],
        expires_in=ONE_HOUR_IN_SECONDS
    )
"""

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from cachetools import TLRUCache

from tune_resolver.core.logger import get_logger

logger = get_logger(__name__)


ONE_MINUTE_IN_SECONDS = 60
ONE_HOUR_IN_SECONDS = 60 * ONE_MINUTE_IN_SECONDS
MAX_ENTRIES = 10_000


@dataclass
class _CacheEntry:
    value: Any
    expires_in: float


def _time_to_use(_key: str, entry: _CacheEntry, now: float) -> float:
    return now + entry.expires_in


def _producer_identity(producer: Callable[..., Any]) -> str:
    """
    Return a stable name for a producer.

    Bound methods of different instances share an identity, so two
    clients configured the same way share cache entries.
    """
    func = getattr(producer, "__func__", producer)
    module = getattr(func, "__module__", None) or ""
    qualname = getattr(func, "__qualname__", None) or repr(func)
    return f"{module}.{qualname}"


def _mark_exception_retrieved(task: asyncio.Task) -> None:
    # Waiters may all have been cancelled; nobody else reads the failure
    if not task.cancelled():
        task.exception()


def make_cache_key(producer: Callable[..., Any], args: tuple, kwargs: dict) -> str:
    """
    Build the cache key for a producer call.

    Args:
        producer: The async callable being memoized.
        args: Positional arguments of the call.
        kwargs: Keyword arguments of the call.

    Returns:
        "<module>.<qualname>:<json>" where the JSON is sorted and falls
        back to str() for values JSON cannot encode.
    """
    serialized = json.dumps(
        {"args": list(args), "kwargs": kwargs},
        sort_keys=True,
        default=str,
        separators=(",", ":")
    )
    return f"{_producer_identity(producer)}:{serialized}"


class CacheProvider:
    """
    In-process TTL cache with single-flight fetches.

    Attributes:
        _entries: Stored values by key; expiry is per entry.
        _pending: In-flight fetch tasks by key.

    Concurrency:
        Designed for a single asyncio event loop. No locking is needed
        because there is no await between checking and registering a
        pending fetch.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = MAX_ENTRIES
    ) -> None:
        self._entries: TLRUCache = TLRUCache(maxsize=max_entries, ttu=_time_to_use, timer=clock)
        self._pending: dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)

    async def wrap(
        self,
        producer: Callable[..., Awaitable[Any]],
        *args: Any,
        expires_in: float,
        **kwargs: Any
    ) -> Any:
        """
        Return the cached result of producer(*args, **kwargs).

        Args:
            producer: Async callable to invoke on a miss.
            *args: Positional arguments, part of the cache key.
            expires_in: Lifetime of a stored result, in seconds.
            **kwargs: Keyword arguments, part of the cache key.

        Returns:
            The cached or freshly produced value.

        Raises:
            Whatever the producer raises. Nothing is stored in that case.
        """
        key = make_cache_key(producer, args, kwargs)

        entry = self._entries.get(key)
        if entry is not None:
            logger.debug(f"Cache hit: {key[:120]}")
            return entry.value

        task = self._pending.get(key)
        if task is None:
            logger.debug(f"Cache miss: {key[:120]}")
            task = asyncio.ensure_future(
                self._fetch(key, producer, args, kwargs, expires_in)
            )
            task.add_done_callback(_mark_exception_retrieved)
            self._pending[key] = task

        # A cancelled caller must not cancel the fetch other callers share
        return await asyncio.shield(task)

    async def _fetch(
        self,
        key: str,
        producer: Callable[..., Awaitable[Any]],
        args: tuple,
        kwargs: dict,
        expires_in: float
    ) -> Any:
        try:
            value = await producer(*args, **kwargs)
            self._entries[key] = _CacheEntry(value=value, expires_in=expires_in)
            return value
        finally:
            self._pending.pop(key, None)

    def clear(self) -> None:
        """Drop every stored entry. In-flight fetches still complete."""
        self._entries.clear()
