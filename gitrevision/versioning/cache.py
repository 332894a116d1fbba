"""
Keyed memoization of asynchronous computations.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


class FutureCache(Generic[K, T]):
    """
    Runs each keyed computation at most once and shares its outcome.

    The first caller for a key starts the computation as an asyncio task;
    every later or concurrent caller for that key gets the same task back.
    Awaiting it yields the same value, or raises the same exception, for
    everyone. Entries are never evicted, so a cache must not outlive the
    state its computations read.

    Usage:
        cache = FutureCache()
        value = await cache.cache(lambda: fetch(), "fetch")
    """

    def __init__(self):
        self._entries: Dict[K, "asyncio.Future[T]"] = {}

    def cache(self, compute: Callable[[], Awaitable[T]], key: K) -> "asyncio.Future[T]":
        """
        Return the pending or completed result stored under `key`.

        Args:
            compute: Zero-argument callable returning an awaitable. Only
                called when `key` has no entry yet.
            key: Identifies the computation

        Returns:
            A future shared by all callers of this key

        Raises:
            RuntimeError: If called outside a running event loop
        """
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"cache miss: {key}")
            loop = asyncio.get_running_loop()
            entry = asyncio.ensure_future(compute(), loop=loop)
            self._entries[key] = entry
        return entry

    def __contains__(self, key: K) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
