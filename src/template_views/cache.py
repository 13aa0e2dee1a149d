"""
Keyed cache of in-flight and completed path lookups.

Concurrent cached lookups for the same path share one task, and a lookup
that fails is evicted so the next request starts over.
"""
import asyncio
import logging
import os
from typing import Any, Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

def normalize_key(path: "os.PathLike[str] | str") -> str:
    """Normalize a path to the absolute form used as a cache key."""
    return os.path.abspath(os.fspath(path))

class PathCache:
    """
    Cache of asyncio tasks keyed by absolute path.
    """

    def __init__(self, name: str = "paths"):
        """
        Initialize an empty cache.

        Args:
            name: Label used in log messages
        """
        self.name = name
        self._entries: Dict[str, "asyncio.Task[Any]"] = {}

    async def get(
        self,
        key: "os.PathLike[str] | str",
        compute: Callable[[], Awaitable[Any]],
        use_cache: bool = False,
    ) -> Any:
        """
        Resolve the value for a path.

        Args:
            key: Path identifying the value
            compute: Zero-argument coroutine factory producing the value
            use_cache: Whether to read and populate the cache

        Returns:
            The resolved value; coalesced callers receive the same object
        """
        if not use_cache:
            return await compute()

        key = normalize_key(key)
        task = self._entries.get(key)
        if task is None:
            task = self.populate(key, compute)
        else:
            logger.debug("%s cache hit: %s", self.name, key)

        return await asyncio.shield(task)

    def populate(
        self,
        key: "os.PathLike[str] | str",
        compute: Callable[[], Awaitable[Any]],
    ) -> "asyncio.Task[Any]":
        """
        Start computing a value and store the pending task under ``key``.

        The entry is removed inside the task when ``compute`` fails, so it is
        gone before any caller sees the failure.
        """
        key = normalize_key(key)

        async def resolve() -> Any:
            try:
                return await compute()
            except BaseException as e:
                if self._entries.get(key) is asyncio.current_task():
                    del self._entries[key]
                    logger.debug("%s cache evicted %s after %s", self.name, key, type(e).__name__)
                raise

        logger.debug("%s cache miss: %s", self.name, key)
        task = asyncio.ensure_future(resolve())
        self._entries[key] = task
        return task

    def invalidate(self, key: "os.PathLike[str] | str") -> bool:
        """Drop a single entry. Returns True if an entry was removed."""
        return self._entries.pop(normalize_key(key), None) is not None

    def clear(self) -> None:
        """Drop every entry. Pending tasks still complete for their callers."""
        self._entries.clear()
        logger.debug("%s cache cleared", self.name)

    def keys(self) -> List[str]:
        return list(self._entries)

    def peek(self, key: "os.PathLike[str] | str") -> Optional["asyncio.Task[Any]"]:
        return self._entries.get(normalize_key(key))

    def __contains__(self, key: "os.PathLike[str] | str") -> bool:
        return normalize_key(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
