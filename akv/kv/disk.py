"""Disk-backed document store using diskcache."""

import asyncio
import concurrent.futures
import logging
from typing import Any, Callable, Hashable, TypeVar, cast

from ..errors import NotFound, VersionConflict
from .base import Backend, Document, next_rev

logger = logging.getLogger(__name__)

ONE_GB = 1024 * 1024 * 1024

R = TypeVar("R")


class Disk(Backend):
    """Document store backed by diskcache (SQLite + mmap).

    Each key maps to a ``(rev, value)`` tuple. Revision checks run
    inside a diskcache transaction.

    diskcache keeps one SQLite connection per thread, so every call,
    including opening and closing, runs on a single worker thread
    owned by this backend. ``close`` releases that connection and
    stops the thread.

    Keys must be types diskcache stores natively or can pickle.
    Use ``Disk.open`` to construct.
    """

    def __init__(self, directory: str, size_limit: int = ONE_GB) -> None:
        self.directory = directory
        self.size_limit = size_limit
        self.store: Any = None
        self._closed = False
        # Single-thread executor: the diskcache connection lives on this thread.
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="akv_disk",
        )

    @classmethod
    async def open(cls, directory: str, size_limit: int = ONE_GB) -> "Disk":
        """Open (or create) the database directory without blocking the loop."""
        disk = cls(directory, size_limit)
        try:
            await disk._run(disk._connect)
        except BaseException:
            disk._executor.shutdown(wait=False)
            raise
        return disk

    async def _run(self, fn: Callable[..., R], *args: Any) -> R:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, fn, *args)

    def _connect(self) -> None:
        from diskcache import Cache as DiskCache

        self.store = DiskCache(self.directory, size_limit=self.size_limit)

    def _entry(self, key: Hashable) -> tuple[str, Any] | None:
        return cast(tuple[str, Any] | None, self.store.get(key))

    def _get(self, key: Hashable) -> Document:
        entry = self._entry(key)
        if entry is None:
            raise NotFound(key)
        rev, value = entry
        return Document(key, value, rev)

    def _put(self, key: Hashable, value: Any, rev: str | None) -> str:
        with self.store.transact():
            entry = self._entry(key)
            actual = entry[0] if entry is not None else None
            if actual != rev:
                raise VersionConflict(key, rev, actual)
            new_rev = next_rev(actual)
            self.store.set(key, (new_rev, value))
        logger.debug("Disk: PUT key=%r rev=%s", key, new_rev)
        return new_rev

    def _remove(self, key: Hashable, rev: str) -> None:
        with self.store.transact():
            entry = self._entry(key)
            if entry is None:
                raise NotFound(key)
            if entry[0] != rev:
                raise VersionConflict(key, rev, entry[0])
            self.store.delete(key, retry=False)
        logger.debug("Disk: REMOVE key=%r", key)

    def _keys(self) -> list[Hashable]:
        return list(self.store.iterkeys())

    async def get(self, key: Hashable) -> Document:
        return await self._run(self._get, key)

    async def put(self, key: Hashable, value: Any, rev: str | None) -> str:
        return await self._run(self._put, key, value, rev)

    async def remove(self, key: Hashable, rev: str) -> None:
        await self._run(self._remove, key, rev)

    async def keys(self) -> list[Hashable]:
        return await self._run(self._keys)

    async def count(self) -> int:
        return await self._run(len, self.store)

    async def erase(self) -> None:
        removed = await self._run(self.store.clear)
        logger.debug("Disk: ERASE removed %d entries", removed)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            if self.store is not None:
                await self._run(self.store.close)
        finally:
            self._executor.shutdown(wait=True)
        logger.debug("Disk: closed %s", self.directory)
