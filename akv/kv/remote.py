"""Remote document store on Redis."""

import logging
import pickle
from typing import Any, Hashable

from ..errors import NotFound, VersionConflict
from .base import Backend, Document, next_rev

logger = logging.getLogger(__name__)


class Redis(Backend):
    """Document store kept in a Redis database.

    Each key is stored under ``<prefix>:<key>`` as a pickled
    ``(rev, value)`` tuple. Revision checks use ``WATCH``/``MULTI``
    optimistic transactions, so a concurrent writer surfaces as
    ``VersionConflict``. Keys must be strings.

    Args:
        client: Async Redis client instance.
        prefix: Namespace for this store's keys.
    """

    def __init__(self, client: Any, prefix: str = "akv") -> None:
        self.client = client
        self.prefix = prefix

    @classmethod
    async def connect(cls, url: str, prefix: str = "akv") -> "Redis":
        """Create a client for ``url`` and check that the server answers."""
        from redis.asyncio import Redis as RedisClient

        client = RedisClient.from_url(url)
        await client.ping()
        logger.info("Redis: connected to %s (prefix=%s)", url, prefix)
        return cls(client, prefix=prefix)

    def _make_key(self, key: Hashable) -> str:
        if not isinstance(key, str):
            raise TypeError(f"Expected str key, got {type(key).__name__}")
        return f"{self.prefix}:{key}"

    @staticmethod
    def _decode(raw: bytes | None) -> tuple[str, Any] | None:
        return pickle.loads(raw) if raw is not None else None

    async def get(self, key: Hashable) -> Document:
        entry = self._decode(await self.client.get(self._make_key(key)))
        if entry is None:
            raise NotFound(key)
        rev, value = entry
        return Document(key, value, rev)

    async def put(self, key: Hashable, value: Any, rev: str | None) -> str:
        from redis.exceptions import WatchError

        name = self._make_key(key)
        async with self.client.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(name)
                entry = self._decode(await pipe.get(name))
                actual = entry[0] if entry is not None else None
                if actual != rev:
                    raise VersionConflict(key, rev, actual)
                new_rev = next_rev(actual)
                pipe.multi()
                pipe.set(name, pickle.dumps((new_rev, value)))
                await pipe.execute()
            except WatchError as e:
                raise VersionConflict(key, rev, None) from e
        logger.debug("Redis: PUT key=%r rev=%s", key, new_rev)
        return new_rev

    async def remove(self, key: Hashable, rev: str) -> None:
        from redis.exceptions import WatchError

        name = self._make_key(key)
        async with self.client.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(name)
                entry = self._decode(await pipe.get(name))
                if entry is None:
                    raise NotFound(key)
                if entry[0] != rev:
                    raise VersionConflict(key, rev, entry[0])
                pipe.multi()
                pipe.delete(name)
                await pipe.execute()
            except WatchError as e:
                raise VersionConflict(key, rev, None) from e
        logger.debug("Redis: REMOVE key=%r", key)

    async def _names(self) -> list[bytes]:
        return [name async for name in self.client.scan_iter(match=f"{self.prefix}:*")]

    async def keys(self) -> list[Hashable]:
        offset = len(self.prefix) + 1
        return [name.decode("utf-8")[offset:] for name in await self._names()]

    async def count(self) -> int:
        return len(await self._names())

    async def erase(self) -> None:
        names = await self._names()
        if names:
            await self.client.delete(*names)
        logger.debug("Redis: ERASE removed %d entries", len(names))

    async def close(self) -> None:
        await self.client.aclose()
