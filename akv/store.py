"""Store facade and factory function."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Generic, Hashable, Iterable, Mapping, TypeVar

from .config import StoreConfig
from .errors import ErrorKind
from .kv.base import Backend, Document
from .kv.registry import open_backend
from .outcome import Outcome, attempt
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


@dataclass(frozen=True)
class FlushOutcome:
    """What ``flush`` observed: whether erase completed, and whether the
    store was confirmed empty afterward."""

    erased: bool
    empty: bool


class Store(Generic[K, T]):
    """Asynchronous key-value store over one ``Backend``.

    Public methods never raise backend errors (unless the config sets
    ``raise_errors``): lookups return ``None`` or ``False``, listings
    return ``[]``, counts return ``0``. The most recent swallowed
    failure is kept in ``last_error``.

    Bulk methods run the single-key operation for every key
    concurrently and return results in input order.

    Use ``Store.new`` or ``akv.store`` to construct.
    """

    def __init__(self, backend: Backend, config: StoreConfig) -> None:
        self._backend = backend
        self._config = config
        self._last_error: Outcome[Any] | None = None
        self._closed = False

    @classmethod
    async def new(cls, config: StoreConfig | Mapping[str, Any]) -> Store[K, T]:
        """Open the backend named by ``config.connection``.

        Backend connection errors propagate.
        """
        if not isinstance(config, StoreConfig):
            config = StoreConfig.from_mapping(config)
        backend = await open_backend(config.connection)
        return cls(backend, config)

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def last_error(self) -> Outcome[Any] | None:
        """The last failed outcome that was collapsed to a fallback."""
        return self._last_error

    # -- Outcome collapsing --

    def _settle(self, outcome: Outcome[Any], default: Any, op: str) -> Any:
        if not outcome.ok and outcome.kind is not ErrorKind.NOT_FOUND:
            self._last_error = outcome
            logger.warning("%s failed (%s): %s", op, outcome.kind.value, outcome.error)
            if self._config.raise_errors and outcome.kind is ErrorKind.BACKEND:
                raise outcome.error
        return outcome.unwrap_or(default)

    # -- Primitives --

    async def _read(self, key: K) -> Outcome[Document]:
        return await attempt(self._backend.get(key))

    async def _lookup(self, key: K) -> Document | None:
        return self._settle(await self._read(key), None, "get")

    async def _write(self, key: K, value: T) -> Outcome[str]:
        delays = self._config.retry.delays()
        while True:
            current = await self._read(key)
            if not current.ok and current.kind is not ErrorKind.NOT_FOUND:
                return current
            rev = current.value.rev if current.ok else None
            outcome = await attempt(self._backend.put(key, value, rev))
            if outcome.kind is not ErrorKind.CONFLICT:
                return outcome
            delay = next(delays, None)
            if delay is None:
                return outcome
            logger.debug("put %r: revision conflict, retrying in %.3fs", key, delay)
            if delay:
                await asyncio.sleep(delay)

    async def _forget(self, key: K) -> bool:
        doc = await self._lookup(key)
        if doc is None:
            return False
        self._settle(await attempt(self._backend.remove(key, doc.rev)), None, "forget")
        return await self._lookup(key) is None

    async def _list_keys(self) -> list[K]:
        return self._settle(await attempt(self._backend.keys()), [], "keys")

    async def _fetch(self, keys: Iterable[K]) -> list[Document | None]:
        return list(await asyncio.gather(*(self._lookup(key) for key in keys)))

    async def _count(self) -> int:
        return self._settle(await attempt(self._backend.count()), 0, "count")

    # -- Read operations --

    async def get(self, key: K) -> T | None:
        doc = await self._lookup(key)
        return doc.value if doc is not None else None

    async def get_many(self, keys: Iterable[K]) -> list[T | None]:
        return list(await asyncio.gather(*(self.get(key) for key in keys)))

    async def has(self, key: K) -> bool:
        return await self._lookup(key) is not None

    async def has_many(self, keys: Iterable[K]) -> list[bool]:
        return list(await asyncio.gather(*(self.has(key) for key in keys)))

    async def missing(self, key: K) -> bool:
        return await self._lookup(key) is None

    async def missing_many(self, keys: Iterable[K]) -> list[bool]:
        return list(await asyncio.gather(*(self.missing(key) for key in keys)))

    async def all(self) -> list[tuple[K, T]]:
        """Every stored entry. Keys removed while listing are skipped."""
        docs = await self._fetch(await self._list_keys())
        return [(doc.key, doc.value) for doc in docs if doc is not None]

    async def keys(self) -> list[K]:
        return await self._list_keys()

    async def values(self) -> list[T]:
        docs = await self._fetch(await self._list_keys())
        return [doc.value for doc in docs if doc is not None]

    async def count(self) -> int:
        return await self._count()

    async def is_empty(self) -> bool:
        return await self._count() == 0

    async def is_not_empty(self) -> bool:
        return await self._count() != 0

    # -- Write operations --

    async def put(self, key: K, value: T) -> bool:
        """Write value for key; True if the key is present afterward.

        A revision conflict is retried according to the config's
        ``RetryPolicy``, re-reading the revision each time.
        """
        self._settle(await self._write(key, value), None, "put")
        return await self._lookup(key) is not None

    async def put_many(self, pairs: Iterable[tuple[K, T]]) -> list[bool]:
        return list(await asyncio.gather(*(self.put(key, value) for key, value in pairs)))

    async def forget(self, key: K) -> bool:
        """Remove key; True only if it was present and is now gone."""
        return await self._forget(key)

    async def forget_many(self, keys: Iterable[K]) -> list[bool]:
        return list(await asyncio.gather(*(self._forget(key) for key in keys)))

    async def pull(self, key: K) -> T | None:
        """Return the value for key and remove it."""
        doc = await self._lookup(key)
        await self._forget(key)
        return doc.value if doc is not None else None

    async def pull_many(self, keys: Iterable[K]) -> list[T | None]:
        return list(await asyncio.gather(*(self.pull(key) for key in keys)))

    async def flush_outcome(self) -> FlushOutcome:
        """Erase everything and report both the erase and the final state.

        ``empty`` is False when the count afterward cannot be read.
        """
        erased = await attempt(self._backend.erase())
        self._settle(erased, None, "flush")
        counted = await attempt(self._backend.count())
        self._settle(counted, None, "count")
        return FlushOutcome(erased=erased.ok, empty=counted.ok and counted.value == 0)

    async def flush(self) -> bool:
        """Erase everything; True if the store is empty afterward."""
        return (await self.flush_outcome()).empty

    # -- Lifecycle --

    async def close(self) -> None:
        """Release the backend handle. Further calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        await self._backend.close()
        logger.info("Closed %s backend", type(self._backend).__name__)

    async def __aenter__(self) -> Store[K, T]:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


async def store(
    connection: str = ":memory:",
    *,
    retry: RetryPolicy | None = None,
    raise_errors: bool = False,
) -> Store[Any, Any]:
    """Open a Store with sensible defaults.

    Args:
        connection: ``":memory:"`` (default), ``"disk:///path"``,
            ``"redis://host:port/db"``, or a bare directory name.
        retry: Conflict retry policy (default: one retry, no backoff).
        raise_errors: Re-raise backend failures instead of falling back.

    Returns:
        An open ``Store``.
    """
    config = StoreConfig(
        connection=connection,
        retry=retry if retry is not None else RetryPolicy(),
        raise_errors=raise_errors,
    )
    return await Store.new(config)
