"""Connection strings to backend instances."""

import inspect
import logging
import threading
from dataclasses import dataclass
from typing import Awaitable, Callable, Union

from .base import Backend

logger = logging.getLogger(__name__)

MEMORY_ALIASES = (":memory:", "memory", "memory://")


@dataclass(frozen=True)
class Connection:
    """A parsed connection identifier.

    ``target`` is everything after ``<scheme>://``; ``raw`` is the
    string as given. Strings without a scheme are treated as a disk
    database directory.
    """

    scheme: str
    target: str
    raw: str

    @classmethod
    def parse(cls, connection: str) -> "Connection":
        if not isinstance(connection, str):
            raise TypeError(
                f"connection must be a string, not {type(connection).__name__}"
            )
        if connection in MEMORY_ALIASES:
            return cls("memory", "", connection)
        scheme, sep, target = connection.partition("://")
        if not sep:
            return cls("disk", connection, connection)
        return cls(scheme.lower(), target, connection)


BackendFactory = Callable[[Connection], Union[Backend, Awaitable[Backend]]]

_factories: dict[str, BackendFactory] = {}
_builtins_registered = False
_lock = threading.Lock()


def register_backend(scheme: str, factory: BackendFactory, *, replace: bool = False) -> None:
    """Register ``factory`` for connections starting with ``<scheme>://``.

    Registering the same factory twice is a no-op. Registering a
    different factory for a taken scheme raises ``ValueError`` unless
    ``replace`` is set.
    """
    scheme = scheme.lower()
    with _lock:
        existing = _factories.get(scheme)
        if existing is factory:
            return
        if existing is not None and not replace:
            raise ValueError(f"Backend already registered for scheme {scheme!r}")
        _factories[scheme] = factory
    logger.debug("Registered backend scheme %r", scheme)


def registered_schemes() -> list[str]:
    ensure_builtin_backends()
    return sorted(_factories)


def _memory(connection: Connection) -> Backend:
    from .memory import Memory

    return Memory()


async def _disk(connection: Connection) -> Backend:
    if not connection.target:
        raise ValueError("path is required for a disk connection")
    from .disk import Disk

    return await Disk.open(connection.target)


async def _redis(connection: Connection) -> Backend:
    from .remote import Redis

    return await Redis.connect(connection.raw)


_BUILTINS: dict[str, BackendFactory] = {
    "memory": _memory,
    "disk": _disk,
    "redis": _redis,
    "rediss": _redis,
}


def ensure_builtin_backends() -> None:
    """Register the built-in schemes. Safe to call any number of times.

    A factory registered for a built-in scheme beforehand is kept.
    """
    global _builtins_registered
    if _builtins_registered:
        return
    with _lock:
        for scheme, factory in _BUILTINS.items():
            _factories.setdefault(scheme, factory)
        _builtins_registered = True


async def open_backend(connection: str) -> Backend:
    """Build the backend named by ``connection``.

    Raises:
        ValueError: If the scheme has no registered backend.
    """
    ensure_builtin_backends()
    parsed = Connection.parse(connection)
    factory = _factories.get(parsed.scheme)
    if factory is None:
        raise ValueError(
            f"Unknown storage: {parsed.scheme!r} "
            f"(registered: {', '.join(registered_schemes())})"
        )
    backend = factory(parsed)
    if inspect.isawaitable(backend):
        backend = await backend
    logger.info("Opened %s backend for %r", type(backend).__name__, connection)
    return backend
