"""In-memory backend."""

import logging
import threading
from typing import Any, Hashable

from ..errors import NotFound, VersionConflict
from .base import Backend, Document, next_rev

logger = logging.getLogger(__name__)


class Memory(Backend):
    """A memory-backed document store. Contents are lost on close."""

    def __init__(self) -> None:
        self.memory: dict[Hashable, Document] = {}
        self._lock = threading.Lock()

    async def get(self, key: Hashable) -> Document:
        doc = self.memory.get(key)
        if doc is None:
            raise NotFound(key)
        return doc

    async def put(self, key: Hashable, value: Any, rev: str | None) -> str:
        with self._lock:
            current = self.memory.get(key)
            actual = current.rev if current is not None else None
            if actual != rev:
                raise VersionConflict(key, rev, actual)
            new_rev = next_rev(actual)
            self.memory[key] = Document(key, value, new_rev)
        logger.debug("Memory: PUT key=%r rev=%s", key, new_rev)
        return new_rev

    async def remove(self, key: Hashable, rev: str) -> None:
        with self._lock:
            current = self.memory.get(key)
            if current is None:
                raise NotFound(key)
            if current.rev != rev:
                raise VersionConflict(key, rev, current.rev)
            del self.memory[key]
        logger.debug("Memory: REMOVE key=%r", key)

    async def keys(self) -> list[Hashable]:
        return list(self.memory)

    async def count(self) -> int:
        return len(self.memory)

    async def erase(self) -> None:
        with self._lock:
            self.memory.clear()

    async def close(self) -> None:
        size = len(self.memory)
        self.memory.clear()
        logger.debug("Memory: closed, dropped %d entries", size)
