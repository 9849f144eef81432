"""Abstract backend interface."""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Hashable


@dataclass(frozen=True)
class Document:
    """A stored entry: the key, its value, and the revision that wrote it."""

    key: Hashable
    value: Any
    rev: str


def next_rev(rev: str | None) -> str:
    """Return a fresh revision following ``rev``.

    Revisions read ``<generation>-<nonce>``. The generation counts writes
    to the key; the nonce keeps two writers of the same generation apart.
    """
    generation = int(rev.split("-", 1)[0]) if rev else 0
    return f"{generation + 1}-{uuid.uuid4().hex}"


class Backend(ABC):
    """Asynchronous document store holding at most one document per key.

    Values are opaque. Every write names the revision it expects to
    replace, so a backend can refuse stale writes with
    ``VersionConflict``.
    """

    @abstractmethod
    async def get(self, key: Hashable) -> Document:
        """Return the live document for key.

        Raises:
            NotFound: If key has no document.
        """

    @abstractmethod
    async def put(self, key: Hashable, value: Any, rev: str | None) -> str:
        """Write value for key and return the new revision.

        ``rev`` must be the key's current revision, or ``None`` when the
        key must not exist yet.

        Raises:
            VersionConflict: If ``rev`` does not match the stored revision.
        """

    @abstractmethod
    async def remove(self, key: Hashable, rev: str) -> None:
        """Delete the document for key at revision ``rev``.

        Raises:
            NotFound: If key has no document.
            VersionConflict: If ``rev`` is stale.
        """

    @abstractmethod
    async def keys(self) -> list[Hashable]:
        """List every key with a live document."""

    @abstractmethod
    async def count(self) -> int:
        """Number of live documents."""

    @abstractmethod
    async def erase(self) -> None:
        """Remove every document."""

    async def close(self) -> None:
        """Release the handle. The default does nothing."""
