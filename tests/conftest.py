"""Shared fixtures and test backends."""

import shutil
import tempfile
from typing import Any, Hashable

import pytest_asyncio

from akv import Backend, Document, VersionConflict, store
from akv.kv.memory import Memory


class Broken(Backend):
    """A backend whose every call fails as if the server were unreachable."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def _fail(self, op: str) -> None:
        self.calls.append(op)
        raise OSError(f"backend unavailable during {op}")

    async def get(self, key: Hashable) -> Document:
        self._fail("get")

    async def put(self, key: Hashable, value: Any, rev: str | None) -> str:
        self._fail("put")

    async def remove(self, key: Hashable, rev: str) -> None:
        self._fail("remove")

    async def keys(self) -> list[Hashable]:
        self._fail("keys")

    async def count(self) -> int:
        self._fail("count")

    async def erase(self) -> None:
        self._fail("erase")


class Contended(Memory):
    """Memory backend that reports a conflict for the first ``conflicts`` puts."""

    def __init__(self, conflicts: int) -> None:
        super().__init__()
        self.conflicts = conflicts
        self.put_revs: list[str | None] = []

    async def put(self, key: Hashable, value: Any, rev: str | None) -> str:
        self.put_revs.append(rev)
        if self.conflicts > 0:
            self.conflicts -= 1
            raise VersionConflict(key, rev, "0-elsewhere")
        return await super().put(key, value, rev)


class StuckErase(Memory):
    """Memory backend whose erase fails without removing anything."""

    async def erase(self) -> None:
        raise OSError("erase failed")


@pytest_asyncio.fixture
async def tmpdir_path():
    tmpdir = tempfile.mkdtemp()
    yield tmpdir
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest_asyncio.fixture(params=["memory", "disk"])
async def kv(request, tmpdir_path):
    """An empty Store on each built-in local backend."""
    connection = ":memory:" if request.param == "memory" else f"disk://{tmpdir_path}"
    s = await store(connection)
    yield s
    await s.close()
