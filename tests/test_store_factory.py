"""Tests for Store.new and the akv.store() factory."""

import os

import pytest

from akv import RetryPolicy, Store, StoreConfig, store
from akv.kv.disk import Disk
from akv.kv.memory import Memory

from .test_kv_disk import open_files_under


class TestStoreFactory:
    @pytest.mark.asyncio
    async def test_default_is_memory(self):
        s = await store()
        assert isinstance(s, Store)
        assert isinstance(s.backend, Memory)

    @pytest.mark.asyncio
    async def test_memory_stores_are_independent(self):
        a = await store(":memory:")
        b = await store("memory://")
        await a.put("k", 1)
        assert await b.missing("k")

    @pytest.mark.asyncio
    async def test_disk_scheme(self, tmpdir_path):
        s = await store(f"disk://{tmpdir_path}")
        assert isinstance(s.backend, Disk)
        await s.close()

    @pytest.mark.asyncio
    async def test_bare_name_is_disk(self, tmpdir_path, monkeypatch):
        monkeypatch.chdir(tmpdir_path)
        s = await store("ckvs")
        assert isinstance(s.backend, Disk)
        assert s.backend.directory == "ckvs"
        await s.close()

    @pytest.mark.asyncio
    async def test_invalid_storage(self):
        with pytest.raises(ValueError, match="Unknown storage"):
            await store("bogus://x")

    @pytest.mark.asyncio
    async def test_disk_requires_path(self):
        with pytest.raises(ValueError, match="path is required"):
            await store("disk://")

    @pytest.mark.asyncio
    async def test_options_reach_config(self):
        policy = RetryPolicy(max_attempts=3)
        s = await store(retry=policy, raise_errors=True)
        assert s.config.retry is policy
        assert s.config.raise_errors


class TestStoreNew:
    @pytest.mark.asyncio
    async def test_from_mapping(self):
        s = await Store.new({"connection": ":memory:"})
        assert isinstance(s.backend, Memory)

    @pytest.mark.asyncio
    async def test_from_config(self):
        s = await Store.new(StoreConfig(connection=":memory:"))
        assert await s.put("k", "v")

    @pytest.mark.asyncio
    async def test_connection_errors_propagate(self, tmpdir_path):
        blocker = f"{tmpdir_path}/file"
        with open(blocker, "w") as f:
            f.write("not a directory")
        with pytest.raises(OSError):
            await Store.new({"connection": f"disk://{blocker}/db"})


class TestStoreLifecycle:
    @pytest.mark.asyncio
    async def test_context_manager_closes(self, tmpdir_path):
        async with await store(f"disk://{tmpdir_path}") as s:
            await s.put("k", "v")
        async with await store(f"disk://{tmpdir_path}") as s:
            assert await s.get("k") == "v"

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        s = await store()
        await s.close()
        await s.close()

    @pytest.mark.asyncio
    async def test_disk_data_survives_reopen(self, tmpdir_path):
        s = await store(f"disk://{tmpdir_path}")
        await s.put_many([("a", 1), ("b", 2)])
        await s.close()
        s = await store(f"disk://{tmpdir_path}")
        assert await s.count() == 2
        assert sorted(await s.all()) == [("a", 1), ("b", 2)]
        await s.close()

    @pytest.mark.asyncio
    @pytest.mark.skipif(not os.path.isdir("/proc/self/fd"), reason="needs /proc")
    async def test_close_releases_disk_files(self, tmpdir_path):
        s = await store(f"disk://{tmpdir_path}")
        await s.put_many([(f"k{i}", i) for i in range(20)])
        assert await s.count() == 20
        await s.close()
        assert open_files_under(tmpdir_path) == []
