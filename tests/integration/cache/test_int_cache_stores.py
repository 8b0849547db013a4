# tests/integration/cache/test_int_cache_stores.py — v3
"""Integration tests for cache backends: JSON + SQLite.

No external services required.
Coverage targets: json_store.py, sqlite_store.py, cache_factory.py, models.py
"""

from __future__ import annotations

from pathlib import Path

import pytest

from assetpipe.cache.base_cache_store import BaseCacheStore
from assetpipe.cache.cache_factory import SQLITE_DB_NAME, create_cache_store
from assetpipe.cache.json_store import JsonCacheStore
from assetpipe.cache.models import CacheEntry
from assetpipe.cache.sqlite_store import SqliteCacheStore
from assetpipe.config.settings import Settings
from assetpipe.core.models import CompileResult


def _make_entry(key: str = "abc123", code: str = "a{}", namespace: str = "css-1") -> CacheEntry:
    return CacheEntry(
        key=key,
        namespace=namespace,
        code=code,
        media_type="text/css",
        dependent_files=["/src/base.less"],
    )


@pytest.fixture(params=["json", "sqlite"])
def store(request, tmp_path: Path) -> BaseCacheStore:
    if request.param == "json":
        return JsonCacheStore(cache_root=tmp_path, namespace="css-1")
    return SqliteCacheStore(db_path=tmp_path / "cache.db", namespace="css-1")


class TestCacheStores:

    @pytest.mark.asyncio
    async def test_put_and_get(self, store: BaseCacheStore):
        await store.put("k1", _make_entry(key="k1"))
        result = await store.get("k1")
        assert result is not None
        assert result.code == "a{}"
        assert result.dependent_files == ["/src/base.less"]

    @pytest.mark.asyncio
    async def test_get_missing(self, store: BaseCacheStore):
        assert await store.get("nonexistent") is None

    @pytest.mark.asyncio
    async def test_put_overwrite(self, store: BaseCacheStore):
        await store.put("k", _make_entry(code="old"))
        await store.put("k", _make_entry(code="new"))
        result = await store.get("k")
        assert result.code == "new"

    @pytest.mark.asyncio
    async def test_delete(self, store: BaseCacheStore):
        await store.put("k", _make_entry())
        await store.delete("k")
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_delete_missing_no_error(self, store: BaseCacheStore):
        await store.delete("nope")

    @pytest.mark.asyncio
    async def test_list_entries(self, store: BaseCacheStore):
        await store.put("k1", _make_entry(key="k1"))
        await store.put("k2", _make_entry(key="k2"))
        entries = await store.list_entries()
        assert {e.key for e in entries} == {"k1", "k2"}

    def test_namespace(self, store: BaseCacheStore):
        assert store.namespace == "css-1"


class TestNamespaceIsolation:
    @pytest.mark.asyncio
    async def test_json_namespaces_do_not_mix(self, tmp_path: Path):
        a = JsonCacheStore(cache_root=tmp_path, namespace="a-1")
        b = JsonCacheStore(cache_root=tmp_path, namespace="b-1")
        await a.put("k", _make_entry(namespace="a-1"))
        assert await b.get("k") is None
        assert await b.list_entries() == []

    @pytest.mark.asyncio
    async def test_sqlite_namespaces_do_not_mix(self, tmp_path: Path):
        db = tmp_path / "cache.db"
        a = SqliteCacheStore(db_path=db, namespace="a-1")
        b = SqliteCacheStore(db_path=db, namespace="b-1")
        await a.put("k", _make_entry(namespace="a-1"))
        assert await b.get("k") is None
        assert len(await a.list_entries()) == 1
        a.close()
        b.close()

    @pytest.mark.asyncio
    async def test_json_corrupt_entry_is_miss(self, tmp_path: Path):
        store = JsonCacheStore(cache_root=tmp_path, namespace="a-1")
        (tmp_path / "a-1" / "bad.json").write_text("{oops", encoding="utf-8")
        assert await store.get("bad") is None
        assert await store.list_entries() == []

    @pytest.mark.asyncio
    async def test_json_no_temp_files_left(self, tmp_path: Path):
        store = JsonCacheStore(cache_root=tmp_path, namespace="a-1")
        await store.put("k", _make_entry())
        assert [p.name for p in (tmp_path / "a-1").iterdir()] == ["k.json"]


class TestCacheEntry:
    def test_round_trip_result(self):
        result = CompileResult(code="x", media_type="text/css", dependent_files=["a"])
        entry = CacheEntry.from_result("k", "css-1", result)
        assert entry.to_result() == result
        assert entry.created_at is not None


class TestCacheFactory:
    def test_default_is_json(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        store = create_cache_store("css-1")
        assert isinstance(store, JsonCacheStore)

    def test_json_from_settings(self, tmp_path: Path):
        s = Settings(_env_file=None, cache_root=tmp_path)
        store = create_cache_store("css-1", s)
        assert isinstance(store, JsonCacheStore)
        assert (tmp_path / "css-1").is_dir()

    def test_sqlite_from_settings(self, tmp_path: Path):
        s = Settings(_env_file=None, cache_root=tmp_path, cache_backend="sqlite")
        store = create_cache_store("css-1", s)
        assert isinstance(store, SqliteCacheStore)
        assert (tmp_path / SQLITE_DB_NAME).exists()
        store.close()

    def test_unsupported_backend(self, tmp_path: Path):
        s = Settings(_env_file=None, cache_root=tmp_path).model_copy(
            update={"cache_backend": "redis"}
        )
        with pytest.raises(ValueError, match="Unsupported"):
            create_cache_store("css-1", s)
