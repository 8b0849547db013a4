# tests/unit/cache/test_unit_compile_cache.py — v2
"""Tests for cache/compile_cache.py — lookup, fetch-on-miss, coalescing."""

from __future__ import annotations

import asyncio

import pytest

from assetpipe.cache.compile_cache import CompileCache, cache_key, namespace_for
from assetpipe.cache.fingerprint import FileFingerprinter
from assetpipe.cache.json_store import JsonCacheStore
from assetpipe.core.models import CompileResult, FingerprintInfo


def _cache(tmp_path, fingerprinter=None) -> CompileCache:
    store = JsonCacheStore(cache_root=tmp_path / "cache", namespace="fake-1")
    return CompileCache(store, fingerprinter or FileFingerprinter())


class TestCompileCache:
    @pytest.mark.asyncio
    async def test_get_miss(self, tmp_path, write_file):
        path = write_file("a.css", "a{}")
        assert await _cache(tmp_path).get(path) is None

    @pytest.mark.asyncio
    async def test_fetch_then_get(self, tmp_path, write_file):
        path = write_file("a.css", "a{}")
        cache = _cache(tmp_path)
        seen: list[FingerprintInfo] = []

        async def fetcher(p: str, info: FingerprintInfo) -> CompileResult:
            seen.append(info)
            return CompileResult(code="A{}", media_type="text/css", dependent_files=["b.css"])

        result = await cache.get_or_fetch(path, fetcher)
        assert result.code == "A{}"
        assert seen[0].source_code == "a{}"

        stored = await cache.get(path)
        assert stored == result

    @pytest.mark.asyncio
    async def test_second_fetch_served_from_store(self, tmp_path, write_file):
        path = write_file("a.css", "a{}")
        cache = _cache(tmp_path)
        calls = 0

        async def fetcher(p, info):
            nonlocal calls
            calls += 1
            return CompileResult(code="A{}", media_type="text/css")

        await cache.get_or_fetch(path, fetcher)
        await cache.get_or_fetch(path, fetcher)
        assert calls == 1

    @pytest.mark.asyncio
    async def test_same_content_different_path_shares_entry(self, tmp_path, write_file):
        a = write_file("a.css", "same{}")
        b = write_file("nested/b.css", "same{}")
        cache = _cache(tmp_path)
        calls = 0

        async def fetcher(p, info):
            nonlocal calls
            calls += 1
            return CompileResult(code="X", media_type="text/css")

        await cache.get_or_fetch(a, fetcher)
        await cache.get_or_fetch(b, fetcher)
        assert calls == 1

    @pytest.mark.asyncio
    async def test_concurrent_callers_coalesce(self, tmp_path, write_file):
        path = write_file("a.css", "a{}")
        cache = _cache(tmp_path)
        calls = 0

        async def fetcher(p, info):
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.05)
            return CompileResult(code="A{}", media_type="text/css")

        results = await asyncio.gather(*(cache.get_or_fetch(path, fetcher) for _ in range(8)))
        assert calls == 1
        assert all(r == results[0] for r in results)

    @pytest.mark.asyncio
    async def test_failed_fetch_not_stored(self, tmp_path, write_file):
        path = write_file("a.css", "a{}")
        cache = _cache(tmp_path)

        async def failing(p, info):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await cache.get_or_fetch(path, failing)
        assert await cache.get(path) is None

        async def ok(p, info):
            return CompileResult(code="A{}", media_type="text/css")

        assert (await cache.get_or_fetch(path, ok)).code == "A{}"

    @pytest.mark.asyncio
    async def test_concurrent_failure_reaches_all_waiters(self, tmp_path, write_file):
        path = write_file("a.css", "a{}")
        cache = _cache(tmp_path)

        async def failing(p, info):
            await asyncio.sleep(0.01)
            raise RuntimeError("boom")

        outcomes = await asyncio.gather(
            *(cache.get_or_fetch(path, failing) for _ in range(3)),
            return_exceptions=True,
        )
        assert all(isinstance(o, RuntimeError) for o in outcomes)

    def test_create_from_transformer_namespace(self, make_transformer, settings):
        t = make_transformer("ts", ["text/typescript"], "application/javascript", version="2.1")
        cache = CompileCache.create_from_transformer(t, FileFingerprinter(), settings)
        assert cache.namespace == "ts-2.1"
        assert namespace_for(t) == "ts-2.1"
        assert (settings.cache_root / "ts-2.1").is_dir()

    @pytest.mark.asyncio
    async def test_same_content_different_media_type_kept_apart(self, tmp_path, write_file):
        js = write_file("x.js", "")
        css = write_file("y.css", "")
        cache = _cache(tmp_path)

        async def echo_type(p, info):
            return CompileResult(code="", media_type=info.media_type)

        assert (await cache.get_or_fetch(js, echo_type)).media_type == "application/javascript"
        assert (await cache.get_or_fetch(css, echo_type)).media_type == "text/css"
        assert (await cache.get(js)).media_type == "application/javascript"


class TestCacheKey:
    def test_qualified_by_media_type(self):
        key = cache_key(FingerprintInfo(hash="abc", media_type="text/x-handlebars-template"))
        assert key == "abc-text_x-handlebars-template"

    def test_hash_only_without_media_type(self):
        assert cache_key(FingerprintInfo(hash="abc")) == "abc"

    def test_distinct_per_media_type(self):
        a = cache_key(FingerprintInfo(hash="abc", media_type="application/javascript"))
        b = cache_key(FingerprintInfo(hash="abc", media_type="text/css"))
        assert a != b
