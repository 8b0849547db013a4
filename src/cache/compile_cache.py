# src/cache/compile_cache.py — v2
"""Per-transformer result cache keyed by content fingerprint and media type.

``get_or_fetch`` coalesces concurrent requests: while a result for a given
key is being computed, every other caller asking for the same key
awaits the same in-flight task, so the fetcher runs at most once per
fingerprint. Failed fetches are never stored.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable

from assetpipe.cache.cache_factory import create_cache_store
from assetpipe.cache.models import CacheEntry
from assetpipe.core.models import CompileResult, FingerprintInfo

if TYPE_CHECKING:
    from assetpipe.cache.base_cache_store import BaseCacheStore
    from assetpipe.cache.fingerprint import FileFingerprinter
    from assetpipe.config.settings import Settings
    from assetpipe.transformers.base_transformer import BaseTransformer

logger = logging.getLogger(__name__)

Fetcher = Callable[[str, FingerprintInfo], Awaitable[CompileResult]]


class CompileCache:
    """Result cache for one transformer."""

    def __init__(self, store: BaseCacheStore, fingerprinter: FileFingerprinter) -> None:
        self._store = store
        self._fingerprinter = fingerprinter
        self._in_flight: dict[str, asyncio.Task[CompileResult]] = {}

    @classmethod
    def create_from_transformer(
        cls,
        transformer: BaseTransformer,
        fingerprinter: FileFingerprinter,
        settings: Settings | None = None,
    ) -> CompileCache:
        """Build a cache whose namespace is tied to the transformer's name and version."""
        return cls(create_cache_store(namespace_for(transformer), settings), fingerprinter)

    @property
    def namespace(self) -> str:
        return self._store.namespace

    async def get(self, file_path: str | Path) -> CompileResult | None:
        """Look up the cached result for the file's current content. Never computes."""
        info = await self._fingerprinter.get_fingerprint(file_path)
        entry = await self._store.get(cache_key(info))
        if entry is None:
            return None
        return entry.to_result()

    async def get_or_fetch(self, file_path: str | Path, fetcher: Fetcher) -> CompileResult:
        """Return the cached result, or compute, store and return a new one.

        Args:
            file_path: File to compile.
            fetcher: Coroutine function ``(path, fingerprint) -> CompileResult``
                run on a miss.
        """
        path = str(file_path)
        info = await self._fingerprinter.get_fingerprint(path)
        key = cache_key(info)

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(key, path, info, fetcher))
            self._in_flight[key] = task
            task.add_done_callback(lambda _t: self._in_flight.pop(key, None))
        else:
            logger.debug("Joining in-flight compile of %s (%s)", path, key[:12])

        return await asyncio.shield(task)

    async def _fetch(
        self, key: str, path: str, info: FingerprintInfo, fetcher: Fetcher,
    ) -> CompileResult:
        entry = await self._store.get(key)
        if entry is not None:
            logger.debug("Cache hit for %s in %s", path, self.namespace)
            return entry.to_result()

        result = await fetcher(path, info)
        if result.is_precompiled:
            await self._store.put(key, CacheEntry.from_result(key, self.namespace, result))
        return result


def namespace_for(transformer: BaseTransformer) -> str:
    return f"{transformer.name}-{transformer.version}"


def cache_key(info: FingerprintInfo) -> str:
    """Store key for a fingerprint: the content hash qualified by media type.

    Byte-identical files of different media types get separate entries, so
    an empty ``x.js`` and an empty ``y.css`` keep their own media types.
    """
    if info.media_type is None:
        return info.hash
    return f"{info.hash}-{re.sub(r'[^A-Za-z0-9.-]', '_', info.media_type)}"
