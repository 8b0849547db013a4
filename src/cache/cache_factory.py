# src/cache/cache_factory.py — v3
"""Factory for cache store instantiation."""

from __future__ import annotations

from assetpipe.cache.base_cache_store import BaseCacheStore
from assetpipe.config.settings import Settings

SQLITE_DB_NAME = "assetpipe_cache.db"


def create_cache_store(namespace: str, settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend for one namespace.

    Args:
        namespace: Store namespace, one per transformer.
        settings: Application settings. Defaults to JSON backend.

    Returns:
        Configured BaseCacheStore implementation.
    """
    backend = "json" if settings is None else settings.cache_backend
    cache_root = "~/.assetpipe/cache" if settings is None else str(settings.cache_root)

    if backend == "json":
        from assetpipe.cache.json_store import JsonCacheStore
        return JsonCacheStore(cache_root=cache_root, namespace=namespace)

    if backend == "sqlite":
        from assetpipe.cache.sqlite_store import SqliteCacheStore
        return SqliteCacheStore(
            db_path=f"{cache_root}/{SQLITE_DB_NAME}", namespace=namespace,
        )

    raise ValueError(f"Unsupported cache backend: {backend!r}")
