# src/cache/base_cache_store.py — v2
"""Abstract cache store interface.

Stores are scoped to one namespace (one transformer); keys are content
hashes within that namespace.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from assetpipe.cache.models import CacheEntry


class BaseCacheStore(ABC):
    """Storage backend for compiled results of one transformer."""

    @property
    @abstractmethod
    def namespace(self) -> str:
        """Namespace this store reads and writes."""

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Return the entry for a content hash, or None on a miss."""

    @abstractmethod
    async def put(self, key: str, entry: CacheEntry) -> None:
        """Store or replace the entry for a content hash."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Drop the entry for a content hash, if any."""

    @abstractmethod
    async def list_entries(self) -> list[CacheEntry]:
        """List all cached entries in this namespace."""
