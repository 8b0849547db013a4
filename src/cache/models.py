# src/cache/models.py — v2
"""Cache domain models: CacheEntry.

One entry holds the compiled output of one file content (keyed by its
fingerprint hash) for one transformer namespace.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from assetpipe.core.models import CompileResult


class CacheEntry(BaseModel):
    """Single cache entry linking a content hash to compiled output."""

    key: str
    namespace: str
    code: str
    media_type: str
    dependent_files: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_result(cls, key: str, namespace: str, result: CompileResult) -> CacheEntry:
        return cls(
            key=key,
            namespace=namespace,
            code=result.code or "",
            media_type=result.media_type or "",
            dependent_files=list(result.dependent_files),
        )

    def to_result(self) -> CompileResult:
        return CompileResult(
            code=self.code,
            media_type=self.media_type,
            dependent_files=list(self.dependent_files),
        )
