# src/pipeline/models.py — v1
"""Persisted compiler host configuration: HostConfiguration, TransformerRecord."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from assetpipe.transformers.base_transformer import BaseTransformer

CONFIGURATION_SCHEMA_VERSION = 1


class TransformerRecord(BaseModel):
    """Identity of a transformer as saved in the host configuration."""

    name: str
    version: str
    input_media_types: list[str] = Field(default_factory=list)

    @classmethod
    def from_transformer(cls, transformer: BaseTransformer) -> TransformerRecord:
        return cls(
            name=transformer.name,
            version=transformer.version,
            input_media_types=list(transformer.input_media_types),
        )


class HostConfiguration(BaseModel):
    """Registry snapshot written next to the cache after a precompile run."""

    schema_version: int = CONFIGURATION_SCHEMA_VERSION
    transformers: dict[str, TransformerRecord] = Field(default_factory=dict)
    fallback: TransformerRecord | None = None
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
