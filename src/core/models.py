# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

No module redefines these types: fingerprints, transformer outputs,
compile results and per-pass state all come from core.models.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


# === FINGERPRINTS ===


class FingerprintInfo(BaseModel):
    """Content identity and classification of one file.

    The classification flags are independent of each other; any
    combination is valid. ``source_code`` is present when the
    fingerprinter already decoded the file as text, or when a recursive
    pass carries an intermediate result forward.
    """

    hash: str
    source_code: str | None = None
    media_type: str | None = None
    is_minified: bool = False
    is_vendored: bool = False
    has_source_map: bool = False
    is_binary: bool = False

    def with_source(self, code: str, media_type: str | None) -> FingerprintInfo:
        """Return a copy carrying new embedded content and media type."""
        return self.model_copy(update={"source_code": code, "media_type": media_type})


# === TRANSFORMER I/O ===


class TransformOutput(BaseModel):
    """Result of a single transformer ``transform`` call."""

    code: str
    media_type: str | None = None


class CompileResult(BaseModel):
    """Compiled output for a path.

    ``code`` and ``media_type`` are both set or both absent; absence means
    the asset was not precompiled (only meaningful in read-only mode).
    """

    code: str | None = None
    media_type: str | None = None
    dependent_files: list[str] = Field(default_factory=list)

    @field_validator("dependent_files")
    @classmethod
    def dedupe_dependent_files(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def check_code_and_media_type(self) -> CompileResult:
        if (self.code is None) != (self.media_type is None):
            raise ValueError("code and media_type must be set together")
        return self

    @property
    def is_precompiled(self) -> bool:
        return self.code is not None and self.media_type is not None


# === PIPELINE STATE ===


class PassState(BaseModel):
    """State for one pass of a transformer over one file.

    A fresh instance is created per pass and handed to ``should_process``,
    ``list_dependencies`` and ``transform`` in turn. Transformers must treat
    ``file_path``, ``media_type`` and ``pass_index`` as read-only; ``scratch``
    is theirs to read and write within the pass.
    """

    file_path: str
    media_type: str | None = None
    pass_index: int = 0
    scratch: dict[str, Any] = Field(default_factory=dict)
