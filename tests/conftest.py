# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides a configurable fake transformer, isolated settings pointing at a
temp cache root, and a compiler host factory. No network, all I/O in tmp_path.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from pathlib import Path

import pytest

from assetpipe.cache.fingerprint import FileFingerprinter
from assetpipe.config.settings import Settings
from assetpipe.core.models import PassState, TransformOutput
from assetpipe.pipeline.compiler_host import CompilerHost
from assetpipe.transformers.base_transformer import BaseTransformer


class FakeTransformer(BaseTransformer):
    """Wraps code as ``<prefix>(<code>)`` and reports a fixed output media type."""

    def __init__(
        self,
        name: str,
        input_types: list[str],
        output_type: str | None,
        *,
        prefix: str | None = None,
        dependencies: list[str] | None = None,
        accept: bool = True,
        version: str = "1",
        fail_with: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self._name = name
        self._input_types = input_types
        self._output_type = output_type
        self._prefix = prefix or name
        self._dependencies = dependencies or []
        self._accept = accept
        self._version = version
        self._fail_with = fail_with
        self._delay = delay
        self.should_calls = 0
        self.dependency_calls = 0
        self.transform_calls = 0
        self.scratch_seen: list[object] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def version(self) -> str:
        return self._version

    @property
    def input_media_types(self) -> list[str]:
        return list(self._input_types)

    async def should_process(self, code: str, state: PassState) -> bool:
        self.should_calls += 1
        state.scratch["checked_by"] = self._name
        return self._accept

    async def list_dependencies(
        self, code: str, file_path: str, state: PassState,
    ) -> list[str]:
        self.dependency_calls += 1
        return list(self._dependencies)

    async def transform(
        self, code: str, file_path: str, state: PassState,
    ) -> TransformOutput:
        self.transform_calls += 1
        self.scratch_seen.append(state.scratch.get("checked_by"))
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._fail_with is not None:
            raise self._fail_with
        return TransformOutput(code=f"{self._prefix}({code})", media_type=self._output_type)


# === FIXTURES ===


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from any .env, cache under tmp_path."""
    return Settings(_env_file=None, cache_root=tmp_path / "cache")


@pytest.fixture
def fingerprinter() -> FileFingerprinter:
    return FileFingerprinter()


@pytest.fixture
def src_dir(tmp_path: Path) -> Path:
    d = tmp_path / "src"
    d.mkdir()
    return d


@pytest.fixture
def write_file(src_dir: Path) -> Callable[..., Path]:
    """Write text (or bytes) to a file under src_dir and return its path."""

    def _write(relative: str, content: str | bytes) -> Path:
        path = src_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_transformer() -> Callable[..., FakeTransformer]:
    return FakeTransformer


@pytest.fixture
def make_host(settings: Settings, fingerprinter: FileFingerprinter) -> Callable[..., CompilerHost]:
    """Build a CompilerHost over the shared temp cache root."""

    def _make(
        transformers_by_media_type: Mapping[str, BaseTransformer],
        read_only_mode: bool = False,
        fallback: BaseTransformer | None = None,
        **overrides: object,
    ) -> CompilerHost:
        host_settings = settings.model_copy(update=overrides) if overrides else settings
        return CompilerHost(
            host_settings.cache_root,
            transformers_by_media_type,
            fingerprinter,
            read_only_mode=read_only_mode,
            fallback_transformer=fallback,
            settings=host_settings,
        )

    return _make
