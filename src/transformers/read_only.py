# src/transformers/read_only.py — v1
"""Read-only stand-in for a transformer that is not installed.

Built from a saved host configuration. It carries the name and version of
the transformer it replaces, so its cache namespace matches the one the
precompile run wrote to.
"""

from __future__ import annotations

from assetpipe.core.errors import CompileError
from assetpipe.core.models import PassState, TransformOutput
from assetpipe.transformers.base_transformer import BaseTransformer


class ReadOnlyTransformer(BaseTransformer):
    """Transformer that can only be looked up, never run."""

    def __init__(self, name: str, version: str, input_media_types: list[str]) -> None:
        self._name = name
        self._version = version
        self._input_media_types = list(input_media_types)

    @property
    def name(self) -> str:
        return self._name

    @property
    def version(self) -> str:
        return self._version

    @property
    def input_media_types(self) -> list[str]:
        return list(self._input_media_types)

    async def transform(
        self, code: str, file_path: str, state: PassState,
    ) -> TransformOutput:
        raise CompileError(
            f"Transformer {self._name!r} is read-only and cannot compile {file_path}",
            file_path,
        )
