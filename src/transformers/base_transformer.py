# src/transformers/base_transformer.py — v1
"""Abstract transformer interface for source formats."""

from __future__ import annotations

from abc import ABC, abstractmethod

from assetpipe.core.models import PassState, TransformOutput


class BaseTransformer(ABC):
    """Unified interface for source transformers.

    A transformer turns content of one media type into another (for example
    TypeScript into JavaScript). The compiler host calls ``should_process``,
    then ``list_dependencies``, then ``transform`` with the same PassState,
    so a transformer can stash work in ``state.scratch`` between the calls.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique transformer identifier (e.g., 'typescript'). Used as cache namespace."""

    @property
    def version(self) -> str:
        """Transformer version. Bumping it invalidates cached results."""
        return "1"

    @property
    @abstractmethod
    def input_media_types(self) -> list[str]:
        """Media types this transformer accepts (e.g., ['text/typescript'])."""

    async def should_process(self, code: str, state: PassState) -> bool:
        """Whether this content needs transforming at all."""
        return True

    async def list_dependencies(
        self, code: str, file_path: str, state: PassState,
    ) -> list[str]:
        """Files whose changes should invalidate the result for this file."""
        return []

    @abstractmethod
    async def transform(
        self, code: str, file_path: str, state: PassState,
    ) -> TransformOutput:
        """Transform the content, returning new code and its media type."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, version={self.version!r})"
