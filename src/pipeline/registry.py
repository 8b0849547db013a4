# src/pipeline/registry.py — v3
"""Transformer registry: media type -> transformer id -> (transformer, cache).

Built once when the compiler host is constructed and read-only afterwards.
Each distinct transformer id owns exactly one CompileCache, however many
media types it is registered under, and each id names exactly one
transformer instance.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from assetpipe.cache.compile_cache import CompileCache
from assetpipe.config.settings import ConfigurationError
from assetpipe.core.media_types import PASSTHROUGH_MEDIA_TYPE
from assetpipe.transformers.base_transformer import BaseTransformer

logger = logging.getLogger(__name__)

CacheBuilder = Callable[[BaseTransformer], CompileCache]


@dataclass(frozen=True)
class TransformerSlot:
    """A registered transformer together with its result cache."""

    transformer_id: str
    transformer: BaseTransformer
    cache: CompileCache


class TransformerRegistry:
    """Two-level lookup table for the compiler host.

    Args:
        transformers_by_media_type: media type -> transformer instance.
        cache_builder: Builds the CompileCache for a transformer.
        fallback: Transformer used when no media type matches.
    """

    def __init__(
        self,
        transformers_by_media_type: Mapping[str, BaseTransformer],
        cache_builder: CacheBuilder,
        fallback: BaseTransformer | None = None,
    ) -> None:
        self._ids_by_media_type: dict[str, str] = {}
        self._slots: dict[str, TransformerSlot] = {}

        for media_type, transformer in transformers_by_media_type.items():
            self._ids_by_media_type[media_type] = self._add_slot(transformer, cache_builder)

        self._fallback_id = (
            self._add_slot(fallback, cache_builder) if fallback is not None else None
        )

        logger.debug(
            "Registry built: %d media types, %d transformers (fallback=%s)",
            len(self._ids_by_media_type), len(self._slots), self._fallback_id,
        )

    def _add_slot(self, transformer: BaseTransformer, cache_builder: CacheBuilder) -> str:
        transformer_id = transformer.name
        existing = self._slots.get(transformer_id)
        if existing is None:
            self._slots[transformer_id] = TransformerSlot(
                transformer_id=transformer_id,
                transformer=transformer,
                cache=cache_builder(transformer),
            )
            return transformer_id

        if existing.transformer is not transformer:
            raise ConfigurationError(
                f"Transformer id {transformer_id!r} is claimed by both "
                f"{existing.transformer!r} and {transformer!r}; register one "
                "instance per name"
            )
        return transformer_id

    @property
    def media_types(self) -> list[str]:
        """Return sorted list of registered media types."""
        return sorted(self._ids_by_media_type)

    @property
    def transformer_ids(self) -> list[str]:
        """Return sorted list of distinct transformer ids."""
        return sorted(self._slots)

    def lookup(self, media_type: str | None) -> TransformerSlot | None:
        """Slot registered for a media type, or None if there is none."""
        if media_type is None:
            return None
        transformer_id = self._ids_by_media_type.get(media_type)
        if transformer_id is None:
            return None
        return self._slots[transformer_id]

    def passthrough(self) -> TransformerSlot | None:
        return self.lookup(PASSTHROUGH_MEDIA_TYPE)

    @property
    def fallback(self) -> TransformerSlot | None:
        if self._fallback_id is None:
            return None
        return self._slots[self._fallback_id]

    def slot(self, transformer_id: str) -> TransformerSlot | None:
        return self._slots.get(transformer_id)

    def items(self) -> list[tuple[str, TransformerSlot]]:
        """Return (media type, slot) pairs sorted by media type."""
        return [
            (media_type, self._slots[self._ids_by_media_type[media_type]])
            for media_type in self.media_types
        ]
