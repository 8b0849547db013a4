# src/transformers/transformer_factory.py — v1
"""Factory: load transformers from dotted paths and build media-type maps."""

from __future__ import annotations

import importlib
import logging
from collections.abc import Iterable

from assetpipe.core.media_types import PASSTHROUGH_MEDIA_TYPE
from assetpipe.transformers.base_transformer import BaseTransformer
from assetpipe.transformers.passthrough import PassthroughTransformer

logger = logging.getLogger(__name__)


class TransformerLoadError(Exception):
    """Raised when a transformer cannot be imported or instantiated."""


def import_transformer(class_path: str) -> BaseTransformer:
    """Import and instantiate a transformer from a dotted class path.

    Args:
        class_path: e.g. 'mypkg.transformers.TypeScriptTransformer'
            (``module:Class`` is accepted too).

    Returns:
        Instantiated BaseTransformer subclass.
    """
    normalized = class_path.replace(":", ".")
    parts = normalized.rsplit(".", 1)
    if len(parts) != 2 or not all(parts):
        raise TransformerLoadError(f"Invalid class path: {class_path}")
    module_path, class_name = parts

    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise TransformerLoadError(f"Cannot import module {module_path}: {exc}") from exc

    cls = getattr(module, class_name, None)
    if cls is None:
        raise TransformerLoadError(f"Class {class_name} not found in {module_path}")

    if not isinstance(cls, type) or not issubclass(cls, BaseTransformer):
        raise TransformerLoadError(f"{class_path} is not a BaseTransformer subclass")

    return cls()


def build_media_type_map(
    transformers: Iterable[BaseTransformer],
    include_passthrough: bool = True,
) -> dict[str, BaseTransformer]:
    """Expand transformers into a media type -> transformer mapping.

    Later transformers win when two claim the same media type. A passthrough
    transformer is added for text/plain unless one is already registered.
    """
    mapping: dict[str, BaseTransformer] = {}
    for transformer in transformers:
        for media_type in transformer.input_media_types:
            previous = mapping.get(media_type)
            if previous is not None and previous is not transformer:
                logger.warning(
                    "Media type %s: %s replaces %s",
                    media_type, transformer.name, previous.name,
                )
            mapping[media_type] = transformer

    if include_passthrough and PASSTHROUGH_MEDIA_TYPE not in mapping:
        mapping[PASSTHROUGH_MEDIA_TYPE] = PassthroughTransformer()
    return mapping
