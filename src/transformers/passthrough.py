# src/transformers/passthrough.py — v1
"""Passthrough transformer: content is returned unchanged."""

from __future__ import annotations

from assetpipe.core.media_types import PASSTHROUGH_MEDIA_TYPE, detect_media_type
from assetpipe.core.models import PassState, TransformOutput
from assetpipe.transformers.base_transformer import BaseTransformer


class PassthroughTransformer(BaseTransformer):
    """Registered for text/plain; also serves minified, vendored and binary files.

    It declines every file in ``should_process``, which makes the host return
    the source as-is under its detected media type without further passes.
    """

    @property
    def name(self) -> str:
        return "passthrough"

    @property
    def input_media_types(self) -> list[str]:
        return [PASSTHROUGH_MEDIA_TYPE]

    async def should_process(self, code: str, state: PassState) -> bool:
        return False

    async def transform(
        self, code: str, file_path: str, state: PassState,
    ) -> TransformOutput:
        media_type = state.media_type or detect_media_type(file_path) or PASSTHROUGH_MEDIA_TYPE
        return TransformOutput(code=code, media_type=media_type)
