# src/core/errors.py — v1
"""Compile failure taxonomy.

Every failure is terminal for the compile request that raised it; nothing
in the pipeline retries.
"""

from __future__ import annotations


class CompileError(Exception):
    """Base class for compile failures tied to a file path."""

    def __init__(self, message: str, file_path: str | None = None) -> None:
        super().__init__(message)
        self.file_path = file_path


class NoTransformerError(CompileError):
    """No transformer registered for a file and no fallback configured."""

    def __init__(self, file_path: str) -> None:
        super().__init__(f"Couldn't find a transformer for {file_path}", file_path)


class UnhandledIntermediateTypeError(CompileError):
    """A pass produced a media type that no transformer accepts."""

    def __init__(self, file_path: str, media_type: str | None) -> None:
        super().__init__(
            f"Compiling {file_path} resulted in a media type of {media_type!r}, "
            "which no registered transformer handles",
            file_path,
        )
        self.media_type = media_type


class CompilePipelineCycleError(CompileError):
    """The pass limit was exceeded, usually a cycle between transformers."""

    def __init__(self, file_path: str, chain: list[str | None], max_passes: int) -> None:
        walked = " -> ".join(str(m) for m in chain)
        super().__init__(
            f"Compiling {file_path} exceeded {max_passes} passes ({walked})",
            file_path,
        )
        self.chain = list(chain)
        self.max_passes = max_passes


class PrecompiledAssetMissingError(CompileError):
    """Read-only lookup found no usable cached result."""

    def __init__(self, file_path: str) -> None:
        super().__init__(
            f"Asked to compile {file_path} in read-only mode, is this file not precompiled?",
            file_path,
        )


class TransformerExecutionError(CompileError):
    """A transformer raised while processing a file.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, file_path: str, transformer_name: str, reason: BaseException) -> None:
        super().__init__(
            f"Transformer {transformer_name!r} failed on {file_path}: {reason}",
            file_path,
        )
        self.transformer_name = transformer_name
