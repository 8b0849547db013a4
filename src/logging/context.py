# src/logging/context.py — v2
"""Contextual logging support: attach file path, transformer and pass to log records."""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

# Context variables for structured logging, set per compile pass.
_file_path: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "file_path", default=None
)
_transformer: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "transformer", default=None
)
_pass_index: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "pass_index", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    file_path: str | None = None
    transformer: str | None = None
    pass_index: int | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        file_path=_file_path.get(),
        transformer=_transformer.get(),
        pass_index=_pass_index.get(),
    )


@contextmanager
def compile_context(
    file_path: str, transformer: str | None = None, pass_index: int | None = None,
) -> Iterator[None]:
    """Bind file/transformer/pass for the duration of a block.

    Each asyncio task runs in its own context copy, so concurrent compiles
    do not see each other's values.
    """
    tokens = (
        _file_path.set(file_path),
        _transformer.set(transformer),
        _pass_index.set(pass_index),
    )
    try:
        yield
    finally:
        _pass_index.reset(tokens[2])
        _transformer.reset(tokens[1])
        _file_path.reset(tokens[0])


def clear_context() -> None:
    """Reset all context variables."""
    _file_path.set(None)
    _transformer.set(None)
    _pass_index.set(None)
