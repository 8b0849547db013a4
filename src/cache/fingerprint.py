# src/cache/fingerprint.py — v3
"""File fingerprinting: content hash plus classification flags.

A fingerprint tells the compiler host two things about a file: its content
identity (SHA-256 of the raw bytes, used as the cache key) and whether it
should bypass transformation altogether (binary, minified, already carrying
a source map, or living inside a vendored dependency tree).

Fingerprints are memoized per path and invalidated when the file's size or
modification time changes. The memo table can be saved to and loaded from
disk so a later process can skip re-hashing unchanged files.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ValidationError

from assetpipe.config.settings import Settings
from assetpipe.core.media_types import detect_media_type
from assetpipe.core.models import FingerprintInfo

logger = logging.getLogger(__name__)

_BINARY_SNIFF_BYTES = 512
_MINIFIED_SAMPLE_CHARS = 1024
_SOURCE_MAP_TAIL_CHARS = 512
_SOURCE_MAP_RE = re.compile(r"(//|/\*)[#@]\s*sourceMappingURL=")


class _MemoRecord(BaseModel):
    """Persisted memo entry: file stat plus the fingerprint it produced."""

    size: int
    mtime_ns: int
    info: FingerprintInfo


@dataclass(frozen=True)
class FingerprintOptions:
    vendored_dir_names: tuple[str, ...] = ("node_modules", "bower_components")
    minified_line_length: int = 80

    @classmethod
    def from_settings(cls, settings: Settings) -> FingerprintOptions:
        return cls(
            vendored_dir_names=tuple(settings.vendored_dir_names_list),
            minified_line_length=settings.minified_line_length,
        )


class FileFingerprinter:
    """Fingerprint service consumed by the compiler host and compile caches."""

    def __init__(self, options: FingerprintOptions | None = None) -> None:
        self._options = options or FingerprintOptions()
        self._memo: dict[str, _MemoRecord] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> FileFingerprinter:
        return cls(FingerprintOptions.from_settings(settings))

    async def get_fingerprint(self, file_path: str | Path) -> FingerprintInfo:
        """Return the fingerprint for a file, reusing the memo when unchanged."""
        path = Path(file_path).resolve()
        stat = path.stat()
        key = str(path)

        record = self._memo.get(key)
        if record is not None and record.size == stat.st_size and record.mtime_ns == stat.st_mtime_ns:
            return record.info

        info = compute_fingerprint(path.read_bytes(), path, self._options)
        self._memo[key] = _MemoRecord(size=stat.st_size, mtime_ns=stat.st_mtime_ns, info=info)
        return info

    def save_state(self, state_file: str | Path) -> None:
        """Persist the memo table as JSON."""
        path = Path(state_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {k: v.model_dump(mode="json") for k, v in self._memo.items()}
        path.write_text(json.dumps(payload), encoding="utf-8")

    def load_state(self, state_file: str | Path) -> int:
        """Load a memo table saved by save_state. Returns the number of records loaded.

        Unreadable files or records are skipped; stale records are caught by
        the stat check on lookup.
        """
        path = Path(state_file).expanduser()
        if not path.exists():
            return 0
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to read fingerprint state %s: %s", path, e)
            return 0

        loaded = 0
        for key, raw in payload.items():
            try:
                self._memo[key] = _MemoRecord(**raw)
                loaded += 1
            except (ValidationError, TypeError):
                continue
        return loaded


def compute_fingerprint(
    raw_bytes: bytes,
    file_path: str | Path,
    options: FingerprintOptions | None = None,
) -> FingerprintInfo:
    """Compute the fingerprint of a file's raw bytes.

    Args:
        raw_bytes: File content as read from disk.
        file_path: Path of the file, for media type and vendored detection.
        options: Heuristic thresholds and vendored directory names.

    Returns:
        FingerprintInfo with hash, decoded source (text files only) and flags.
    """
    options = options or FingerprintOptions()
    digest = hashlib.sha256(raw_bytes).hexdigest()

    source = _decode_text(raw_bytes)
    is_binary = source is None

    return FingerprintInfo(
        hash=digest,
        source_code=source,
        media_type=detect_media_type(file_path),
        is_binary=is_binary,
        is_minified=False if source is None else is_minified(source, options.minified_line_length),
        has_source_map=False if source is None else has_source_map(source),
        is_vendored=is_vendored(file_path, options.vendored_dir_names),
    )


def is_minified(source: str, max_line_length: int = 80) -> bool:
    """Heuristic: average line length in the leading sample exceeds the limit.

    Short files are never considered minified.
    """
    if len(source) <= _MINIFIED_SAMPLE_CHARS:
        return False
    sample = source[:_MINIFIED_SAMPLE_CHARS]
    newlines = sample.count("\n")
    if newlines == 0:
        return True
    return len(sample) / newlines > max_line_length


def has_source_map(source: str) -> bool:
    """True when a sourceMappingURL comment appears near the end of the file."""
    return _SOURCE_MAP_RE.search(source[-_SOURCE_MAP_TAIL_CHARS:]) is not None


def is_vendored(file_path: str | Path, vendored_dir_names: tuple[str, ...] | list[str]) -> bool:
    parts = Path(file_path).parts
    return any(name in parts for name in vendored_dir_names)


def _decode_text(raw_bytes: bytes) -> str | None:
    """Decode UTF-8 text, or None if the bytes look binary."""
    if b"\x00" in raw_bytes[:_BINARY_SNIFF_BYTES]:
        return None
    try:
        return raw_bytes.decode("utf-8")
    except UnicodeDecodeError:
        return None
