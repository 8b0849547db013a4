# src/batch/scanner.py — v2
"""Tree walker: visit every file under a root directory.

Every file is visited even when some visits fail; the first failure is
re-raised once all visits have settled and later failures are logged.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterator
from pathlib import Path

logger = logging.getLogger(__name__)

FileVisitor = Callable[[str], "Awaitable[object] | object"]


def iter_files(root: Path) -> Iterator[Path]:
    """Yield regular files under root, recursively, in sorted order."""
    for path in sorted(root.rglob("*")):
        if path.is_file():
            yield path


async def for_all_files(
    root_directory: str | Path,
    func: FileVisitor,
    concurrency: int = 8,
) -> int:
    """Call ``func`` on every file under ``root_directory``.

    Args:
        root_directory: Directory to walk.
        func: Visitor taking the file path; may be sync or async.
        concurrency: Max visits in flight at once.

    Returns:
        Number of files visited.
    """
    root = _check_root(root_directory)
    semaphore = asyncio.Semaphore(concurrency)

    async def _visit(path: Path) -> None:
        async with semaphore:
            result = func(str(path))
            if inspect.isawaitable(result):
                await result

    paths = list(iter_files(root))
    outcomes = await asyncio.gather(*(_visit(p) for p in paths), return_exceptions=True)
    _raise_first([(p, o) for p, o in zip(paths, outcomes) if isinstance(o, BaseException)])

    logger.info("Visited %d files under %s", len(paths), root)
    return len(paths)


def for_all_files_sync(
    root_directory: str | Path,
    func: Callable[[str], object],
) -> int:
    """Synchronous counterpart of for_all_files; visits files one at a time."""
    root = _check_root(root_directory)
    failures: list[tuple[Path, BaseException]] = []
    count = 0
    for path in iter_files(root):
        count += 1
        try:
            func(str(path))
        except Exception as exc:
            failures.append((path, exc))
    _raise_first(failures)

    logger.info("Visited %d files under %s", count, root)
    return count


def _check_root(root_directory: str | Path) -> Path:
    root = Path(root_directory)
    if not root.is_dir():
        msg = f"Root is not a directory: {root}"
        raise ValueError(msg)
    return root


def _raise_first(failures: list[tuple[Path, BaseException]]) -> None:
    if not failures:
        return
    for path, exc in failures[1:]:
        logger.error("Failed on %s: %s", path, exc)
    raise failures[0][1]
