# src/main.py — v2
"""CLI entry point: compile, compile-all, info commands.

Usage:
    assetpipe compile <file> [options]
    assetpipe compile-all <directory> [options]
    assetpipe info
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from assetpipe.version import __version__

logger = logging.getLogger(__name__)

FINGERPRINT_STATE_FILE = "fingerprints.json"


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="assetpipe",
        description=f"assetpipe v{__version__}: cache-backed source compiler",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--cache-dir", type=Path, default=None,
        help="Cache root (default: CACHE_ROOT setting)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- compile ---
    p_compile = subparsers.add_parser(
        "compile", help="Compile a single file and print the result",
    )
    p_compile.add_argument("file", type=Path, help="Path to source file")
    p_compile.add_argument(
        "-t", "--transformer", action="append", default=[], dest="transformers",
        help="Transformer class path (repeatable)",
    )
    p_compile.add_argument(
        "--read-only", action="store_true",
        help="Only serve precompiled results from the saved configuration",
    )
    p_compile.add_argument(
        "--json", action="store_true", dest="as_json",
        help="Print code, media type and dependent files as JSON",
    )
    p_compile.set_defaults(func=_cmd_compile)

    # --- compile-all ---
    p_all = subparsers.add_parser(
        "compile-all", help="Precompile every file under a directory",
    )
    p_all.add_argument("directory", type=Path, help="Directory to compile")
    p_all.add_argument(
        "-t", "--transformer", action="append", default=[], dest="transformers",
        help="Transformer class path (repeatable)",
    )
    p_all.add_argument(
        "--exclude", action="append", default=[],
        help="Skip files whose path contains this text (repeatable)",
    )
    p_all.set_defaults(func=_cmd_compile_all)

    # --- info ---
    p_info = subparsers.add_parser(
        "info", help="Show version and effective cache settings",
    )
    p_info.set_defaults(func=_cmd_info)

    return parser


async def _cmd_compile(args: argparse.Namespace) -> int:
    """Compile a single file."""
    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return 1

    host = _build_host(args, read_only=args.read_only)
    result = await host.compile(file_path)

    if args.as_json:
        print(result.model_dump_json(indent=2))
    else:
        sys.stdout.write(result.code or "")
    return 0


async def _cmd_compile_all(args: argparse.Namespace) -> int:
    """Precompile a directory, then save configuration and fingerprints."""
    directory: Path = args.directory
    if not directory.is_dir():
        logger.error("Not a directory: %s", directory)
        return 1

    host = _build_host(args, read_only=False)
    excludes: list[str] = args.exclude

    def _should_compile(path: str) -> bool:
        return not any(part in path for part in excludes)

    logger.info("Compiling %s", directory)
    await host.compile_all(directory, _should_compile)

    host.save_configuration()
    host.fingerprinter.save_state(host.root_cache_dir / FINGERPRINT_STATE_FILE)
    print(f"Compiled {directory} into {host.root_cache_dir}")
    return 0


async def _cmd_info(args: argparse.Namespace) -> int:
    """Print version and effective settings."""
    settings = _load_settings(args)
    info = {
        "version": __version__,
        "cache_root": str(settings.resolved_cache_root),
        "cache_backend": settings.cache_backend,
        "read_only_mode": settings.read_only_mode,
        "max_compile_passes": settings.max_compile_passes,
        "transformers": settings.transformers_list,
    }
    print(json.dumps(info, indent=2))
    return 0


def _load_settings(args: argparse.Namespace):
    from assetpipe.config.settings import load_settings

    overrides: dict[str, object] = {}
    if args.cache_dir is not None:
        overrides["cache_root"] = args.cache_dir
    return load_settings(**overrides)


def _build_host(args: argparse.Namespace, read_only: bool):
    """Build a compiler host from settings plus command-line transformers."""
    from assetpipe.cache.fingerprint import FileFingerprinter
    from assetpipe.pipeline.compiler_host import CompilerHost
    from assetpipe.transformers.transformer_factory import (
        build_media_type_map,
        import_transformer,
    )

    settings = _load_settings(args)
    cache_root = settings.resolved_cache_root

    fingerprinter = FileFingerprinter.from_settings(settings)
    fingerprinter.load_state(cache_root / FINGERPRINT_STATE_FILE)

    if read_only or settings.read_only_mode:
        return CompilerHost.create_read_only_from_configuration(
            cache_root, fingerprinter, settings=settings,
        )

    class_paths = [*settings.transformers_list, *args.transformers]
    transformers = [import_transformer(p) for p in class_paths]
    return CompilerHost(
        cache_root, build_media_type_map(transformers), fingerprinter, settings=settings,
    )


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage; logs go to stderr, compiled output to stdout."""
    from assetpipe.config.settings import Settings
    from assetpipe.logging.logger import setup_logging

    settings = Settings()
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
        stream=sys.stderr,
    )


if __name__ == "__main__":
    sys.exit(main())
