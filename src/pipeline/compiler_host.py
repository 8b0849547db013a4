# src/pipeline/compiler_host.py — v2
"""Compiler host: turns a file path into compiled code plus a media type.

For each file the host:
  1. Fingerprints the file (content hash + bypass flags)
  2. Picks a transformer: passthrough for bypassed files, else by media
     type, else the fallback transformer
  3. Asks that transformer's CompileCache for a cached result, compiling
     on a miss
  4. Re-feeds non-final output through the transformer registered for the
     output media type until it reaches a final form (JavaScript, HTML, CSS)

In read-only mode step 3 is a lookup only and nothing is ever compiled.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from pathlib import Path
from typing import TypeVar

from assetpipe.batch.scanner import for_all_files, for_all_files_sync
from assetpipe.cache.compile_cache import CompileCache
from assetpipe.cache.fingerprint import FileFingerprinter
from assetpipe.config.settings import ConfigurationError, Settings
from assetpipe.core.errors import (
    CompileError,
    CompilePipelineCycleError,
    NoTransformerError,
    PrecompiledAssetMissingError,
    TransformerExecutionError,
    UnhandledIntermediateTypeError,
)
from assetpipe.core.media_types import (
    HTML_MEDIA_TYPE,
    PASSTHROUGH_MEDIA_TYPE,
    detect_media_type,
    is_final_form,
)
from assetpipe.core.models import CompileResult, FingerprintInfo, PassState, TransformOutput
from assetpipe.logging.context import compile_context
from assetpipe.pipeline.models import HostConfiguration, TransformerRecord
from assetpipe.pipeline.registry import TransformerRegistry, TransformerSlot
from assetpipe.transformers.base_transformer import BaseTransformer
from assetpipe.transformers.read_only import ReadOnlyTransformer

logger = logging.getLogger(__name__)

CONFIGURATION_FILE = "compiler-info.json"

T = TypeVar("T")


class CompilerHost:
    """Cache-backed compilation orchestrator.

    Args:
        root_cache_dir: Directory holding compile caches and the saved
            configuration. Overrides ``settings.cache_root``.
        transformers_by_media_type: media type -> transformer. Several media
            types may share one transformer instance.
        fingerprinter: Fingerprint service. Built from settings if None.
        read_only_mode: Serve precompiled results only. None takes
            ``settings.read_only_mode``; an explicit value wins over it.
        fallback_transformer: Used when no transformer matches a media type.
        settings: Application settings. Loaded from .env if None.
    """

    def __init__(
        self,
        root_cache_dir: str | Path,
        transformers_by_media_type: Mapping[str, BaseTransformer],
        fingerprinter: FileFingerprinter | None = None,
        read_only_mode: bool | None = None,
        fallback_transformer: BaseTransformer | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or Settings()
        self._settings = settings.model_copy(update={"cache_root": Path(root_cache_dir)})
        self._fingerprinter = fingerprinter or FileFingerprinter.from_settings(self._settings)
        self._read_only_mode = (
            self._settings.read_only_mode if read_only_mode is None else read_only_mode
        )
        self._max_passes = self._settings.max_compile_passes
        self._registry = TransformerRegistry(
            transformers_by_media_type,
            cache_builder=lambda t: CompileCache.create_from_transformer(
                t, self._fingerprinter, self._settings,
            ),
            fallback=fallback_transformer,
        )

    @property
    def root_cache_dir(self) -> Path:
        return self._settings.resolved_cache_root

    @property
    def read_only_mode(self) -> bool:
        return self._read_only_mode

    @property
    def registry(self) -> TransformerRegistry:
        return self._registry

    @property
    def fingerprinter(self) -> FileFingerprinter:
        return self._fingerprinter

    # --- Public compile API ---

    async def compile(self, file_path: str | Path) -> CompileResult:
        """Compile a single file, honoring the host's operating mode.

        Raises:
            CompileError: Any subclass from core.errors.
        """
        if self._read_only_mode:
            return await self.compile_read_only(file_path)
        return await self.full_compile(file_path)

    def compile_sync(self, file_path: str | Path) -> CompileResult:
        """Blocking counterpart of compile. Must not run inside an event loop."""
        return asyncio.run(self.compile(file_path))

    async def full_compile(self, file_path: str | Path) -> CompileResult:
        path = str(file_path)
        logger.debug("Compiling %s", path)

        _, slot = await self._resolve(path)

        async def _fetch(fetch_path: str, info: FingerprintInfo) -> CompileResult:
            return await self.compile_uncached(fetch_path, info, slot.transformer)

        return await slot.cache.get_or_fetch(path, _fetch)

    async def compile_read_only(self, file_path: str | Path) -> CompileResult:
        """Look up a precompiled result; never runs a transformer."""
        path = str(file_path)
        _, slot = await self._resolve(path)

        result = await slot.cache.get(path)
        if result is None or not result.is_precompiled:
            raise PrecompiledAssetMissingError(path)
        return result

    async def compile_all(
        self,
        root_directory: str | Path,
        should_compile: Callable[[str], bool] | None = None,
    ) -> None:
        """Compile every file under a directory.

        Args:
            root_directory: Directory to walk recursively.
            should_compile: Optional filter; files for which it returns
                False are skipped.
        """
        should = should_compile or _accept_all

        async def _visit(path: str) -> None:
            if not should(path):
                return
            await self.compile(path)

        await for_all_files(root_directory, _visit, concurrency=self._settings.scan_concurrency)

    def compile_all_sync(
        self,
        root_directory: str | Path,
        should_compile: Callable[[str], bool] | None = None,
    ) -> None:
        """Blocking counterpart of compile_all."""
        should = should_compile or _accept_all

        def _visit(path: str) -> None:
            if should(path):
                self.compile_sync(path)

        for_all_files_sync(root_directory, _visit)

    # --- Transformer selection ---

    @staticmethod
    def should_passthrough(info: FingerprintInfo) -> bool:
        return info.is_minified or info.is_vendored or info.has_source_map or info.is_binary

    def select_transformer(self, file_path: str, info: FingerprintInfo) -> TransformerSlot:
        """Pick the transformer slot for a file.

        Raises:
            NoTransformerError: If nothing matches and there is no fallback.
        """
        if self.should_passthrough(info):
            slot = self._registry.passthrough()
        else:
            slot = self._registry.lookup(info.media_type or detect_media_type(file_path))

        if slot is None:
            slot = self._registry.fallback
            if slot is not None:
                logger.debug("Falling back to %s for %s", slot.transformer_id, file_path)

        if slot is None:
            raise NoTransformerError(file_path)
        return slot

    async def _resolve(self, file_path: str) -> tuple[FingerprintInfo, TransformerSlot]:
        info = await self._fingerprinter.get_fingerprint(file_path)
        return info, self.select_transformer(file_path, info)

    # --- Uncached compile ---

    async def compile_uncached(
        self,
        file_path: str,
        info: FingerprintInfo,
        transformer: BaseTransformer,
    ) -> CompileResult:
        """Run transformers until the output reaches a final media type.

        Only the first pass's dependent files are attached to the result.

        Raises:
            UnhandledIntermediateTypeError: No transformer for an intermediate type.
            CompilePipelineCycleError: More than ``max_compile_passes`` passes.
            TransformerExecutionError: A transformer raised or returned
                malformed output.
        """
        dependent_files: list[str] = []
        chain: list[str | None] = []

        for pass_index in range(self._max_passes):
            input_type = info.media_type or detect_media_type(file_path)
            chain.append(input_type)
            state = PassState(file_path=file_path, media_type=input_type, pass_index=pass_index)

            with compile_context(file_path, transformer.name, pass_index):
                code = info.source_code if info.source_code is not None else _read_source(file_path)

                should = await self._run_step(
                    file_path, transformer, transformer.should_process(code, state),
                )
                if not should:
                    logger.debug("%s declined %s", transformer.name, file_path)
                    return CompileResult(
                        code=code,
                        media_type=input_type or PASSTHROUGH_MEDIA_TYPE,
                        dependent_files=dependent_files,
                    )

                if pass_index == 0:
                    dependent_files = list(await self._run_step(
                        file_path, transformer,
                        transformer.list_dependencies(code, file_path, state),
                    ))

                output = await self._run_step(
                    file_path, transformer,
                    _validated(transformer.transform(code, file_path, state)),
                )

            if _is_terminal(output.media_type, input_type):
                return CompileResult(
                    code=output.code,
                    media_type=output.media_type,
                    dependent_files=dependent_files,
                )

            logger.debug(
                "Recursively compiling result of %s with non-final media type %s",
                file_path, output.media_type,
            )
            next_slot = self._registry.lookup(output.media_type)
            if next_slot is None:
                logger.debug(
                    "Recursive compile failed - intermediate result: %s",
                    output.model_dump_json(),
                )
                raise UnhandledIntermediateTypeError(file_path, output.media_type)

            info = info.with_source(output.code, output.media_type)
            transformer = next_slot.transformer

        chain.append(info.media_type)
        raise CompilePipelineCycleError(file_path, chain, self._max_passes)

    @staticmethod
    async def _run_step(
        file_path: str, transformer: BaseTransformer, step: Awaitable[T],
    ) -> T:
        try:
            return await step
        except CompileError:
            raise
        except Exception as exc:
            raise TransformerExecutionError(file_path, transformer.name, exc) from exc

    # --- Configuration persistence ---

    def save_configuration(self) -> Path:
        """Write the registry snapshot so a read-only host can be rebuilt later."""
        fallback = self._registry.fallback
        config = HostConfiguration(
            transformers={
                media_type: TransformerRecord.from_transformer(slot.transformer)
                for media_type, slot in self._registry.items()
            },
            fallback=TransformerRecord.from_transformer(fallback.transformer) if fallback else None,
        )
        path = self.root_cache_dir / CONFIGURATION_FILE
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
        logger.info("Saved compiler configuration to %s", path)
        return path

    @staticmethod
    def load_configuration(root_cache_dir: str | Path) -> HostConfiguration:
        path = Path(root_cache_dir).expanduser() / CONFIGURATION_FILE
        if not path.exists():
            raise ConfigurationError(f"No compiler configuration at {path}")
        return HostConfiguration.model_validate_json(path.read_text(encoding="utf-8"))

    @classmethod
    def create_read_only_from_configuration(
        cls,
        root_cache_dir: str | Path,
        fingerprinter: FileFingerprinter | None = None,
        settings: Settings | None = None,
    ) -> CompilerHost:
        """Rebuild a read-only host with no transformers installed."""
        config = cls.load_configuration(root_cache_dir)
        stand_ins: dict[str, ReadOnlyTransformer] = {}

        def _stand_in(record: TransformerRecord) -> ReadOnlyTransformer:
            if record.name not in stand_ins:
                stand_ins[record.name] = ReadOnlyTransformer(
                    record.name, record.version, record.input_media_types,
                )
            return stand_ins[record.name]

        mapping = {mt: _stand_in(rec) for mt, rec in config.transformers.items()}
        fallback = _stand_in(config.fallback) if config.fallback else None
        return cls(
            root_cache_dir, mapping, fingerprinter,
            read_only_mode=True, fallback_transformer=fallback, settings=settings,
        )

    @classmethod
    def create_from_configuration(
        cls,
        root_cache_dir: str | Path,
        transformers: Iterable[BaseTransformer],
        fingerprinter: FileFingerprinter | None = None,
        read_only_mode: bool | None = None,
        settings: Settings | None = None,
    ) -> CompilerHost:
        """Rebuild a host from a saved configuration and live transformers.

        Raises:
            ConfigurationError: If a saved transformer name has no live instance.
        """
        config = cls.load_configuration(root_cache_dir)
        by_name = {t.name: t for t in transformers}

        def _live(record: TransformerRecord) -> BaseTransformer:
            transformer = by_name.get(record.name)
            if transformer is None:
                raise ConfigurationError(
                    f"Saved configuration needs transformer {record.name!r}; "
                    f"available: {', '.join(sorted(by_name)) or 'none'}"
                )
            if transformer.version != record.version:
                logger.warning(
                    "Transformer %s is version %s, configuration was saved with %s",
                    record.name, transformer.version, record.version,
                )
            return transformer

        mapping = {mt: _live(rec) for mt, rec in config.transformers.items()}
        fallback = _live(config.fallback) if config.fallback else None
        return cls(
            root_cache_dir, mapping, fingerprinter,
            read_only_mode=read_only_mode, fallback_transformer=fallback, settings=settings,
        )


def _is_terminal(output_type: str | None, input_type: str | None) -> bool:
    """Final form, unless HTML was produced from non-HTML input."""
    if not is_final_form(output_type):
        return False
    return not (output_type == HTML_MEDIA_TYPE and input_type != HTML_MEDIA_TYPE)


def _read_source(file_path: str) -> str:
    return Path(file_path).read_text(encoding="utf-8", errors="replace")


def _accept_all(_path: str) -> bool:
    return True


async def _validated(step: Awaitable[object]) -> TransformOutput:
    return TransformOutput.model_validate(await step)
