# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: cache location
and backend, operating mode, fingerprint heuristics and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Cache ===
    cache_root: Path = Path("~/.assetpipe/cache")
    cache_backend: Literal["json", "sqlite"] = "json"

    # === Compilation ===
    read_only_mode: bool = False
    max_compile_passes: int = 10
    scan_concurrency: int = 8

    # Comma-separated dotted class paths of BaseTransformer subclasses
    transformers: str = ""

    # === Fingerprinting ===
    vendored_dir_names: str = "node_modules,bower_components"
    minified_line_length: int = 80

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("max_compile_passes", "scan_concurrency")
    @classmethod
    def validate_positive(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.minified_line_length < 1:
            errors.append("MINIFIED_LINE_LENGTH must be >= 1")

        if not self.vendored_dir_names_list and self.vendored_dir_names.strip():
            errors.append("VENDORED_DIR_NAMES has no usable entries")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def vendored_dir_names_list(self) -> list[str]:
        """Parse comma-separated vendored directory names."""
        return [d.strip() for d in self.vendored_dir_names.split(",") if d.strip()]

    @property
    def transformers_list(self) -> list[str]:
        """Parse comma-separated transformer class paths."""
        return [t.strip() for t in self.transformers.split(",") if t.strip()]

    @property
    def resolved_cache_root(self) -> Path:
        return self.cache_root.expanduser()


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-host config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
