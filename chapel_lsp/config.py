#!/usr/bin/env python3
"""
Settings for the Chapel language server.

Defaults reproduce a stock ``chpl`` setup. Settings can be overridden from a
JSON file or from the options an editor sends during initialization and on
configuration changes.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .core_types import InvalidConfigurationError, PathLike

# Section name used by editors in workspace/didChangeConfiguration payloads
SETTINGS_SECTION = "chapel"


class ChapelLspSettings(BaseModel):
    """Compiler invocation and project-layout settings, validated with Pydantic v2."""

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        str_strip_whitespace=True,
    )

    compiler: str = Field(default="chpl", description="Compiler executable")
    check_flags: List[str] = Field(
        default_factory=lambda: ["--no-codegen", "--baseline"],
        description="Flags requesting checking only, with deterministic diagnostics",
    )
    module_flag: str = Field(
        default="-M", description="Flag preceding each module search directory"
    )
    manifest_name: str = Field(
        default=".chapel_lsp",
        description="Project-local file listing extra module search paths",
    )
    vcs_marker: str = Field(
        default=".git", description="Directory that bounds the upward root search"
    )
    package_marker: str = Field(
        default="Mason.toml", description="Package manifest marking a project root"
    )
    source_dir: str = Field(
        default="src", description="Source directory scanned for module directories"
    )
    source_extension: str = Field(
        default=".chpl", description="Extension identifying source files"
    )
    stdlib_marker: str = Field(
        default="$CHPL_HOME",
        description="Path prefix of diagnostics from the compiler's own modules",
    )
    compiler_timeout: Optional[float] = Field(
        default=60.0,
        description="Seconds to wait for the compiler; None waits indefinitely",
    )
    extra_include_paths: List[str] = Field(
        default_factory=list,
        description="Additional module search directories passed on every run",
    )

    @field_validator("source_extension")
    @classmethod
    def normalize_extension(cls, v: str) -> str:
        """Ensure the extension carries its leading dot."""
        if not v:
            raise ValueError("source_extension cannot be empty")
        return v if v.startswith(".") else f".{v}"

    @field_validator("compiler")
    @classmethod
    def validate_compiler(cls, v: str) -> str:
        if not v:
            raise ValueError("compiler cannot be empty")
        return v

    @field_validator("compiler_timeout")
    @classmethod
    def validate_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("compiler_timeout must be positive")
        return v

    @classmethod
    def from_options(
        cls,
        options: Optional[Dict[str, Any]],
        base: Optional[ChapelLspSettings] = None,
        strict: bool = False,
    ) -> ChapelLspSettings:
        """
        Build settings from editor-supplied options layered over ``base``.

        Accepts either a flat mapping of setting names or one nested under the
        ``chapel`` section. Keys that are not settings are dropped, since editors
        share the section with client-side options such as ``trace.server``;
        with ``strict`` they are rejected instead. Invalid values raise
        InvalidConfigurationError.
        """
        base = base or cls()
        if not options:
            return base

        if SETTINGS_SECTION in options and isinstance(options[SETTINGS_SECTION], dict):
            options = options[SETTINGS_SECTION]

        # Editors commonly send camelCase keys
        normalized = {_snake_case(key): value for key, value in options.items()}
        if not strict:
            unknown = sorted(set(normalized) - set(cls.model_fields))
            if unknown:
                logger.debug(f"Ignoring unknown settings: {', '.join(unknown)}")
            normalized = {
                key: value for key, value in normalized.items() if key in cls.model_fields
            }
        merged = {**base.model_dump(), **normalized}

        try:
            return cls.model_validate(merged)
        except ValidationError as e:
            raise InvalidConfigurationError(
                f"Invalid settings: {e}",
                error_code="INVALID_CONFIGURATION",
                validation_errors=e.errors(),
            ) from e


def _snake_case(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name).lstrip("_")


def load_settings(file_path: PathLike) -> ChapelLspSettings:
    """
    Load and validate settings from a JSON file.

    Args:
        file_path: Path to the configuration file

    Returns:
        Validated settings object

    Raises:
        InvalidConfigurationError: If the file cannot be read, parsed or validated
    """
    path = Path(file_path)

    if not path.is_file():
        raise InvalidConfigurationError(
            f"Configuration file not found: {path}",
            error_code="FILE_NOT_FOUND",
            file_path=str(path),
        )

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidConfigurationError(
            f"Invalid JSON in file {path}: {e}",
            error_code="INVALID_JSON",
            file_path=str(path),
        ) from e
    except OSError as e:
        raise InvalidConfigurationError(
            f"Failed to read file {path}: {e}",
            error_code="FILE_READ_ERROR",
            file_path=str(path),
        ) from e

    if not isinstance(data, dict):
        raise InvalidConfigurationError(
            f"Configuration in {path} must be a JSON object",
            error_code="INVALID_CONFIGURATION",
            file_path=str(path),
        )

    settings = ChapelLspSettings.from_options(data, strict=True)
    logger.debug(f"Loaded settings from {path}")
    return settings
