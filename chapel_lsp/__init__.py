#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Chapel Language Server

This package turns the error output of the ``chpl`` compiler into diagnostics
an editor can display, and serves them over the Language Server Protocol.

Features:
- Project root discovery via .chapel_lsp, Mason.toml and .git markers
- Module search paths from the project manifest and the src/ tree
- Parsing, filtering and merging of compiler diagnostics
- Settings from JSON files or editor initialization options
- Command-line checking and a stdio/TCP language server
"""

__version__ = "0.1.0"
__license__ = "GPL-3.0-or-later"

from .api import diagnose
from .config import ChapelLspSettings, load_settings
from .core_types import (
    ChapelDiagnostic,
    ChapelLspError,
    CommandResult,
    CompilerNotFoundError,
    CompilerTimeoutError,
    InvalidConfigurationError,
)
from .diagnostics import (
    DiagnosticExtractor,
    merge_diagnostics,
    parse_error_line,
    parse_output,
)
from .include_paths import IncludePathCollector
from .root_resolver import RootResolver, find_root

__all__ = [
    # Core types
    "ChapelDiagnostic",
    "CommandResult",
    "ChapelLspError",
    "CompilerNotFoundError",
    "CompilerTimeoutError",
    "InvalidConfigurationError",
    # Configuration
    "ChapelLspSettings",
    "load_settings",
    # Pipeline
    "RootResolver",
    "find_root",
    "IncludePathCollector",
    "DiagnosticExtractor",
    "parse_error_line",
    "parse_output",
    "merge_diagnostics",
    # API functions
    "diagnose",
]
