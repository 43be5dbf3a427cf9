#!/usr/bin/env python3
"""
High-level API for the Chapel language server.
"""

import os
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .config import ChapelLspSettings
from .core_types import ChapelDiagnostic, PathLike
from .diagnostics import DiagnosticExtractor, DiagnosticLogger
from .include_paths import IncludePathCollector
from .root_resolver import RootResolver
from .utils import uri_to_path


def diagnose(
    target_path: PathLike,
    known_root: Optional[PathLike] = None,
    settings: Optional[ChapelLspSettings] = None,
    log: DiagnosticLogger = logger,
) -> List[ChapelDiagnostic]:
    """
    Check a source file and return its diagnostics.

    Both arguments may be ``file://`` URIs. When ``known_root`` is given the
    upward root search is skipped.

    Raises:
        CompilerNotFoundError: If the compiler cannot be started
        CompilerTimeoutError: If the compiler exceeds the configured timeout
    """
    settings = settings or ChapelLspSettings()
    target = uri_to_path(target_path)
    root_hint = uri_to_path(known_root) if known_root else None

    root = RootResolver(settings).resolve(target, root_hint)
    include_paths = IncludePathCollector(settings).collect(root)
    include_paths.update(
        Path(os.path.abspath(path)) for path in settings.extra_include_paths
    )

    return DiagnosticExtractor(settings, log).extract(target, include_paths)
