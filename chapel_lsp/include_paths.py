#!/usr/bin/env python3
"""
Module search path collection.

Search paths come from two places under the project root: the entries listed
in the project manifest file, and every directory below the conventional
source directory that directly contains source files.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List, Optional, Set

from loguru import logger

from .config import ChapelLspSettings
from .core_types import PathLike


class IncludePathCollector:
    """Collects the module search directories for a project root."""

    def __init__(self, settings: Optional[ChapelLspSettings] = None) -> None:
        self.settings = settings or ChapelLspSettings()

    def collect(self, root: Optional[PathLike]) -> Set[Path]:
        """
        Collect absolute module search directories for ``root``.

        Returns the union of manifest entries and discovered source directories.
        Either source may be empty; a missing root yields an empty set.
        """
        if root is None:
            return set()

        root_path = Path(os.path.abspath(root))
        paths = set(self.read_manifest(root_path))
        paths |= self.discover_source_dirs(root_path)

        logger.debug(f"Collected {len(paths)} include paths under {root_path}")
        return paths

    def read_manifest(self, root: PathLike) -> List[Path]:
        """
        Read the manifest file directly under ``root``.

        Each non-blank line is a path relative to the root. A missing manifest
        is not an error and yields no entries.
        """
        manifest = Path(root) / self.settings.manifest_name
        if not manifest.is_file():
            return []

        try:
            text = manifest.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read manifest {manifest}: {e}")
            return []

        entries = [line.strip() for line in text.split("\n")]
        return [
            Path(os.path.abspath(os.path.join(root, entry)))
            for entry in entries
            if entry
        ]

    def discover_source_dirs(self, root: PathLike) -> Set[Path]:
        """
        Find directories under the source directory that hold source files.

        Traversal is depth-first and always continues into subdirectories,
        whether or not the current directory qualified.
        """
        start = Path(root) / self.settings.source_dir
        found: Set[Path] = set()
        if not start.is_dir():
            return found

        stack = [start]
        while stack:
            directory = stack.pop()
            try:
                entries = list(os.scandir(directory))
            except OSError as e:
                logger.warning(f"Skipping unreadable directory {directory}: {e}")
                continue

            subdirs = []
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(Path(entry.path))
                elif entry.is_file() and entry.name.endswith(
                    self.settings.source_extension
                ):
                    found.add(Path(os.path.abspath(directory)))

            stack.extend(sorted(subdirs, reverse=True))

        return found


def module_flags(paths: Iterable[PathLike], flag: str = "-M") -> List[str]:
    """Turn search directories into a flat ``[flag, dir, flag, dir, ...]`` list."""
    flags: List[str] = []
    for path in sorted(str(p) for p in paths):
        flags.extend([flag, path])
    return flags
