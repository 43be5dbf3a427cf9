#!/usr/bin/env python3
"""
Project root discovery.

The project root scopes the module search paths handed to the compiler. It is
found by walking upward from the file being checked until a directory holding
a project marker shows up.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Set

from loguru import logger

from .config import ChapelLspSettings
from .core_types import PathLike


class RootResolver:
    """Resolves the project root directory for a source file."""

    def __init__(self, settings: Optional[ChapelLspSettings] = None) -> None:
        self.settings = settings or ChapelLspSettings()

    @property
    def root_markers(self) -> Set[str]:
        """Names whose presence makes a directory the project root."""
        return {self.settings.manifest_name, self.settings.package_marker}

    def resolve(
        self, target_file: PathLike, known_root: Optional[PathLike] = None
    ) -> Optional[Path]:
        """
        Find the project root for ``target_file``.

        A ``known_root`` supplied by the caller is returned as-is and no
        search is performed. Otherwise the walk starts at the file's parent
        directory. A directory containing the manifest or package marker is the
        root. A directory containing only the version-control marker ends the
        search without a root, as does reaching the filesystem root.

        Returns:
            The root directory, or None when the file belongs to no project
        """
        if known_root is not None:
            return Path(known_root)

        directory = Path(os.path.abspath(target_file)).parent

        while True:
            entries = self._list_entries(directory)

            if entries & self.root_markers:
                logger.debug(f"Resolved project root {directory} for {target_file}")
                return directory

            if self.settings.vcs_marker in entries:
                logger.debug(
                    f"Stopped root search at repository boundary {directory}"
                )
                return None

            parent = directory.parent
            if parent == directory:
                break
            directory = parent

        logger.debug(f"No project root found for {target_file}")
        return None

    @staticmethod
    def _list_entries(directory: Path) -> Set[str]:
        try:
            return set(os.listdir(directory))
        except OSError as e:
            logger.warning(f"Cannot list {directory} during root search: {e}")
            return set()


def find_root(
    target_file: PathLike,
    known_root: Optional[PathLike] = None,
    settings: Optional[ChapelLspSettings] = None,
) -> Optional[Path]:
    """Resolve the project root using a resolver built from ``settings``."""
    return RootResolver(settings).resolve(target_file, known_root)
