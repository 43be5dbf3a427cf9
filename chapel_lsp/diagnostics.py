#!/usr/bin/env python3
"""
Diagnostic extraction from compiler output.

The compiler is run in check-only mode. When it fails, every line it wrote to
stderr is parsed as ``<file>:<line>:<kind>:<message>``. Lines that do not have
that shape are skipped, diagnostics raised inside the compiler's own modules
are dropped, and diagnostics addressing the same file and line are merged.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol

from loguru import logger

from .config import ChapelLspSettings
from .core_types import ChapelDiagnostic, DiagnosticKey, PathLike
from .include_paths import module_flags
from .utils import ProcessManager


class DiagnosticLogger(Protocol):
    """Logging capability injected into the extractor."""

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None: ...

    def info(self, message: str, *args: Any, **kwargs: Any) -> None: ...

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None: ...

    def error(self, message: str, *args: Any, **kwargs: Any) -> None: ...


def parse_error_line(
    line: str, log: DiagnosticLogger = logger
) -> Optional[ChapelDiagnostic]:
    """
    Parse one line of compiler output.

    The message is everything after the third colon, so messages containing
    colons survive intact.

    Returns:
        The diagnostic, or None if the line is not a diagnostic
    """
    parts = line.split(":")
    if len(parts) < 3:
        return None

    try:
        line_number = int(parts[1].strip())
    except ValueError:
        log.warning(f"Discarding compiler line with invalid line number: {line!r}")
        return None

    return ChapelDiagnostic(
        kind=parts[2].strip(),
        file=parts[0].strip(),
        line=line_number,
        message=":".join(parts[3:]).strip(),
    )


def parse_output(
    output: str, log: DiagnosticLogger = logger
) -> Iterator[ChapelDiagnostic]:
    """Lazily parse compiler output, skipping lines that are not diagnostics."""
    for raw_line in output.strip().splitlines():
        diagnostic = parse_error_line(raw_line, log)
        if diagnostic is not None:
            yield diagnostic


def is_stdlib_diagnostic(
    diagnostic: ChapelDiagnostic, stdlib_marker: str = "$CHPL_HOME"
) -> bool:
    """Check whether a diagnostic points into the compiler's own modules."""
    return diagnostic.file.startswith(stdlib_marker)


def merge_diagnostics(
    diagnostics: Iterable[ChapelDiagnostic],
) -> List[ChapelDiagnostic]:
    """
    Merge diagnostics that address the same ``(file, line)``.

    Groups keep first-seen order. Each merged diagnostic takes the kind of
    the first member and the space-joined messages of all members.
    """
    groups: Dict[DiagnosticKey, List[ChapelDiagnostic]] = {}
    for diagnostic in diagnostics:
        groups.setdefault(diagnostic.location, []).append(diagnostic)

    merged = []
    for members in groups.values():
        first = members[0]
        merged.append(
            ChapelDiagnostic(
                kind=first.kind,
                file=first.file,
                line=first.line,
                message=" ".join(member.message for member in members),
            )
        )
    return merged


class DiagnosticExtractor:
    """Runs the compiler on a file and turns its failures into diagnostics."""

    def __init__(
        self,
        settings: Optional[ChapelLspSettings] = None,
        log: DiagnosticLogger = logger,
        process_manager: Optional[ProcessManager] = None,
    ) -> None:
        self.settings = settings or ChapelLspSettings()
        self.log = log
        self.process_manager = process_manager or ProcessManager()

    def build_command(
        self, target_file: PathLike, include_paths: Iterable[PathLike]
    ) -> List[str]:
        """Build the compiler argument vector for a check-only run."""
        return [
            self.settings.compiler,
            str(target_file),
            *self.settings.check_flags,
            *module_flags(include_paths, self.settings.module_flag),
        ]

    def extract(
        self, target_file: PathLike, include_paths: Iterable[PathLike] = ()
    ) -> List[ChapelDiagnostic]:
        """
        Check ``target_file`` and return its merged diagnostics.

        A successful compiler run yields no diagnostics, whatever it printed.

        Raises:
            CompilerNotFoundError: If the compiler cannot be started
            CompilerTimeoutError: If the compiler exceeds the configured timeout
        """
        command = self.build_command(target_file, include_paths)
        self.log.info(f"Running {' '.join(command)}")

        result = self.process_manager.run_command(
            command, timeout=self.settings.compiler_timeout, log=self.log
        )
        if result.success:
            return []

        diagnostics = (
            diagnostic
            for diagnostic in parse_output(result.stderr, self.log)
            if not is_stdlib_diagnostic(diagnostic, self.settings.stdlib_marker)
        )
        merged = merge_diagnostics(diagnostics)

        self.log.info(f"Extracted {len(merged)} diagnostics for {target_file}")
        return merged
