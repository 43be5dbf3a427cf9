#!/usr/bin/env python3
"""
Core types and data models for the Chapel language server.

This module provides the diagnostic record produced by the extraction pipeline,
the result of a compiler subprocess run, and the exception hierarchy used to
signal execution failures.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, TypeAlias, Union

from loguru import logger

PathLike: TypeAlias = Union[str, Path]
DiagnosticKey: TypeAlias = Tuple[str, int]


@dataclass(frozen=True, slots=True)
class ChapelDiagnostic:
    """
    A single compiler-reported issue at a specific file and line.

    ``line`` is 1-based, exactly as the compiler prints it. ``message`` may be
    the concatenation of several compiler lines addressing the same location.
    """

    kind: str
    file: str
    line: int
    message: str

    @property
    def location(self) -> DiagnosticKey:
        """The ``(file, line)`` pair used to group diagnostics."""
        return (self.file, self.line)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.kind,
            "file": self.file,
            "line": self.line,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class CommandResult:
    """
    Immutable result of a command execution.

    Uses slots for memory efficiency and frozen=True for immutability.
    """

    success: bool
    stdout: str = ""
    stderr: str = ""
    return_code: int = 0
    command: List[str] = field(default_factory=list)
    execution_time: float = 0.0
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if self.execution_time < 0:
            raise ValueError("execution_time cannot be negative")

    @property
    def failed(self) -> bool:
        """Check if the command failed."""
        return not self.success

    @property
    def command_str(self) -> str:
        """Get command as a single string."""
        return " ".join(self.command)


class ChapelLspError(Exception):
    """
    Base exception for execution failures in the diagnostic pipeline.

    Construction logs the error through the global loguru logger, independent
    of any logger injected into the extractor.
    """

    def __init__(
        self, message: str, *, error_code: Optional[str] = None, **kwargs: Any
    ):
        super().__init__(message)
        self.error_code = error_code
        self.context = kwargs

        # bind() keeps braces in the message from being treated as format fields
        logger.bind(error_code=error_code, context=kwargs).error(
            f"ChapelLspError: {message}"
        )


class CompilerNotFoundError(ChapelLspError):
    """Raised when the compiler executable cannot be located or started."""

    pass


class CompilerTimeoutError(ChapelLspError):
    """Raised when the compiler does not exit within the configured timeout."""

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ):
        super().__init__(
            message,
            error_code="COMPILER_TIMEOUT",
            command=command,
            timeout=timeout,
            **kwargs,
        )
        self.command = command
        self.timeout = timeout


class InvalidConfigurationError(ChapelLspError):
    """Raised when server settings cannot be loaded or validated."""

    pass
