#!/usr/bin/env python3
"""
Utility functions for the Chapel language server.

Subprocess execution and conversion of editor document identifiers into
filesystem paths.
"""

from __future__ import annotations

import os
import subprocess
import time
from typing import Dict, List, Optional
from urllib.parse import unquote, urlparse

from loguru import logger

from .core_types import (
    CommandResult,
    CompilerNotFoundError,
    CompilerTimeoutError,
    PathLike,
)

FILE_SCHEME = "file://"


def uri_to_path(uri: PathLike) -> str:
    """
    Convert a document identifier into a local filesystem path.

    ``file://`` URIs have their scheme stripped and percent-escapes decoded;
    anything else is assumed to already be a path.
    """
    text = str(uri)
    if not text.startswith(FILE_SCHEME):
        return text

    parsed = urlparse(text)
    path = unquote(parsed.path)
    # file:///C:/dir -> C:/dir
    if len(path) >= 3 and path[0] == "/" and path[2] == ":":
        path = path[1:]
    return path


class ProcessManager:
    """Process execution utilities."""

    @staticmethod
    def run_command(
        command: List[str],
        timeout: Optional[float] = None,
        cwd: Optional[PathLike] = None,
        env: Optional[Dict[str, str]] = None,
        log=logger,
    ) -> CommandResult:
        """
        Run a command synchronously and capture its output.

        A non-zero exit is reported through the result, not raised.

        Args:
            command: Command and arguments to execute
            timeout: Command timeout in seconds, None to wait indefinitely
            cwd: Working directory for the command
            env: Environment variables merged over the current environment
            log: Logger receiving progress messages

        Returns:
            CommandResult with execution details

        Raises:
            CompilerNotFoundError: If the executable cannot be started
            CompilerTimeoutError: If the command exceeds ``timeout``
        """
        start_time = time.time()

        log.debug(f"Executing command: {' '.join(command)}")

        final_env = os.environ.copy()
        if env:
            final_env.update(env)

        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=timeout,
                cwd=cwd,
                env=final_env,
                text=False,  # Keep as bytes for proper encoding handling
            )
        except subprocess.TimeoutExpired as e:
            raise CompilerTimeoutError(
                f"Command timed out after {timeout}s: {command[0]}",
                command=command,
                timeout=timeout,
            ) from e
        except (FileNotFoundError, PermissionError) as e:
            raise CompilerNotFoundError(
                f"Cannot start {command[0]}: {e}",
                error_code="COMPILER_NOT_FOUND",
                command=command,
            ) from e

        execution_time = time.time() - start_time
        success = result.returncode == 0

        cmd_result = CommandResult(
            success=success,
            stdout=result.stdout.decode("utf-8", errors="replace").strip(),
            stderr=result.stderr.decode("utf-8", errors="replace").strip(),
            return_code=result.returncode,
            command=command,
            execution_time=execution_time,
        )

        if success:
            log.debug(f"Command completed successfully in {execution_time:.2f}s")
        else:
            log.debug(
                f"Command exited with code {cmd_result.return_code} in {execution_time:.2f}s"
            )

        return cmd_result
