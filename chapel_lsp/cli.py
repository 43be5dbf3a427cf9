#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Command-line interface for the Chapel language server.
"""
import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger
from rich.console import Console
from rich.table import Table

from . import __version__
from .api import diagnose
from .config import ChapelLspSettings, load_settings
from .core_types import ChapelDiagnostic, ChapelLspError
from .logging_config import DEFAULT_LOG_FILE, LOG_LEVELS, setup_logging

EXIT_OK = 0
EXIT_DIAGNOSTICS = 1
EXIT_FAILURE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chapel-lsp",
        description="Language server and checker for Chapel sources",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve the protocol over stdio (what editors launch)
  chapel-lsp --logging info serve

  # Serve over TCP for debugging
  chapel-lsp serve --tcp --port 2087

  # Check a single file and print its diagnostics
  chapel-lsp check src/main.chpl --format json
""",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--logging",
        choices=sorted(LOG_LEVELS),
        default="none",
        help="Log level; records are written to the log file",
    )
    parser.add_argument(
        "--log-file", default=DEFAULT_LOG_FILE, help="Log file path"
    )
    parser.add_argument(
        "--config", type=Path, help="JSON file with server settings"
    )

    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="Run the language server")
    serve_parser.add_argument(
        "--tcp", action="store_true", help="Listen on TCP instead of stdio"
    )
    serve_parser.add_argument("--host", default="127.0.0.1", help="TCP host")
    serve_parser.add_argument("--port", type=int, default=2087, help="TCP port")

    check_parser = subparsers.add_parser("check", help="Check a single source file")
    check_parser.add_argument("file", type=Path, help="Source file to check")
    check_parser.add_argument(
        "--root", type=Path, help="Project root, skipping root discovery"
    )
    check_parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format for diagnostics",
    )

    return parser


def print_diagnostics(
    diagnostics: List[ChapelDiagnostic], console: Optional[Console] = None
) -> None:
    """Print diagnostics as a table."""
    console = console or Console()
    if not diagnostics:
        console.print("[green]No problems found[/green]")
        return

    table = Table(title=f"{len(diagnostics)} diagnostics")
    table.add_column("File", style="cyan")
    table.add_column("Line", justify="right")
    table.add_column("Kind")
    table.add_column("Message")

    for diagnostic in diagnostics:
        style = "yellow" if diagnostic.kind.lower() == "warning" else "red"
        table.add_row(
            diagnostic.file,
            str(diagnostic.line),
            f"[{style}]{diagnostic.kind}[/{style}]",
            diagnostic.message,
        )
    console.print(table)


def _check(args: argparse.Namespace, settings: ChapelLspSettings) -> int:
    try:
        diagnostics = diagnose(args.file, args.root, settings)
    except ChapelLspError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    if args.format == "json":
        print(json.dumps([d.to_dict() for d in diagnostics], indent=2))
    else:
        print_diagnostics(diagnostics)

    return EXIT_DIAGNOSTICS if diagnostics else EXIT_OK


def _serve(args: argparse.Namespace, settings: ChapelLspSettings) -> int:
    from .server import server

    server.settings = settings
    if args.tcp:
        logger.info(f"Starting server on {args.host}:{args.port}")
        server.start_tcp(args.host, args.port)
    else:
        logger.info("Starting server on stdio")
        server.start_io()
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function for command-line usage.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.logging, args.log_file)

    try:
        settings = load_settings(args.config) if args.config else ChapelLspSettings()
    except ChapelLspError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    if args.command == "check":
        return _check(args, settings)
    return _serve(args, settings)


if __name__ == "__main__":
    sys.exit(main())
