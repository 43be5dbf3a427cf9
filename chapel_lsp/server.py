#!/usr/bin/env python3
"""
Chapel language server.

Wires the diagnostic pipeline to the Language Server Protocol. Each time a
document is saved, the compiler checks it and the diagnostics that belong to
that document are published back to the editor.
"""

from __future__ import annotations

import os
from typing import Iterable, List, Optional

from loguru import logger
from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from . import __version__
from .api import diagnose
from .config import ChapelLspSettings
from .core_types import ChapelDiagnostic, ChapelLspError
from .utils import uri_to_path

DIAGNOSTIC_SOURCE = "Chapel"

SEVERITIES = {
    "error": lsp.DiagnosticSeverity.Error,
    "internal error": lsp.DiagnosticSeverity.Error,
    "syntax error": lsp.DiagnosticSeverity.Error,
    "warning": lsp.DiagnosticSeverity.Warning,
    "note": lsp.DiagnosticSeverity.Information,
}


class ChapelLanguageServer(LanguageServer):
    """Language server holding the settings used for each check."""

    def __init__(self, *args, settings: Optional[ChapelLspSettings] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.settings = settings or ChapelLspSettings()

    def update_settings(self, options) -> None:
        """Layer editor options over the current settings, keeping them if invalid."""
        try:
            self.settings = ChapelLspSettings.from_options(options, self.settings)
        except ChapelLspError as e:
            logger.warning(f"Ignoring invalid settings: {e}")


def severity_for(kind: str) -> lsp.DiagnosticSeverity:
    """Map a compiler diagnostic kind to an LSP severity, defaulting to Error."""
    return SEVERITIES.get(kind.strip().lower(), lsp.DiagnosticSeverity.Error)


def to_lsp_diagnostic(diagnostic: ChapelDiagnostic) -> lsp.Diagnostic:
    """Convert a compiler diagnostic to LSP form (LSP lines are 0-based)."""
    line = max(0, diagnostic.line - 1)
    return lsp.Diagnostic(
        range=lsp.Range(
            start=lsp.Position(line=line, character=0),
            end=lsp.Position(line=line, character=1),
        ),
        message=diagnostic.message,
        severity=severity_for(diagnostic.kind),
        source=DIAGNOSTIC_SOURCE,
    )


def diagnostics_for_document(
    diagnostics: Iterable[ChapelDiagnostic], document_path: str
) -> List[lsp.Diagnostic]:
    """Keep the diagnostics reported against ``document_path``."""
    target = os.path.abspath(document_path)
    return [
        to_lsp_diagnostic(diagnostic)
        for diagnostic in diagnostics
        if os.path.abspath(diagnostic.file) == target
    ]


def workspace_root_for(ls: LanguageServer, document_path: str) -> Optional[str]:
    """
    Pick the workspace root for a document.

    Chooses the innermost workspace folder or session root URI that contains
    the document. Documents outside the workspace get None, so the root is
    discovered from the file itself.
    """
    workspace = ls.workspace
    target = os.path.abspath(document_path)

    candidates = [
        os.path.abspath(uri_to_path(folder.uri))
        for folder in (getattr(workspace, "folders", None) or {}).values()
    ]
    root_uri = getattr(workspace, "root_uri", None)
    if root_uri:
        candidates.append(os.path.abspath(uri_to_path(root_uri)))

    containing = [path for path in candidates if _contains(path, target)]
    return max(containing, key=len) if containing else None


def _contains(directory: str, path: str) -> bool:
    return path == directory or path.startswith(directory.rstrip(os.sep) + os.sep)


def check_document(ls: ChapelLanguageServer, uri: str) -> Optional[List[lsp.Diagnostic]]:
    """
    Run the diagnostic pipeline for a saved document.

    Returns:
        LSP diagnostics for the document, or None when the compiler could
        not be run and nothing should be published
    """
    path = uri_to_path(uri)
    known_root = workspace_root_for(ls, path)

    try:
        diagnostics = diagnose(path, known_root, ls.settings)
    except ChapelLspError as e:
        logger.debug(f"Skipping diagnostics for {uri}: {e}")
        return None

    return diagnostics_for_document(diagnostics, path)


server = ChapelLanguageServer(
    "chapel-lsp",
    __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Incremental,
)


@server.feature(lsp.INITIALIZE)
def on_initialize(ls: ChapelLanguageServer, params: lsp.InitializeParams) -> None:
    options = params.initialization_options
    if isinstance(options, dict):
        ls.update_settings(options)
    logger.info(f"Initialized with compiler {ls.settings.compiler}")


@server.feature(lsp.WORKSPACE_DID_CHANGE_CONFIGURATION)
def did_change_configuration(
    ls: ChapelLanguageServer, params: lsp.DidChangeConfigurationParams
) -> None:
    if isinstance(params.settings, dict):
        ls.update_settings(params.settings)


@server.feature(lsp.TEXT_DOCUMENT_DID_SAVE)
def did_save(ls: ChapelLanguageServer, params: lsp.DidSaveTextDocumentParams) -> None:
    uri = params.text_document.uri
    diagnostics = check_document(ls, uri)
    if diagnostics is None:
        return

    ls.text_document_publish_diagnostics(
        lsp.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(ls: ChapelLanguageServer, params: lsp.DidCloseTextDocumentParams) -> None:
    ls.text_document_publish_diagnostics(
        lsp.PublishDiagnosticsParams(uri=params.text_document.uri, diagnostics=[])
    )
