"""
Request routing.

The dispatcher handles one request at a time, to completion, by method name.
Unknown methods are ignored and answered with None. Diagnostics produced by
the synchronizer come back as DiagnosticEvents and are handed to a
Publisher, which the pygls server implements on top of the client
connection.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional, Protocol

from lsprotocol import types as lsp
from lsprotocol.converters import get_converter

from phplite import __version__
from phplite.diagnostics import Diagnostic, Severity
from phplite_lsp.config import ServerOptions
from phplite_lsp.paths import normalize_path, path_to_uri
from phplite_lsp.resolver import resolve
from phplite_lsp.session import DiagnosticEvent, Session
from phplite_lsp.synchronizer import CompilationSynchronizer
from phplite_lsp.tooltip import format_tooltip

logger = logging.getLogger(__name__)

GREETING = f"phplite language server {__version__} at your service"

SEVERITIES = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
    Severity.INFO: lsp.DiagnosticSeverity.Information,
}

_converter = get_converter()


class Publisher(Protocol):
    def publish_diagnostics(self, params: lsp.PublishDiagnosticsParams) -> None: ...

    def show_message(self, params: lsp.ShowMessageParams) -> None: ...

    def log_message(self, params: lsp.LogMessageParams) -> None: ...


def to_lsp_diagnostic(diagnostic: Diagnostic, source: str) -> Optional[lsp.Diagnostic]:
    severity = SEVERITIES.get(diagnostic.severity)
    if severity is None:
        return None
    (start_line, start_col), (end_line, end_col) = diagnostic.start, diagnostic.end
    return lsp.Diagnostic(
        range=lsp.Range(
            start=lsp.Position(line=start_line, character=start_col),
            end=lsp.Position(line=end_line, character=end_col),
        ),
        message=diagnostic.message,
        severity=severity,
        code=diagnostic.code,
        source=source,
    )


def to_publish_params(event: DiagnosticEvent) -> lsp.PublishDiagnosticsParams:
    diagnostics = [d for d in (to_lsp_diagnostic(x, event.source) for x in event.diagnostics) if d is not None]
    return lsp.PublishDiagnosticsParams(uri=path_to_uri(event.path), diagnostics=diagnostics)


class RequestDispatcher:
    def __init__(
        self,
        session: Session,
        publisher: Publisher,
        options: Optional[ServerOptions] = None,
        synchronizer: Optional[CompilationSynchronizer] = None,
    ):
        self.session = session
        self.publisher = publisher
        self.options = options if options is not None else ServerOptions()
        self.synchronizer = synchronizer if synchronizer is not None else CompilationSynchronizer(session)
        self.handlers: dict[str, Callable[[Any], Any]] = {
            lsp.INITIALIZE: self.on_initialize,
            lsp.INITIALIZED: self.on_initialized,
            lsp.TEXT_DOCUMENT_DID_OPEN: self.on_did_open,
            lsp.TEXT_DOCUMENT_DID_CHANGE: self.on_did_change,
            lsp.TEXT_DOCUMENT_HOVER: self.on_hover,
        }

    def dispatch(self, method: str, params: Any = None) -> Any:
        if self.options.debug:
            self.echo(method, params)
        handler = self.handlers.get(method)
        if handler is None:
            logger.debug("ignoring %s", method)
            return None
        return handler(params)

    def echo(self, method: str, params: Any) -> None:
        payload = _converter.unstructure(params) if params is not None else None
        message = {"method": method, "params": payload}
        self.publisher.log_message(lsp.LogMessageParams(
            type=lsp.MessageType.Log,
            message=f"Received: {json.dumps(message, sort_keys=True, default=str)}",
        ))

    def publish(self, events: list[DiagnosticEvent]) -> None:
        for event in events:
            logger.debug("publish %s %s: %d", event.source, event.path, len(event.diagnostics))
            self.publisher.publish_diagnostics(to_publish_params(event))

    # --- handlers ---

    def on_initialize(self, params: lsp.InitializeParams) -> lsp.InitializeResult:
        root = params.root_path or params.root_uri
        # the folder is opened on `initialized`, once the client can receive publishes
        self.session.pending_root = normalize_path(root) if root else None
        if self.options.debug:
            self.publisher.show_message(lsp.ShowMessageParams(type=lsp.MessageType.Info, message=GREETING))
        return lsp.InitializeResult(
            capabilities=lsp.ServerCapabilities(
                text_document_sync=lsp.TextDocumentSyncKind.Full,
                hover_provider=True,
            ),
        )

    def on_initialized(self, params: Any) -> None:
        root = self.session.pending_root
        self.session.pending_root = None
        if root is None:
            logger.info("no workspace root, diagnostics disabled")
            return None
        self.publish(self.synchronizer.open_folder(root))
        return None

    def on_did_open(self, params: lsp.DidOpenTextDocumentParams) -> None:
        # TODO: decide what opening a file outside the loaded project should do
        logger.debug("didOpen %s ignored", params.text_document.uri)
        return None

    def on_did_change(self, params: lsp.DidChangeTextDocumentParams) -> None:
        if not params.content_changes:
            return None
        # whole-document sync: only the first entry carries the text
        text = params.content_changes[0].text
        self.publish(self.synchronizer.update_file(params.text_document.uri, text))
        return None

    def on_hover(self, params: lsp.HoverParams) -> Optional[lsp.Hover]:
        compilation = self.session.compilation
        if compilation is None:
            return None
        position = params.position
        stat = resolve(compilation, params.text_document.uri, position.line, position.character)
        text = format_tooltip(stat)
        if text is None:
            return None
        return lsp.Hover(contents=lsp.MarkupContent(kind=lsp.MarkupKind.Markdown, value=text))