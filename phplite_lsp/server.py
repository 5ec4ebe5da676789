from __future__ import annotations

"""
pygls binding of the PHP-lite language server.

Features:
- Initialize/Initialized: whole-document sync, hover; project load once the client is ready
- Text synchronization: whole-document didChange feeds the compilation synchronizer
- Diagnostics: parser and semantic diagnostics, published as minimal diffs
- Hover: symbol tooltips

pygls owns the transport and builds the advertised capabilities from the
registered features; every handler forwards to the RequestDispatcher, which
holds the actual behavior and is what the tests drive.
"""

import argparse
import logging
import sys
from typing import Optional

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from phplite import __version__
from phplite_lsp.config import ServerOptions
from phplite_lsp.dispatcher import RequestDispatcher
from phplite_lsp.session import Session

logger = logging.getLogger(__name__)


class LanguageServerPublisher:
    """Publisher that writes to the client connection of a pygls server."""

    def __init__(self, server: LanguageServer):
        self.server = server

    def publish_diagnostics(self, params: lsp.PublishDiagnosticsParams) -> None:
        self.server.text_document_publish_diagnostics(params)

    def show_message(self, params: lsp.ShowMessageParams) -> None:
        self.server.window_show_message(params)

    def log_message(self, params: lsp.LogMessageParams) -> None:
        self.server.window_log_message(params)


class PhpLiteLanguageServer(LanguageServer):
    CMD_NAME = "phplite-ls"

    def __init__(self, options: Optional[ServerOptions] = None):
        super().__init__(self.CMD_NAME, __version__, text_document_sync_kind=lsp.TextDocumentSyncKind.Full)
        self.configure(options if options is not None else ServerOptions.from_env())

    def configure(self, options: ServerOptions) -> None:
        # a fresh session per configuration; nothing outlives the run loop
        self.server_options = options
        self.session = Session()
        self.dispatcher = RequestDispatcher(self.session, LanguageServerPublisher(self), options)


ls = PhpLiteLanguageServer()


@ls.feature(lsp.INITIALIZE)
def on_initialize(params: lsp.InitializeParams):
    ls.dispatcher.dispatch(lsp.INITIALIZE, params)


@ls.feature(lsp.INITIALIZED)
def on_initialized(params: lsp.InitializedParams):
    ls.dispatcher.dispatch(lsp.INITIALIZED, params)


@ls.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams):
    ls.dispatcher.dispatch(lsp.TEXT_DOCUMENT_DID_OPEN, params)


@ls.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams):
    ls.dispatcher.dispatch(lsp.TEXT_DOCUMENT_DID_CHANGE, params)


@ls.feature(lsp.TEXT_DOCUMENT_HOVER)
def on_hover(params: lsp.HoverParams) -> Optional[lsp.Hover]:
    return ls.dispatcher.dispatch(lsp.TEXT_DOCUMENT_HOVER, params)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=PhpLiteLanguageServer.CMD_NAME, description="PHP-lite language server (stdio)")
    parser.add_argument("--debug", action="store_true", default=None, help="echo handled requests to the client log")
    parser.add_argument("--log-level", default=None, help="stderr log level (default: PHPLITE_LS_LOG_LEVEL or INFO)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    args = build_arg_parser().parse_args(argv)
    options = ServerOptions.from_env().with_overrides(debug=args.debug, log_level=args.log_level)
    # stdout is the LSP transport
    logging.basicConfig(
        level=options.logging_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ls.configure(options)
    logger.info("starting %s %s (debug=%s)", ls.CMD_NAME, __version__, options.debug)
    ls.start_io()


if __name__ == "__main__":
    # Run the language server over stdio
    main()
