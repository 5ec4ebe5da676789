from __future__ import annotations

import logging

from phplite.compilation import Compilation
from phplite.diagnostics import Diagnostic
from phplite_lsp.session import SEMANTIC_SOURCE, DiagnosticEvent, Session

logger = logging.getLogger(__name__)


class DiagnosticsBroker:
    """
    Turns a whole-compilation analysis into the minimal set of semantic publishes.

    Files whose visible diagnostics did not change receive nothing; files that
    stopped having diagnostics receive one empty publish. Files that currently
    fail to parse are left alone: the compilation still holds their last clean
    tree, so their semantic diagnostics stay as they were.
    """

    def __init__(self, session: Session):
        self.session = session

    def refresh(self, compilation: Compilation) -> list[DiagnosticEvent]:
        by_path: dict[str, list[Diagnostic]] = {}
        for diagnostic in compilation.get_diagnostics():
            if diagnostic.is_visible:
                by_path.setdefault(diagnostic.path, []).append(diagnostic)

        previous = self.session.semantic_errors
        parser_errors = self.session.parser_errors
        current: dict = {}
        events: list[DiagnosticEvent] = []

        for path, diagnostics in by_path.items():
            if path in parser_errors:
                continue
            published = tuple(diagnostics)
            current[path] = published
            if path not in previous or previous.published(path) != published:
                events.append(DiagnosticEvent(path, SEMANTIC_SOURCE, published))

        for path in previous:
            if path in current:
                continue
            if path in parser_errors:
                current[path] = previous.published(path)
                continue
            events.append(DiagnosticEvent(path, SEMANTIC_SOURCE, ()))

        previous.replace(current)
        logger.debug("refresh: %d files with diagnostics, %d publishes", len(current), len(events))
        return events
