from __future__ import annotations

import logging
from typing import Optional

from phplite.errors import ProjectError
from phplite.project import (
    FILE_NAME,
    build_initial_compilation,
    enumerate_source_files,
    load_project,
    reference_files,
)
from phplite.syntax_tree import SyntaxTree
from phplite_lsp.broker import DiagnosticsBroker
from phplite_lsp.paths import is_under, normalize_path
from phplite_lsp.session import PARSER_SOURCE, DiagnosticEvent, Session

logger = logging.getLogger(__name__)


class CompilationSynchronizer:
    """Keeps the session's compilation in step with whole-document edits."""

    def __init__(self, session: Session, broker: Optional[DiagnosticsBroker] = None):
        self.session = session
        self.broker = broker if broker is not None else DiagnosticsBroker(session)

    def update_file(self, path: str, text: str) -> list[DiagnosticEvent]:
        session = self.session
        if session.compilation is None:
            logger.debug("no project loaded, ignoring update of %s", path)
            return []
        path = normalize_path(path)
        if session.root_path is not None and not is_under(path, session.root_path):
            logger.debug("%s is outside %s, ignoring", path, session.root_path)
            return []
        if path in session.library_paths:
            logger.debug("%s is a reference stub, ignoring", path)
            return []

        tree = SyntaxTree.parse_code(text, path)
        events: list[DiagnosticEvent] = []

        if tree.diagnostics:
            diagnostics = tuple(tree.diagnostics)
            if path not in session.parser_errors or session.parser_errors.published(path) != diagnostics:
                session.parser_errors.record(path, diagnostics)
                events.append(DiagnosticEvent(path, PARSER_SOURCE, diagnostics))
            logger.debug("%s: %d parse errors, compilation unchanged", path, len(diagnostics))
            return events

        if path in session.parser_errors:
            session.parser_errors.discard(path)
            # the empty publish also wipes the file's semantic markers in the client
            session.semantic_errors.invalidate(path)
            events.append(DiagnosticEvent(path, PARSER_SOURCE, ()))

        compilation = session.compilation
        old = compilation.get_tree(path)
        if old is not None:
            compilation = compilation.replace_syntax_tree(old, tree)
        else:
            compilation = compilation.add_syntax_trees(tree)
        session.compilation = compilation
        logger.debug("%s: merged into %r", path, compilation)

        events.extend(self.broker.refresh(compilation))
        return events

    def open_folder(self, root_path: str) -> list[DiagnosticEvent]:
        root = normalize_path(root_path)
        try:
            descriptor = load_project(root)
            if descriptor is None:
                logger.info("no %s in %s, diagnostics disabled", FILE_NAME, root)
                return []
            compilation = build_initial_compilation(descriptor)
        except ProjectError:
            logger.exception("cannot load project at %s, diagnostics disabled", root)
            return []

        stubs = reference_files(descriptor)
        self.session.install(root, compilation, (normalize_path(str(stub)) for stub in stubs))
        files = enumerate_source_files(root, descriptor.extensions, exclude=stubs)
        logger.info("project %s loaded: %d source files", descriptor.name, len(files))

        events: list[DiagnosticEvent] = []
        for file in files:
            try:
                text = file.read_text(encoding='utf-8')
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("skipping %s: %s", file, e)
                continue
            events.extend(self.update_file(str(file), text))
        return events
