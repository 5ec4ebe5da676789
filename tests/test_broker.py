from phplite import diagnostics
from phplite_lsp.broker import DiagnosticsBroker
from phplite_lsp.session import SEMANTIC_SOURCE, DiagnosticVisibilitySet

from conftest import compile_source

A = "/proj/a.php"
B = "/proj/b.php"


def test_only_files_with_visible_diagnostics_are_published(session):
    compilation = compile_source("<?php foo();", A, (B, "<?php echo 1;"))
    [event] = DiagnosticsBroker(session).refresh(compilation)
    assert event.path == A
    assert event.source == SEMANTIC_SOURCE
    assert [d.code for d in event.diagnostics] == [diagnostics.UNDEFINED_FUNCTION]
    assert A in session.semantic_errors and B not in session.semantic_errors


def test_hidden_diagnostics_are_never_published(session):
    compilation = compile_source("<?php function f() { return 1; echo 2; }")
    assert DiagnosticsBroker(session).refresh(compilation) == []
    assert len(session.semantic_errors) == 0


def test_unchanged_diagnostics_are_not_republished(session):
    broker = DiagnosticsBroker(session)
    broker.refresh(compile_source("<?php foo();"))
    assert broker.refresh(compile_source("<?php foo();")) == []


def test_changed_diagnostics_are_republished(session):
    broker = DiagnosticsBroker(session)
    broker.refresh(compile_source("<?php foo();"))
    [event] = broker.refresh(compile_source("<?php foo(); bar();"))
    assert len(event.diagnostics) == 2


def test_fixed_file_gets_one_clear(session):
    broker = DiagnosticsBroker(session)
    broker.refresh(compile_source("<?php foo();"))
    [event] = broker.refresh(compile_source("<?php echo 1;"))
    assert event.path == A and event.is_clear
    assert A not in session.semantic_errors
    assert broker.refresh(compile_source("<?php echo 1;")) == []


def test_files_failing_to_parse_keep_their_entry(session):
    broker = DiagnosticsBroker(session)
    broker.refresh(compile_source("<?php foo();"))
    published = session.semantic_errors.published(A)
    session.parser_errors.record(A, ())
    assert broker.refresh(compile_source("<?php echo 1;")) == []
    assert session.semantic_errors.published(A) == published


def test_visibility_set_invalidate():
    visible = DiagnosticVisibilitySet()
    visible.record(A, ())
    visible.invalidate(A)
    visible.invalidate(B)
    assert A in visible and visible.published(A) is None
    assert B not in visible
    visible.discard(A)
    assert len(visible) == 0


def test_error_moving_between_files(session):
    broker = DiagnosticsBroker(session)
    broker.refresh(compile_source("<?php foo();", A, (B, "<?php echo 1;")))
    events = broker.refresh(compile_source("<?php echo 1;", A, (B, "<?php foo();")))
    assert [(e.path, len(e.diagnostics)) for e in events] == [(B, 1), (A, 0)]
