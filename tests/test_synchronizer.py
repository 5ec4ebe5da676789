import json
import logging

import pytest

from phplite import diagnostics
from phplite_lsp.paths import path_to_uri
from phplite_lsp.session import PARSER_SOURCE, SEMANTIC_SOURCE, Session
from phplite_lsp.synchronizer import CompilationSynchronizer

A = "/proj/a.php"
B = "/proj/b.php"


def _summary(events):
    return [(e.path, e.source, len(e.diagnostics)) for e in events]


def test_ignored_without_a_project():
    session = Session()
    assert CompilationSynchronizer(session).update_file(A, "<?php foo();") == []
    assert session.compilation is None


def test_ignored_outside_the_root(session, synchronizer):
    before = session.compilation
    assert synchronizer.update_file("/elsewhere/a.php", "<?php foo();") == []
    assert synchronizer.update_file("/project/a.php", "<?php foo();") == []
    assert session.compilation is before


def test_clean_file_joins_the_compilation(session, synchronizer):
    assert synchronizer.update_file(A, "<?php echo 1;") == []
    assert session.compilation.get_tree(A) is not None


def test_uri_paths_are_normalized(session, synchronizer):
    synchronizer.update_file("file:///proj/a.php", "<?php echo 1;")
    assert session.compilation.get_tree(A) is not None


def test_update_replaces_the_tree(session, synchronizer):
    synchronizer.update_file(A, "<?php echo 1;")
    synchronizer.update_file(A, "<?php echo 2;")
    assert len(session.compilation.syntax_trees) == 1


def test_semantic_errors_are_published_once(synchronizer):
    events = synchronizer.update_file(A, "<?php foo();")
    assert _summary(events) == [(A, SEMANTIC_SOURCE, 1)]
    assert synchronizer.update_file(A, "<?php foo();") == []


def test_declaration_in_another_file_fixes_a_call(synchronizer):
    synchronizer.update_file(A, "<?php foo();")
    events = synchronizer.update_file(B, "<?php function foo() {}")
    assert _summary(events) == [(A, SEMANTIC_SOURCE, 0)]


def test_parse_errors_leave_the_compilation_alone(session, synchronizer):
    synchronizer.update_file(A, "<?php echo 1;")
    tree = session.compilation.get_tree(A)
    events = synchronizer.update_file(A, "<?php echo (1;")
    assert [(e.path, e.source) for e in events] == [(A, PARSER_SOURCE)]
    assert events[0].diagnostics[0].code == diagnostics.SYNTAX_ERROR
    assert session.compilation.get_tree(A) is tree
    assert synchronizer.update_file(A, "<?php echo (1;") == []


def test_broken_new_file_is_not_added(session, synchronizer):
    synchronizer.update_file(A, "<?php foo(")
    assert session.compilation.get_tree(A) is None


def test_parse_fix_clears_and_republishes_semantics(synchronizer):
    synchronizer.update_file(A, "<?php foo();")
    synchronizer.update_file(A, "<?php foo(")
    events = synchronizer.update_file(A, "<?php foo();")
    assert _summary(events) == [(A, PARSER_SOURCE, 0), (A, SEMANTIC_SOURCE, 1)]


def test_stale_semantics_kept_while_file_does_not_parse(session, synchronizer):
    synchronizer.update_file(A, "<?php foo();")
    synchronizer.update_file(A, "<?php foo(")
    assert synchronizer.update_file(B, "<?php function foo() {}") == []
    assert session.semantic_errors.published(A) is not None

    events = synchronizer.update_file(A, "<?php foo();")
    assert _summary(events) == [(A, PARSER_SOURCE, 0), (A, SEMANTIC_SOURCE, 0)]


def _write(root, relative, text):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_open_folder_loads_every_source_file(project_dir):
    _write(project_dir, "a.php", "<?php foo();")
    _write(project_dir, "lib/b.php", "<?php echo 1;")
    _write(project_dir, ".cache/c.php", "<?php bar();")
    _write(project_dir, "notes.txt", "not php")

    session = Session()
    events = CompilationSynchronizer(session).open_folder(str(project_dir))
    root = str(project_dir)
    assert session.root_path == root
    assert sorted(t.path for t in session.compilation.syntax_trees) == [root + "/a.php", root + "/lib/b.php"]
    assert _summary(events) == [(root + "/a.php", SEMANTIC_SOURCE, 1)]


def test_open_folder_reports_parse_errors(project_dir):
    _write(project_dir, "a.php", "<?php foo(")
    session = Session()
    events = CompilationSynchronizer(session).open_folder(str(project_dir))
    assert [(e.path, e.source) for e in events] == [(str(project_dir) + "/a.php", PARSER_SOURCE)]
    assert events[0].diagnostics
    assert session.compilation.syntax_trees == ()


def test_open_folder_without_descriptor(tmp_path):
    _write(tmp_path, "a.php", "<?php foo();")
    session = Session()
    assert CompilationSynchronizer(session).open_folder(str(tmp_path)) == []
    assert not session.is_loaded


@pytest.mark.parametrize("descriptor", ["{", "[]", '{"references": "core"}', '{"references": ["vendor"]}'])
def test_open_folder_with_bad_descriptor(tmp_path, caplog, descriptor):
    (tmp_path / "phplite.json").write_text(descriptor, encoding="utf-8")
    session = Session()
    with caplog.at_level(logging.ERROR):
        assert CompilationSynchronizer(session).open_folder(str(tmp_path)) == []
    assert not session.is_loaded
    assert "cannot load project" in caplog.text


def test_reference_stubs_are_linked_not_analyzed(tmp_path):
    descriptor = {"name": "demo", "references": ["core", "stubs/vendor.php"]}
    (tmp_path / "phplite.json").write_text(json.dumps(descriptor), encoding="utf-8")
    _write(tmp_path, "stubs/vendor.php", "<?php function vendor_helper($x) {}")
    _write(tmp_path, "a.php", "<?php vendor_helper(1);")

    session = Session()
    assert CompilationSynchronizer(session).open_folder(str(tmp_path)) == []
    assert [t.path for t in session.compilation.syntax_trees] == [str(tmp_path) + "/a.php"]


def test_editing_a_reference_stub_leaves_the_compilation_alone(tmp_path):
    descriptor = {"name": "demo", "references": ["core", "stubs/vendor.php"]}
    (tmp_path / "phplite.json").write_text(json.dumps(descriptor), encoding="utf-8")
    _write(tmp_path, "stubs/vendor.php", "<?php function vendor_helper($x) {}")
    _write(tmp_path, "a.php", "<?php vendor_helper(1);")

    session = Session()
    synchronizer = CompilationSynchronizer(session)
    synchronizer.open_folder(str(tmp_path))
    before = session.compilation
    stub_uri = path_to_uri(str(tmp_path / "stubs" / "vendor.php"))

    assert synchronizer.update_file(stub_uri, "<?php function vendor_helper($x) {}") == []
    assert synchronizer.update_file(stub_uri, "<?php function vendor_helper(") == []
    assert session.compilation is before
    assert [t.path for t in session.compilation.syntax_trees] == [str(tmp_path) + "/a.php"]
    assert len(session.parser_errors) == 0
