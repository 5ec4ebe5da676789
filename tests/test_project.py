import json

import pytest

from phplite.compilation import Compilation, LibraryReference, load_core_library
from phplite.errors import ProjectError
from phplite.project import (
    FILE_NAME,
    build_initial_compilation,
    enumerate_source_files,
    load_project,
    reference_files,
)
from phplite.syntax_tree import SyntaxTree


def _descriptor(root, **data):
    (root / FILE_NAME).write_text(json.dumps(data), encoding="utf-8")
    return load_project(root)


def test_defaults(tmp_path):
    descriptor = _descriptor(tmp_path)
    assert descriptor.name == tmp_path.name
    assert descriptor.references == ["core"]
    assert descriptor.extensions == [".php"]


def test_extensions_get_a_dot(tmp_path):
    assert _descriptor(tmp_path, extensions=["php", ".inc"]).extensions == [".php", ".inc"]


def test_missing_descriptor(tmp_path):
    assert load_project(tmp_path) is None


@pytest.mark.parametrize(
    "text",
    ["not json", '"a string"', '{"name": 3}', '{"extensions": [1]}', '{"references": "core"}'],
)
def test_malformed_descriptor(tmp_path, text):
    (tmp_path / FILE_NAME).write_text(text, encoding="utf-8")
    with pytest.raises(ProjectError):
        load_project(tmp_path)


def test_initial_compilation_links_the_core_library(tmp_path):
    compilation = build_initial_compilation(_descriptor(tmp_path, name="demo"))
    assert compilation.name == "demo"
    assert compilation.references == (load_core_library(),)
    assert compilation.syntax_trees == ()


def test_unknown_reference(tmp_path):
    with pytest.raises(ProjectError, match="Unknown library reference"):
        build_initial_compilation(_descriptor(tmp_path, references=["vendor"]))


def test_missing_stub_reference(tmp_path):
    with pytest.raises(ProjectError, match="Cannot read"):
        build_initial_compilation(_descriptor(tmp_path, references=["stubs/none.php"]))


def test_stub_reference_that_does_not_parse(tmp_path):
    (tmp_path / "bad.php").write_text("<?php function (", encoding="utf-8")
    with pytest.raises(ProjectError, match="does not parse"):
        build_initial_compilation(_descriptor(tmp_path, references=["bad.php"]))


def test_stub_reference_declarations(tmp_path):
    (tmp_path / "vendor.php").write_text("<?php /** Helps. */ function helper($x) {}", encoding="utf-8")
    compilation = build_initial_compilation(_descriptor(tmp_path, references=["core", "vendor.php"]))
    [helper] = compilation.model.find_functions("helper")
    assert helper.get_documentation() == "Helps."
    assert reference_files(load_project(tmp_path)) == [tmp_path / "vendor.php"]


def test_enumerate_source_files(tmp_path):
    for name in ["b.php", "a.PHP", "sub/c.php", ".git/d.php", "e.txt", "stubs/s.php"]:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("<?php", encoding="utf-8")
    found = enumerate_source_files(tmp_path, [".php"], exclude=[tmp_path / "stubs" / "s.php"])
    assert [p.relative_to(tmp_path).as_posix() for p in found] == ["a.PHP", "b.php", "sub/c.php"]


def test_core_library_parses_once():
    assert load_core_library() is load_core_library()
    assert all(not tree.diagnostics for tree in load_core_library().trees)


def test_library_tree_paths(tmp_path):
    (tmp_path / "vendor.php").write_text("<?php", encoding="utf-8")
    reference = LibraryReference.from_file(tmp_path / "vendor.php")
    assert reference.name == "vendor"
    assert [t.path for t in reference.trees] == ["<vendor>/vendor.php"]


def test_compilation_is_immutable():
    a = SyntaxTree.parse_code("<?php echo 1;", "/proj/a.php")
    b = SyntaxTree.parse_code("<?php echo 2;", "/proj/a.php")
    first = Compilation("p").add_syntax_trees(a)
    second = first.replace_syntax_tree(a, b)
    assert first.get_tree("/proj/a.php") is a
    assert second.get_tree("/proj/a.php") is b
    with pytest.raises(ValueError):
        second.replace_syntax_tree(a, b)
