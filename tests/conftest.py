import json

import pytest

from phplite.compilation import Compilation, load_core_library
from phplite.syntax_tree import SyntaxTree
from phplite_lsp.session import Session
from phplite_lsp.synchronizer import CompilationSynchronizer

# Tests run against an in-memory project rooted at ROOT unless they need real
# files (folder loading), in which case `project_dir` writes a descriptor into
# a temporary directory.

ROOT = "/proj"


class RecordingPublisher:
    """Publisher that keeps every notification instead of sending it."""

    def __init__(self):
        self.published = []
        self.shown = []
        self.logged = []

    def publish_diagnostics(self, params):
        self.published.append(params)

    def show_message(self, params):
        self.shown.append(params)

    def log_message(self, params):
        self.logged.append(params)


def compile_source(text, path=ROOT + "/a.php", *more):
    """Compilation of the core library plus `text` at `path` (and more (path, text) pairs)."""
    trees = [SyntaxTree.parse_code(text, path)]
    trees.extend(SyntaxTree.parse_code(t, p) for p, t in more)
    return Compilation("test", [load_core_library()], trees)


def position_of(text, needle, occurrence=0, delta=0):
    """(line, character) of the `occurrence`-th `needle` in `text`, shifted by `delta` characters."""
    idx = -1
    for _ in range(occurrence + 1):
        idx = text.index(needle, idx + 1)
    idx += delta
    line = text.count("\n", 0, idx)
    return line, idx - (text.rfind("\n", 0, idx) + 1)


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def session():
    s = Session()
    s.install(ROOT, Compilation("test", [load_core_library()]))
    return s


@pytest.fixture
def synchronizer(session):
    return CompilationSynchronizer(session)


@pytest.fixture
def project_dir(tmp_path):
    (tmp_path / "phplite.json").write_text(json.dumps({"name": "demo"}), encoding="utf-8")
    return tmp_path
