from __future__ import annotations

from functools import cached_property, lru_cache
from pathlib import Path
from typing import Iterable, Optional

from phplite.diagnostics import Diagnostic
from phplite.errors import ProjectError
from phplite.semantics.model import SemanticModel
from phplite.semantics.symbols import SourceRoutineSymbol
from phplite.syntax_tree import SyntaxTree

# Resolve installation dir (phplite package directory)
_PHPLITE_DIR = Path(__file__).resolve().parent
_CORE_STUBS = _PHPLITE_DIR / 'stubs' / 'core.php'

CORE_LIBRARY = 'core'


class LibraryReference:
    """Declarations-only trees a compilation links against (the core library or stub files)."""

    def __init__(self, name: str, trees: Iterable[SyntaxTree]):
        self.name = name
        self.trees = tuple(trees)

    @classmethod
    def from_file(cls, path: Path, name: Optional[str] = None) -> LibraryReference:
        try:
            text = path.read_text(encoding='utf-8')
        except OSError as e:
            raise ProjectError(f"Cannot read library reference '{path}': {e}") from e
        tree = SyntaxTree.parse_code(text, f"<{name or path.stem}>/{path.name}")
        if tree.diagnostics:
            first = tree.diagnostics[0]
            raise ProjectError(f"Library reference '{path}' does not parse: {first.message} at {first.start}")
        return cls(name or path.stem, [tree])

    def __repr__(self) -> str:
        return f"LibraryReference({self.name!r})"


@lru_cache(maxsize=None)
def load_core_library() -> LibraryReference:
    return LibraryReference.from_file(_CORE_STUBS, CORE_LIBRARY)


class Compilation:
    """
    Immutable snapshot of a project: library references plus user syntax trees
    in insertion order. Every modification returns a new Compilation; the
    semantic model is built lazily, once per instance.
    """

    def __init__(
        self,
        name: str = 'project',
        references: Iterable[LibraryReference] = (),
        syntax_trees: Iterable[SyntaxTree] = (),
    ):
        self.name = name
        self.references = tuple(references)
        self.syntax_trees = tuple(syntax_trees)

    def add_syntax_trees(self, *trees: SyntaxTree) -> Compilation:
        return Compilation(self.name, self.references, self.syntax_trees + trees)

    def replace_syntax_tree(self, old: SyntaxTree, new: SyntaxTree) -> Compilation:
        if old not in self.syntax_trees:
            raise ValueError(f"{old!r} is not part of the compilation")
        trees = tuple(new if t is old else t for t in self.syntax_trees)
        return Compilation(self.name, self.references, trees)

    def get_tree(self, path: str) -> Optional[SyntaxTree]:
        for tree in self.syntax_trees:
            if tree.path == path:
                return tree
        return None

    @cached_property
    def model(self) -> SemanticModel:
        return SemanticModel(self)

    def get_diagnostics(self) -> list[Diagnostic]:
        return self.model.get_diagnostics()

    def get_user_declared_routines_in_file(self, tree: SyntaxTree) -> list[SourceRoutineSymbol]:
        return self.model.routines_in_tree(tree.path)

    def __repr__(self) -> str:
        return f"Compilation({self.name!r}, trees={len(self.syntax_trees)})"
