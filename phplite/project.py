"""
Project descriptor (`phplite.json`) and initial compilation.

A project is a directory holding a `phplite.json` file:

    {
        "name": "my-site",
        "references": ["core", "stubs/vendor.php"],
        "extensions": [".php"]
    }

Every key is optional. `references` lists library references: `core` is the
built-in library, anything else is a stub file relative to the project root
whose declarations are linked but never analyzed.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from phplite.compilation import CORE_LIBRARY, Compilation, LibraryReference, load_core_library
from phplite.errors import ProjectError

logger = logging.getLogger(__name__)

FILE_NAME = 'phplite.json'


@dataclass
class ProjectDescriptor:
    root: Path
    name: str
    references: list[str] = field(default_factory=lambda: [CORE_LIBRARY])
    extensions: list[str] = field(default_factory=lambda: ['.php'])


def _string_list(data: dict, key: str, default: list[str]) -> list[str]:
    value = data.get(key, default)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ProjectError(f"'{key}' in {FILE_NAME} must be a list of strings")
    return list(value)


def load_project(root: str | Path) -> Optional[ProjectDescriptor]:
    """Read the descriptor at `root`; None when there is none, ProjectError when it is malformed."""
    root = Path(root)
    path = root / FILE_NAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        raise ProjectError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ProjectError(f"{path} must contain a JSON object")
    name = data.get('name', root.name)
    if not isinstance(name, str):
        raise ProjectError(f"'name' in {FILE_NAME} must be a string")
    extensions = [e if e.startswith('.') else '.' + e for e in _string_list(data, 'extensions', ['.php'])]
    return ProjectDescriptor(
        root=root,
        name=name,
        references=_string_list(data, 'references', [CORE_LIBRARY]),
        extensions=extensions,
    )


def resolve_reference(descriptor: ProjectDescriptor, reference: str) -> LibraryReference:
    if reference == CORE_LIBRARY:
        return load_core_library()
    if not reference.endswith('.php'):
        raise ProjectError(f"Unknown library reference '{reference}'")
    return LibraryReference.from_file(descriptor.root / reference)


def build_initial_compilation(descriptor: ProjectDescriptor) -> Compilation:
    references = [resolve_reference(descriptor, r) for r in descriptor.references]
    logger.info("project %s: %d library references", descriptor.name, len(references))
    return Compilation(descriptor.name, references)


def enumerate_source_files(root: str | Path, extensions: Iterable[str], exclude: Iterable[Path] = ()) -> list[Path]:
    """All files under `root` with one of `extensions`, sorted; hidden directories and `exclude` skipped."""
    suffixes = tuple(e.lower() for e in extensions)
    skipped = {Path(p).resolve() for p in exclude}
    found = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if not d.startswith('.')]
        for filename in filenames:
            path = Path(dirpath) / filename
            if filename.lower().endswith(suffixes) and path.resolve() not in skipped:
                found.append(path)
    return sorted(found)


def reference_files(descriptor: ProjectDescriptor) -> list[Path]:
    return [descriptor.root / r for r in descriptor.references if r != CORE_LIBRARY]
