"""PHP-lite Language Server package.

This package provides:
- A synchronizer that keeps a compilation snapshot in step with whole-document edits.
- A diagnostics broker publishing parser and semantic diagnostics as minimal diffs.
- Position-to-symbol resolution and hover tooltips.
- A pygls-based server binding (`phplite_lsp.server`).

Note: request handling is single-threaded; one request is processed to completion at a time.
"""

__all__ = [
    "broker",
    "config",
    "dispatcher",
    "paths",
    "resolver",
    "server",
    "session",
    "synchronizer",
    "tooltip",
]
