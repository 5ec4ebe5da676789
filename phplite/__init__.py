# PHP-lite front-end.
#
# The language server treats everything in this package as an external
# collaborator: it parses text into syntax trees, builds compilations from a
# project descriptor and analyzes them. Nothing here knows about editors.
#
# Naming guidance:
# - "tree" always means a parsed file (phplite.syntax_tree.SyntaxTree).
# - "compilation" is an immutable snapshot of trees plus library references.
# - Offsets are 0-based character offsets into a file's text.

__version__ = "0.3.0"
