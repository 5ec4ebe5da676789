"""Canonical path form shared by every component of the server.

All paths use forward slashes and carry no trailing slash. Client URIs
(`file:///c%3A/dir/a.php`) are decoded first; a drive-letter path keeps its
drive without the leading slash (`c:/dir/a.php`).
"""

from __future__ import annotations

import re
from urllib.parse import quote, unquote, urlsplit

_DRIVE_PATH = re.compile(r"^/[A-Za-z]:")


def normalize_path(path: str) -> str:
    if path.startswith("file://"):
        path = unquote(urlsplit(path).path)
        if _DRIVE_PATH.match(path):
            path = path[1:]
    path = path.replace("\\", "/")
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/") or "/"
    return path


def path_to_uri(path: str) -> str:
    path = normalize_path(path)
    if not path.startswith("/"):
        path = "/" + path
    return "file://" + quote(path, safe="/:")


def is_under(path: str, root: str) -> bool:
    return path == root or path.startswith(root.rstrip("/") + "/")
