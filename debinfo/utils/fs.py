# SPDX-License-Identifier: Apache-2.0
"""
Filesystem utilities: path guards, request path cleanup, and the local
filesystem view used to list archives under a mount.
"""

from __future__ import annotations

import os
import posixpath
from pathlib import Path
from typing import List

_SKIP_DIRS = {".git", ".svn", ".hg", "__pycache__"}


# ------------------------------- Path guards ------------------------------


def is_under(path: Path | str, root: Path | str) -> bool:
    p = Path(path).resolve()
    r = Path(root).resolve()
    try:
        p.relative_to(r)
        return True
    except ValueError:
        return False


def assert_under(path: Path | str, root: Path | str, what: str = "path") -> Path:
    p = Path(path).resolve()
    if not is_under(p, root):
        raise PermissionError(f"{what} must be under {Path(root).resolve()}: {p}")
    return p


def sanitize_request_path(path: str) -> str:
    """
    Normalize a request path for catalog lookups:
    "//apt/./pool/../x.deb/" -> "/apt/x.deb".
    """
    s = (path or "").strip().replace("\\", "/")
    if not s:
        return "/"
    return posixpath.normpath("/" + s.lstrip("/"))


# ---------------------------- Local filesystem ----------------------------


class LocalFileSystem:
    """
    Read-only view of a directory tree rooted at `root`.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).expanduser()
        if not self.root.is_dir():
            raise FileNotFoundError(f"Mount path is not a directory: {self.root}")

    def __repr__(self) -> str:
        return f"LocalFileSystem({str(self.root)!r})"

    def list_all_files(self) -> List[str]:
        """All regular files below root, as sorted POSIX paths relative to root."""
        found: List[str] = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = [d for d in dirnames if d not in _SKIP_DIRS]
            for name in filenames:
                rel = (Path(dirpath) / name).relative_to(self.root).as_posix()
                found.append(rel)
        return sorted(found)

    def join(self, relative: str) -> Path:
        return assert_under(self.root / relative, self.root, what="archive")

    def exists(self, relative: str) -> bool:
        try:
            return self.join(relative).is_file()
        except PermissionError:
            return False
