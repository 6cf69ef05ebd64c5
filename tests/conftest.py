# tests/conftest.py
from __future__ import annotations
from pathlib import Path

import pytest

from debinfo.services.search_index import MemorySearchIndex

from tests.fakes import FakeInspector


@pytest.fixture
def inspector() -> FakeInspector:
    return FakeInspector()


@pytest.fixture
def search_index() -> MemorySearchIndex:
    return MemorySearchIndex()


@pytest.fixture
def deb_tree(tmp_path: Path) -> Path:
    """
    debs/
      example_1.0_amd64.deb
      README.txt
      pool/other_2.0_all.udeb
    """
    root = tmp_path / "debs"
    (root / "pool").mkdir(parents=True)
    (root / "example_1.0_amd64.deb").write_bytes(b"!<arch>\n")
    (root / "README.txt").write_text("not a package", encoding="utf-8")
    (root / "pool" / "other_2.0_all.udeb").write_bytes(b"!<arch>\n")
    return root
