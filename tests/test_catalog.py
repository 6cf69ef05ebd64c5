# tests/test_catalog.py
from __future__ import annotations

import os
from pathlib import Path

import pytest

from debinfo.errors import ConfigurationError, InspectionError, NotFound, RenderError, SearchIndexError
from debinfo.models.archive import ArchiveState, Mount
from debinfo.services.catalog import CACHE_CONTROL_KEY, DEFAULT_CACHE_CONTROL, Catalog
from debinfo.services.search_index import MemorySearchIndex

from tests.fakes import FakeFileSystem, FakeInspector

EXAMPLE_URL = "/apt/example_1.0_amd64.deb"
OTHER_URL = "/apt/other_2.0_all.udeb"


class FailingIndex(MemorySearchIndex):
    def add_document(self, page, url):
        raise SearchIndexError("search service answered 500")


def _catalog(root: Path, inspector, **kwargs) -> Catalog:
    return Catalog([Mount(path=root, url_prefix="/apt")], inspector, **kwargs)


def test_discovery_registers_archives_only(deb_tree, inspector):
    cat = _catalog(deb_tree, inspector)
    report = cat.discover()
    assert report.registered == [EXAMPLE_URL, OTHER_URL]
    assert cat.urls() == [EXAMPLE_URL, OTHER_URL]
    assert len(cat) == 2
    assert "/apt/README.txt" not in cat
    assert all(name != "README.txt" for name, _ in inspector.calls)


def test_fixed_listing_maps_to_public_urls(monkeypatch, inspector):
    monkeypatch.setattr(
        FakeFileSystem,
        "listings",
        {"/srv/debs": ["foo_1.0_amd64.deb", "pool/bar_2.0_all.udeb", "notes.txt"]},
    )
    cat = Catalog(
        [Mount(path=Path("/srv/debs"), url_prefix="/apt/")],
        inspector,
        filesystem=FakeFileSystem,
    )
    cat.discover()
    assert cat.urls() == ["/apt/bar_2.0_all.udeb", "/apt/foo_1.0_amd64.deb"]
    assert cat.lookup("/apt/bar_2.0_all.udeb").relative_file == "pool/bar_2.0_all.udeb"
    with pytest.raises(NotFound):
        cat.lookup("/apt/missing.deb")
    with pytest.raises(NotFound):
        cat.document_for("/apt/missing.deb")
    assert cat.find_page("/apt/missing.deb") is None


def test_broken_archive_does_not_stop_discovery(deb_tree):
    inspector = FakeInspector(broken={"other_2.0_all.udeb"})
    cat = _catalog(deb_tree, inspector)
    report = cat.discover()
    assert report.registered == [EXAMPLE_URL]
    assert list(report.failed) == [OTHER_URL]
    assert cat.state(OTHER_URL) is ArchiveState.inspection_failed
    assert OTHER_URL not in cat
    # eager mode does not retry
    with pytest.raises(NotFound):
        cat.document_for(OTHER_URL)


def test_eager_indexes_and_serves_cached_pages(deb_tree, inspector, search_index):
    cat = _catalog(deb_tree, inspector, search_index=search_index)
    report = cat.discover()
    assert report.index_errors == {}
    assert sorted(search_index.documents) == [EXAMPLE_URL, OTHER_URL]
    assert cat.state(EXAMPLE_URL) is ArchiveState.indexed

    calls = len(inspector.calls)
    page = cat.document_for(EXAMPLE_URL)
    again = cat.document_for(EXAMPLE_URL)
    assert len(inspector.calls) == calls
    assert page.source == again.source
    # request copies do not share context
    page.context["x"] = "y"
    assert "x" not in cat.document_for(EXAMPLE_URL).context


def test_eager_without_index_is_rendered(deb_tree, inspector):
    cat = _catalog(deb_tree, inspector)
    cat.discover()
    assert cat.state(EXAMPLE_URL) is ArchiveState.rendered


def test_lazy_renders_on_request_and_skips_index(deb_tree, inspector, search_index):
    cat = _catalog(deb_tree, inspector, search_index=search_index, policy="lazy")
    cat.discover()
    assert search_index.documents == {}
    assert cat.state(EXAMPLE_URL) is ArchiveState.inspected

    first = cat.document_for(EXAMPLE_URL)
    second = cat.document_for(EXAMPLE_URL)
    assert first.source == second.source
    assert first.shasum == second.shasum

    report = cat.index_all()
    assert report.indexed == [EXAMPLE_URL, OTHER_URL]
    assert report.errors == {}
    assert "Example utility" in search_index.documents[EXAMPLE_URL]["content"]
    assert cat.state(OTHER_URL) is ArchiveState.indexed
    assert search_index.search("example utility") == [EXAMPLE_URL, OTHER_URL]


def test_index_all_requires_search_index(deb_tree, inspector):
    cat = _catalog(deb_tree, inspector, policy="lazy")
    cat.discover()
    with pytest.raises(ConfigurationError):
        cat.index_all()


def test_lazy_retries_failed_inspection(deb_tree):
    # the first `--info` call fails during discovery
    inspector = FakeInspector(flaky={"example_1.0_amd64.deb": 1})
    cat = _catalog(deb_tree, inspector, policy="lazy")
    report = cat.discover()
    assert EXAMPLE_URL in report.failed

    page = cat.document_for(EXAMPLE_URL)
    assert page.url == EXAMPLE_URL
    # the retry is served, not remembered
    assert cat.state(EXAMPLE_URL) is ArchiveState.inspection_failed


def test_lazy_persistent_failure_raises(deb_tree):
    inspector = FakeInspector(broken={"example_1.0_amd64.deb"})
    cat = _catalog(deb_tree, inspector, policy="lazy")
    cat.discover()
    with pytest.raises(InspectionError):
        cat.document_for(EXAMPLE_URL)
    assert cat.find_page(EXAMPLE_URL) is None


def test_cache_control_precedence(deb_tree, inspector):
    cat = _catalog(deb_tree, inspector)
    cat.discover()
    page = cat.page_for_request(EXAMPLE_URL)
    assert page.context[CACHE_CONTROL_KEY] == DEFAULT_CACHE_CONTROL

    cat.cache_control = "no-cache"
    assert cat.page_for_request(EXAMPLE_URL).context[CACHE_CONTROL_KEY] == "no-cache"

    pinned = _catalog(deb_tree, inspector, cache_control="no-cache", context={CACHE_CONTROL_KEY: "max-age=60"})
    pinned.discover()
    assert pinned.page_for_request(EXAMPLE_URL).context[CACHE_CONTROL_KEY] == "max-age=60"


def test_index_failure_keeps_page(deb_tree, inspector):
    cat = _catalog(deb_tree, inspector, search_index=FailingIndex())
    report = cat.discover()
    assert sorted(report.index_errors) == [EXAMPLE_URL, OTHER_URL]
    assert cat.state(EXAMPLE_URL) is ArchiveState.rendered
    assert cat.document_for(EXAMPLE_URL).url == EXAMPLE_URL


def test_parallel_discovery_matches_serial(deb_tree):
    serial = _catalog(deb_tree, FakeInspector())
    parallel = _catalog(deb_tree, FakeInspector(), workers=4)
    serial.discover()
    parallel.discover()
    assert parallel.urls() == serial.urls()
    assert parallel.document_for(OTHER_URL).source == serial.document_for(OTHER_URL).source


def test_rediscovery_replaces_maps(deb_tree, inspector):
    cat = _catalog(deb_tree, inspector)
    cat.discover()
    (deb_tree / "pool" / "other_2.0_all.udeb").unlink()
    cat.discover()
    assert cat.urls() == [EXAMPLE_URL]
    with pytest.raises(NotFound):
        cat.state(OTHER_URL)


DUP_URL = "/apt/dup_1_all.deb"


class FailUnder(FakeInspector):
    """Fails every archive below the given directory of the mount."""

    def __init__(self, directory: str) -> None:
        super().__init__()
        self.directory = directory

    def inspect(self, path: Path, mode: str) -> str:
        if Path(path).parent.name == self.directory:
            self.calls.append((Path(path).name, mode))
            raise InspectionError(str(path), mode, "exit status 2")
        return super().inspect(path, mode)


@pytest.fixture
def dup_tree(tmp_path: Path) -> Path:
    root = tmp_path / "debs"
    (root / "a").mkdir(parents=True)
    (root / "b").mkdir()
    (root / "a" / "dup_1_all.deb").write_bytes(b"")
    (root / "b" / "dup_1_all.deb").write_bytes(b"")
    return root


@pytest.mark.parametrize("workers", [1, 4])
def test_duplicate_basenames_last_one_wins(dup_tree, inspector, workers):
    cat = _catalog(dup_tree, inspector, workers=workers)
    report = cat.discover()
    assert cat.urls() == [DUP_URL]
    assert report.registered == [DUP_URL]
    assert cat.lookup(DUP_URL).relative_file == "b/dup_1_all.deb"


@pytest.mark.parametrize("workers", [1, 4])
def test_failing_last_duplicate_owns_the_url(dup_tree, search_index, workers):
    cat = _catalog(dup_tree, FailUnder("b"), search_index=search_index, workers=workers)
    report = cat.discover()
    assert report.registered == []
    assert list(report.failed) == [DUP_URL]
    assert DUP_URL not in cat
    assert cat.state(DUP_URL) is ArchiveState.inspection_failed
    assert cat.failures()[DUP_URL].relative_file == "b/dup_1_all.deb"
    # the replaced copy never reached the index
    assert search_index.documents == {}


@pytest.mark.parametrize("workers", [1, 4])
def test_failing_first_duplicate_is_replaced(dup_tree, workers):
    cat = _catalog(dup_tree, FailUnder("a"), workers=workers)
    report = cat.discover()
    assert report.registered == [DUP_URL]
    assert report.failed == {}
    assert cat.failures() == {}
    assert cat.state(DUP_URL) is ArchiveState.rendered


def test_undecodable_file_name_does_not_stop_discovery(deb_tree, inspector):
    bad = os.path.join(os.fsencode(deb_tree), b"bad\xff_1_all.deb")
    try:
        Path(os.fsdecode(bad)).write_bytes(b"")
    except (OSError, UnicodeError):
        pytest.skip("filesystem refuses non UTF-8 file names")

    cat = _catalog(deb_tree, inspector)
    report = cat.discover()
    bad_url = "/apt/" + os.fsdecode(b"bad\xff_1_all.deb")
    assert report.registered == sorted([EXAMPLE_URL, OTHER_URL, bad_url])
    assert cat.state(EXAMPLE_URL) is ArchiveState.rendered
    assert cat.state(OTHER_URL) is ArchiveState.rendered
    # inspected, but its page cannot be built
    assert cat.state(bad_url) is ArchiveState.inspected
    with pytest.raises(RenderError):
        cat.document_for(bad_url)
    assert cat.find_page(bad_url) is None


def test_missing_mount_is_configuration_error(tmp_path, inspector):
    cat = _catalog(tmp_path / "nope", inspector)
    with pytest.raises(ConfigurationError):
        cat.discover()


def test_unknown_policy_is_rejected(deb_tree, inspector):
    with pytest.raises(ConfigurationError):
        _catalog(deb_tree, inspector, policy="sometimes")
