# SPDX-License-Identifier: Apache-2.0
"""
Catalog of package pages, keyed by public URL.

Lifecycle: construct, `discover()` once (single-threaded relative to
serving), then serve. The maps are only replaced wholesale by a later
`discover()`, never edited in place while serving.

Rendering policies:
  eager - render and index every page during discovery, serve cached copies.
  lazy  - keep only the inspection output, render on every request; pages
          reach the search index only through `index_all()`.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from ..errors import ConfigurationError, InspectionError, NotFound, RenderError, SearchIndexError
from ..models.archive import ArchiveRecord, ArchiveState, Mount, PageDocument, is_archive_name
from ..utils.fs import LocalFileSystem
from .inspector import Inspector, inspect_archive
from .render import render_document
from .search_index import SearchIndex

log = logging.getLogger("debinfo.services.catalog")

EAGER = "eager"
POLICIES = (EAGER, "lazy")
CACHE_CONTROL_KEY = "CacheControl"
DEFAULT_CACHE_CONTROL = "max-age=604800, must-revalidate"


@dataclass
class FailedInspection:
    mount: Mount
    relative_file: str
    error: InspectionError


@dataclass
class DiscoveryReport:
    registered: List[str] = field(default_factory=list)
    failed: Dict[str, InspectionError] = field(default_factory=dict)
    index_errors: Dict[str, str] = field(default_factory=dict)


@dataclass
class IndexReport:
    indexed: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)


@dataclass
class _Inspected:
    mount: Mount
    relative_file: str
    url: str
    record: Optional[ArchiveRecord] = None
    error: Optional[InspectionError] = None


class Catalog:
    def __init__(
        self,
        mounts: Sequence[Mount],
        inspector: Inspector,
        *,
        search_index: Optional[SearchIndex] = None,
        policy: str = EAGER,
        cache_control: Optional[str] = None,
        language: str = "en",
        context: Optional[Mapping[str, Any]] = None,
        workers: int = 1,
        filesystem: Callable[[Any], LocalFileSystem] = LocalFileSystem,
    ) -> None:
        if policy not in POLICIES:
            raise ConfigurationError(f"unknown render policy: {policy!r}")
        self.mounts = sorted(mounts, key=lambda m: str(m.path))
        self.inspector = inspector
        self.search_index = search_index
        self.policy = policy
        self.cache_control = cache_control
        self.language = language
        self.context = dict(context or {})
        self.workers = max(1, int(workers))
        self._filesystem = filesystem

        self._records: Dict[str, ArchiveRecord] = {}
        self._pages: Dict[str, PageDocument] = {}
        self._failed: Dict[str, FailedInspection] = {}
        self._indexed: Set[str] = set()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, url: object) -> bool:
        return url in self._records

    @property
    def eager(self) -> bool:
        return self.policy == EAGER

    def mount_paths(self) -> List[str]:
        return sorted(str(m.path) for m in self.mounts)

    def urls(self) -> List[str]:
        return sorted(self._records)

    # ------------------------------ Discovery ------------------------------

    def _mount_filesystems(self) -> List[Tuple[Mount, LocalFileSystem]]:
        mounted: List[Tuple[Mount, LocalFileSystem]] = []
        for mp in self.mounts:
            try:
                lfs = self._filesystem(mp.path)
            except (FileNotFoundError, NotADirectoryError) as e:
                raise ConfigurationError(f"error mounting filesystem: {e}") from e
            log.debug("mounted local debinfo filesystem %s -> %s", mp.path, mp.url_prefix or "/")
            mounted.append((mp, lfs))
        return mounted

    def discover(self) -> DiscoveryReport:
        """
        List every archive under every mount, inspect it, and (eager) render
        and index it. One failing archive never stops the others.

        Archives sharing a base file name map to one URL; the last one in
        listing order owns it, whether its inspection succeeded or failed.
        """
        candidates: List[Tuple[Mount, LocalFileSystem, str]] = []
        for mp, lfs in self._mount_filesystems():
            for rel in lfs.list_all_files():
                if is_archive_name(rel):
                    candidates.append((mp, lfs, rel))

        def inspect_one(item: Tuple[Mount, LocalFileSystem, str]) -> Optional[_Inspected]:
            mp, lfs, rel = item
            if not lfs.exists(rel):
                log.error("file not found: %s", rel)
                return None
            try:
                record = inspect_archive(self.inspector, mp, rel, lfs.join(rel))
            except InspectionError as e:
                log.error("error making deb page: %s - %s", rel, e)
                return _Inspected(mp, rel, mp.public_url(rel), error=e)
            log.debug("cached dpkg-deb info: %s", record.public_url)
            return _Inspected(mp, rel, record.public_url, record=record)

        records: Dict[str, ArchiveRecord] = {}
        failed: Dict[str, FailedInspection] = {}
        # results are committed in listing order, never in completion order
        for result in self._map(inspect_one, candidates):
            if result is None:
                continue
            url = result.url
            previous = records.get(url) or failed.get(url)
            if previous is not None:
                log.warning("duplicate package url %s, %s replaces %s", url, result.relative_file, previous.relative_file)
            if result.record is not None:
                records[url] = result.record
                failed.pop(url, None)
            else:
                failed[url] = FailedInspection(mount=result.mount, relative_file=result.relative_file, error=result.error)
                records.pop(url, None)

        pages: Dict[str, PageDocument] = {}
        indexed: Set[str] = set()
        report = DiscoveryReport(
            registered=sorted(records),
            failed={url: f.error for url, f in sorted(failed.items())},
        )
        if self.eager:
            urls = sorted(records)
            for url, (page, index_error) in zip(urls, self._map(lambda u: self._publish(records[u]), urls)):
                if page is None:
                    continue
                pages[url] = page
                if index_error is not None:
                    report.index_errors[url] = index_error
                elif self.search_index is not None:
                    indexed.add(url)

        with self._lock:
            self._records, self._pages, self._failed, self._indexed = records, pages, failed, indexed

        log.info(
            "Discovery finished: %d archives, %d failed, policy=%s",
            len(records),
            len(failed),
            self.policy,
        )
        return report

    def _map(self, fn: Callable[[Any], Any], items: Sequence[Any]) -> List[Any]:
        """`fn` over `items`, threaded when configured; results keep input order."""
        if self.workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="dpkg-deb") as pool:
                return list(pool.map(fn, items))
        return [fn(item) for item in items]

    def _publish(self, record: ArchiveRecord) -> Tuple[Optional[PageDocument], Optional[str]]:
        try:
            page = self._render(record)
        except RenderError as e:
            log.error("%s", e)
            return None, None
        return page, self._submit(page)

    # ------------------------------- Lookups -------------------------------

    def lookup(self, path: str) -> ArchiveRecord:
        try:
            return self._records[path]
        except KeyError:
            raise NotFound(path) from None

    def state(self, url: str) -> ArchiveState:
        if url in self._indexed:
            return ArchiveState.indexed
        if url in self._pages:
            return ArchiveState.rendered
        if url in self._records:
            return ArchiveState.inspected
        if url in self._failed:
            return ArchiveState.inspection_failed
        raise NotFound(url)

    def failures(self) -> Dict[str, FailedInspection]:
        return dict(self._failed)

    def document_for(self, path: str) -> PageDocument:
        """
        The page for `path`: the cached copy (eager) or a fresh render (lazy).

        Raises NotFound for unknown paths, RenderError or InspectionError when
        the page cannot be produced.
        """
        page = self._pages.get(path)
        if page is not None:
            return page.copy_for_request()
        record = self._records.get(path)
        if record is not None:
            return self._render(record)
        failure = self._failed.get(path)
        if failure is not None and not self.eager:
            # lazy mode retries a failed inspection on request
            mp = failure.mount
            record = inspect_archive(self.inspector, mp, failure.relative_file, mp.path / failure.relative_file)
            return self._render(record)
        raise NotFound(path)

    def find_page(self, path: str) -> Optional[PageDocument]:
        try:
            return self.document_for(path)
        except NotFound:
            return None
        except (RenderError, InspectionError) as e:
            log.error("local debinfo error: %s", e)
            return None

    def page_for_request(self, path: str) -> PageDocument:
        """
        `document_for` plus the resolved cache directive stamped into the
        page context: page context, then catalog setting, then the default.
        """
        page = self.document_for(path)
        page.context[CACHE_CONTROL_KEY] = self.cache_control_for(page)
        return page

    def cache_control_for(self, page: PageDocument) -> str:
        fallback = self.cache_control or DEFAULT_CACHE_CONTROL
        value = page.context.get(CACHE_CONTROL_KEY)
        return value if isinstance(value, str) and value.strip() else fallback

    # ------------------------------- Indexing ------------------------------

    def index_all(self) -> IndexReport:
        """Submit every catalog page to the search index."""
        if self.search_index is None:
            raise ConfigurationError("search index feature not configured")
        report = IndexReport()
        for url in self.urls():
            try:
                page = self.document_for(url)
            except RenderError as e:
                report.errors[url] = str(e)
                continue
            error = self._submit(page)
            if error is None:
                report.indexed.append(url)
                with self._lock:
                    self._indexed.add(url)
            else:
                report.errors[url] = error
        log.info("Indexed %d pages (%d errors)", len(report.indexed), len(report.errors))
        return report

    # ------------------------------- Helpers -------------------------------

    def _render(self, record: ArchiveRecord) -> PageDocument:
        return render_document(record, language=self.language, context=self.context)

    def _submit(self, page: PageDocument) -> Optional[str]:
        if self.search_index is None:
            return None
        try:
            self.search_index.add_document(page, page.url)
        except SearchIndexError as e:
            log.error("error adding %s to search index: %s", page.url, e)
            return str(e)
        return None
