# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import urlencode

import requests

from ..errors import SearchIndexError
from ..models.archive import PageDocument

log = logging.getLogger("debinfo.services.search")

_USER_AGENT = "deb-pages/1.0 (+search)"


class SearchIndex(Protocol):
    def add_document(self, document: PageDocument, url: str) -> None:
        ...


def _join(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path if path.startswith("/") else f"/{path}"
    return f"{base}{path}"


def document_payload(document: PageDocument, url: str) -> Dict[str, Any]:
    return {
        "url": url,
        "title": document.title,
        "description": document.description,
        "language": document.language,
        "content": document.source,
        "created_at": document.created_at.isoformat(),
    }


class HttpSearchIndex:
    """
    Full-text index reached over HTTP: POST <base>/documents.
    """

    def __init__(self, base: str, collection: Optional[str] = None, timeout: int = 30) -> None:
        self.base = base
        self.collection = collection
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"HttpSearchIndex({self.base!r}, collection={self.collection!r})"

    def _url(self, path: str) -> str:
        url = _join(self.base, path)
        if self.collection:
            url = f"{url}?{urlencode({'collection': self.collection})}"
        return url

    def add_document(self, document: PageDocument, url: str) -> None:
        target = self._url("/documents")
        headers = {"Content-Type": "application/json", "User-Agent": _USER_AGENT}
        log.debug("POST", extra={"target": target, "page_url": url})
        try:
            r = requests.post(target, json=document_payload(document, url), timeout=self.timeout, headers=headers)
        except requests.RequestException as e:
            raise SearchIndexError(f"search index unreachable: {e}") from e
        if r.status_code >= 400:
            raise SearchIndexError(f"{r.status_code} {r.text}")


class MemorySearchIndex:
    """
    In-process index keyed by page URL.
    """

    def __init__(self) -> None:
        self.documents: Dict[str, Dict[str, Any]] = {}

    def __repr__(self) -> str:
        return f"MemorySearchIndex({len(self.documents)} documents)"

    def add_document(self, document: PageDocument, url: str) -> None:
        self.documents[url] = document_payload(document, url)

    def search(self, term: str) -> List[str]:
        needle = term.lower()
        return sorted(url for url, doc in self.documents.items() if needle in doc["content"].lower())
