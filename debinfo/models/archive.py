# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import posixpath
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

ARCHIVE_SUFFIXES = (".deb", ".udeb")


class ArchiveState(str, Enum):
    discovered = "discovered"
    inspected = "inspected"
    rendered = "rendered"
    indexed = "indexed"
    inspection_failed = "inspection_failed"


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def is_archive_name(name: str) -> bool:
    return name.endswith(ARCHIVE_SUFFIXES)


class Mount(BaseModel):
    """
    A local directory of archives exposed under a public URL prefix.
    """
    path: Path
    url_prefix: str = ""

    model_config = ConfigDict(frozen=True)

    @field_validator("path", mode="after")
    @classmethod
    def _expand(cls, v: Path) -> Path:
        return v.expanduser()

    @field_validator("url_prefix", mode="after")
    @classmethod
    def _normalize_prefix(cls, v: str) -> str:
        s = v.strip().rstrip("/")
        if s and not s.startswith("/"):
            s = "/" + s
        return s

    def public_url(self, relative_file: str) -> str:
        """`<url_prefix>/<base filename>`; the directory part of the file is dropped."""
        return f"{self.url_prefix}/{posixpath.basename(relative_file)}"


class ArchiveRecord(BaseModel):
    """
    Raw inspection output for one archive. Never mutated; a rescan replaces it.
    """
    source_path: Path
    relative_file: str
    mount: Mount
    raw_info: str
    raw_contents: str
    inspected_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(frozen=True)

    @property
    def base_name(self) -> str:
        return posixpath.basename(self.relative_file)

    @property
    def public_url(self) -> str:
        return self.mount.public_url(self.relative_file)


class PageDocument(BaseModel):
    """
    A rendered package page: identity, structured body and page source.
    """
    title: str
    description: str
    url: str
    language: str = "en"
    source_path: Path
    body: List[Dict[str, Any]] = Field(default_factory=list)
    source: str = ""
    shasum: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    context: Dict[str, Any] = Field(default_factory=dict)

    def copy_for_request(self) -> "PageDocument":
        # per-request context changes must not leak into the cached page
        return self.model_copy(update={"context": dict(self.context)})
