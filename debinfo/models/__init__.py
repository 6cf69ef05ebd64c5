# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

# Re-export commonly used models for convenience
from .archive import ArchiveRecord, ArchiveState, Mount, PageDocument
from .control import ParsedControl, ParseWarning
from .responses import ApiError, CatalogEntry, CatalogListing, ErrorResponse, FailedArchive

__all__ = [
    "ArchiveRecord",
    "ArchiveState",
    "Mount",
    "PageDocument",
    "ParsedControl",
    "ParseWarning",
    "ApiError",
    "CatalogEntry",
    "CatalogListing",
    "ErrorResponse",
    "FailedArchive",
]
