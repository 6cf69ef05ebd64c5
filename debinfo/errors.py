# SPDX-License-Identifier: Apache-2.0
"""
Exceptions raised by the archive catalog.

- InspectionError: the inspection tool failed for one archive (that archive only).
- NotFound: a path is not in the catalog; the serving hook declines the request.
- RenderError: a page could not be built or rendered for one request.
- SearchIndexError: the search index refused a document (best effort).
- ConfigurationError: the service cannot start.
"""
from __future__ import annotations

from typing import Optional


class DebInfoError(Exception):
    """Base class for catalog errors."""


class InspectionError(DebInfoError):
    def __init__(self, file: str, mode: str, cause: object) -> None:
        self.file = file
        self.mode = mode
        self.cause = cause
        super().__init__(f"dpkg-deb --{mode} error: {file} - {cause}")


class NotFound(DebInfoError, LookupError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"path not found: {path}")


class RenderError(DebInfoError):
    def __init__(self, path: str, cause: Optional[object] = None) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"error making page: {path} - {cause}")


class SearchIndexError(DebInfoError):
    pass


class ConfigurationError(DebInfoError):
    pass
