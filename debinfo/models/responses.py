# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class ApiError(BaseModel):
    """
    Standard error payload for API responses.
    """
    code: str = Field(default="error")
    message: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """
    Error response envelope: { ok: false, error }
    """
    ok: bool = False
    error: ApiError


class CatalogEntry(BaseModel):
    """
    One row of GET /api/packages.
    """
    url: str
    file: str
    mount: str
    state: str
    info_lines: int = 0
    content_lines: int = 0


class FailedArchive(BaseModel):
    url: str
    file: str
    mode: str
    message: str


class CatalogListing(BaseModel):
    policy: str
    entries: List[CatalogEntry] = Field(default_factory=list)
    failed: List[FailedArchive] = Field(default_factory=list)
