# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging
from typing import Any

from flask import Blueprint

from ..errors import ConfigurationError
from ..models.responses import CatalogEntry, CatalogListing, FailedArchive
from . import get_catalog, json_err, json_ok

bp = Blueprint("packages", __name__)
log = logging.getLogger("debinfo.routes.packages")


@bp.get("")
def list_packages() -> Any:
    """
    GET /api/packages
    Returns: { policy, entries:[{url,file,mount,state,...}], failed:[...] }
    """
    catalog = get_catalog()
    entries = []
    for url in catalog.urls():
        record = catalog.lookup(url)
        entries.append(
            CatalogEntry(
                url=url,
                file=record.relative_file,
                mount=str(record.mount.path),
                state=catalog.state(url).value,
                info_lines=len(record.raw_info.splitlines()),
                content_lines=len(record.raw_contents.splitlines()),
            )
        )
    failed = [
        FailedArchive(url=url, file=f.relative_file, mode=f.error.mode, message=str(f.error))
        for url, f in sorted(catalog.failures().items())
    ]
    listing = CatalogListing(policy=catalog.policy, entries=entries, failed=failed)
    return json_ok(listing.model_dump())


@bp.post("/index")
def index_packages() -> Any:
    """
    POST /api/packages/index
    Submit every catalog page to the search index.
    Returns: { indexed:[urls], errors:{url: message} }
    """
    catalog = get_catalog()
    try:
        report = catalog.index_all()
    except ConfigurationError as e:
        return json_err("not_configured", str(e), status=503)
    status = 200 if not report.errors else 207
    return json_ok({"indexed": report.indexed, "errors": report.errors}, status=status)
