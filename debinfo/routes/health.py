# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import platform
import sys
from typing import Any, Dict

from flask import Blueprint

from . import get_catalog, json_ok

bp = Blueprint("health", __name__)


@bp.get("")
def health() -> Any:
    catalog = get_catalog()
    info: Dict[str, Any] = {
        "service": "deb-pages",
        "python": sys.version.split()[0],
        "platform": platform.platform(terse=True),
        "policy": catalog.policy,
        "mounts": catalog.mount_paths(),
        "packages": len(catalog),
        "failed": len(catalog.failures()),
    }
    return json_ok({"status": "ok", "info": info})
