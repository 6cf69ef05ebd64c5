# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import secrets
import time
from typing import Any, Dict

from flask import current_app, jsonify, make_response, request

from ..models.responses import ApiError, ErrorResponse

CATALOG_EXTENSION = "debinfo.catalog"


def request_id() -> str:
    rid = request.headers.get("X-Request-ID")
    return rid or f"req_{int(time.time()*1000)}_{secrets.token_hex(6)}"


def get_catalog():
    """The Catalog attached to the running app by create_app()."""
    return current_app.extensions[CATALOG_EXTENSION]


def json_ok(payload: Dict[str, Any], status: int = 200):
    resp = make_response(jsonify({"ok": True, **payload}), status)
    resp.headers.setdefault("X-Request-ID", request_id())
    resp.headers.setdefault("Cache-Control", "no-store")
    return resp


def json_err(code: str, message: str, details: Any | None = None, status: int = 400):
    body = ErrorResponse(error=ApiError(code=code, message=message, details=details))
    resp = make_response(jsonify(body.model_dump()), status)
    resp.headers.setdefault("X-Request-ID", request_id())
    resp.headers.setdefault("Cache-Control", "no-store")
    return resp
