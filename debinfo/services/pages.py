# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging

from flask import Response, jsonify, make_response, render_template, request
from jinja2 import TemplateError

from ..errors import RenderError
from ..models.archive import PageDocument

log = logging.getLogger("debinfo.services.pages")

PAGE_TEMPLATE = "package.html"
_OFFERED = ["text/html", "application/json", "text/plain"]


def page_json(page: PageDocument) -> dict:
    return {
        "title": page.title,
        "description": page.description,
        "url": page.url,
        "language": page.language,
        "shasum": page.shasum,
        "created_at": page.created_at.isoformat(),
        "updated_at": page.updated_at.isoformat(),
        "body": page.body,
    }


def serve_page(page: PageDocument, cache_control: str) -> Response:
    """
    Deliver a package page as HTML, JSON or its raw source (by Accept).
    """
    best = request.accept_mimetypes.best_match(_OFFERED, default="text/html")
    if best == "application/json":
        resp = make_response(jsonify(page_json(page)), 200)
    elif best == "text/plain":
        resp = make_response(page.source, 200, {"Content-Type": "text/plain; charset=utf-8"})
    else:
        try:
            html = render_template(PAGE_TEMPLATE, page=page)
        except TemplateError as e:
            raise RenderError(str(page.source_path), e) from e
        resp = make_response(html, 200, {"Content-Type": "text/html; charset=utf-8"})

    resp.headers["Cache-Control"] = cache_control
    resp.headers["Content-Language"] = page.language
    resp.set_etag(page.shasum)
    return resp
