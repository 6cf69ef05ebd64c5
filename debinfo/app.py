# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, request
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Settings
from .errors import ConfigurationError, InspectionError, NotFound, RenderError
from .routes import CATALOG_EXTENSION, json_err, request_id
from .routes.health import bp as health_bp
from .routes.packages import bp as packages_bp
from .services.catalog import CACHE_CONTROL_KEY, Catalog
from .services.inspector import DpkgDebInspector, Inspector
from .services.pages import serve_page
from .services.search_index import HttpSearchIndex, SearchIndex
from .utils.fs import sanitize_request_path

log = logging.getLogger("debinfo.app")


def _configure_logging(level: str | int) -> None:
    numeric = (
        level
        if isinstance(level, int)
        else getattr(logging, str(level).upper(), logging.INFO)
    )
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _apply_security_headers(resp):
    resp.headers.setdefault("X-Content-Type-Options", "nosniff")
    resp.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    resp.headers.setdefault("Referrer-Policy", "no-referrer-when-downgrade")
    return resp


def _search_index_for(cfg: Settings) -> SearchIndex:
    if not cfg.SEARCH_BASE:
        raise ConfigurationError("search index feature not found: set SEARCH_BASE")
    return HttpSearchIndex(cfg.SEARCH_BASE, collection=cfg.SEARCH_COLLECTION, timeout=cfg.SEARCH_TIMEOUT)


def build_catalog(
    cfg: Settings,
    inspector: Optional[Inspector] = None,
    search_index: Optional[SearchIndex] = None,
) -> Catalog:
    """
    Construct the catalog from settings. The search index is required.
    """
    if search_index is None:
        search_index = _search_index_for(cfg)
    if inspector is None:
        inspector = DpkgDebInspector(tool=cfg.INSPECT_TOOL, timeout=cfg.INSPECT_TIMEOUT)
        if not inspector.available():
            log.warning("Inspection tool %r not found on PATH; every archive will fail", cfg.INSPECT_TOOL)
    return Catalog(
        cfg.mount_points(),
        inspector,
        search_index=search_index,
        policy=cfg.RENDER_POLICY,
        cache_control=cfg.cache_control(),
        language=cfg.SITE_LANGUAGE,
        workers=cfg.INSPECT_WORKERS,
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    inspector: Optional[Inspector] = None,
    search_index: Optional[SearchIndex] = None,
) -> Flask:
    """
    Application factory used by WSGI servers and `python -m flask`.

    - Builds the catalog and runs discovery before the app is returned
    - Serves one page per discovered archive at <url_prefix>/<file name>
    - Registers the /api/* blueprints
    """
    cfg = settings or Settings()  # pydantic-settings loads .env
    _configure_logging(cfg.LOG_LEVEL)

    catalog = build_catalog(cfg, inspector=inspector, search_index=search_index)
    report = catalog.discover()

    app = Flask(__name__, static_folder=None)
    app.extensions[CATALOG_EXTENSION] = catalog

    # Honor reverse proxy headers (TLS offloading, load balancers)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    if cfg.CORS_ENABLE:
        CORS(app, resources={r"/api/*": {"origins": cfg.CORS_ALLOW_ORIGINS}})

    # -----------------------------
    # Package pages (before routing)
    # -----------------------------
    log.debug("including local debinfo middleware: %s", catalog.mount_paths())

    @app.before_request
    def serve_package_page():
        if request.method not in ("GET", "HEAD"):
            return None
        path = sanitize_request_path(request.path)
        try:
            page = catalog.page_for_request(path)
            resp = serve_page(page, page.context[CACHE_CONTROL_KEY])
        except NotFound:
            # let the remaining routes try this path
            return None
        except (RenderError, InspectionError) as e:
            log.error("local debinfo error: %s", e)
            return json_err("render_error", "could not build package page", details=path, status=500)
        log.debug("served local debinfo: [%s] %s", page.language, path)
        return resp

    # ---------------------------------
    # API blueprints (/api/* paths)
    # ---------------------------------
    app.register_blueprint(health_bp, url_prefix="/api/health")
    app.register_blueprint(packages_bp, url_prefix="/api/packages")

    # ----------------------
    # JSON error handlers
    # ----------------------
    @app.errorhandler(400)
    def bad_request(e):
        return _apply_security_headers(json_err("bad_request", "Bad Request", status=400))

    @app.errorhandler(404)
    def not_found(e):
        return _apply_security_headers(json_err("not_found", "Not Found", status=404))

    @app.errorhandler(405)
    def method_not_allowed(e):
        return _apply_security_headers(json_err("method_not_allowed", "Method Not Allowed", status=405))

    @app.errorhandler(500)
    def server_error(e):
        logging.getLogger(__name__).exception("Unhandled error")
        return _apply_security_headers(json_err("server_error", "Internal Server Error", status=500))

    # Security headers for all responses
    @app.after_request
    def add_headers(resp):
        resp.headers.setdefault("X-Request-ID", request_id())
        return _apply_security_headers(resp)

    app.logger.info(
        "App ready. policy=%s mounts=%s packages=%d failed=%d",
        catalog.policy,
        catalog.mount_paths(),
        len(report.registered),
        len(report.failed),
    )
    return app
