"""
Host adapter module for Ref Tracking.

Responsibilities:
    - Redirect short keywords and run the click-logging hook on every click
    - Run the host's default click logger unless the plugin took over
    - Dispatch API actions (`/api?action=ref-stats`) to plugin handlers
    - Serve the per-link detail page (`/{keyword}+`) with plugin tabs
    - Apply the plugin's enable hook at startup (idempotent)

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - The click-log store, link registry and geo lookup are injected; by
      default they come from `ref_tracking.config.settings`.
    - Authentication for the API is left to whatever fronts this app.

LLM Prompt Example:
    "Explain how to structure a FastAPI host with an application factory so
    that a plugin's hooks can be exercised end-to-end in tests."
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Mapping, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from ref_tracking.config import settings
from ref_tracking.plugin import RefTrackingPlugin
from ref_tracking.recorder.geo import GeoLookup
from ref_tracking.recorder.recorder import ClickRequest, CountryResolver, DefaultClickLogger
from ref_tracking.report.renderer import ASSETS_DIR, templates
from ref_tracking.storage.base import BaseClickStore
from ref_tracking.storage.storage_factory import get_store

UNKNOWN_ACTION = "Unknown or missing action"
INVALID_BODY = "Malformed request body"


def _flatten(fields: Any) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    for key in fields.keys():
        values = fields.getlist(key)
        if key.endswith("[]"):
            params[key[:-2]] = values
        else:
            params[key] = values if len(values) > 1 else values[0]
    return params


def collect_params(request: Request, body: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Flatten query string (and an optional decoded body) into API fields.

    Repeated fields and PHP-style `name[]` fields become lists; a single
    occurrence stays a plain string. Body fields win over query fields.
    """
    params = _flatten(request.query_params)
    if body:
        params.update(body)
    return params


async def read_body(request: Request) -> Optional[Dict[str, Any]]:
    """
    Decode a POST body into API fields.

    JSON objects are used as-is; form-encoded and multipart bodies are
    flattened like the query string. Other bodies contribute nothing.

    Raises:
        ValueError: If a JSON body cannot be decoded.
    """
    if request.method != "POST":
        return None
    content_type = request.headers.get("content-type", "")
    if "json" in content_type:
        body = await request.json()
        return body if isinstance(body, dict) else None
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        async with request.form() as form:
            return _flatten(form)
    return None


def create_app(
    store: Optional[BaseClickStore] = None,
    links: Optional[Dict[str, str]] = None,
    geo: Optional[CountryResolver] = None,
    log_redirects: Optional[bool] = None,
    drop_on_disable: Optional[bool] = None,
) -> FastAPI:
    """
    Factory function to build a host app with the Ref Tracking plugin.

    Args:
        store: Click-log backend; defaults to `get_store()`.
        links: keyword -> long URL registry; defaults to empty.
        geo: Country resolver; defaults to GeoLookup(settings.GEOIP_DB).
        log_redirects: Host-wide click logging switch.
        drop_on_disable: Whether disabling the plugin drops r_param.

    Returns:
        FastAPI: A configured app; `app.state.plugin` exposes the plugin.
    """
    log = logging.getLogger("ref_tracking")

    # basic console logging (optional)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO)

    # ----------------------------------------------------------------
    # Per-app instances (isolated for tests, swappable for production)
    # ----------------------------------------------------------------
    store = store if store is not None else get_store()
    links = links if links is not None else {}
    owned_geo = GeoLookup(settings.GEOIP_DB) if geo is None else None
    geo = owned_geo if owned_geo is not None else geo
    do_log = settings.LOG_REDIRECTS if log_redirects is None else log_redirects
    drop = settings.DROP_ON_DISABLE if drop_on_disable is None else drop_on_disable

    plugin = RefTrackingPlugin(
        store,
        geo=geo,
        query_param=settings.QUERY_PARAM,
        drop_on_disable=drop,
        max_per_page=settings.MAX_PER_PAGE,
    )
    default_logger = DefaultClickLogger(store, geo=geo)
    actions = plugin.api_actions()

    log.info("Ref tracking click-log backend: %s", type(store).__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        plugin.on_enable()
        yield
        store.close()
        if owned_geo is not None:
            owned_geo.close()

    app = FastAPI(
        title="Ref Tracking",
        description="URL redirects with per-click referral tags and grouped ref stats",
        lifespan=lifespan,
    )
    app.state.plugin = plugin
    app.state.links = links

    # ----------------------------------------------------------------
    # Routes (fixed paths before the keyword catch-alls)
    # ----------------------------------------------------------------
    app.mount("/assets", StaticFiles(directory=str(ASSETS_DIR)), name="assets")

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.api_route("/api", methods=["GET", "POST"])
    async def api(request: Request) -> JSONResponse:
        """
        Generic API dispatch: `action` selects the handler.

        POST bodies may be form-encoded or JSON; JSON lets clients send
        `r-params` as a native list.
        """
        try:
            body = await read_body(request)
        except ValueError:
            return JSONResponse({"statusCode": 400, "message": INVALID_BODY}, status_code=400)
        params = collect_params(request, body)

        action = params.get("action")
        handler = actions.get(action) if isinstance(action, str) else None
        if handler is None:
            return JSONResponse({"statusCode": 400, "message": UNKNOWN_ACTION}, status_code=400)
        result = handler(params)
        return JSONResponse(result, status_code=result.get("statusCode", 200))

    @app.get("/{keyword}+", response_class=HTMLResponse)
    def link_detail(keyword: str, request: Request) -> HTMLResponse:
        """Per-link detail page; plugins append their tabs to `#tabs`."""
        url = links.get(keyword)
        if url is None:
            raise HTTPException(status_code=404, detail="Short URL not found")
        return templates.TemplateResponse(
            request=request,
            name="link_detail.html",
            context={
                "keyword": keyword,
                "url": url,
                "plugin_snippets": [plugin.on_render_detail_page(keyword)],
            },
        )

    @app.get("/{keyword}")
    def redirect(keyword: str, request: Request) -> RedirectResponse:
        """
        Resolve a keyword and log the click.

        The plugin hook runs first; the default logger only runs when the
        hook deferred, so each click produces at most one log row.
        """
        url = links.get(keyword)
        if url is None:
            raise HTTPException(status_code=404, detail="Short URL not found")

        click = ClickRequest.from_request(request)
        decision = plugin.on_before_log(do_log, keyword, click)
        if not decision.skip_default_log and do_log:
            default_logger.log_redirect(keyword, click)

        return RedirectResponse(url=url, status_code=302)

    return app


# Backward compatibility for uvicorn and legacy imports:
# `uvicorn main:app --reload` and `from main import app` continue to work.
app = create_app()
