"""
Web routes for the tavern pages and static assets.

This module keeps server-side logic minimal:
- Serves the home, shop and contact pages from Jinja2 templates.
- Renders the status card for one patron from the ledger.
- Uses FastAPI's StaticFiles to serve the stylesheet.

The status page resolves the patron from the ``user`` query parameter,
falling back to the logged-in session.  A patron with no ledger entry gets a
distinct "No data found" page (HTTP 200), never an error page.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from tavern_dashboard.api.auth import SessionStore
from tavern_dashboard.config import DashboardConfig
from tavern_dashboard.ledger.lookup import find_player
from tavern_dashboard.ledger.service import LedgerService

# Resolve paths relative to this file for predictable packaging.
_WEB_ROOT = Path(__file__).resolve().parent
_TEMPLATES_DIR = _WEB_ROOT / "templates"
_STATIC_DIR = _WEB_ROOT / "static"
# Bump when the stylesheet changes and browsers should refetch it.
ASSET_VERSION = "20251104a"

templates = Jinja2Templates(directory=str(_TEMPLATES_DIR))


def format_last_updated(value: str) -> str:
    """
    Render a ledger timestamp for humans.

    ISO-8601 values become ``YYYY-MM-DD HH:MM`` (with the zone name when one
    is present); anything else, such as ``"Never"``, is shown verbatim.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return value
    zone = f" {parsed.tzname()}" if parsed.tzinfo else ""
    return parsed.strftime("%Y-%m-%d %H:%M") + zone


def build_pages_router(
    service: LedgerService,
    sessions: SessionStore,
    cfg: DashboardConfig,
) -> APIRouter:
    """
    Build the router for the HTML pages.

    Returns:
        APIRouter serving ``/``, ``/shop``, ``/contact`` and ``/status``.
    """
    router = APIRouter()

    def _render(request: Request, name: str, context: dict | None = None) -> HTMLResponse:
        base = {
            "asset_version": ASSET_VERSION,
            "channel_url": cfg.page.channel_url,
            "active": name.removesuffix(".html"),
            "viewer": sessions.get_username(request.cookies.get(cfg.session.cookie_name)),
        }
        return templates.TemplateResponse(request, name, {**base, **(context or {})})

    @router.get("/", response_class=HTMLResponse)
    def home(request: Request):
        return _render(request, "index.html")

    @router.get("/shop", response_class=HTMLResponse)
    def shop(request: Request):
        return _render(request, "shop.html")

    @router.get("/contact", response_class=HTMLResponse)
    def contact(request: Request):
        return _render(request, "contact.html")

    @router.get("/status", response_class=HTMLResponse)
    def status(request: Request, user: str | None = None):
        """Render the status card for ``user`` or the logged-in viewer."""
        username = (user or "").strip().lower()
        if not username:
            username = sessions.get_username(request.cookies.get(cfg.session.cookie_name)) or ""

        ledger = service.get_ledger()
        player = find_player(ledger, username) if username else None

        if player is None:
            return _render(request, "not_found.html", {"username": username})

        return _render(
            request,
            "status.html",
            {
                "player": player,
                "last_updated": format_last_updated(ledger.last_updated),
                "refresh_seconds": cfg.page.refresh_seconds,
            },
        )

    return router


def register_web_routes(
    app: FastAPI,
    service: LedgerService,
    sessions: SessionStore,
    cfg: DashboardConfig,
) -> None:
    """
    Register page routes and static assets on the FastAPI app.

    Static files must be mounted on the FastAPI app (not an APIRouter),
    otherwise Starlette will not serve the assets correctly.
    """
    app.mount("/static", StaticFiles(directory=str(_STATIC_DIR)), name="static")
    app.include_router(build_pages_router(service, sessions, cfg))
