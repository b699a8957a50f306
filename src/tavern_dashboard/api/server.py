"""
FastAPI application for the tavern dashboard.

This module builds the application that serves:
- The HTML pages (home, shop, contact, status card)
- The JSON ledger API (player lookup, full dump, upload)
- Twitch login/logout
- A health endpoint

``create_app`` wires one :class:`LedgerService` and one
:class:`SessionStore` per app.  They live on ``app.state`` so tests (and
multiple apps in one process) never share a cache or sessions.
"""

from __future__ import annotations

from fastapi import FastAPI

from tavern_dashboard import __version__
from tavern_dashboard.api.auth import SessionStore
from tavern_dashboard.api.routes import register_routes
from tavern_dashboard.config import DashboardConfig, config
from tavern_dashboard.ledger.service import LedgerService
from tavern_dashboard.ledger.sources import build_ledger_source
from tavern_dashboard.web.routes import register_web_routes


def create_app(
    cfg: DashboardConfig | None = None,
    *,
    service: LedgerService | None = None,
    sessions: SessionStore | None = None,
) -> FastAPI:
    """
    Build a fully wired application.

    Args:
        cfg: Configuration to use; defaults to the module-level singleton.
        service: Ledger service override (tests inject fake sources here).
        sessions: Session store override.

    Returns:
        The FastAPI app with all routes and static assets registered.
    """
    if cfg is None:
        cfg = config
    if service is None:
        service = LedgerService(build_ledger_source(cfg.ledger))
    if sessions is None:
        sessions = SessionStore(cfg.session.max_age_seconds)

    app = FastAPI(title="Tavern Dashboard", version=__version__)
    app.state.ledger_service = service
    app.state.sessions = sessions
    app.state.config = cfg

    register_routes(app, service, sessions, cfg)
    register_web_routes(app, service, sessions, cfg)
    return app


def start_server(host: str | None = None, port: int | None = None) -> None:
    """Run the dashboard under uvicorn using configured defaults."""
    import uvicorn

    uvicorn.run(
        "tavern_dashboard.api.server:create_app",
        factory=True,
        host=host or config.server.host,
        port=port or config.server.port,
        log_level=config.logging.level.lower(),
    )


if __name__ == "__main__":
    start_server()
