"""
Route registration entry point for the FastAPI application.

Keeps the public `register_routes(app, ...)` API in one place while the
implementation is split into focused router modules.
"""

from fastapi import FastAPI

from tavern_dashboard.api.auth import SessionStore
from tavern_dashboard.api.routes import auth, health, ledger
from tavern_dashboard.config import DashboardConfig
from tavern_dashboard.ledger.service import LedgerService


def register_routes(
    app: FastAPI,
    service: LedgerService,
    sessions: SessionStore,
    cfg: DashboardConfig,
) -> None:
    """Register all API routes with the FastAPI app."""
    app.include_router(health.router(service))
    app.include_router(ledger.router(service, cfg.upload))
    app.include_router(auth.router(sessions, cfg))
