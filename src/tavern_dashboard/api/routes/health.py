"""Health endpoint.

Reports liveness, the package version and which ledger source is active.
It does not touch the ledger itself, so it stays cheap and always answers.
"""

from fastapi import APIRouter

from tavern_dashboard import __version__
from tavern_dashboard.api.models import HealthResponse
from tavern_dashboard.ledger.service import LedgerService


def router(service: LedgerService) -> APIRouter:
    api = APIRouter()

    @api.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        return HealthResponse(status="ok", version=__version__, ledger_source=service.source_kind)

    return api
