"""Ledger query and upload endpoints.

Read endpoints never fail because of the ledger source: an unavailable
source degrades to stale or empty data inside the service.  A missing
player is a 404 with a readable detail, not a server error.

The upload endpoint is the game client's write path.  It is guarded by a
shared bearer token and replaces the whole ledger.
"""

import json
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from tavern_dashboard.api.auth import require_upload_token
from tavern_dashboard.api.models import LedgerResponse, PlayerResponse, UploadResponse
from tavern_dashboard.config import UploadSettings
from tavern_dashboard.ledger.models import LedgerReadOnlyError
from tavern_dashboard.ledger.service import LedgerService

logger = logging.getLogger(__name__)


def router(service: LedgerService, upload: UploadSettings) -> APIRouter:
    api = APIRouter(prefix="/api")

    def authorize_upload(authorization: str | None = Header(default=None)) -> None:
        require_upload_token(authorization, upload.token)

    @api.get("/players/{username}", response_model=PlayerResponse)
    def get_player(username: str):
        """Return one patron's record, matched case-insensitively."""
        player = service.find_player(username)
        if player is None:
            raise HTTPException(status_code=404, detail=f"No data found for {username.lower()}")
        return PlayerResponse.from_record(player)

    @api.get("/ledger", response_model=LedgerResponse)
    def get_ledger():
        """Return the entire canonical ledger."""
        return LedgerResponse.from_ledger(service.get_ledger())

    @api.post(
        "/ledger",
        response_model=UploadResponse,
        dependencies=[Depends(authorize_upload)],
    )
    async def upload_ledger(request: Request):
        """
        Replace the ledger with the uploaded document.

        Accepts ``{"lastUpdated": ..., "data": {...}}`` or a bare ledger.
        The body is read only after the token check and is normalized before
        it is written.
        """
        try:
            body = json.loads(await request.body())
        except (ValueError, RecursionError) as exc:
            raise HTTPException(status_code=400, detail="Body is not valid JSON") from exc
        if not isinstance(body, (dict, list)):
            raise HTTPException(status_code=400, detail="Body must be a JSON object or array")

        try:
            ledger = await run_in_threadpool(service.upsert, body)
        except LedgerReadOnlyError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except OSError as exc:
            logger.error("Ledger upload could not be written: %s", exc)
            raise HTTPException(status_code=500, detail="Ledger could not be saved") from exc

        return UploadResponse(
            success=True,
            players=len(ledger.players),
            last_updated=ledger.last_updated,
            defaulted_fields=len(ledger.notes),
        )

    return api
