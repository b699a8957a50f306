"""Twitch login, callback and logout endpoints."""

import logging
from urllib.parse import quote

import requests
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import RedirectResponse

from tavern_dashboard.api import twitch
from tavern_dashboard.api.auth import SessionStore
from tavern_dashboard.config import DashboardConfig

logger = logging.getLogger(__name__)


def router(sessions: SessionStore, cfg: DashboardConfig) -> APIRouter:
    api = APIRouter()
    cookie = cfg.session

    @api.get("/auth/twitch")
    def login():
        """Send the viewer to Twitch to approve the login."""
        if not cfg.twitch.client_id:
            raise HTTPException(status_code=503, detail="Twitch login is not configured.")
        return RedirectResponse(twitch.build_authorize_url(cfg.twitch))

    @api.get("/auth/twitch/callback")
    def callback(code: str | None = None):
        """
        Finish the OAuth flow and start a session.

        On success the viewer lands on their own status page.
        """
        if not code:
            raise HTTPException(status_code=400, detail="No code returned from Twitch.")

        try:
            token = twitch.exchange_code(cfg.twitch, code)
            username = twitch.fetch_login(cfg.twitch, token)
        except twitch.TwitchAuthError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except requests.exceptions.RequestException as exc:
            logger.warning("Twitch OAuth request failed: %s", exc)
            raise HTTPException(status_code=502, detail="Twitch is unavailable.") from exc

        session_id = sessions.create(username)
        logger.info("[LOGIN] %s logged in.", username)

        response = RedirectResponse(f"/status?user={quote(username)}", status_code=302)
        response.set_cookie(
            cookie.cookie_name,
            session_id,
            max_age=cookie.max_age_seconds,
            httponly=True,
            secure=cookie.cookie_secure,
            samesite=cookie.same_site,
        )
        return response

    @api.get("/logout")
    def logout(request: Request):
        """End the session and return to the home page."""
        sessions.remove(request.cookies.get(cookie.cookie_name))
        response = RedirectResponse("/", status_code=302)
        response.delete_cookie(
            cookie.cookie_name,
            httponly=True,
            secure=cookie.cookie_secure,
            samesite=cookie.same_site,
        )
        return response

    return api
