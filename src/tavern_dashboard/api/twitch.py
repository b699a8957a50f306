"""
Twitch OAuth (authorization code flow) helpers.

Only the viewer's login name is needed: the callback exchanges the code for
an access token, asks Helix who the token belongs to and returns the
lowercased login.  Tokens are not stored or validated beyond that.
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode

import requests

from tavern_dashboard.config import TwitchSettings

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://id.twitch.tv/oauth2/authorize"
TOKEN_URL = "https://id.twitch.tv/oauth2/token"  # noqa: S105
USERS_URL = "https://api.twitch.tv/helix/users"
SCOPE = "user:read:email"


class TwitchAuthError(Exception):
    """The identity provider answered, but not with a usable login."""


def build_authorize_url(settings: TwitchSettings) -> str:
    """Return the Twitch consent URL the login button redirects to."""
    query = urlencode(
        {
            "client_id": settings.client_id,
            "redirect_uri": settings.redirect_uri,
            "response_type": "code",
            "scope": SCOPE,
        }
    )
    return f"{AUTHORIZE_URL}?{query}"


def exchange_code(settings: TwitchSettings, code: str) -> str:
    """
    Trade an authorization code for an access token.

    Raises:
        TwitchAuthError: If the response carries no access token.
        requests.exceptions.RequestException: On network failure.
    """
    response = requests.post(
        TOKEN_URL,
        data={
            "client_id": settings.client_id,
            "client_secret": settings.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": settings.redirect_uri,
        },
        timeout=settings.timeout_seconds,
    )
    try:
        body = response.json()
    except ValueError:
        body = None
    token = body.get("access_token") if isinstance(body, dict) else None
    if not isinstance(token, str) or not token:
        logger.warning("Twitch token exchange failed with HTTP %s", response.status_code)
        raise TwitchAuthError("Failed to get access token.")
    return token


def fetch_login(settings: TwitchSettings, access_token: str) -> str:
    """
    Return the lowercased login name of the token's owner.

    Raises:
        TwitchAuthError: If Helix does not return a user.
        requests.exceptions.RequestException: On network failure.
    """
    response = requests.get(
        USERS_URL,
        headers={
            "Client-ID": settings.client_id,
            "Authorization": f"Bearer {access_token}",
        },
        timeout=settings.timeout_seconds,
    )
    try:
        body = response.json()
    except ValueError:
        body = None

    users = body.get("data") if isinstance(body, dict) else None
    login = None
    if isinstance(users, list) and users and isinstance(users[0], dict):
        login = users[0].get("login")
    if not isinstance(login, str) or not login:
        raise TwitchAuthError("Could not fetch Twitch user.")
    return login.lower()
