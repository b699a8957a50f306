"""Session management and upload authorization."""

from __future__ import annotations

import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import HTTPException


@dataclass(frozen=True)
class Session:
    """A logged-in viewer."""

    username: str
    expires_at: float


class SessionStore:
    """
    In-memory login sessions (session_id -> Session).

    Sessions do not survive a restart; viewers simply log in again.

    Args:
        max_age_seconds: Lifetime of a session from creation.
        clock: Wall-clock source, injectable for tests.
    """

    def __init__(self, max_age_seconds: int, clock: Callable[[], float] = time.time):
        self.max_age_seconds = max_age_seconds
        self._clock = clock
        self._sessions: dict[str, Session] = {}

    def create(self, username: str) -> str:
        """Start a session for ``username`` and return its opaque id."""
        session_id = secrets.token_urlsafe(32)
        self._sessions[session_id] = Session(
            username=username, expires_at=self._clock() + self.max_age_seconds
        )
        return session_id

    def get_username(self, session_id: str | None) -> str | None:
        """Return the username for a live session, dropping expired ones."""
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if session.expires_at <= self._clock():
            self._sessions.pop(session_id, None)
            return None
        return session.username

    def remove(self, session_id: str | None) -> bool:
        """End a session.  Returns True if one existed."""
        if not session_id:
            return False
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)


def parse_bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_upload_token(authorization: str | None, expected: str) -> None:
    """
    Reject the request unless it carries the configured upload token.

    An empty ``expected`` token disables uploads entirely.

    Raises:
        HTTPException: 401 when the token is missing or does not match.
    """
    provided = parse_bearer_token(authorization)
    if not expected or provided is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Unauthorized")
