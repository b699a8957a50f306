"""
Shared pytest fixtures for the Tavern Dashboard test suite.

This module provides fixtures that are automatically available to all test files:
- Temporary ledger files and file-backed ledger services
- A deterministic clock for cache tests
- Test configuration with uploads and Twitch login enabled
- FastAPI TestClient instances wired to the temporary ledger
"""

import json
from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tavern_dashboard.api.auth import SessionStore
from tavern_dashboard.api.server import create_app
from tavern_dashboard.config import DashboardConfig, use_test_ledger
from tavern_dashboard.ledger.service import LedgerService
from tavern_dashboard.ledger.sources import LocalFileLedgerSource
from tests.constants import SAMPLE_DOCUMENT, UPLOAD_TOKEN

# ============================================================================
# CLOCK
# ============================================================================


class FakeClock:
    """Manually advanced clock usable wherever a ``time.monotonic`` is expected."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ============================================================================
# LEDGER FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def ledger_path(tmp_path: Path) -> Generator[Path, None, None]:
    """
    Path to a ledger file pre-populated with SAMPLE_DOCUMENT.

    The module-level config is pointed at it for the duration of the test so
    code that reads ``config.ledger`` (the CLI) sees the same file.
    """
    path = tmp_path / "TavernPlayers.json"
    path.write_text(json.dumps(SAMPLE_DOCUMENT), encoding="utf-8")
    with use_test_ledger(path):
        yield path


@pytest.fixture(scope="function")
def file_service(ledger_path: Path) -> LedgerService:
    return LedgerService(LocalFileLedgerSource(ledger_path))


# ============================================================================
# FASTAPI TEST CLIENT FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def test_config() -> DashboardConfig:
    """
    Configuration with uploads and Twitch login enabled.

    Cookies are not marked secure because TestClient talks plain HTTP.
    """
    cfg = DashboardConfig()
    cfg.upload.token = UPLOAD_TOKEN
    cfg.twitch.client_id = "test-client-id"
    cfg.twitch.client_secret = "test-client-secret"
    cfg.twitch.redirect_uri = "http://testserver/auth/twitch/callback"
    cfg.session.cookie_secure = False
    cfg.session.same_site = "lax"
    return cfg


@pytest.fixture(scope="function")
def sessions(test_config: DashboardConfig) -> SessionStore:
    return SessionStore(test_config.session.max_age_seconds)


@pytest.fixture(scope="function")
def test_client(
    test_config: DashboardConfig, file_service: LedgerService, sessions: SessionStore
) -> TestClient:
    """
    Create a FastAPI TestClient backed by the temporary ledger file.

    Example:
        def test_lookup(test_client):
            response = test_client.get("/api/players/rex")
            assert response.json()["gold"] == 150
    """
    app = create_app(test_config, service=file_service, sessions=sessions)
    return TestClient(app, follow_redirects=False)
