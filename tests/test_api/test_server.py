"""Tests for application wiring in create_app."""

import pytest

from tavern_dashboard.api.auth import SessionStore
from tavern_dashboard.api.server import create_app


@pytest.mark.unit
def test_injected_empty_session_store_is_kept(test_config, file_service):
    sessions = SessionStore(60)
    assert len(sessions) == 0

    app = create_app(test_config, service=file_service, sessions=sessions)

    assert app.state.sessions is sessions
    assert app.state.ledger_service is file_service
    assert app.state.config is test_config


@pytest.mark.unit
def test_defaults_are_built_when_not_injected(test_config):
    app = create_app(test_config)

    assert isinstance(app.state.sessions, SessionStore)
    assert app.state.sessions.max_age_seconds == test_config.session.max_age_seconds
    assert app.state.ledger_service.source_kind == test_config.ledger.source
