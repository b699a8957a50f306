"""Unit tests for session storage and upload token checks."""

import pytest
from fastapi import HTTPException

from tavern_dashboard.api.auth import SessionStore, parse_bearer_token, require_upload_token


class TestSessionStore:
    @pytest.mark.unit
    def test_create_and_resolve(self, clock):
        store = SessionStore(60, clock=clock)

        session_id = store.create("rex")

        assert store.get_username(session_id) == "rex"
        assert len(store) == 1

    @pytest.mark.unit
    def test_session_ids_are_unique(self, clock):
        store = SessionStore(60, clock=clock)

        assert store.create("rex") != store.create("rex")

    @pytest.mark.unit
    def test_expired_session_is_dropped(self, clock):
        store = SessionStore(60, clock=clock)
        session_id = store.create("rex")

        clock.advance(60)

        assert store.get_username(session_id) is None
        assert len(store) == 0

    @pytest.mark.unit
    @pytest.mark.parametrize("session_id", [None, "", "unknown"])
    def test_unknown_session(self, clock, session_id):
        assert SessionStore(60, clock=clock).get_username(session_id) is None

    @pytest.mark.unit
    def test_remove(self, clock):
        store = SessionStore(60, clock=clock)
        session_id = store.create("rex")

        assert store.remove(session_id) is True
        assert store.remove(session_id) is False
        assert store.remove(None) is False


class TestBearerToken:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            ("Bearer abc", "abc"),
            ("bearer abc", "abc"),
            ("Bearer  abc ", "abc"),
            ("Bearer", None),
            ("Bearer ", None),
            ("Basic abc", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse(self, header, expected):
        assert parse_bearer_token(header) == expected

    @pytest.mark.unit
    def test_matching_token_passes(self):
        require_upload_token("Bearer s3cret", "s3cret")

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("header", "expected"),
        [("Bearer nope", "s3cret"), (None, "s3cret"), ("Bearer s3cret", "")],
    )
    def test_rejections(self, header, expected):
        with pytest.raises(HTTPException) as exc_info:
            require_upload_token(header, expected)

        assert exc_info.value.status_code == 401
