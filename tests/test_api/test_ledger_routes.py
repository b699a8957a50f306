"""
API tests for the ledger endpoints.

Covers:
- GET /api/players/{username} (case-insensitive, 404 on miss)
- GET /api/ledger
- POST /api/ledger (bearer token, envelope unwrapping, read-only remote)
"""

import json
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from tavern_dashboard.api.auth import SessionStore
from tavern_dashboard.api.server import create_app
from tavern_dashboard.ledger import (
    LedgerCache,
    LedgerService,
    LocalFileLedgerSource,
    RemoteLedgerSource,
)
from tests.constants import UPLOAD_TOKEN

AUTH = {"Authorization": f"Bearer {UPLOAD_TOKEN}"}


# ============================================================================
# LOOKUP
# ============================================================================


@pytest.mark.api
def test_get_player_is_case_insensitive(test_client):
    response = test_client.get("/api/players/REX")

    assert response.status_code == 200
    data = response.json()
    assert data["username"] == "Rex"
    assert data["usernameKey"] == "rex"
    assert data["currentTitle"] == "Brawler"
    assert data["questsCompleted"] == 4
    assert data["inventory"] == ["Rusty Dagger", "Ale"]


@pytest.mark.api
def test_get_player_applies_defaults(test_client):
    data = test_client.get("/api/players/ann").json()

    assert data["health"] == 100
    assert data["gold"] == 0
    assert data["titles"] == ["Regular"]
    assert data["inventory"] == []


@pytest.mark.api
def test_get_player_missing_is_404(test_client):
    response = test_client.get("/api/players/Ghost")

    assert response.status_code == 404
    assert response.json() == {"detail": "No data found for ghost"}


@pytest.mark.api
def test_get_ledger_returns_canonical_document(test_client):
    response = test_client.get("/api/ledger")

    assert response.status_code == 200
    data = response.json()
    assert data["lastUpdated"] == "2025-11-02T21:14:05+00:00"
    assert [p["usernameKey"] for p in data["players"]] == ["rex", "ann"]


@pytest.mark.api
def test_get_ledger_bootstraps_missing_file(test_config, tmp_path):
    path = tmp_path / "fresh.json"
    app = create_app(test_config, service=LedgerService(LocalFileLedgerSource(path)))
    client = TestClient(app)

    response = client.get("/api/ledger")

    assert response.json() == {"lastUpdated": "Never", "players": []}
    assert path.exists()


# ============================================================================
# UPLOAD
# ============================================================================


@pytest.mark.api
def test_upload_without_token_is_rejected(test_client, ledger_path):
    before = ledger_path.read_bytes()

    response = test_client.post("/api/ledger", json={"players": []})

    assert response.status_code == 401
    assert ledger_path.read_bytes() == before


@pytest.mark.api
@pytest.mark.parametrize(
    "header",
    ["Bearer wrong-token", f"Basic {UPLOAD_TOKEN}", "Bearer", UPLOAD_TOKEN],
)
def test_upload_with_bad_token_is_rejected(test_client, header):
    response = test_client.post(
        "/api/ledger", json={"players": []}, headers={"Authorization": header}
    )

    assert response.status_code == 401


@pytest.mark.api
def test_upload_disabled_when_no_token_configured(test_config, file_service):
    test_config.upload.token = ""
    client = TestClient(create_app(test_config, service=file_service))

    response = client.post("/api/ledger", json={"players": []}, headers=AUTH)

    assert response.status_code == 401


@pytest.mark.api
def test_upload_envelope_replaces_ledger(test_client, ledger_path):
    body = {
        "lastUpdated": "2025-11-03T09:30:00Z",
        "data": {"playerList": [{"name": "Kit", "gold": "12"}, {"username": "Rex"}]},
    }

    response = test_client.post("/api/ledger", json=body, headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "players": 2,
        "lastUpdated": "2025-11-03T09:30:00Z",
        "defaultedFields": 1,
    }
    document = json.loads(ledger_path.read_text(encoding="utf-8"))
    assert [p["usernameKey"] for p in document["players"]] == ["kit", "rex"]
    assert test_client.get("/api/players/rex").json()["gold"] == 0


@pytest.mark.api
def test_upload_bare_array(test_client):
    response = test_client.post(
        "/api/ledger", json=[{"username": "Solo", "honour": 3}], headers=AUTH
    )

    assert response.status_code == 200
    assert response.json()["players"] == 1
    assert test_client.get("/api/players/solo").json()["honour"] == 3


@pytest.mark.api
def test_upload_write_failure_is_500(test_client, ledger_path):
    before = ledger_path.read_bytes()

    with patch("tavern_dashboard.ledger.sources.os.replace", side_effect=OSError("read-only fs")):
        response = test_client.post("/api/ledger", json={"players": []}, headers=AUTH)

    assert response.status_code == 500
    assert response.json() == {"detail": "Ledger could not be saved"}
    assert ledger_path.read_bytes() == before


@pytest.mark.api
def test_upload_to_remote_source_is_conflict(test_config, clock):
    service = LedgerService(
        RemoteLedgerSource("https://example.test/l.json", LedgerCache(15, clock=clock))
    )
    client = TestClient(create_app(test_config, service=service, sessions=SessionStore(60)))

    response = client.post("/api/ledger", json={"players": []}, headers=AUTH)

    assert response.status_code == 409
    assert "read-only" in response.json()["detail"]


@pytest.mark.api
def test_upload_with_lone_surrogate_is_persisted(test_client, ledger_path):
    response = test_client.post(
        "/api/ledger",
        content=rb'{"players": [{"username": "\ud800x"}]}',
        headers={**AUTH, "Content-Type": "application/json"},
    )

    assert response.status_code == 200
    document = json.loads(ledger_path.read_text(encoding="utf-8"))
    assert document["players"][0]["username"] == "?x"


@pytest.mark.api
@pytest.mark.parametrize("content", [b"{not json", b"42", b""])
def test_upload_without_token_is_rejected_before_body_is_read(test_client, content):
    response = test_client.post(
        "/api/ledger", content=content, headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 401


@pytest.mark.api
def test_upload_malformed_body_is_400(test_client, ledger_path):
    before = ledger_path.read_bytes()

    response = test_client.post(
        "/api/ledger",
        content=b"{not json",
        headers={**AUTH, "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"detail": "Body is not valid JSON"}
    assert ledger_path.read_bytes() == before


@pytest.mark.api
def test_upload_scalar_body_is_400(test_client):
    response = test_client.post(
        "/api/ledger",
        content=b'"just text"',
        headers={**AUTH, "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"detail": "Body must be a JSON object or array"}
