"""
Integration tests for the HTTP surface.

Every test goes through create_app() with injected in-memory storage and a
static token table (see conftest.py), then inspects state behind the API.
"""

from datetime import datetime, timedelta, timezone

import pytest

from shortlink_registry.manager.strategies import ALPHABET


def create(client, headers, **body):
    body.setdefault("destination_url", "https://example.com")
    return client.post("/api/links", json=body, headers=headers)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


# -------------------------
# Auth
# -------------------------

def test_create_requires_bearer_token(client):
    resp = client.post("/api/links", json={"destination_url": "https://example.com"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "unauthorized"
    assert resp.headers["www-authenticate"] == "Bearer"


def test_invalid_token_rejected(client):
    resp = client.get("/api/links", headers={"Authorization": "Bearer wrong"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "unauthorized"


def test_basic_scheme_rejected(client):
    resp = client.get("/api/links", headers={"Authorization": "Basic dTE6cGFzcw=="})
    assert resp.status_code == 401


# -------------------------
# Create
# -------------------------

def test_create_generated_code(client, u1_headers):
    resp = create(client, u1_headers)
    assert resp.status_code == 201
    data = resp.json()
    assert len(data["code"]) == 7 and all(ch in ALPHABET for ch in data["code"])
    assert data["click_count"] == 0
    assert data["destination_url"] == "https://example.com"
    assert data["short_url"].endswith("/" + data["code"])
    assert "owner_id" not in data
    assert data["id"] and data["created_at"]


def test_create_with_all_fields(client, u1_headers):
    resp = create(client, u1_headers, code="promo", label="  Spring sale  ", expires_at="2030-01-01T00:00:00Z")
    assert resp.status_code == 201
    data = resp.json()
    assert data["code"] == "promo"
    assert data["label"] == "Spring sale"
    assert data["expires_at"] == "2030-01-01T00:00:00+00:00"


def test_create_duplicate_code_conflict(client, u1_headers):
    assert create(client, u1_headers, code="promo").status_code == 201
    resp = create(client, u1_headers, code="promo")
    assert resp.status_code == 409
    assert resp.json()["error"] == "code_already_exists"


def test_create_invalid_url(client, u1_headers):
    resp = create(client, u1_headers, destination_url="not a url")
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_input"
    assert resp.json()["field"] == "destinationUrl"


def test_create_missing_url(client, u1_headers):
    resp = client.post("/api/links", json={}, headers=u1_headers)
    assert resp.status_code == 400
    assert resp.json()["field"] == "destinationUrl"


def test_create_invalid_code_and_expiry(client, u1_headers):
    assert create(client, u1_headers, code="no spaces").json()["field"] == "code"
    assert create(client, u1_headers, expires_at="soon").json()["field"] == "expiresAt"


def test_create_reserved_code(client, u1_headers):
    resp = create(client, u1_headers, code="health")
    assert resp.status_code == 400
    assert resp.json()["field"] == "code"
    assert client.get("/health").json() == {"status": "ok"}


def test_create_out_of_range_expiry(client, u1_headers):
    resp = create(client, u1_headers, expires_at="9999-12-31T23:59:59-01:00")
    assert resp.status_code == 400
    assert resp.json()["field"] == "expiresAt"


@pytest.mark.parametrize(
    "body, field",
    [
        ({"destination_url": 123}, "destinationUrl"),
        ({"destination_url": "https://example.com", "expires_at": 1700000000}, "expiresAt"),
        ({"destination_url": "https://example.com", "label": ["a"]}, "label"),
    ],
)
def test_create_badly_typed_body(client, u1_headers, body, field):
    resp = client.post("/api/links", json=body, headers=u1_headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_input"
    assert resp.json()["field"] == field


def test_create_malformed_json(client, u1_headers):
    resp = client.post(
        "/api/links",
        content="{not json",
        headers={**u1_headers, "Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_input"
    assert resp.json()["field"] == "body"


def test_create_expiry_never(client, u1_headers):
    resp = create(client, u1_headers, expires_at="never")
    assert resp.status_code == 201
    assert resp.json()["expires_at"] is None


# -------------------------
# List / delete
# -------------------------

def test_list_newest_first_and_isolated(client, u1_headers, u2_headers):
    first = create(client, u1_headers, code="first").json()
    second = create(client, u1_headers, code="second").json()
    create(client, u2_headers, code="theirs")

    resp = client.get("/api/links", headers=u1_headers)
    assert resp.status_code == 200
    assert [l["id"] for l in resp.json()] == [second["id"], first["id"]]
    assert [l["code"] for l in client.get("/api/links", headers=u2_headers).json()] == ["theirs"]


def test_delete_idempotent(client, u1_headers):
    link = create(client, u1_headers).json()
    assert client.delete(f"/api/links/{link['id']}", headers=u1_headers).status_code == 204
    assert client.delete(f"/api/links/{link['id']}", headers=u1_headers).status_code == 204
    assert client.get("/api/links", headers=u1_headers).json() == []


def test_delete_other_owner_is_noop(client, u1_headers, u2_headers):
    link = create(client, u1_headers).json()
    assert client.delete(f"/api/links/{link['id']}", headers=u2_headers).status_code == 204
    assert [l["id"] for l in client.get("/api/links", headers=u1_headers).json()] == [link["id"]]


def test_delete_requires_auth(client, u1_headers):
    link = create(client, u1_headers).json()
    assert client.delete(f"/api/links/{link['id']}").status_code == 401


# -------------------------
# Redirect
# -------------------------

def test_redirect_and_click_count(client, u1_headers, storage, recorder):
    link = create(client, u1_headers, destination_url="https://example.com/landing?utm=1").json()
    storage.update_click_count(link["id"], 3)

    resp = client.get(
        f"/{link['code']}",
        headers={"User-Agent": "integration-test"},
        follow_redirects=False,
    )
    assert resp.status_code == 302
    assert resp.headers["location"] == "https://example.com/landing?utm=1"

    assert recorder.wait(timeout=5)
    listed = client.get("/api/links", headers=u1_headers).json()
    assert listed[0]["click_count"] == 4
    event = storage.click_events[-1]
    assert event.short_link_id == link["id"]
    assert event.user_agent == "integration-test"
    assert event.ip_address  # TestClient reports "testclient"


def test_redirect_unknown_code(client):
    resp = client.get("/missing", follow_redirects=False)
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def test_redirect_expired_link_is_gone_but_listed(client, u1_headers, recorder):
    hour_ago = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
    link = create(client, u1_headers, expires_at=hour_ago).json()

    resp = client.get(f"/{link['code']}", follow_redirects=False)
    assert resp.status_code == 410
    assert resp.json()["error"] == "expired"

    assert recorder.wait(timeout=5)
    listed = client.get("/api/links", headers=u1_headers).json()
    assert [l["id"] for l in listed] == [link["id"]]
    assert listed[0]["click_count"] == 0


def test_redirect_is_case_sensitive(client, u1_headers):
    create(client, u1_headers, code="CaseY")
    assert client.get("/CaseY", follow_redirects=False).status_code == 302
    assert client.get("/casey", follow_redirects=False).status_code == 404


def test_storage_failure_maps_to_500(client, storage):
    from unittest.mock import patch

    from shortlink_registry.storage.base import StorageError

    with patch.object(storage, "find_link_by_code", side_effect=StorageError("db down")):
        resp = client.get("/anything", follow_redirects=False)
    assert resp.status_code == 500
    assert resp.json()["error"] == "storage_failure"


def test_code_exhausted_maps_to_503(client, u1_headers, storage):
    from unittest.mock import patch

    from shortlink_registry.storage.base import UniqueConstraintError

    with patch.object(storage, "insert_link", side_effect=UniqueConstraintError("dup")):
        resp = create(client, u1_headers)
    assert resp.status_code == 503
    assert resp.json()["error"] == "code_exhausted"
