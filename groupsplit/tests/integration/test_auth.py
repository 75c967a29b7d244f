"""
tests/integration/test_auth.py — Authentication on the split endpoints.

Tokens are issued elsewhere; this service only verifies them.

Error cases:
  TOKEN_MISSING  401 — no Authorization header
  TOKEN_INVALID  401 — wrong scheme, bad signature, garbage, missing sub
  TOKEN_EXPIRED  401 — exp in the past

401 means "we do not know who you are". Group membership failures are 403
and are covered in test_splits.py / test_settlement.py.
"""

from __future__ import annotations

from datetime import timedelta

import jwt
import pytest

from .conftest import TEST_JWT_SECRET, make_token, seed_group, seed_purchase

PROTECTED = [
    ("get", "/api/v1/splits/purchases/p-1"),
    ("post", "/api/v1/splits/purchases/p-1"),
    ("post", "/api/v1/splits/purchases/p-1/calculate"),
    ("get", "/api/v1/splits/groups/g-trip/settlement"),
]


def _call(client, method: str, url: str, headers: dict | None = None):
    return getattr(client, method)(url, json={}, headers=headers or {})


@pytest.mark.parametrize("method, url", PROTECTED)
def test_missing_header_returns_token_missing(client, method, url):
    resp = _call(client, method, url)
    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "TOKEN_MISSING"


@pytest.mark.parametrize("header", [
    "Token abc.def.ghi",
    "Bearer",
    "Bearer a b",
    "Bearer not-a-jwt",
])
def test_malformed_header_returns_token_invalid(client, header):
    resp = _call(client, "get", "/api/v1/splits/purchases/p-1", {"Authorization": header})
    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "TOKEN_INVALID"


def test_wrong_signature_returns_token_invalid(client):
    token = make_token("alice", secret="some-other-secret")
    resp = _call(client, "get", "/api/v1/splits/purchases/p-1", {"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "TOKEN_INVALID"


def test_expired_token_returns_token_expired(client):
    token = make_token("alice", expires_in=timedelta(minutes=-1))
    resp = _call(client, "get", "/api/v1/splits/purchases/p-1", {"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "TOKEN_EXPIRED"


def test_token_without_sub_returns_token_invalid(client):
    token = jwt.encode({"name": "alice"}, TEST_JWT_SECRET, algorithm="HS256")
    resp = _call(client, "get", "/api/v1/splits/purchases/p-1", {"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "TOKEN_INVALID"


def test_valid_token_reaches_the_service(app, client):
    group_id = seed_group(app)
    seed_purchase(app, group_id, "alice", 1000)

    token = make_token("alice")
    resp = client.post(
        "/api/v1/splits/purchases/p-1/calculate",
        json={"rule": "equal", "participant_ids": ["alice", "bob"]},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert resp.status_code == 200


def test_auth_runs_before_body_validation(client):
    resp = client.post("/api/v1/splits/purchases/p-1", json={"rule": "nonsense"})
    assert resp.status_code == 401
