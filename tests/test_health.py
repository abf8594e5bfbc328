"""
tests/test_health.py -- Integration tests for GET /api/v1/health.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' against the test database
  - No authentication required
  - Security headers present on every response
"""

from __future__ import annotations


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    client, _clock = api_client
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without a session cookie."""
    client, _clock = api_client
    resp = client.get("/api/v1/health", headers={})
    assert resp.status_code == 200


def test_security_headers_present(api_client):
    client, _clock = api_client
    resp = client.get("/api/v1/health")
    assert resp.headers["x-content-type-options"] == "nosniff"
    assert resp.headers["x-frame-options"] == "DENY"
    assert resp.headers["referrer-policy"] == "no-referrer"


def test_unknown_route_uses_error_envelope(api_client):
    client, _clock = api_client
    resp = client.get("/rpc/nope.nothing")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "http_404"
