"""Integration tests for the API surface: health, error format and headers"""

from __future__ import annotations

from legacy_diary.config import APP_VERSION

ADMIN_HEADERS = {"Authorization": "Bearer test-admin-key"}


def test_root(client):
    body = client.get("/").json()

    assert body["status"] == "running"
    assert body["version"] == APP_VERSION
    assert body["endpoints"]["legacy"] == "/api/legacy"


def test_health(client):
    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["version"] == APP_VERSION
    assert "timestamp" in body


def test_database_health(client):
    body = client.get("/health/db").json()

    assert body["status"] == "healthy"
    assert body["pool"]["closed"] is False
    assert body["warning"] is None


def test_validation_errors_hide_rules(client):
    response = client.post("/api/auth/register", json={"name": "Ada"})

    assert response.status_code == 422
    body = response.json()
    assert body["detail"] == "Invalid request format. Please check your request and try again."
    assert body["error_count"] == 2
    assert sorted(body["invalid_fields"]) == ["email", "password"]


def test_bad_query_parameter(client, signup):
    response = client.get("/api/entries", headers=signup(), params={"limit": 0})

    assert response.status_code == 422
    assert response.json()["invalid_fields"] == ["limit"]


def test_security_headers(client):
    response = client.get("/health")

    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "default-src 'none'" in response.headers["Content-Security-Policy"]
    assert "Strict-Transport-Security" not in response.headers
    assert "Cache-Control" not in response.headers


def test_api_responses_not_cached(client):
    response = client.get("/api/subscriptions")

    assert response.headers["Cache-Control"] == "no-store"
    assert "X-RateLimit-Limit-Minute" in response.headers


def test_cors_preflight_for_frontend(client):
    response = client.options(
        "/api/entries",
        headers={
            "Origin": "https://digitallegacydiary.com",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "https://digitallegacydiary.com"


def test_admin_stats(client, signup):
    signup()

    response = client.get("/api/admin/stats", headers=ADMIN_HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["counters"]["accounts.registered"] == 1
    assert body["counters"]["accounts.login"] == 1
    assert "pool_size" in body["database"]


def test_admin_stats_requires_key(client):
    assert client.get("/api/admin/stats").status_code == 401
