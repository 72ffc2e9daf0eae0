"""Test health check endpoint."""

from fastapi.testclient import TestClient

from habit_lens.main import app

client = TestClient(app)


def test_health_check():
    """Test that /health returns 200 with status ok."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"


def test_v1_routes_require_auth():
    """Test that API routes reject requests without a bearer token."""
    response = client.get("/v1/templates")
    assert response.status_code == 401
    assert response.json()["error"] == "auth_required"
    assert response.headers["www-authenticate"] == "Bearer"
