# tests/test_api.py
import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient

from verimail.api import app


@pytest.fixture
def client(pipeline):
    with patch("verimail.handler.get_pipeline", return_value=pipeline):
        yield TestClient(app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_verify_missing_email(client):
    response = client.post("/verify", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "Email is required"}
    assert response.headers["access-control-allow-origin"] == "*"


def test_verify_empty_body(client):
    response = client.post("/verify", content=b"")
    assert response.status_code == 400


def test_verify_invalid_json(client):
    response = client.post("/verify", content=b"{oops", headers={"content-type": "application/json"})
    assert response.status_code == 400


def test_verify_then_cached(client):
    first = client.post("/verify", json={"email": "user@example.com"})
    second = client.post("/verify", json={"email": "user@example.com"})

    assert first.status_code == 200
    assert first.json()["result"]["verified"] is True
    assert "cached" not in first.json()
    assert second.json() == {"cached": True, "result": first.json()["result"]}


def test_cors_preflight(client):
    response = client.options(
        "/verify",
        headers={"Origin": "https://app.example", "Access-Control-Request-Method": "POST"},
    )
    assert response.status_code == 200
    assert "access-control-allow-origin" in response.headers


def test_shutdown_closes_default_pipeline():
    with patch("verimail.api.close_pipeline", new_callable=AsyncMock) as mock_close:
        with TestClient(app) as client:
            assert client.get("/health").status_code == 200
            mock_close.assert_not_awaited()

    mock_close.assert_awaited_once()
