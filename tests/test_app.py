"""Smoke tests for application wiring."""

from fastapi import FastAPI, status
from fastapi.testclient import TestClient


def test_health_check(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}


def test_root_describes_api(client: TestClient) -> None:
    body = client.get("/").json()
    assert body["name"] == "Neon Ledger"
    assert body["docs"] == "/docs"


def test_routes_are_mounted(app: FastAPI) -> None:
    paths = set(app.openapi()["paths"])
    for path in (
        "/api/v1/messages/",
        "/api/v1/messages/total",
        "/api/v1/messages/batch",
        "/api/v1/messages/{message_id}",
        "/api/v1/messages/{message_id}/status",
        "/api/v1/users/{owner}/messages",
        "/api/v1/users/{owner}/messages/count",
        "/api/v1/users/{owner}/messages/metadata",
        "/api/v1/events",
        "/api/v1/auth/challenge",
        "/api/v1/auth/login",
        "/api/v1/authority/inputs",
        "/api/v1/authority/decrypt",
    ):
        assert path in paths
