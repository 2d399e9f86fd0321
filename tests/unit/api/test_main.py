"""
Tests for FastAPI app setup (src/api/main.py).

Covers:
- App creation and configuration
- Health check endpoint
- CORS middleware
- Global exception handling
"""

from unittest.mock import patch

from fastapi import status
from fastapi.testclient import TestClient

from src.api.main import API_VERSION, app, create_app
from src.application.services.match_service import MatchService
from src.domain.shared.exceptions import InvalidCatalogRecordError


def test_health_check_endpoint(client):
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == API_VERSION
    assert data["timestamp"] > 0


def test_cors_middleware_configured(client):
    response = client.get("/health", headers={"Origin": "http://localhost:3000"})

    assert response.headers.get("access-control-allow-origin") in ("*", "http://localhost:3000")


def test_routers_are_registered():
    paths = {route.path for route in create_app().routes}

    assert "/api/candidates" in paths
    assert "/api/matches" in paths
    assert "/api/matches/{match_id}/review" in paths
    assert "/api/decision-log" in paths
    assert "/api/decision-log/stats" in paths


def test_openapi_schema_available(client):
    response = client.get("/openapi.json")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["info"]["title"] == "Catalog Matcher API"


def test_unmapped_domain_exception_returns_400(client):
    with patch.object(
        MatchService,
        "create_match",
        side_effect=InvalidCatalogRecordError("Price must not be an empty string", "price"),
    ):
        response = client.post(
            "/api/matches",
            json={"local_product_id": "P-1", "external_product_key": "B-1", "source_code": "AMZ"},
        )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["code"] == "INVALIDCATALOGRECORD"
    assert body["message"] == "Price must not be an empty string"
    assert body["details"]["exception_type"] == "InvalidCatalogRecordError"


def test_unexpected_exception_returns_500(container):
    client = TestClient(app, raise_server_exceptions=False)

    with patch.object(MatchService, "create_match", side_effect=RuntimeError("boom")):
        response = client.post(
            "/api/matches",
            json={"local_product_id": "P-1", "external_product_key": "B-1", "source_code": "AMZ"},
        )

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    body = response.json()
    assert body["code"] == "INTERNAL_SERVER_ERROR"
    assert body["details"]["type"] == "RuntimeError"
