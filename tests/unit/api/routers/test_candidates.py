"""
Tests for POST /api/candidates.
"""

from fastapi import status

from src.api.routers.candidates import CandidateLookupRequest

PRODUCT = {
    "id": "P-1",
    "title": "Pampers Baby Dry Diapers Size 4",
    "brand": "Pampers",
    "category": "diapers",
    "price": "20.00",
}


def test_find_candidates_ranks_all_sources(client):
    response = client.post("/api/candidates", json={"product": PRODUCT})

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["internal_id"] == "P-1"
    keys = [c["external_key"] for c in body["candidates"]]
    assert set(keys) == {"A-1", "A-2", "E-1"}
    assert keys[-1] == "A-2"
    assert body["summary"]["total"] == 3
    assert body["skipped_sources"] == []


def test_find_candidates_marks_decided_pairs(client):
    client.post(
        "/api/matches",
        json={"local_product_id": "P-1", "external_product_key": "A-1", "source_code": "AMZ"},
    )

    body = client.post("/api/candidates", json={"product": PRODUCT}).json()

    decided = {c["external_key"]: c["already_decided"] for c in body["candidates"]}
    assert decided["A-1"] == "matched"
    assert decided["E-1"] is None


def test_find_candidates_limit_and_sources(client):
    body = client.post(
        "/api/candidates",
        json={"product": PRODUCT, "limit": 1, "source_codes": ["amz"]},
    ).json()

    assert [c["external_key"] for c in body["candidates"]] == ["A-1"]


def test_find_candidates_rejects_empty_price(client):
    response = client.post("/api/candidates", json={"product": {**PRODUCT, "price": ""}})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["details"]["exception_type"] == "InvalidCatalogRecordError"


def test_find_candidates_requires_product_id(client):
    response = client.post("/api/candidates", json={"product": {"title": "Bottle"}})

    assert response.status_code == 422


def test_lookup_request_declares_schema_example():
    assert "Config" not in vars(CandidateLookupRequest)
    assert CandidateLookupRequest.model_json_schema()["example"]["limit"] == 10
