"""
Tests for the FastAPI routes.
"""

import pytest
from fastapi.testclient import TestClient

import web.app as web_app
from dqi_engine.analysis import DealQualityIndexEngine
from dqi_engine.api import PropertyStorage


@pytest.fixture
def client(monkeypatch, office_deal, sequential_config):
    """Test client backed by in-memory storage and a template-only engine."""
    storage = PropertyStorage()
    storage.create(office_deal)
    monkeypatch.setattr(web_app, "_config", sequential_config)
    monkeypatch.setattr(web_app, "_storage", storage)
    monkeypatch.setattr(web_app, "_engine", DealQualityIndexEngine(config=sequential_config))
    return TestClient(web_app.app)


class TestMetaRoutes:
    """Test health and enum endpoints."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["properties"] == 1

    def test_enums(self, client):
        data = client.get("/api/enums").json()
        assert "Office" in data["property_types"]
        assert "Below Average" in data["ratings"]
        assert data["confidence_levels"] == ["HIGH", "MEDIUM", "LOW"]
        assert sum(p["weight"] for p in data["pillars"]) == 100


class TestDqiRoute:
    """Test ad-hoc scoring."""

    def test_scores_payload(self, client):
        response = client.post("/api/dqi", json={
            "name": "Wilshire Office Tower",
            "propertyValue": 10_000_000,
            "netOperatingIncome": 580_000,
            "squareFeet": 50_000,
            "propertyType": "Office",
            "location": "Los Angeles, CA",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["overallScore"] == 76
        assert data["rating"] == "Fair"
        assert data["band"] == "70-79"
        assert data["runeAnalysis"]

    def test_hard_fail_payload(self, client):
        data = client.post("/api/dqi", json={
            "propertyValue": 10_000_000,
            "netOperatingIncome": 150_000,
            "propertyType": "Office",
            "location": "Los Angeles, CA",
        }).json()
        assert data["overallScore"] <= 59
        assert data["safeguards"]["hardFails"]

    def test_negative_noi_payload_hard_fails(self, client):
        data = client.post("/api/dqi", json={
            "propertyValue": 10_000_000,
            "netOperatingIncome": -200_000,
            "propertyType": "Office",
            "location": "Los Angeles, CA",
            "squareFeet": 50_000,
        }).json()
        assert data["safeguards"]["hardFails"]
        assert data["overallScore"] <= 59

    @pytest.mark.parametrize("literal", ["NaN", "Infinity"])
    def test_non_finite_value_is_400(self, client, literal):
        response = client.post(
            "/api/dqi",
            content=f'{{"propertyValue": {literal}, "netOperatingIncome": 580000}}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_missing_value_is_400(self, client):
        response = client.post("/api/dqi", json={"name": "Unpriced"})
        assert response.status_code == 400
        assert "Property value is required" in response.json()["detail"]


class TestPropertyRoutes:
    """Test stored property management and scoring."""

    def test_list(self, client):
        data = client.get("/api/properties").json()
        assert data["count"] == 1

    def test_list_filtered(self, client):
        assert client.get("/api/properties?property_type=retail").json()["count"] == 0

    def test_get(self, client):
        response = client.get("/api/properties/LA-OFFICE-001")
        assert response.status_code == 200
        assert response.json()["name"] == "Wilshire Office Tower"

    def test_get_missing(self, client):
        assert client.get("/api/properties/NOPE").status_code == 404

    def test_create(self, client):
        response = client.post("/api/properties", json={
            "property_id": "MF-3",
            "name": "Camelback Apartments",
            "listPrice": "18,500,000",
            "propertyType": "multi-family",
            "location": "Phoenix, AZ",
        })
        assert response.status_code == 201
        assert response.json()["property_value"] == 18_500_000
        assert client.get("/api/properties/MF-3").status_code == 200

    def test_create_generates_id(self, client):
        response = client.post("/api/properties", json={"price": 5_000_000})
        assert response.status_code == 201
        assert response.json()["property_id"].startswith("PROP-")

    def test_create_invalid(self, client):
        assert client.post("/api/properties", json={"name": "Lot"}).status_code == 400

    def test_create_duplicate(self, client):
        response = client.post("/api/properties", json={
            "property_id": "LA-OFFICE-001", "propertyValue": 1_000_000,
        })
        assert response.status_code == 400

    def test_update(self, client):
        response = client.put("/api/properties/LA-OFFICE-001", json={
            "name": "Wilshire Office Tower",
            "propertyValue": 10_000_000,
            "netOperatingIncome": 600_000,
            "propertyType": "Office",
            "location": "Los Angeles, CA",
        })
        assert response.status_code == 200
        assert response.json()["net_operating_income"] == 600_000
        stored = client.get("/api/properties/LA-OFFICE-001").json()
        assert stored["net_operating_income"] == 600_000

    def test_update_missing(self, client):
        response = client.put("/api/properties/NOPE", json={"propertyValue": 1_000_000})
        assert response.status_code == 404

    def test_update_invalid(self, client):
        response = client.put("/api/properties/LA-OFFICE-001", json={"name": "Unpriced"})
        assert response.status_code == 400

    def test_delete(self, client):
        assert client.delete("/api/properties/LA-OFFICE-001").json() == {"deleted": "LA-OFFICE-001"}
        assert client.delete("/api/properties/LA-OFFICE-001").status_code == 404

    def test_deal_quality_index(self, client):
        response = client.get("/api/deal-quality-index/LA-OFFICE-001")
        assert response.status_code == 200
        data = response.json()
        assert data["propertyId"] == "LA-OFFICE-001"
        assert data["overallScore"] == 76
        assert data["governance"]["peerRank"] == "76 vs. market benchmark 71 (top 40%)"

    def test_deal_quality_index_unknown(self, client):
        assert client.get("/api/deal-quality-index/NOPE").status_code == 404
