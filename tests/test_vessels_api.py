"""End-to-end tests for the /api/vessels endpoints."""

import uuid

import pytest

from shipline.core.config import settings
from shipline.models.vessel import Vessel


@pytest.mark.integration
class TestCreateAndList:
    """Tests for POST /api/vessels and GET /api/vessels."""

    def test_create_then_filter_by_name(self, user_client, vessel_payload):
        created = user_client.post("/api/vessels", json=vessel_payload())

        assert created.status_code == 201
        body = created.json()
        assert body["message"] == "Vessel created successfully"
        vessel = body["vessel"]
        assert vessel["vesselName"] == "MSC X"
        assert vessel["ETA"].startswith("2024-01-01T00:00:00")
        assert vessel["status"] == "DEPARTED"
        assert set(vessel) == {
            "id", "vesselName", "voyageNo", "country", "portName",
            "ETA", "ETD", "createdAt", "updatedAt", "status",
        }

        found = user_client.get("/api/vessels", params={"vesselName": "MSC"}).json()
        assert [v["id"] for v in found["data"]] == [vessel["id"]]

        missing = user_client.get("/api/vessels", params={"vesselName": "QQQ"}).json()
        assert missing["data"] == []
        assert missing["pagination"]["total"] == 0

    def test_create_requires_login(self, client, vessel_payload):
        response = client.post("/api/vessels", json=vessel_payload())

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTHENTICATION_REQUIRED"

    def test_duplicate_is_conflict(self, user_client, vessel_payload):
        assert user_client.post("/api/vessels", json=vessel_payload()).status_code == 201

        response = user_client.post("/api/vessels", json=vessel_payload(country="Malta"))

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE_VESSEL"

    def test_timed_out_write_is_not_stored(self, user_client, vessel_payload, db, monkeypatch):
        monkeypatch.setattr(settings, "request_timeout_seconds", 0)

        response = user_client.post("/api/vessels", json=vessel_payload())

        assert response.status_code == 504
        assert response.json()["error"]["code"] == "REQUEST_TIMEOUT"
        assert db.query(Vessel).count() == 0

    def test_etd_before_eta_points_at_etd(self, user_client, vessel_payload):
        response = user_client.post("/api/vessels", json=vessel_payload(ETD="2023-12-31T00:00:00Z"))

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["field"] == "ETD"
        assert error["details"][0]["location"] == "body"

    def test_missing_fields_are_listed(self, user_client):
        response = user_client.post("/api/vessels", json={"vesselName": "MSC X"})

        assert response.status_code == 400
        fields = {d["field"] for d in response.json()["error"]["details"]}
        assert {"voyageNo", "country", "portName", "ETA", "ETD"} <= fields

    def test_list_is_public_and_paginated(self, client, make_vessel):
        for n in range(12):
            make_vessel(f"VESSEL {n:02d}", f"V{n:02d}")

        body = client.get("/api/vessels", params={"page": 2, "limit": 5, "sort": "vesselName"}).json()

        assert [v["vesselName"] for v in body["data"]] == [f"VESSEL {n:02d}" for n in range(5, 10)]
        assert body["pagination"] == {
            "page": 2, "limit": 5, "total": 12, "totalPages": 3,
            "hasNextPage": True, "hasPreviousPage": True,
        }
        assert body["sort"] == "vesselName"

    @pytest.mark.parametrize(
        "params",
        [{"sort": "status"}, {"limit": "500"}, {"page": "0"}, {"unknown": "1"}, {"fromETA": "yesterday"}],
    )
    def test_bad_query_is_validation_error(self, client, params):
        response = client.get("/api/vessels", params=params)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_cache_buster_is_ignored(self, client, make_vessel):
        make_vessel()

        response = client.get("/api/vessels", params={"_t": "1712345678"})

        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 1


@pytest.mark.integration
class TestSingleVessel:
    """Tests for GET / PUT / DELETE /api/vessels/{id}."""

    def test_get_is_public(self, client, make_vessel):
        vessel = make_vessel()

        response = client.get(f"/api/vessels/{vessel.id}")

        assert response.status_code == 200
        assert response.json()["vessel"]["id"] == vessel.id

    def test_malformed_id(self, client):
        response = client.get("/api/vessels/not-an-id")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_ID_FORMAT"

    def test_unknown_id(self, client):
        response = client.get(f"/api/vessels/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "VESSEL_NOT_FOUND"

    def test_partial_update(self, user_client, make_vessel):
        vessel = make_vessel()

        response = user_client.put(f"/api/vessels/{vessel.id}", json={"portName": "Port of Hull"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Vessel updated successfully"
        assert body["vessel"]["portName"] == "Port of Hull"
        assert body["vessel"]["vesselName"] == "MSC X"

    def test_update_etd_against_stored_eta(self, user_client, make_vessel):
        vessel = make_vessel()

        response = user_client.put(f"/api/vessels/{vessel.id}", json={"ETD": "2023-06-01T00:00:00Z"})

        assert response.status_code == 400
        assert response.json()["error"]["details"][0]["field"] == "ETD"

    def test_update_requires_login(self, client, make_vessel):
        vessel = make_vessel()

        response = client.put(f"/api/vessels/{vessel.id}", json={"country": "Malta"})

        assert response.status_code == 401

    def test_update_rejects_unknown_keys(self, user_client, make_vessel):
        vessel = make_vessel()

        response = user_client.put(f"/api/vessels/{vessel.id}", json={"status": "DEPARTED"})

        assert response.status_code == 400

    def test_delete_twice(self, user_client, make_vessel):
        vessel = make_vessel()

        first = user_client.delete(f"/api/vessels/{vessel.id}")
        second = user_client.delete(f"/api/vessels/{vessel.id}")

        assert first.status_code == 200
        assert first.json()["message"] == "Vessel deleted successfully"
        assert first.json()["vessel"]["id"] == vessel.id
        assert second.status_code == 404
        assert second.json()["error"]["code"] == "VESSEL_NOT_FOUND"


@pytest.mark.integration
class TestBulkAndStats:
    """Tests for DELETE /api/vessels/bulk and GET /api/vessels/stats."""

    def test_bulk_with_bad_id_deletes_nothing(self, admin_client, make_vessel):
        vessel = make_vessel()

        response = admin_client.request(
            "DELETE", "/api/vessels/bulk", json={"ids": [vessel.id, "not-an-id"]}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_ID_FORMAT"
        assert admin_client.get(f"/api/vessels/{vessel.id}").status_code == 200

    def test_bulk_delete(self, admin_client, make_vessel):
        ids = [make_vessel(f"VESSEL {n}", f"V{n}").id for n in range(3)]

        response = admin_client.request("DELETE", "/api/vessels/bulk", json={"ids": ids[:2]})

        assert response.status_code == 200
        assert response.json() == {"message": "Successfully deleted 2 vessels", "deletedCount": 2}
        assert admin_client.get("/api/vessels").json()["pagination"]["total"] == 1

    def test_bulk_requires_ids(self, admin_client):
        response = admin_client.request("DELETE", "/api/vessels/bulk", json={"ids": []})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_stats_shape(self, user_client, make_vessel):
        make_vessel()

        response = user_client.get("/api/vessels/stats")

        assert response.status_code == 200
        body = response.json()
        assert body["statistics"]["totalVessels"] == 1
        assert set(body["statistics"]) == {
            "totalVessels", "totalCountries", "totalPorts", "avgETADays", "avgETDDays",
        }
        assert body["upcomingArrivals"] == []

    def test_stats_requires_login(self, client):
        assert client.get("/api/vessels/stats").status_code == 401
