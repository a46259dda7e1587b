"""
Integration tests for the portal resource endpoints.

Tests:
- Health endpoints
- Users, buildings, locks and gateways CRUD and list filters
- Credentials: generation, masking, toggling, validation errors
- Schedules: validation, listing labels, dry-run evaluation
- Access check, activity log, reports and CSV export
- Dashboard counts and alerts
"""

import pytest


# ============================================================================
# Helpers
# ============================================================================

def make_user(client, **overrides):
    body = {"full_name": "Jane Resident", "email": "jane@example.com", "apartment_unit": "4B"}
    body.update(overrides)
    response = client.post("/api/users", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def make_lock(client, **overrides):
    body = {"lock_id": "1001", "lock_name": "Unit 4B Door", "battery_level": 80}
    body.update(overrides)
    response = client.post("/api/locks", json=body)
    assert response.status_code == 201, response.text
    return response.json()


# ============================================================================
# Health
# ============================================================================

class TestHealth:

    def test_api_health_checks_database(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["dataAvailable"] is True

    def test_legacy_health(self, client):
        assert client.get("/health").json() == {"status": "ok", "dataAvailable": True}


# ============================================================================
# Users and buildings
# ============================================================================

class TestUsers:

    def test_create_normalizes_email(self, client):
        user = make_user(client, email="  Jane@Example.COM ")
        assert user["email"] == "jane@example.com"
        assert user["status"] == "active"
        assert user["access_level"] == "resident"

    def test_duplicate_email_is_conflict(self, client):
        make_user(client)
        response = client.post("/api/users", json={"email": "jane@example.com"})
        assert response.status_code == 409
        assert response.json()["error"] == "ConflictError"

    def test_list_filters_and_counts(self, client):
        make_user(client, email="a@example.com", full_name="Alice", status="active")
        make_user(client, email="b@example.com", full_name="Bob", status="suspended")
        make_user(client, email="c@example.com", full_name="Carol", access_level="property_manager")

        body = client.get("/api/users", params={"status": "active"}).json()
        assert body["total"] == 3
        assert body["count"] == 2

        body = client.get("/api/users", params={"search": "BOB"}).json()
        assert [u["full_name"] for u in body["items"]] == ["Bob"]

    def test_update_and_delete(self, client):
        user = make_user(client)
        updated = client.put(f"/api/users/{user['id']}", json={"status": "inactive"}).json()
        assert updated["status"] == "inactive"
        assert updated["full_name"] == "Jane Resident"

        assert client.delete(f"/api/users/{user['id']}").status_code == 204
        missing = client.get(f"/api/users/{user['id']}")
        assert missing.status_code == 404
        assert missing.json()["error"] == "EntityNotFoundError"


class TestBuildingsAndPermissions:

    def test_building_crud(self, client):
        building = client.post("/api/buildings", json={"name": "Tower A", "total_units": 40}).json()
        client.put(f"/api/buildings/{building['id']}", json={"address": "1 Main St"})
        listed = client.get("/api/buildings", params={"search": "main st"}).json()
        assert listed["count"] == 1
        assert client.delete(f"/api/buildings/{building['id']}").status_code == 204

    def test_permission_requires_existing_user(self, client):
        lock = make_lock(client)
        response = client.post("/api/permissions", json={"user_id": "nope", "lock_id": lock["id"]})
        assert response.status_code == 422

    def test_permission_crud(self, client):
        user, lock = make_user(client), make_lock(client)
        permission = client.post("/api/permissions", json={"user_id": user["id"], "lock_id": lock["id"]}).json()
        client.put(f"/api/permissions/{permission['id']}", json={"status": "inactive"})
        assert client.get("/api/permissions", params={"status": "inactive"}).json()["count"] == 1


# ============================================================================
# Locks and gateways
# ============================================================================

class TestLocks:

    def test_battery_band_and_filter(self, client):
        make_lock(client, lock_id="1", lock_name="Low", battery_level=10)
        make_lock(client, lock_id="2", lock_name="Mid", battery_level=45)
        make_lock(client, lock_id="3", lock_name="Unknown", battery_level=None)

        body = client.get("/api/locks", params={"battery": "low"}).json()
        assert [lock["lock_name"] for lock in body["items"]] == ["Low"]
        assert body["items"][0]["battery_band"] == "low"

    def test_unknown_gateway_is_rejected(self, client):
        response = client.post("/api/locks", json={"lock_id": "9", "lock_name": "X", "gateway_id": "missing"})
        assert response.status_code == 422

    def test_clear_all_requires_confirmation(self, client):
        make_lock(client, lock_id="1")
        make_lock(client, lock_id="2")

        assert client.delete("/api/locks").status_code == 422
        assert client.get("/api/locks").json()["total"] == 2

        response = client.delete("/api/locks", params={"confirm": "true"})
        assert response.json() == {"removed": 2}
        assert client.get("/api/locks").json()["total"] == 0

    def test_gateway_lock_counts(self, client):
        gateway = client.post("/api/gateways", json={"gateway_name": "G1", "status": "online"}).json()
        make_lock(client, lock_id="1", gateway_id=gateway["id"])
        make_lock(client, lock_id="2", gateway_id=gateway["id"])
        make_lock(client, lock_id="3")

        items = client.get("/api/gateways").json()["items"]
        assert items[0]["lock_count"] == 2


# ============================================================================
# Credentials
# ============================================================================

class TestCredentials:

    @pytest.fixture
    def pair(self, client):
        return make_user(client), make_lock(client)

    def test_pin_is_generated_and_masked(self, client, pair):
        user, lock = pair
        created = client.post("/api/credentials", json={
            "name": "Resident PIN", "user_id": user["id"], "lock_id": lock["id"], "credential_type": "pin",
        }).json()
        assert created["credential_value"].isdigit()
        assert len(created["credential_value"]) == 6

        item = client.get("/api/credentials").json()["items"][0]
        assert item["display_value"] == "••••"
        assert item["user_name"] == "Jane Resident"
        assert item["lock_name"] == "Unit 4B Door"
        assert item["effective_status"] == "active"

    def test_expired_credential_is_projected(self, client, pair):
        user, lock = pair
        client.post("/api/credentials", json={
            "name": "Old fob", "user_id": user["id"], "lock_id": lock["id"],
            "credential_type": "rfid_fob", "credential_value": "AB12CD34",
            "valid_from": "2023-01-01T00:00:00Z", "valid_until": "2024-01-01T00:00:00Z",
        })
        item = client.get("/api/credentials").json()["items"][0]
        assert item["status"] == "active"
        assert item["effective_status"] == "expired"
        assert item["display_value"] == "AB12CD34"

    def test_reversed_validity_window_is_rejected(self, client, pair):
        user, lock = pair
        response = client.post("/api/credentials", json={
            "name": "Bad", "user_id": user["id"], "lock_id": lock["id"], "credential_value": "1234",
            "valid_from": "2024-02-01T00:00:00Z", "valid_until": "2024-01-01T00:00:00Z",
        })
        assert response.status_code == 422
        assert response.json()["error"] == "ValidationFailedError"

    def test_toggle_status(self, client, pair):
        user, lock = pair
        created = client.post("/api/credentials", json={
            "name": "PIN", "user_id": user["id"], "lock_id": lock["id"], "credential_value": "2468",
        }).json()
        toggled = client.post(f"/api/credentials/{created['id']}/toggle").json()
        assert toggled["status"] == "inactive"
        toggled = client.post(f"/api/credentials/{created['id']}/toggle").json()
        assert toggled["status"] == "active"

    def test_orphaned_references_render_unknown(self, client, pair):
        user, lock = pair
        client.post("/api/credentials", json={
            "name": "PIN", "user_id": user["id"], "lock_id": lock["id"], "credential_value": "2468",
        })
        client.delete(f"/api/users/{user['id']}")
        client.delete(f"/api/locks/{lock['id']}")
        item = client.get("/api/credentials").json()["items"][0]
        assert item["user_name"] == "Unknown User"
        assert item["lock_name"] == "Unknown Lock"

    def test_type_filter(self, client, pair):
        user, lock = pair
        for value in ("1111", "2222", "3333"):
            client.post("/api/credentials", json={
                "name": "PIN", "user_id": user["id"], "lock_id": lock["id"], "credential_value": value,
            })
        for value in ("AAAA0001", "AAAA0002"):
            client.post("/api/credentials", json={
                "name": "Card", "user_id": user["id"], "lock_id": lock["id"],
                "credential_type": "rfid_card", "credential_value": value,
            })
        body = client.get("/api/credentials", params={"credential_type": "pin", "status": "all"}).json()
        assert body["count"] == 3
        assert {c["credential_type"] for c in body["items"]} == {"pin"}

    def test_generate_value(self, client):
        body = client.post("/api/credentials/generate-value", json={"credential_type": "rfid_card"}).json()
        assert len(body["credential_value"]) == 8
        response = client.post("/api/credentials/generate-value", json={"credential_type": "fingerprint"})
        assert response.status_code == 422


# ============================================================================
# Schedules and access checks
# ============================================================================

class TestSchedules:

    @pytest.fixture
    def pair(self, client):
        return make_user(client), make_lock(client)

    def test_default_slot_and_all_days_label(self, client, pair):
        user, lock = pair
        created = client.post("/api/schedules", json={
            "name": "Anytime weekdays", "user_id": user["id"], "lock_id": lock["id"],
        }).json()
        assert created["time_slots"] == [{"start_time": "09:00", "end_time": "17:00"}]
        item = client.get("/api/schedules").json()["items"][0]
        assert item["days_label"] == "All days"

    def test_days_label_is_ordered(self, client, pair):
        user, lock = pair
        client.post("/api/schedules", json={
            "name": "MW", "user_id": user["id"], "lock_id": lock["id"],
            "days_of_week": ["wednesday", "monday"],
        })
        assert client.get("/api/schedules").json()["items"][0]["days_label"] == "Monday, Wednesday"

    def test_one_time_needs_dates(self, client, pair):
        user, lock = pair
        response = client.post("/api/schedules", json={
            "name": "Visit", "user_id": user["id"], "lock_id": lock["id"], "schedule_type": "one_time",
        })
        assert response.status_code == 422

    def test_reversed_slot_is_rejected(self, client, pair):
        user, lock = pair
        response = client.post("/api/schedules", json={
            "name": "Bad", "user_id": user["id"], "lock_id": lock["id"],
            "time_slots": [{"start_time": "18:00", "end_time": "08:00"}],
        })
        assert response.status_code == 422

    def test_malformed_slot_is_rejected(self, client, pair):
        user, lock = pair
        response = client.post("/api/schedules", json={
            "name": "Bad", "user_id": user["id"], "lock_id": lock["id"],
            "time_slots": [{"start_time": "9am", "end_time": "17:00"}],
        })
        assert response.status_code == 422

    def test_update_is_validated_against_stored_fields(self, client, pair):
        user, lock = pair
        created = client.post("/api/schedules", json={
            "name": "Visit", "user_id": user["id"], "lock_id": lock["id"], "schedule_type": "temporary",
            "start_date": "2024-03-01", "end_date": "2024-03-10",
        }).json()
        response = client.put(f"/api/schedules/{created['id']}", json={"end_date": "2024-02-01"})
        assert response.status_code == 422

    def test_evaluate_dry_run(self, client, pair):
        user, lock = pair
        created = client.post("/api/schedules", json={
            "name": "MW", "user_id": user["id"], "lock_id": lock["id"],
            "days_of_week": ["monday", "wednesday"],
        }).json()
        url = f"/api/schedules/{created['id']}/evaluate"

        assert client.get(url, params={"at": "2024-03-04T10:00:00"}).json()["granted"] is True
        denied = client.get(url, params={"at": "2024-03-05T10:00:00"}).json()
        assert denied["granted"] is False
        assert denied["reason"] == "Not scheduled on tuesday"
        assert client.get(f"/api/schedules/{created['id']}").json()["use_count"] == 0

    def test_evaluate_reads_offsets_on_portal_clock(self, client, pair):
        user, lock = pair
        created = client.post("/api/schedules", json={
            "name": "Mondays", "user_id": user["id"], "lock_id": lock["id"],
            "days_of_week": ["monday"],
        }).json()
        url = f"/api/schedules/{created['id']}/evaluate"

        # Tuesday 08:00 in Tokyo is still Monday on the portal's UTC clock
        body = client.get(url, params={"at": "2024-03-05T08:00:00+09:00"}).json()

        assert body["granted"] is True
        assert body["evaluated_at"].startswith("2024-03-04T23:00:00")


class TestAccessCheck:

    def test_grant_then_deny_is_audited(self, client):
        user, lock = make_user(client), make_lock(client)
        client.post("/api/schedules", json={
            "name": "MW", "user_id": user["id"], "lock_id": lock["id"],
            "days_of_week": ["monday", "wednesday"],
        })

        granted = client.post("/api/access/check", json={
            "user_id": user["id"], "lock_id": lock["id"], "at": "2024-03-04T10:00:00",
        }).json()
        denied = client.post("/api/access/check", json={
            "user_id": user["id"], "lock_id": lock["id"], "at": "2024-03-04T18:00:00",
        }).json()

        assert granted["granted"] is True
        assert denied["granted"] is False
        assert denied["reason"] == "18:00 is outside every time slot"

        report = client.get("/api/reports/activity").json()
        assert report["count"] == 2
        types = {item["activity_type"] for item in report["items"]}
        assert types == {"unlock", "failed_attempt"}
        assert all(item["user_name"] == "Jane Resident" for item in report["items"])


# ============================================================================
# Activity, reports and dashboard
# ============================================================================

class TestReports:

    def seed(self, client, lock):
        events = [
            {"activity_type": "unlock", "lock_id": lock["id"], "timestamp": "2024-03-01T09:00:00", "success": True},
            {"activity_type": "failed_attempt", "lock_id": lock["id"], "timestamp": "2024-03-02T09:00:00", "success": False},
            {"activity_type": "battery_low", "lock_id": "gone", "timestamp": "2024-03-03T09:00:00", "success": True},
        ]
        for event in events:
            assert client.post("/api/activity", json=event).status_code == 201

    def test_report_filters(self, client):
        lock = make_lock(client)
        self.seed(client, lock)

        body = client.get("/api/reports/activity", params={"from": "2024-03-02", "to": "2024-03-03"}).json()
        assert body["total"] == 3
        assert body["count"] == 2

        failed = client.get("/api/reports/activity", params={"outcome": "failed"}).json()
        assert [item["activity_type"] for item in failed["items"]] == ["failed_attempt"]

    def test_report_names_fall_back(self, client):
        lock = make_lock(client)
        self.seed(client, lock)
        newest = client.get("/api/reports/activity").json()["items"][0]
        assert newest["activity_type"] == "battery_low"
        assert newest["user_name"] == "System/Unknown"
        assert newest["lock_name"] == "Unknown Lock"

    def test_csv_export(self, client):
        lock = make_lock(client)
        self.seed(client, lock)
        response = client.get("/api/reports/activity.csv", params={"event_type": "unlock"})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.strip().splitlines()
        assert lines[0] == "timestamp,activity_type,user_name,lock_name,method,success,details"
        assert len(lines) == 2
        assert "Unit 4B Door" in lines[1]

    def test_activity_limit(self, client):
        lock = make_lock(client)
        self.seed(client, lock)
        assert client.get("/api/activity", params={"limit": 1}).json()["count"] == 1


class TestDashboard:

    def test_counts_and_alerts(self, client):
        user = make_user(client)
        low = make_lock(client, lock_id="1", battery_level=5)
        make_lock(client, lock_id="2", status="offline")
        client.post("/api/buildings", json={"name": "Tower A"})
        client.post("/api/permissions", json={"user_id": user["id"], "lock_id": low["id"]})
        client.post("/api/permissions", json={"user_id": user["id"], "lock_id": low["id"], "status": "inactive"})

        body = client.get("/api/dashboard").json()

        assert body["stats"] == {"users": 1, "buildings": 1, "locks": 2, "active_permissions": 1}
        alerts = {alert["title"]: alert for alert in body["alerts"]}
        assert alerts["Low Battery Alert"]["type"] == "warning"
        assert alerts["Low Battery Alert"]["count"] == 1
        assert alerts["Offline Locks"]["type"] == "error"

    def test_recent_activity_is_capped(self, client):
        lock = make_lock(client)
        for hour in range(12):
            client.post("/api/activity", json={
                "activity_type": "unlock", "lock_id": lock["id"], "timestamp": f"2024-03-01T{hour:02d}:00:00",
            })
        recent = client.get("/api/dashboard").json()["recent_activity"]
        assert len(recent) == 10
        assert recent[0]["timestamp"].startswith("2024-03-01T11:00")
