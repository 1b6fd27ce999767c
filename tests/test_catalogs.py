import inspect

import pytest
from fastapi.routing import APIRoute

from main import app
from models.user import Role
from utils.validation import normalize_phone, is_valid_clock_time, has_complete_slot


def test_normalize_phone():
    assert normalize_phone("0712-345 6789") == ("07123456789", "")
    assert normalize_phone("(0712) 345-6789") == ("07123456789", "")
    assert normalize_phone("0712345678") == (None, "Phone number must be exactly 11 digits")
    assert normalize_phone(None, "Emergency phone number")[1] == "Emergency phone number must be exactly 11 digits"


@pytest.mark.parametrize("value, ok", [("09:30", True), ("23:59", True), ("24:00", False), ("9:30", False), (930, False)])
def test_clock_time(value, ok):
    assert is_valid_clock_time(value) is ok


def test_has_complete_slot():
    assert has_complete_slot("2024-01-01", "10:00", None, None)
    assert has_complete_slot(None, None, "2024-01-01", "10:00")
    assert not has_complete_slot("2024-01-01", None, None, "10:00")


@pytest.mark.parametrize(
    "prefix, key",
    [("/api/session-times", "sessionTime"), ("/api/special-request-times", "specialRequestTime")],
)
def test_slot_time_catalog(client, make_user, auth_headers, prefix, key):
    admin = auth_headers(make_user(Role.ADMIN))

    later = client.post(prefix, json={"time": "14:00"}, headers=admin)
    earlier = client.post(prefix, json={"time": " 09:30 "}, headers=admin)
    assert later.status_code == 201
    assert earlier.json()["data"][key]["time"] == "09:30"

    duplicate = client.post(prefix, json={"time": "14:00"}, headers=admin)
    assert duplicate.status_code == 400
    assert duplicate.json()["message"].endswith("already exists")

    invalid = client.post(prefix, json={"time": "25:00"}, headers=admin)
    assert invalid.status_code == 400
    assert invalid.json()["message"] == "Time must be in HH:MM format (24-hour)"

    # Any signed-in role can read the catalog, ordered by time
    listed = client.get(prefix, headers=auth_headers(make_user(Role.SALES_PERSON)))
    assert [row["time"] for row in listed.json()["data"][f"{key}s"]] == ["09:30", "14:00"]

    slot_id = later.json()["data"][key]["id"]
    clash = client.put(f"{prefix}/{slot_id}", json={"time": "09:30"}, headers=admin)
    assert clash.status_code == 400
    moved = client.put(f"{prefix}/{slot_id}", json={"time": "15:00"}, headers=admin)
    assert moved.json()["data"][key]["time"] == "15:00"

    assert client.delete(f"{prefix}/{slot_id}", headers=admin).status_code == 200
    assert client.delete(f"{prefix}/{slot_id}", headers=admin).status_code == 404


def test_slot_time_requires_admin(client, make_user, auth_headers):
    resp = client.post("/api/session-times", json={"time": "10:00"}, headers=auth_headers(make_user(Role.STUDIO)))

    assert resp.status_code == 403
    assert resp.json()["message"] == "Only admin can create session times"


def test_collection_dates_flow(client, make_user, make_location, auth_headers):
    admin = auth_headers(make_user(Role.ADMIN))
    location = make_location("City Center")

    resp = client.post(
        "/api/collection-dates",
        json={"locationId": location.id, "dates": ["2024-06-02", "2024-06-01"]},
        headers=admin,
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["created"] == 2

    # Existing dates are skipped, not rejected
    resp = client.post(
        "/api/collection-dates",
        json={"locationId": location.id, "dates": ["2024-06-01", "2024-06-03"]},
        headers=admin,
    )
    assert resp.json()["data"]["created"] == 1
    assert resp.json()["message"] == "Successfully created 1 collection date(s)"
    assert [d["date"] for d in resp.json()["data"]["collectionDates"]] == ["2024-06-01", "2024-06-02", "2024-06-03"]

    studio = auth_headers(make_user(Role.STUDIO))
    grouped = client.get("/api/collection-dates", params={"locationId": location.id}, headers=studio)
    assert grouped.json()["data"]["collectionDates"] == [
        {"locationId": location.id, "locationName": "City Center", "dates": ["2024-06-01", "2024-06-02", "2024-06-03"]}
    ]

    replaced = client.put(f"/api/collection-dates/{location.id}", json={"dates": ["2024-07-01"]}, headers=admin)
    assert replaced.json()["data"]["collectionDates"] == ["2024-07-01"]

    assert client.delete(f"/api/collection-dates/{location.id}", headers=admin).status_code == 200
    grouped = client.get("/api/collection-dates", headers=studio)
    assert grouped.json()["data"]["collectionDates"] == []


def test_collection_dates_validation(client, make_user, make_location, auth_headers):
    admin = auth_headers(make_user(Role.ADMIN))
    location = make_location()

    resp = client.post("/api/collection-dates", json={"locationId": location.id, "dates": []}, headers=admin)
    assert resp.json()["message"] == "At least one date must be provided"

    resp = client.post("/api/collection-dates", json={"locationId": location.id, "dates": ["June 1"]}, headers=admin)
    assert resp.status_code == 400

    resp = client.post("/api/collection-dates", json={"locationId": "missing", "dates": ["2024-06-01"]}, headers=admin)
    assert resp.status_code == 404

    resp = client.get("/api/collection-dates", headers=auth_headers(make_user(Role.SALES_PERSON)))
    assert resp.status_code == 403


def test_consent_form_settings(client, make_user, auth_headers):
    viewer = auth_headers(make_user(Role.SALES_PERSON))
    admin = auth_headers(make_user(Role.ADMIN))

    default = client.get("/api/settings/consent-form", headers=viewer).json()["data"]["consentForm"]
    assert len(default["paragraphs"]) == 4
    assert default["permissionText"]

    resp = client.put(
        "/api/settings/consent-form",
        json={"paragraphs": ["  First  ", "", "Second"], "permissionText": " Yes "},
        headers=admin,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["consentForm"] == {"paragraphs": ["First", "Second"], "permissionText": "Yes"}

    saved = client.get("/api/settings/consent-form", headers=viewer).json()["data"]["consentForm"]
    assert saved["paragraphs"] == ["First", "Second"]

    assert client.put(
        "/api/settings/consent-form", json={"paragraphs": ["x"], "permissionText": "y"}, headers=viewer
    ).status_code == 403
    assert client.put(
        "/api/settings/consent-form", json={"paragraphs": [], "permissionText": "y"}, headers=admin
    ).json()["message"] == "Paragraphs are required"


def test_health_and_index(client):
    assert client.get("/health").json()["success"] is True
    assert "/api/bookings" in client.get("/api").json()["data"]["endpoints"]


def test_handlers_run_in_threadpool():
    # Blocking SQLAlchemy calls must not run on the event loop
    routes = [r for r in app.routes if isinstance(r, APIRoute)]
    assert routes
    for route in routes:
        assert not inspect.iscoroutinefunction(route.endpoint), route.path
