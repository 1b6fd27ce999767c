import base64
import re

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import utils.storage
from models.booking import Booking
from models.user import Role

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()


def test_signature_key_format():
    key = utils.storage.signature_key("abc")

    assert re.fullmatch(r"signatures/abc_\d{13}_[0-9a-f]{6}\.png", key)


def test_sign_stores_image_and_marks_booking(client, db, make_user, make_booking, auth_headers, storage_dir):
    user = make_user(Role.SALES_PERSON)
    booking = make_booking(sales_person_id=user.id)

    resp = client.post(
        f"/api/bookings/{booking.id}/consent-form-signature",
        json={"signature": DATA_URL},
        headers=auth_headers(user),
    )

    assert resp.status_code == 200
    saved = resp.json()["data"]["booking"]
    assert saved["consentFormSigned"] is True
    assert saved["signaturePath"].startswith(f"signatures/{booking.id}_")
    assert (storage_dir / saved["signaturePath"]).read_bytes() == PNG_BYTES


def test_resign_replaces_old_file(client, make_user, make_booking, auth_headers, storage_dir):
    user = make_user(Role.ADMIN)
    booking = make_booking()
    headers = auth_headers(user)
    url = f"/api/bookings/{booking.id}/consent-form-signature"

    first = client.post(url, json={"signature": DATA_URL}, headers=headers).json()["data"]["booking"]["signaturePath"]
    second = client.post(url, json={"signature": DATA_URL}, headers=headers).json()["data"]["booking"]["signaturePath"]

    assert first != second
    assert not (storage_dir / first).exists()
    assert (storage_dir / second).exists()


def test_resign_survives_missing_old_file(client, make_user, make_booking, auth_headers):
    user = make_user(Role.ADMIN)
    booking = make_booking(signature_path="signatures/gone.png", consent_form_signed=True)

    resp = client.post(
        f"/api/bookings/{booking.id}/consent-form-signature",
        json={"signature": DATA_URL},
        headers=auth_headers(user),
    )

    assert resp.status_code == 200
    assert resp.json()["data"]["booking"]["signaturePath"] != "signatures/gone.png"


@pytest.mark.parametrize(
    "payload, message",
    [
        ({}, "Signature data is required"),
        ({"signature": ""}, "Signature data is required"),
        ({"signature": "data:image/png;base64,@@not-base64@@"}, "Invalid signature image data"),
    ],
)
def test_rejects_bad_payload(client, make_user, make_booking, auth_headers, payload, message):
    user = make_user(Role.ADMIN)
    booking = make_booking()

    resp = client.post(
        f"/api/bookings/{booking.id}/consent-form-signature", json=payload, headers=auth_headers(user)
    )

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": message}


def test_missing_booking(client, make_user, auth_headers):
    resp = client.post(
        "/api/bookings/missing/consent-form-signature",
        json={"signature": DATA_URL},
        headers=auth_headers(make_user(Role.ADMIN)),
    )

    assert resp.status_code == 404
    assert resp.json()["message"] == "Booking not found"


def test_write_failure_leaves_booking_unchanged(client, db, make_user, make_booking, auth_headers, monkeypatch):
    user = make_user(Role.ADMIN)
    booking = make_booking()

    def _fail(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr("routers.bookings.save_signature_image", _fail)

    resp = client.post(
        f"/api/bookings/{booking.id}/consent-form-signature",
        json={"signature": DATA_URL},
        headers=auth_headers(user),
    )

    assert resp.status_code == 500
    assert resp.json()["message"] == "Failed to save signature image"
    db.expire_all()
    stored = db.query(Booking).filter(Booking.id == booking.id).one()
    assert stored.signature_path is None
    assert stored.consent_form_signed is False


def test_delete_key_is_noop_for_missing_file(storage_dir):
    assert utils.storage.delete_key("signatures/nothing.png") is False
    assert utils.storage.delete_key("") is False


def test_failed_commit_keeps_previous_signature(client, db, make_user, make_booking, auth_headers, storage_dir, monkeypatch):
    user = make_user(Role.ADMIN)
    booking = make_booking()
    headers = auth_headers(user)
    url = f"/api/bookings/{booking.id}/consent-form-signature"
    first = client.post(url, json={"signature": DATA_URL}, headers=headers).json()["data"]["booking"]["signaturePath"]

    def _fail(self):
        raise SQLAlchemyError("database is locked")

    with monkeypatch.context() as m:
        m.setattr(Session, "commit", _fail)
        resp = client.post(url, json={"signature": DATA_URL}, headers=headers)

    assert resp.status_code == 500
    assert resp.json()["message"] == "Failed to save signature"
    db.expire_all()
    stored = db.query(Booking).filter(Booking.id == booking.id).one()
    assert stored.signature_path == first
    # The referenced file survives and the unreferenced new one is gone
    assert (storage_dir / first).exists()
    assert [p.name for p in (storage_dir / "signatures").iterdir()] == [first.split("/")[1]]
