from datetime import datetime, timedelta, timezone

import jwt
import pytest

from core.auth import create_access_token, decode_access_token, hash_password, verify_password
from core.config import JWT_SECRET, JWT_ISSUER
from core.errors import Unauthorized
from core.permissions import (
    is_allowed, BOOKINGS_CREATE, BOOKINGS_LIST_ALL, BOOKINGS_VIEW_ANY, COLLECTION_DATES_VIEW, USERS_MANAGE,
)
from models.user import User, Role


def test_password_hashing():
    hashed = hash_password("secret123")

    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret123", "not-a-bcrypt-hash")


def test_login_and_me(client, make_user):
    user = make_user(Role.STUDIO, name="studio1", password="letmein")

    resp = client.post("/api/auth/login", json={"username": " studio1 ", "password": "letmein"})

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["user"]["id"] == user.id
    assert "passwordHash" not in data["user"]
    claims = decode_access_token(data["token"])
    assert claims.id == user.id
    assert claims.role == Role.STUDIO

    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["name"] == "studio1"


@pytest.mark.parametrize("username, password", [("studio1", "nope"), ("nobody", "letmein")])
def test_login_rejects_bad_credentials(client, make_user, username, password):
    make_user(Role.STUDIO, name="studio1", password="letmein")

    resp = client.post("/api/auth/login", json={"username": username, "password": password})

    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Invalid username or password"}


def test_token_issued_west_of_utc_is_accepted(local_timezone):
    local_timezone("America/Los_Angeles")

    claims = decode_access_token(create_access_token("u1", "ADMIN"))

    assert claims.id == "u1"
    assert claims.role == Role.ADMIN


def test_expired_token():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "u1", "role": "ADMIN", "iss": JWT_ISSUER, "exp": int((now - timedelta(hours=1)).timestamp())},
        JWT_SECRET,
        algorithm="HS256",
    )

    with pytest.raises(Unauthorized) as exc:
        decode_access_token(token)
    assert exc.value.message == "Token has expired"


def test_tampered_token_is_rejected(client):
    token = jwt.encode({"sub": "u1", "role": "ADMIN", "iss": JWT_ISSUER}, "other-secret", algorithm="HS256")

    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid token"


def test_unknown_role_is_rejected():
    token = jwt.encode({"sub": "u1", "role": "GUEST", "iss": JWT_ISSUER}, JWT_SECRET, algorithm="HS256")

    with pytest.raises(Unauthorized):
        decode_access_token(token)


@pytest.mark.parametrize(
    "role, action, allowed",
    [
        (Role.ADMIN, USERS_MANAGE, True),
        (Role.SALES_PERSON, BOOKINGS_CREATE, True),
        (Role.SALES_PERSON, BOOKINGS_LIST_ALL, False),
        (Role.STUDIO, BOOKINGS_CREATE, False),
        (Role.STUDIO, COLLECTION_DATES_VIEW, True),
        (Role.CUSTOMER_SERVICE, BOOKINGS_VIEW_ANY, True),
        (Role.SALES, COLLECTION_DATES_VIEW, False),
        ("GUEST", BOOKINGS_CREATE, False),
    ],
)
def test_role_capabilities(role, action, allowed):
    assert is_allowed(role, action) is allowed


@pytest.mark.parametrize(
    "kind, role",
    [
        ("sales-person", Role.SALES_PERSON),
        ("customer-care", Role.CUSTOMER_SERVICE),
        ("studio-assistant", Role.STUDIO),
        ("sales", Role.SALES),
    ],
)
def test_admin_creates_staff(client, db, make_user, auth_headers, kind, role):
    headers = auth_headers(make_user(Role.ADMIN))

    resp = client.post(f"/api/users/{kind}", json={"name": "  New Person ", "password": "secret1"}, headers=headers)

    assert resp.status_code == 201
    created = resp.json()["data"]["user"]
    assert created["name"] == "New Person"
    assert created["role"] == role.value

    stored = db.query(User).filter(User.id == created["id"]).one()
    assert verify_password("secret1", stored.password_hash)

    listed = client.get(f"/api/users/{kind}", headers=headers).json()["data"]["users"]
    assert [u["id"] for u in listed] == [created["id"]]


def test_staff_validation_and_conflicts(client, make_user, auth_headers):
    headers = auth_headers(make_user(Role.ADMIN, name="boss"))

    resp = client.post("/api/users/sales-person", json={"name": "Ali", "password": "123"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Password must be at least 6 characters"

    resp = client.post("/api/users/sales-person", json={"name": "boss", "password": "secret1"}, headers=headers)
    assert resp.status_code == 409
    assert resp.json()["message"] == "User with this name already exists"

    resp = client.get("/api/users/managers", headers=headers)
    assert resp.status_code == 404


def test_only_admin_manages_staff(client, make_user, auth_headers):
    headers = auth_headers(make_user(Role.CUSTOMER_SERVICE))

    resp = client.post("/api/users/sales-person", json={"name": "Ali", "password": "secret1"}, headers=headers)

    assert resp.status_code == 403
    assert resp.json()["message"] == "Only admin can create sales persons"


def test_delete_staff(client, make_user, auth_headers):
    headers = auth_headers(make_user(Role.ADMIN))
    sp = make_user(Role.SALES_PERSON)

    assert client.delete(f"/api/users/customer-care/{sp.id}", headers=headers).status_code == 404
    resp = client.delete(f"/api/users/sales-person/{sp.id}", headers=headers)

    assert resp.status_code == 200
    assert resp.json()["message"] == "Sales person deleted successfully"
