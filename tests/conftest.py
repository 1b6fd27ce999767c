import os
import tempfile
import time

# Configure before any application module is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["STORAGE_DIR"] = tempfile.mkdtemp(prefix="studio-bookings-")
os.environ["R2_ACCOUNT_ID"] = ""
os.environ["R2_ACCESS_KEY_ID"] = ""
os.environ["R2_SECRET_ACCESS_KEY"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from core.auth import create_access_token, hash_password  # noqa: E402
from core.database import Base, SessionLocal, engine, get_db, init_db  # noqa: E402
from main import app  # noqa: E402
from models.booking import Booking, BookingStatus, PaymentMethod, PhotoshootType  # noqa: E402
from models.location import Location  # noqa: E402
from models.user import User, Role  # noqa: E402
import utils.storage  # noqa: E402


@pytest.fixture(autouse=True)
def schema():
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def storage_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(utils.storage, "STORAGE_DIR", str(tmp_path))
    monkeypatch.setattr(utils.storage, "s3", None)
    return tmp_path


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    def _get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role=Role.SALES_PERSON, name=None, password="secret123", email=None):
        counter["n"] += 1
        user = User(
            name=name or f"{role.value.lower()}-{counter['n']}",
            email=email,
            password_hash=hash_password(password),
            role=role.value,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role, user.email)}"}

    return _headers


@pytest.fixture
def make_location(db):
    def _make(name="Garden Town Cantt Multan", sales_person_ids=None, dates=None, code=None):
        from utils.location_code import generate_location_code

        location = Location(
            name=name,
            code=code or generate_location_code(name),
            sales_person_ids=sales_person_ids or [],
            dates=dates or ["2024-05-01"],
        )
        db.add(location)
        db.commit()
        db.refresh(location)
        return location

    return _make


@pytest.fixture
def make_booking(db):
    def _make(**fields):
        values = {
            "customer_name": "Ayesha Khan",
            "phone_number": "07123456789",
            "photoshoot_type": PhotoshootType.FAMILY,
            "payment_method": PaymentMethod.CASH,
            "status": BookingStatus.BOOKED.value,
            "session_date": "2024-05-01",
            "session_time": "10:00",
        }
        values.update(fields)
        booking = Booking(**values)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _make


@pytest.fixture
def local_timezone(monkeypatch):
    """Switch the process timezone for one test (POSIX only)"""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")

    with monkeypatch.context() as m:
        def _set(name):
            m.setenv("TZ", name)
            time.tzset()

        yield _set
    time.tzset()
