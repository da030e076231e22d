import os
import tempfile
import itertools
from datetime import datetime, timedelta

import pytest

# Point the app at a throwaway SQLite file before config is imported
_TMP_DIR = tempfile.mkdtemp(prefix="handyman-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ.pop("VERCEL", None)
os.environ.pop("VERCEL_ENV", None)

from fastapi.testclient import TestClient  # noqa: E402

from config import Base, engine, SessionLocal  # noqa: E402
from main import app  # noqa: E402
from models.bookings import BookingCreate  # noqa: E402
from repository.users import UserRepo, SessionRepo, JWTRepo  # noqa: E402
from tables.enums import Role, TechnicianStatus  # noqa: E402
from lifecycle.intake import create_booking  # noqa: E402
from lifecycle.pricing import seed_catalog  # noqa: E402

_counter = itertools.count(1)


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    seed_catalog(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    return TestClient(app)


def _make_user(db, role, name=None, specialties=None):
    n = next(_counter)
    return UserRepo.create(
        db,
        username=f"{role.value.lower()}{n}",
        password="secret123",
        role=role,
        email=f"{role.value.lower()}{n}@example.com",
        phone_number=f"3{n:07d}",
        name=name or f"{role.value.title()} {n}",
        specialties=specialties
    )


@pytest.fixture
def make_user(db):
    def factory(role=Role.CLIENT, name=None):
        return _make_user(db, role, name)
    return factory


@pytest.fixture
def make_technician(db):
    """Technician user plus profile, ACTIVE unless told otherwise."""
    def factory(status=TechnicianStatus.ACTIVE, specialties=None, name=None):
        user = _make_user(db, Role.TECHNICIAN, name, specialties or ["Plumbing"])
        profile = user.technician_profile
        profile.status = status
        db.commit()
        db.refresh(profile)
        return user, profile
    return factory


@pytest.fixture
def make_booking(db):
    def factory(client_user, days_ahead=3, service_id="plumbing", pricing_option_id="plumbing-emergency"):
        data = BookingCreate(
            service_id=service_id,
            pricing_option_id=pricing_option_id,
            scheduled_date=datetime.utcnow().date() + timedelta(days=days_ahead),
            time_slot="10:00 - 11:00",
            address={
                "type": "VILLA",
                "area": "Saar",
                "block": "527",
                "road": "2721",
                "building": "14",
            },
            contact={
                "first_name": "Fatima",
                "last_name": "Ali",
                "email": "fatima@example.com",
                "phone": "+97333334444",
            },
            details={"notes": "Leaking kitchen tap"}
        )
        return create_booking(db, client_user.id, data)
    return factory


@pytest.fixture
def auth_header(db):
    def factory(user):
        session = SessionRepo.create_session(db, user.id, "pytest", "127.0.0.1")
        return {"Authorization": f"Bearer {JWTRepo.generate_session_token(session.session_token)}"}
    return factory
