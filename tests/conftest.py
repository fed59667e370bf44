"""
Pytest fixtures. Settings are read at import time, so the scratch SQLite database and the signing
secret are put in the environment before anything imports laportal.
"""
import os
import tempfile

import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="laportal-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR}/laportal_test.db"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "10"
os.environ["ENV"] = "test"
os.environ.pop("STATIC_DIR", None)

PASSWORD = "correct-horse-1"


@pytest.fixture
def db():
    """Fresh tables per test; yields a session for arranging and inspecting rows."""
    from laportal.database import Base, SessionLocal, engine
    import laportal.models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    from fastapi.testclient import TestClient
    from laportal.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_staff(db):
    from laportal.models.staff import Staff, StaffCourse
    from laportal.services.auth import hash_password

    def _make(nuid, role="LA", name=None, email=None, password=PASSWORD, active=True, courses=()):
        staff = Staff(
            nuid=nuid,
            name=name or f"Staff {nuid}",
            email=email,
            role=role,
            password_hash=hash_password(password) if password else None,
            is_active=active,
        )
        staff.courses = [StaffCourse(course=c) for c in courses]
        db.add(staff)
        db.commit()
        db.refresh(staff)
        return staff

    return _make


@pytest.fixture
def make_student(db):
    from laportal.models.student import Student
    from laportal.services.auth import hash_password

    def _make(email, status="approved", name="Student", password=PASSWORD):
        student = Student(
            email=email,
            name=name,
            status=status,
            password_hash=hash_password(password) if password else None,
        )
        db.add(student)
        db.commit()
        db.refresh(student)
        return student

    return _make


@pytest.fixture
def login(client):
    """Log in over the API and return the Authorization header."""

    def _login(login_id, password=PASSWORD):
        r = client.post("/auth/login", json={"login": login_id, "password": password})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['token']}"}

    return _login


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Rate-limit counters live in process memory; start every test with a clean window."""
    from laportal.extensions import limiter

    limiter.reset()
    yield
