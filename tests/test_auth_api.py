"""
API tests for the auth router: login, me, student signup/approval, password change and reset.
Uses FastAPI TestClient against a scratch SQLite database (see conftest.py).
Requires: fastapi, httpx.
"""
import pytest
from jose import jwt

try:
    from fastapi.testclient import TestClient  # noqa: F401
    from laportal.models.staff import Staff
    from laportal.models.student import Student
    from laportal.services.auth import verify_password
    _API_DEPS_LOADED = True
except ImportError:
    _API_DEPS_LOADED = False
    Staff = Student = verify_password = None  # type: ignore[misc, assignment]

from conftest import PASSWORD

pytestmark = pytest.mark.skipif(
    not _API_DEPS_LOADED,
    reason="fastapi/httpx not installed (pip install -e .[test])",
)


def test_staff_login_token_carries_stored_role(client, make_staff):
    make_staff("12345678", role="CL", name="Casey")
    r = client.post("/auth/login", json={"login": "12345678", "password": PASSWORD})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["user"] == {
        "kind": "staff", "nuid": "12345678", "name": "Casey", "role": "CL", "email": None, "id": None,
    }
    claims = jwt.get_unverified_claims(body["token"])
    assert claims["role"] == "CL"
    assert claims["sub"] == "12345678"


def test_login_accepts_nuid_alias(client, make_staff):
    make_staff("12345678")
    r = client.post("/auth/login", json={"nuid": 12345678, "password": PASSWORD})
    assert r.status_code == 200, r.text


def test_wrong_password_and_unknown_login_look_identical(client, make_staff):
    make_staff("12345678")
    wrong = client.post("/auth/login", json={"login": "12345678", "password": "nope-nope-1"})
    unknown = client.post("/auth/login", json={"login": "99999999", "password": "nope-nope-1"})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"message": "Invalid credentials"}


def test_login_missing_fields_is_400(client):
    r = client.post("/auth/login", json={"password": "x"})
    assert r.status_code == 400
    assert "login" in r.json()["message"]


def test_me_and_logout(client, make_staff, login):
    make_staff("12345678", role="SL", name="Sam")
    headers = login("12345678")
    r = client.get("/auth/me", headers=headers)
    assert r.status_code == 200
    assert r.json()["user"]["name"] == "Sam"
    assert client.post("/auth/logout", headers=headers).status_code == 204


def test_missing_malformed_and_expired_tokens(client, make_staff):
    from datetime import timedelta
    from laportal.models.types import PrincipalKind, Role
    from laportal.services.auth import Principal, create_access_token

    make_staff("12345678")
    missing = client.get("/auth/me")
    assert missing.status_code == 401
    assert missing.json() == {"message": "Missing token"}

    expired = create_access_token(
        Principal(PrincipalKind.STAFF, "12345678", Role.LEARNING_ASSISTANT, "x"), expires_delta=timedelta(hours=-8)
    )
    r_expired = client.get("/auth/me", headers={"Authorization": f"Bearer {expired}"})
    r_bad = client.get("/auth/me", headers={"Authorization": "Bearer garbage"})
    assert r_expired.status_code == r_bad.status_code == 401
    assert r_expired.json() == r_bad.json() == {"message": "Invalid or expired token"}


def test_token_of_deactivated_staff_stops_working(client, db, make_staff, login):
    make_staff("12345678")
    headers = login("12345678")
    db.get(Staff, "12345678").is_active = False
    db.commit()
    assert client.get("/auth/me", headers=headers).status_code == 401


def test_student_signup_needs_approval(client, make_staff, login):
    make_staff("10000001", role="SL")
    r = client.post(
        "/auth/student/signup",
        json={"email": "New.Student@Example.edu", "name": "New Student", "password": PASSWORD, "courses": ["CSCE 155"]},
    )
    assert r.status_code == 201, r.text
    assert r.json()["ok"] is True

    denied = client.post("/auth/login", json={"login": "new.student@example.edu", "password": PASSWORD})
    assert denied.status_code == 401

    sl = login("10000001")
    pending = client.get("/auth/students/pending", headers=sl).json()
    assert [p["email"] for p in pending] == ["new.student@example.edu"]

    assert client.post(f"/auth/students/{pending[0]['id']}/approve", headers=sl).json() == {"ok": True, "message": None}
    ok = client.post("/auth/login", json={"login": "new.student@example.edu", "password": PASSWORD})
    assert ok.status_code == 200
    assert ok.json()["user"]["kind"] == "student"
    assert client.get("/auth/students/pending", headers=sl).json() == []


def test_rejected_student_cannot_log_in(client, make_staff, make_student, login):
    make_staff("10000001", role="SL")
    student = make_student("stu@example.edu", status="pending")
    r = client.post(f"/auth/students/{student.id}/reject", headers=login("10000001"))
    assert r.status_code == 200
    assert client.post("/auth/login", json={"login": "stu@example.edu", "password": PASSWORD}).status_code == 401


def test_signup_duplicate_and_weak_password(client, make_student):
    make_student("taken@example.edu")
    dup = client.post("/auth/student/signup", json={"email": "taken@example.edu", "name": "X", "password": PASSWORD})
    assert dup.status_code == 409
    weak = client.post("/auth/student/signup", json={"email": "new@example.edu", "name": "X", "password": "short"})
    assert weak.status_code == 400
    assert "password" in weak.json()["message"]


def test_only_senior_lead_reviews_students(client, make_staff, make_student, login):
    make_staff("30000003", role="LA")
    student = make_student("stu@example.edu", status="pending")
    la = login("30000003")
    assert client.get("/auth/students/pending", headers=la).status_code == 403
    assert client.post(f"/auth/students/{student.id}/approve", headers=la).status_code == 403
    assert client.post(f"/auth/students/{student.id}/approve").status_code == 401


def test_approve_unknown_student_is_404(client, make_staff, login):
    make_staff("10000001", role="SL")
    assert client.post("/auth/students/999/approve", headers=login("10000001")).status_code == 404


def test_change_password_requires_current(client, db, make_staff, login):
    make_staff("12345678")
    headers = login("12345678")
    before = db.get(Staff, "12345678").password_hash

    bad = client.post(
        "/auth/change-password", headers=headers, json={"current_password": "wrong-pass-1", "new_password": "brand-new-2"}
    )
    assert bad.status_code == 401
    db.expire_all()
    assert db.get(Staff, "12345678").password_hash == before

    good = client.post("/auth/change-password", headers=headers, json={"current": PASSWORD, "new": "brand-new-2"})
    assert good.status_code == 200, good.text
    db.expire_all()
    assert verify_password("brand-new-2", db.get(Staff, "12345678").password_hash)


def test_change_password_enforces_policy(client, make_staff, login):
    make_staff("12345678")
    r = client.post(
        "/auth/change-password", headers=login("12345678"), json={"current_password": PASSWORD, "new_password": "abc"}
    )
    assert r.status_code == 400


def test_change_password_ignores_body_identity(client, db, make_staff, login):
    make_staff("12345678")
    make_staff("87654321")
    victim_hash = db.get(Staff, "87654321").password_hash
    r = client.post(
        "/auth/change-password",
        headers=login("12345678"),
        json={"nuid": "87654321", "current_password": PASSWORD, "new_password": "brand-new-2"},
    )
    assert r.status_code == 200
    db.expire_all()
    assert db.get(Staff, "87654321").password_hash == victim_hash


def test_student_changes_own_password(client, db, make_student, login):
    student = make_student("stu@example.edu")
    r = client.post(
        "/auth/change-password",
        headers=login("stu@example.edu"),
        json={"current_password": PASSWORD, "new_password": "brand-new-2"},
    )
    assert r.status_code == 200
    db.expire_all()
    assert verify_password("brand-new-2", db.get(Student, student.id).password_hash)


def test_admin_reset_password(client, db, make_staff, make_student, login):
    make_staff("10000001", role="SL")
    make_staff("30000003", role="LA")
    make_student("stu@example.edu")
    sl = login("10000001")

    r = client.post(
        "/auth/admin/reset-password", headers=sl, json={"target": "staff", "nuid": "30000003", "new_password": "reset-pass-9"}
    )
    assert r.status_code == 200
    assert client.post("/auth/login", json={"login": "30000003", "password": "reset-pass-9"}).status_code == 200

    r = client.post(
        "/auth/admin/reset-password",
        headers=sl,
        json={"target": "student", "email": "stu@example.edu", "new_password": "reset-pass-9"},
    )
    assert r.status_code == 200

    missing = client.post(
        "/auth/admin/reset-password", headers=sl, json={"target": "staff", "nuid": "55555555", "new_password": "reset-pass-9"}
    )
    assert missing.status_code == 404

    la = login("30000003", "reset-pass-9")
    forbidden = client.post(
        "/auth/admin/reset-password", headers=la, json={"target": "staff", "nuid": "10000001", "new_password": "reset-pass-9"}
    )
    assert forbidden.status_code == 403


def test_login_is_rate_limited(client, monkeypatch, make_staff):
    from laportal.config import settings

    monkeypatch.setattr(settings, "login_rate_limit", "2 per minute")
    make_staff("12345678")
    for _ in range(2):
        assert client.post("/auth/login", json={"login": "12345678", "password": "nope-nope-1"}).status_code == 401
    limited = client.post("/auth/login", json={"login": "12345678", "password": PASSWORD})
    assert limited.status_code == 429
    assert limited.json() == {"message": "Too many requests, please try again later."}


def test_signup_and_password_routes_are_rate_limited(client, monkeypatch, make_staff, login):
    from laportal.config import settings

    monkeypatch.setattr(settings, "signup_rate_limit", "1 per hour")
    monkeypatch.setattr(settings, "change_password_rate_limit", "1 per 10 minutes")
    body = {"email": "a@example.edu", "name": "A", "password": PASSWORD}
    assert client.post("/auth/student/signup", json=body).status_code == 201
    assert client.post("/auth/student/signup", json={**body, "email": "b@example.edu"}).status_code == 429

    make_staff("12345678")
    headers = login("12345678")
    change = {"current_password": "wrong-pass-1", "new_password": "brand-new-2"}
    assert client.post("/auth/change-password", headers=headers, json=change).status_code == 401
    assert client.post("/auth/change-password", headers=headers, json=change).status_code == 429
