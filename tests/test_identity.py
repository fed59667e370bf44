"""Identity resolver: login classification and account matching."""
from laportal.models.staff import Staff
from laportal.models.types import PrincipalKind, Role
from laportal.services.identity import LoginKind, classify_login, resolve_login

from conftest import PASSWORD


def test_classify_login():
    assert classify_login("12345678") == (LoginKind.NUID, "12345678")
    assert classify_login("  1234567 ") == (LoginKind.NUID, "1234567")
    assert classify_login("Ada@Example.EDU") == (LoginKind.EMAIL, "ada@example.edu")
    assert classify_login("123456") == (LoginKind.OTHER, "123456")  # too short for a NUID
    assert classify_login("12345678901") == (LoginKind.OTHER, "12345678901")
    assert classify_login(None) == (LoginKind.OTHER, "")


def test_staff_by_nuid_and_email(db, make_staff):
    make_staff("12345678", role="SL", email="lead@example.edu")
    by_nuid = resolve_login(db, "12345678", PASSWORD)
    assert by_nuid.principal.kind is PrincipalKind.STAFF
    assert by_nuid.principal.role is Role.SENIOR_LEAD
    assert "password_hash" not in by_nuid.summary
    by_email = resolve_login(db, "LEAD@example.edu", PASSWORD)
    assert by_email.principal.subject == "12345678"


def test_successful_staff_login_stamps_last_login(db, make_staff):
    make_staff("12345678")
    resolve_login(db, "12345678", PASSWORD)
    db.expire_all()
    assert db.get(Staff, "12345678").last_login is not None


def test_wrong_password_and_unknown_account(db, make_staff):
    make_staff("12345678")
    assert resolve_login(db, "12345678", "wrong-pass-1") is None
    assert resolve_login(db, "87654321", PASSWORD) is None
    assert resolve_login(db, "", PASSWORD) is None


def test_inactive_staff_cannot_log_in(db, make_staff):
    make_staff("12345678", active=False)
    assert resolve_login(db, "12345678", PASSWORD) is None


def test_email_falls_through_to_student(db, make_student):
    student = make_student("stu@example.edu")
    user = resolve_login(db, "stu@example.edu", PASSWORD)
    assert user.principal.kind is PrincipalKind.STUDENT
    assert user.principal.subject == str(student.id)
    assert user.principal.role is Role.STUDENT


def test_nuid_login_never_matches_students(db, make_student):
    make_student("stu@example.edu")
    assert resolve_login(db, "12345678", PASSWORD) is None


def test_pending_or_rejected_student_cannot_log_in(db, make_student):
    make_student("pending@example.edu", status="pending")
    make_student("rejected@example.edu", status="rejected")
    assert resolve_login(db, "pending@example.edu", PASSWORD) is None
    assert resolve_login(db, "rejected@example.edu", PASSWORD) is None


def test_student_without_hash_is_no_match(db, make_student):
    make_student("nohash@example.edu", password=None)
    assert resolve_login(db, "nohash@example.edu", PASSWORD) is None


def test_staff_take_precedence_over_students(db, make_staff, make_student):
    make_staff("12345678", email="both@example.edu", password="staff-pass-1")
    make_student("both@example.edu", password="student-pass-1")
    assert resolve_login(db, "both@example.edu", "staff-pass-1").principal.kind is PrincipalKind.STAFF
    # the staff row is the only candidate; the student's password does not fall through
    assert resolve_login(db, "both@example.edu", "student-pass-1") is None
