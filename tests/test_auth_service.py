"""Unit tests for password hashing and token issue/verify."""
from datetime import timedelta

import pytest
from jose import jwt

from laportal.config import settings
from laportal.schemas.auth import validate_new_password
from laportal.models.types import PrincipalKind, Role
from laportal.services.auth import (
    BCRYPT_MAX_BYTES,
    Principal,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

STAFF = Principal(kind=PrincipalKind.STAFF, subject="12345678", role=Role.COURSE_LEAD, name="Casey")


def test_hash_and_verify():
    digest = hash_password("secret123")
    assert digest != "secret123"
    assert digest.startswith("$2")
    assert verify_password("secret123", digest)
    assert not verify_password("secret124", digest)


def test_salted():
    assert hash_password("secret123") != hash_password("secret123")


def test_verify_never_raises_on_bad_digest():
    assert verify_password("x", None) is False
    assert verify_password("x", "") is False
    assert verify_password("x", "plaintext-legacy") is False


def test_token_round_trip():
    p = decode_access_token(create_access_token(STAFF))
    assert p == STAFF


def test_token_lifetime_is_configured_hours():
    claims = jwt.get_unverified_claims(create_access_token(STAFF))
    assert claims["exp"] - claims["iat"] == settings.jwt_expire_hours * 3600
    assert claims["kind"] == "staff" and claims["role"] == "CL" and claims["sub"] == "12345678"


def test_expired_token_rejected():
    token = create_access_token(STAFF, expires_delta=timedelta(seconds=-10))
    assert decode_access_token(token) is None


def test_tampered_or_foreign_tokens_rejected():
    token = create_access_token(STAFF)
    assert decode_access_token(token[:-2] + ("AA" if not token.endswith("AA") else "BB")) is None
    assert decode_access_token("not-a-token") is None
    forged = jwt.encode({"sub": "1", "kind": "staff", "role": "SL", "name": "x"}, "other-secret", algorithm="HS256")
    assert decode_access_token(forged) is None


def test_claim_shape_checked():
    bad_role = jwt.encode(
        {"sub": "1", "kind": "staff", "role": "ADMIN", "name": "x"}, settings.secret_key, algorithm="HS256"
    )
    assert decode_access_token(bad_role) is None
    student_with_staff_role = jwt.encode(
        {"sub": "1", "kind": "student", "role": "SL", "name": "x"}, settings.secret_key, algorithm="HS256"
    )
    assert decode_access_token(student_with_staff_role) is None


def test_password_policy_stops_at_the_hashed_length():
    at_limit = "a1" + "x" * (BCRYPT_MAX_BYTES - 2)
    assert validate_new_password(at_limit) == at_limit
    with pytest.raises(ValueError, match="at most"):
        validate_new_password(at_limit + "y")
    # multi-byte characters count by their UTF-8 length
    with pytest.raises(ValueError):
        validate_new_password("a1" + "é" * 35)


def test_every_accepted_byte_affects_the_hash():
    at_limit = "a1" + "x" * (BCRYPT_MAX_BYTES - 2)
    digest = hash_password(at_limit)
    assert not verify_password(at_limit[:-1] + "z", digest)
