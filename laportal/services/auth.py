"""
Auth service: password hashing and JWT creation/verification.
Uses bcrypt directly (no passlib) to avoid passlib/bcrypt version conflicts.
Tokens are not stored server side; logout is the client discarding its token.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import bcrypt
from jose import JWTError, jwt
from laportal.config import settings
from laportal.models.types import PrincipalKind, Role

# Bcrypt limit is 72 bytes; use 71 so we never exceed
BCRYPT_MAX_BYTES = 71


@dataclass(frozen=True)
class Principal:
    """Who is asking. Built only from a verified token or a verified login, never from request data."""

    kind: PrincipalKind
    subject: str  # staff nuid or student id
    role: Role
    name: str

    @property
    def is_staff(self) -> bool:
        return self.kind is PrincipalKind.STAFF


def _truncate_to_bytes(s: str, max_bytes: int = BCRYPT_MAX_BYTES) -> bytes:
    """Truncate string to at most max_bytes UTF-8; return bytes for bcrypt."""
    if not s:
        return b""
    encoded = s.encode("utf-8")
    if len(encoded) <= max_bytes:
        return encoded
    return encoded[:max_bytes]


def hash_password(password: str) -> str:
    """Hash password for storage. Raises ValueError if password is None."""
    if password is None:
        raise ValueError("password is required")
    raw = _truncate_to_bytes(password)
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    hashed = bcrypt.hashpw(raw, salt)
    return hashed.decode("utf-8")


def verify_password(plain: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    raw = _truncate_to_bytes(plain or "")
    try:
        return bcrypt.checkpw(raw, hashed.encode("utf-8"))
    except ValueError:
        # malformed digest (e.g. legacy plaintext column) counts as no match
        return False


def create_access_token(principal: Principal, expires_delta: timedelta | None = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta if expires_delta is not None else timedelta(hours=settings.jwt_expire_hours))
    # JWT exp must be numeric (Unix timestamp), not datetime
    payload = {
        "sub": principal.subject,
        "kind": principal.kind.value,
        "role": principal.role.value,
        "name": principal.name,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Principal | None:
    """Verify signature, expiry and claim shape. Any failure is None."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    try:
        kind = PrincipalKind(payload["kind"])
        role = Role(payload["role"])
        subject = str(payload["sub"])
    except (KeyError, ValueError, TypeError):
        return None
    if (kind is PrincipalKind.STUDENT) != (role is Role.STUDENT):
        return None
    return Principal(kind=kind, subject=subject, role=role, name=str(payload.get("name") or ""))
