"""
Auth request/response schemas.
"""
import re
from typing import Literal

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator

from laportal.config import settings
from laportal.services.auth import BCRYPT_MAX_BYTES

_LETTER_RE = re.compile(r"[A-Za-z]")
_DIGIT_RE = re.compile(r"\d")


def validate_new_password(v: str) -> str:
    """Policy for any password being set: minimum length, letters and digits, bcrypt byte limit."""
    if len(v) < settings.min_password_length:
        raise ValueError(f"Password must be at least {settings.min_password_length} characters")
    if not _LETTER_RE.search(v) or not _DIGIT_RE.search(v):
        raise ValueError("Password must contain letters and numbers")
    if len(v.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    return v


class LoginRequest(BaseModel):
    login: str = Field(validation_alias=AliasChoices("login", "nuid", "email", "id"))
    password: str = Field(min_length=1)

    @field_validator("login", mode="before")
    @classmethod
    def login_text(cls, v):
        if isinstance(v, int):
            v = str(v)
        if not isinstance(v, str) or not v.strip():
            raise ValueError("login is required")
        return v.strip()[:120]


class UserSummary(BaseModel):
    kind: Literal["staff", "student"]
    name: str
    role: str
    nuid: str | None = None
    id: int | None = None
    email: str | None = None


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserSummary


class MeResponse(BaseModel):
    user: UserSummary


class StudentSignupRequest(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=120)
    password: str
    nuid: str | None = Field(default=None, max_length=32)
    class_year: str | None = Field(default=None, max_length=40)
    courses: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("password")
    @classmethod
    def password_policy(cls, v: str) -> str:
        return validate_new_password(v)

    @field_validator("courses")
    @classmethod
    def clean_courses(cls, v: list[str]) -> list[str]:
        return [c.strip()[:120] for c in v if c and c.strip()]


class PendingStudentResponse(BaseModel):
    id: int
    email: str
    name: str
    nuid: str | None = None
    class_year: str | None = None
    status: str

    class Config:
        from_attributes = True


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(validation_alias=AliasChoices("current_password", "current"))
    new_password: str = Field(validation_alias=AliasChoices("new_password", "new"))

    @field_validator("new_password")
    @classmethod
    def password_policy(cls, v: str) -> str:
        return validate_new_password(v)


class ResetPasswordRequest(BaseModel):
    target: Literal["staff", "student"]
    nuid: str | None = None
    email: EmailStr | None = None
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_policy(cls, v: str) -> str:
        return validate_new_password(v)


class OkResponse(BaseModel):
    ok: bool = True
    message: str | None = None
