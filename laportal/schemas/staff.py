"""
Staff directory schemas. Responses never carry password digests.
"""
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from laportal.models.types import Role, STAFF_ROLES
from laportal.schemas.auth import validate_new_password
from laportal.services.identity import NUID_RE


def _nuid(v: str) -> str:
    v = (v or "").strip()
    if not NUID_RE.match(v):
        raise ValueError("nuid must be 7 to 10 digits")
    return v


def _name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("name is required")
    return v


def _staff_role(v: Role) -> Role:
    if v not in STAFF_ROLES:
        raise ValueError("role must be SL, CL or LA")
    return v


def _courses(v: list[str] | None) -> list[str] | None:
    if v is None:
        return None
    # dedupe, keep order
    return list(dict.fromkeys(c.strip()[:120] for c in v if c and c.strip()))


class StaffResponse(BaseModel):
    nuid: str
    name: str
    email: str | None = None
    role: str
    is_active: bool
    courses: list[str] = []
    last_login: datetime | None = None


class StaffCreateRequest(BaseModel):
    nuid: str
    name: str = Field(min_length=1, max_length=120)
    role: Role
    email: EmailStr | None = None
    password: str | None = None
    courses: list[str] = Field(default_factory=list)

    @field_validator("nuid")
    @classmethod
    def valid_nuid(cls, v: str) -> str:
        return _nuid(v)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _name(v)

    @field_validator("role")
    @classmethod
    def staff_role(cls, v: Role) -> Role:
        return _staff_role(v)

    @field_validator("courses")
    @classmethod
    def clean_courses(cls, v: list[str]) -> list[str]:
        return _courses(v)

    @field_validator("password")
    @classmethod
    def password_policy(cls, v: str | None) -> str | None:
        return validate_new_password(v) if v is not None else None


class StaffUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    role: Role | None = None
    email: EmailStr | None = None
    is_active: bool | None = None
    courses: list[str] | None = None
    reset_password_to: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        return _name(v) if v is not None else None

    @field_validator("courses")
    @classmethod
    def clean_courses(cls, v: list[str] | None) -> list[str] | None:
        return _courses(v)

    @field_validator("role")
    @classmethod
    def staff_role(cls, v: Role | None) -> Role | None:
        return _staff_role(v) if v is not None else None

    @field_validator("reset_password_to")
    @classmethod
    def password_policy(cls, v: str | None) -> str | None:
        return validate_new_password(v) if v is not None else None


class AssignLasRequest(BaseModel):
    la_nuids: list[str] = Field(default_factory=list)

    @field_validator("la_nuids")
    @classmethod
    def valid_nuids(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(_nuid(n) for n in v))


class SupervisionResponse(BaseModel):
    cl_nuid: str
    la_nuid: str

    class Config:
        from_attributes = True
