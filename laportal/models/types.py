"""
Closed enumerations shared by models, schemas and the authorization gate.
Values are what the database stores and what tokens carry.
"""
import enum


class Role(str, enum.Enum):
    SENIOR_LEAD = "SL"
    COURSE_LEAD = "CL"
    LEARNING_ASSISTANT = "LA"
    STUDENT = "student"

    @property
    def is_staff(self) -> bool:
        return self is not Role.STUDENT


STAFF_ROLES = (Role.SENIOR_LEAD, Role.COURSE_LEAD, Role.LEARNING_ASSISTANT)


class PrincipalKind(str, enum.Enum):
    STAFF = "staff"
    STUDENT = "student"


class StudentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ScheduleKind(str, enum.Enum):
    OFFICE_HOUR = "office_hour"
    LAB_TIME = "lab_time"
