"""
SQLAlchemy models. Import here so Alembic and app can use them.
"""
from laportal.models.staff import Staff, StaffCourse, SupervisionLink
from laportal.models.student import Student, StudentCourse
from laportal.models.schedule import ScheduleEntry, OfficeHourSession, QueueEntry
from laportal.models.feedback import Feedback

__all__ = [
    "Staff",
    "StaffCourse",
    "SupervisionLink",
    "Student",
    "StudentCourse",
    "ScheduleEntry",
    "OfficeHourSession",
    "QueueEntry",
    "Feedback",
]
