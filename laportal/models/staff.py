"""
Staff model: NUID-keyed staff principal with role (SL | CL | LA), course assignments and supervision links.
A course-lead's supervision links grant read access to the linked learning-assistants' schedules.
"""
from datetime import datetime
from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from laportal.database import Base


class Staff(Base):
    __tablename__ = "staff"

    nuid: Mapped[str] = mapped_column(String(10), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True, index=True)
    role: Mapped[str] = mapped_column(String(2), nullable=False, default="LA")  # SL | CL | LA
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (CheckConstraint("role IN ('SL', 'CL', 'LA')", name="staff_role_check"),)

    courses = relationship(
        "StaffCourse", back_populates="staff", cascade="all, delete-orphan", order_by="StaffCourse.course"
    )
    schedules = relationship("ScheduleEntry", back_populates="staff", cascade="all, delete-orphan")
    supervised_links = relationship(
        "SupervisionLink",
        foreign_keys="SupervisionLink.cl_nuid",
        cascade="all, delete-orphan",
    )
    supervisor_links = relationship(
        "SupervisionLink",
        foreign_keys="SupervisionLink.la_nuid",
        cascade="all, delete-orphan",
    )

    @property
    def course_codes(self) -> list[str]:
        return [c.course for c in self.courses]


class StaffCourse(Base):
    """Course assignment; directory display only, never used for authorization."""

    __tablename__ = "staff_courses"

    staff_nuid: Mapped[str] = mapped_column(
        String(10), ForeignKey("staff.nuid", ondelete="CASCADE"), primary_key=True
    )
    course: Mapped[str] = mapped_column(String(120), primary_key=True)

    staff = relationship("Staff", back_populates="courses")


class SupervisionLink(Base):
    """Course-lead -> learning-assistant pair (table cl_assigned_las)."""

    __tablename__ = "cl_assigned_las"

    cl_nuid: Mapped[str] = mapped_column(
        String(10), ForeignKey("staff.nuid", ondelete="CASCADE"), primary_key=True
    )
    la_nuid: Mapped[str] = mapped_column(
        String(10), ForeignKey("staff.nuid", ondelete="CASCADE"), primary_key=True, index=True
    )
