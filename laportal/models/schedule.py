"""
Weekly schedule entries (templates) owned by one staff member, the dated office-hour sessions
expanded from them, and the office-hour queue.
day_of_week is 0 = Sunday ... 6 = Saturday.
"""
from datetime import datetime, time
from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from laportal.database import Base


class ScheduleEntry(Base):
    __tablename__ = "staff_schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    staff_nuid: Mapped[str] = mapped_column(
        String(10), ForeignKey("staff.nuid", ondelete="CASCADE"), nullable=False, index=True
    )
    kind: Mapped[str] = mapped_column(String(20), nullable=False, default="office_hour")
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    course: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("kind IN ('office_hour', 'lab_time')", name="staff_schedules_kind_check"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="staff_schedules_day_check"),
        CheckConstraint("start_time < end_time", name="staff_schedules_time_order_check"),
    )

    staff = relationship("Staff", back_populates="schedules")
    sessions = relationship("OfficeHourSession", back_populates="schedule", cascade="all, delete-orphan")


class OfficeHourSession(Base):
    __tablename__ = "office_hour_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    schedule_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("staff_schedules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    session_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    session_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("schedule_id", "session_start", name="office_hour_sessions_slot_key"),
    )

    schedule = relationship("ScheduleEntry", back_populates="sessions")
    queue = relationship("QueueEntry", back_populates="session", cascade="all, delete-orphan")


class QueueEntry(Base):
    __tablename__ = "office_hour_queue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("office_hour_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)  # token subject
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    session = relationship("OfficeHourSession", back_populates="queue")
