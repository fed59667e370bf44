"""Initial schema: staff, students, schedules, sessions, queue, feedback.

Revision ID: 001
Revises:
Create Date: Initial

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "staff",
        sa.Column("nuid", sa.String(10), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("role", sa.String(2), nullable=False, server_default="LA"),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("role IN ('SL', 'CL', 'LA')", name="staff_role_check"),
        sa.PrimaryKeyConstraint("nuid"),
    )
    op.create_index("ix_staff_email", "staff", ["email"], unique=True)

    op.create_table(
        "staff_courses",
        sa.Column("staff_nuid", sa.String(10), nullable=False),
        sa.Column("course", sa.String(120), nullable=False),
        sa.ForeignKeyConstraint(["staff_nuid"], ["staff.nuid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("staff_nuid", "course"),
    )

    op.create_table(
        "cl_assigned_las",
        sa.Column("cl_nuid", sa.String(10), nullable=False),
        sa.Column("la_nuid", sa.String(10), nullable=False),
        sa.ForeignKeyConstraint(["cl_nuid"], ["staff.nuid"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["la_nuid"], ["staff.nuid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("cl_nuid", "la_nuid"),
    )
    op.create_index("ix_cl_assigned_las_la_nuid", "cl_assigned_las", ["la_nuid"], unique=False)

    op.create_table(
        "students",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(200), nullable=False),
        sa.Column("nuid", sa.String(32), nullable=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("class_year", sa.String(40), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", sa.String(10), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="students_status_check"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("nuid", name="students_nuid_key"),
    )
    op.create_index("ix_students_email", "students", ["email"], unique=True)

    op.create_table(
        "student_courses",
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("course", sa.String(120), nullable=False),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("student_id", "course"),
    )

    op.create_table(
        "staff_schedules",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("staff_nuid", sa.String(10), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False, server_default="office_hour"),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("course", sa.String(120), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("kind IN ('office_hour', 'lab_time')", name="staff_schedules_kind_check"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="staff_schedules_day_check"),
        sa.CheckConstraint("start_time < end_time", name="staff_schedules_time_order_check"),
        sa.ForeignKeyConstraint(["staff_nuid"], ["staff.nuid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_staff_schedules_staff_nuid", "staff_schedules", ["staff_nuid"], unique=False)
    op.create_index("ix_staff_schedules_course", "staff_schedules", ["course"], unique=False)

    op.create_table(
        "office_hour_sessions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("schedule_id", sa.Integer(), nullable=False),
        sa.Column("session_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("session_end", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["schedule_id"], ["staff_schedules.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("schedule_id", "session_start", name="office_hour_sessions_slot_key"),
    )
    op.create_index("ix_office_hour_sessions_schedule_id", "office_hour_sessions", ["schedule_id"], unique=False)

    op.create_table(
        "office_hour_queue",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["session_id"], ["office_hour_sessions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_office_hour_queue_session_id", "office_hour_queue", ["session_id"], unique=False)

    op.create_table(
        "feedback",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("course", sa.String(120), nullable=True),
        sa.Column("type", sa.String(40), nullable=False, server_default="general"),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("submitter", sa.String(120), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("rating IS NULL OR rating BETWEEN 1 AND 5", name="feedback_rating_check"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_feedback_course", "feedback", ["course"], unique=False)
    op.create_index("ix_feedback_created_at", "feedback", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_feedback_created_at", table_name="feedback")
    op.drop_index("ix_feedback_course", table_name="feedback")
    op.drop_table("feedback")
    op.drop_index("ix_office_hour_queue_session_id", table_name="office_hour_queue")
    op.drop_table("office_hour_queue")
    op.drop_index("ix_office_hour_sessions_schedule_id", table_name="office_hour_sessions")
    op.drop_table("office_hour_sessions")
    op.drop_index("ix_staff_schedules_course", table_name="staff_schedules")
    op.drop_index("ix_staff_schedules_staff_nuid", table_name="staff_schedules")
    op.drop_table("staff_schedules")
    op.drop_table("student_courses")
    op.drop_index("ix_students_email", table_name="students")
    op.drop_table("students")
    op.drop_index("ix_cl_assigned_las_la_nuid", table_name="cl_assigned_las")
    op.drop_table("cl_assigned_las")
    op.drop_table("staff_courses")
    op.drop_index("ix_staff_email", table_name="staff")
    op.drop_table("staff")
