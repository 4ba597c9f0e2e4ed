"""create timetable core tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    course_type = sa.Enum("theory", "practical", "lab", name="course_type")
    room_type = sa.Enum("classroom", "lab", "auditorium", "seminar", name="room_type")

    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_code", sa.String(length=10), nullable=False),
        sa.Column("full_name", sa.String(length=100), nullable=False),
        sa.Column("department", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=True),
        sa.Column("phone", sa.String(length=15), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_teachers_teacher_code", "teachers", ["teacher_code"], unique=True)
    op.create_index("ix_teachers_department", "teachers", ["department"])

    op.create_table(
        "teacher_unavailability",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day_of_week", sa.String(length=20), nullable=False),
        sa.Column("period_number", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=200), nullable=True),
        sa.Column("is_permanent", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("period_number >= 1", name="ck_teacher_unavailability_period"),
    )
    op.create_index("ix_teacher_unavailability_teacher_id", "teacher_unavailability", ["teacher_id"])

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("subject_code", sa.String(length=10), nullable=False),
        sa.Column("subject_name", sa.String(length=100), nullable=False),
        sa.Column("hours_per_week", sa.Integer(), nullable=False),
        sa.Column("course_type", course_type, nullable=False),
        sa.Column("department", sa.String(length=50), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("requires_consecutive_periods", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("max_periods_per_day", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("hours_per_week > 0", name="ck_subjects_hours_per_week_positive"),
    )
    op.create_index("ix_subjects_subject_code", "subjects", ["subject_code"], unique=True)
    op.create_index("ix_subjects_department", "subjects", ["department"])
    op.create_index("ix_subjects_semester", "subjects", ["semester"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("room_code", sa.String(length=20), nullable=False),
        sa.Column("room_name", sa.String(length=100), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("room_type", room_type, nullable=False),
        sa.Column("floor_number", sa.Integer(), nullable=True),
        sa.Column("building", sa.String(length=50), nullable=True),
        sa.Column("has_projector", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("has_computer", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("capacity > 0", name="ck_rooms_capacity_positive"),
    )
    op.create_index("ix_rooms_room_code", "rooms", ["room_code"], unique=True)
    op.create_index("ix_rooms_capacity", "rooms", ["capacity"])
    op.create_index("ix_rooms_room_type", "rooms", ["room_type"])

    op.create_table(
        "student_groups",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("group_code", sa.String(length=10), nullable=False),
        sa.Column("group_name", sa.String(length=100), nullable=False),
        sa.Column("strength", sa.Integer(), nullable=False),
        sa.Column("department", sa.String(length=50), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=True),
        sa.Column("academic_year", sa.String(length=10), nullable=True),
        sa.Column("semester_type", sa.String(length=10), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("strength > 0", name="ck_student_groups_strength_positive"),
    )
    op.create_index("ix_student_groups_group_code", "student_groups", ["group_code"], unique=True)
    op.create_index("ix_student_groups_department", "student_groups", ["department"])
    op.create_index("ix_student_groups_semester", "student_groups", ["semester"])

    op.create_table(
        "teacher_subject_assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("subject_id", sa.String(length=36), sa.ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("teacher_id", "subject_id", name="uq_teacher_subject_assignments_teacher_subject"),
    )

    op.create_table(
        "subject_class_assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("subject_id", sa.String(length=36), sa.ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("group_id", sa.String(length=36), sa.ForeignKey("student_groups.id", ondelete="CASCADE"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("subject_id", "group_id", name="uq_subject_class_assignments_subject_group"),
    )

    op.create_table(
        "timetable_slots",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("day_of_week", sa.String(length=20), nullable=False),
        sa.Column("period_number", sa.Integer(), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id"), nullable=False),
        sa.Column("subject_id", sa.String(length=36), sa.ForeignKey("subjects.id"), nullable=False),
        sa.Column("group_id", sa.String(length=36), sa.ForeignKey("student_groups.id"), nullable=False),
        sa.Column("room_id", sa.String(length=36), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("academic_year", sa.String(length=10), nullable=False),
        sa.Column("semester_type", sa.String(length=10), nullable=False, server_default="odd"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "day_of_week", "period_number", "teacher_id", "academic_year", "semester_type",
            name="uq_timetable_slots_teacher_period",
        ),
        sa.UniqueConstraint(
            "day_of_week", "period_number", "group_id", "academic_year", "semester_type",
            name="uq_timetable_slots_group_period",
        ),
        sa.UniqueConstraint(
            "day_of_week", "period_number", "room_id", "academic_year", "semester_type",
            name="uq_timetable_slots_room_period",
        ),
        sa.CheckConstraint("period_number >= 1", name="ck_timetable_slots_period"),
    )
    op.create_index("ix_timetable_slots_scope", "timetable_slots", ["academic_year", "semester_type"])
    op.create_index("ix_timetable_slots_teacher_id", "timetable_slots", ["teacher_id"])
    op.create_index("ix_timetable_slots_group_id", "timetable_slots", ["group_id"])
    op.create_index("ix_timetable_slots_room_id", "timetable_slots", ["room_id"])

    op.create_table(
        "timetable_generation_runs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("academic_year", sa.String(length=10), nullable=False),
        sa.Column("semester_type", sa.String(length=10), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("reason", sa.String(length=40), nullable=True),
        sa.Column("slot_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("iterations", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("runtime_ms", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_timetable_generation_runs_academic_year", "timetable_generation_runs", ["academic_year"])


def downgrade() -> None:
    op.drop_index("ix_timetable_generation_runs_academic_year", table_name="timetable_generation_runs")
    op.drop_table("timetable_generation_runs")
    op.drop_index("ix_timetable_slots_room_id", table_name="timetable_slots")
    op.drop_index("ix_timetable_slots_group_id", table_name="timetable_slots")
    op.drop_index("ix_timetable_slots_teacher_id", table_name="timetable_slots")
    op.drop_index("ix_timetable_slots_scope", table_name="timetable_slots")
    op.drop_table("timetable_slots")
    op.drop_table("subject_class_assignments")
    op.drop_table("teacher_subject_assignments")
    op.drop_index("ix_student_groups_semester", table_name="student_groups")
    op.drop_index("ix_student_groups_department", table_name="student_groups")
    op.drop_index("ix_student_groups_group_code", table_name="student_groups")
    op.drop_table("student_groups")
    op.drop_index("ix_rooms_room_type", table_name="rooms")
    op.drop_index("ix_rooms_capacity", table_name="rooms")
    op.drop_index("ix_rooms_room_code", table_name="rooms")
    op.drop_table("rooms")
    op.drop_index("ix_subjects_semester", table_name="subjects")
    op.drop_index("ix_subjects_department", table_name="subjects")
    op.drop_index("ix_subjects_subject_code", table_name="subjects")
    op.drop_table("subjects")
    op.drop_index("ix_teacher_unavailability_teacher_id", table_name="teacher_unavailability")
    op.drop_table("teacher_unavailability")
    op.drop_index("ix_teachers_department", table_name="teachers")
    op.drop_index("ix_teachers_teacher_code", table_name="teachers")
    op.drop_table("teachers")

    bind = op.get_bind()
    sa.Enum(name="room_type").drop(bind, checkfirst=True)
    sa.Enum(name="course_type").drop(bind, checkfirst=True)
