from __future__ import annotations

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from smartcampus.db.base import Base
import smartcampus.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "teachers": {"id", "teacher_code", "department", "is_active"},
    "teacher_unavailability": {"id", "teacher_id", "day_of_week", "period_number", "is_permanent"},
    "subjects": {
        "id",
        "subject_code",
        "hours_per_week",
        "course_type",
        "requires_consecutive_periods",
        "max_periods_per_day",
    },
    "rooms": {"id", "room_code", "capacity", "room_type"},
    "student_groups": {"id", "group_code", "strength", "academic_year", "semester_type"},
    "teacher_subject_assignments": {"id", "teacher_id", "subject_id", "priority"},
    "subject_class_assignments": {"id", "subject_id", "group_id"},
    "timetable_slots": {
        "id",
        "day_of_week",
        "period_number",
        "teacher_id",
        "subject_id",
        "group_id",
        "room_id",
        "academic_year",
        "semester_type",
    },
    "timetable_generation_runs": {"id", "academic_year", "semester_type", "status", "iterations"},
}


def _ensure_unavailability_date_columns(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "teacher_unavailability" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("teacher_unavailability")}
        if "is_permanent" not in column_names:
            connection.execute(
                text("ALTER TABLE teacher_unavailability ADD COLUMN is_permanent BOOLEAN NOT NULL DEFAULT TRUE")
            )
        if "start_date" not in column_names:
            connection.execute(text("ALTER TABLE teacher_unavailability ADD COLUMN start_date DATE"))
        if "end_date" not in column_names:
            connection.execute(text("ALTER TABLE teacher_unavailability ADD COLUMN end_date DATE"))


def _ensure_subject_scheduling_columns(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "subjects" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("subjects")}
        if "requires_consecutive_periods" not in column_names:
            connection.execute(
                text("ALTER TABLE subjects ADD COLUMN requires_consecutive_periods BOOLEAN NOT NULL DEFAULT FALSE")
            )
        if "max_periods_per_day" not in column_names:
            connection.execute(text("ALTER TABLE subjects ADD COLUMN max_periods_per_day INTEGER"))


def _assert_required_columns(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_runtime_schema_compatibility(engine: Engine | None = None) -> None:
    if engine is None:
        from smartcampus.db.session import engine
    try:
        # Ensure missing tables are present before additive compatibility patches.
        Base.metadata.create_all(bind=engine)
        _ensure_unavailability_date_columns(engine)
        _ensure_subject_scheduling_columns(engine)
        _assert_required_columns(engine)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
