import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.pool import StaticPool

from smartcampus.db import bootstrap


def _raise_error(message: str):
    raise RuntimeError(message)


def _memory_engine():
    return create_engine("sqlite+pysqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch, engine):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(bootstrap, "_ensure_unavailability_date_columns", lambda engine: None)
    monkeypatch.setattr(bootstrap, "_ensure_subject_scheduling_columns", lambda engine: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda engine: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility(engine)


def test_runtime_schema_bootstrap_creates_missing_tables():
    engine = _memory_engine()

    bootstrap.ensure_runtime_schema_compatibility(engine)

    assert set(bootstrap.REQUIRED_COLUMNS) <= set(inspect(engine).get_table_names())
    engine.dispose()


def test_runtime_schema_bootstrap_patches_legacy_columns():
    engine = _memory_engine()
    with engine.begin() as connection:
        connection.execute(
            text(
                "CREATE TABLE subjects ("
                "id VARCHAR(36) PRIMARY KEY, subject_code VARCHAR(10) NOT NULL, subject_name VARCHAR(100) NOT NULL, "
                "hours_per_week INTEGER NOT NULL, course_type VARCHAR(9) NOT NULL, department VARCHAR(50) NOT NULL, "
                "semester INTEGER, is_active BOOLEAN NOT NULL, created_at DATETIME, updated_at DATETIME)"
            )
        )

    bootstrap.ensure_runtime_schema_compatibility(engine)

    columns = {item["name"] for item in inspect(engine).get_columns("subjects")}
    assert {"requires_consecutive_periods", "max_periods_per_day"} <= columns
    engine.dispose()
