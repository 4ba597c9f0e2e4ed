from __future__ import annotations

from sqlalchemy.orm import Session

from smartcampus.models.generation_run import TimetableGenerationRun
from smartcampus.schemas.generator import GenerationScope


def record_generation_run(
    db: Session,
    *,
    scope: GenerationScope,
    status: str,
    reason: str | None = None,
    slot_count: int = 0,
    iterations: int = 0,
    runtime_ms: int = 0,
    details: dict | None = None,
) -> TimetableGenerationRun:
    record = TimetableGenerationRun(
        academic_year=scope.academic_year,
        semester_type=scope.semester_type,
        status=status,
        reason=reason,
        slot_count=slot_count,
        iterations=iterations,
        runtime_ms=runtime_ms,
        details=details or {},
    )
    db.add(record)
    return record
