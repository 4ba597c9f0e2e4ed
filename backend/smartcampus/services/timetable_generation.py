from __future__ import annotations

import logging
from time import perf_counter

from sqlalchemy.orm import Session

from smartcampus.core.exceptions import ConfigurationError, PersistenceError, SchedulerError
from smartcampus.schemas.generator import (
    GenerationConfig,
    GenerationDiagnostic,
    GenerationResult,
    GenerationScope,
    GenerationStatistics,
    InfeasibleReason,
    InfeasibleReport,
    TimetableSlotPayload,
)
from smartcampus.services.audit import record_generation_run
from smartcampus.services.backtracking_solver import BacktrackingSolver, Placement
from smartcampus.services.catalog import DomainCatalog, load_catalog
from smartcampus.services.conflict_service import ConflictService
from smartcampus.services.constraints import prescreen
from smartcampus.services.generation_lock import ScopeLockRegistry, get_scope_lock_registry
from smartcampus.services.persistence import TimetableRepository
from smartcampus.services.requirements import expand_requirements
from smartcampus.services.slot_calendar import SlotCalendar, validate_calendar_config

logger = logging.getLogger(__name__)

INFEASIBLE_MESSAGES: dict[str, str] = {
    "resource_exhaustion": "No conflict-free timetable exists for the configured teachers, rooms and periods",
    "budget_exceeded": "Could not generate a timetable within the iteration budget",
}


def build_slot_payloads(
    placements: list[Placement],
    catalog: DomainCatalog,
    calendar: SlotCalendar,
    scope: GenerationScope,
) -> list[TimetableSlotPayload]:
    slots: list[TimetableSlotPayload] = []
    for placement in placements:
        requirement = placement.requirement
        candidate = placement.candidate
        teacher = catalog.teachers[candidate.teacher_id]
        subject = catalog.subjects[requirement.subject_id]
        group = catalog.groups[requirement.group_id]
        room = catalog.rooms[candidate.room_id]
        for period in candidate.periods:
            slots.append(
                TimetableSlotPayload(
                    day=candidate.day,
                    period=period,
                    teacher_id=teacher.id,
                    teacher_code=teacher.code,
                    subject_id=subject.id,
                    subject_code=subject.code,
                    course_type=subject.course_type.value,
                    group_id=group.id,
                    group_code=group.code,
                    room_id=room.id,
                    room_code=room.code,
                    room_type=room.room_type.value,
                    academic_year=scope.academic_year,
                    semester_type=scope.semester_type,
                )
            )
    slots.sort(key=lambda item: (calendar.day_index(item.day), item.period, item.group_code or ""))
    return slots


def _runtime_ms(started: float) -> int:
    return int((perf_counter() - started) * 1000)


def _infeasible(
    db: Session,
    scope: GenerationScope,
    *,
    reason: InfeasibleReason,
    diagnostics: list[GenerationDiagnostic],
    iterations: int,
    total_subjects: int,
    started: float,
    persist: bool,
) -> GenerationResult:
    runtime_ms = _runtime_ms(started)
    report = InfeasibleReport(reason=reason, message=INFEASIBLE_MESSAGES[reason], diagnostics=diagnostics)
    logger.warning(
        "TIMETABLE GENERATION INFEASIBLE | academic_year=%s | semester_type=%s | reason=%s | iterations=%s | diagnostics=%s",
        scope.academic_year,
        scope.semester_type,
        reason,
        iterations,
        " ; ".join(item.message for item in diagnostics) or "-",
    )
    if persist:
        record_generation_run(
            db,
            scope=scope,
            status="infeasible",
            reason=reason,
            iterations=iterations,
            runtime_ms=runtime_ms,
            details={"diagnostics": [item.model_dump() for item in diagnostics]},
        )
        db.commit()
    return GenerationResult(
        status="infeasible",
        scope=scope,
        statistics=GenerationStatistics(
            iterations=iterations,
            total_subjects=total_subjects,
            runtime_ms=runtime_ms,
        ),
        infeasible=report,
    )


def generate_timetable(
    db: Session,
    scope: GenerationScope,
    config: GenerationConfig | None = None,
    *,
    persist: bool = True,
    lock_registry: ScopeLockRegistry | None = None,
) -> GenerationResult:
    """Generate and (optionally) store a conflict-free weekly timetable for one scope.

    Infeasible inputs are reported in the returned result. Invalid configs
    raise ConfigurationError, a concurrent run for the same scope raises
    GenerationInProgressError and a failed write raises PersistenceError.
    """
    config = config or GenerationConfig.from_settings()
    registry = lock_registry or get_scope_lock_registry()

    with registry.hold(scope):
        started = perf_counter()
        logger.info(
            "TIMETABLE GENERATION START | academic_year=%s | semester_type=%s | days=%s | periods_per_day=%s | lunch=%s | max_iterations=%s",
            scope.academic_year,
            scope.semester_type,
            len(config.working_days),
            config.periods_per_day,
            config.lunch_break_period,
            config.max_iterations,
        )
        try:
            return _generate(db, scope, config, persist=persist, started=started)
        except ConfigurationError as exc:
            logger.warning(
                "TIMETABLE GENERATION REJECTED | academic_year=%s | semester_type=%s | errors=%s",
                scope.academic_year,
                scope.semester_type,
                exc.details.get("errors"),
            )
            raise
        except Exception:
            logger.exception(
                "TIMETABLE GENERATION FAILED | academic_year=%s | semester_type=%s",
                scope.academic_year,
                scope.semester_type,
            )
            raise


def _generate(
    db: Session,
    scope: GenerationScope,
    config: GenerationConfig,
    *,
    persist: bool,
    started: float,
) -> GenerationResult:
    validate_calendar_config(
        working_days=config.working_days,
        periods_per_day=config.periods_per_day,
        lunch_break_period=config.lunch_break_period,
        max_iterations=config.max_iterations,
        consecutive_block_size=config.consecutive_block_size,
    )
    calendar = SlotCalendar(
        working_days=tuple(config.working_days),
        periods_per_day=config.periods_per_day,
        lunch_break_period=config.lunch_break_period,
    )
    catalog = load_catalog(db, scope, config)
    total_subjects = len(catalog.requirements)

    if not catalog.requirements:
        return _infeasible(
            db,
            scope,
            reason="resource_exhaustion",
            diagnostics=[
                GenerationDiagnostic(
                    resource="group",
                    message="No active subject requirements are declared for this scope",
                )
            ],
            iterations=0,
            total_subjects=0,
            started=started,
            persist=persist,
        )

    requirements = expand_requirements(catalog, config.consecutive_block_size)
    diagnostics = prescreen(requirements, catalog, calendar)
    if diagnostics:
        return _infeasible(
            db,
            scope,
            reason="resource_exhaustion",
            diagnostics=diagnostics,
            iterations=0,
            total_subjects=total_subjects,
            started=started,
            persist=persist,
        )

    outcome = BacktrackingSolver(catalog, calendar, config.max_iterations).solve(requirements)
    if not outcome.success:
        return _infeasible(
            db,
            scope,
            reason=outcome.reason or "resource_exhaustion",
            diagnostics=outcome.diagnostics,
            iterations=outcome.iterations,
            total_subjects=total_subjects,
            started=started,
            persist=persist,
        )

    slots = build_slot_payloads(outcome.placements, catalog, calendar, scope)
    report = ConflictService(slots, catalog, config.lunch_break_period).detect_conflicts()
    if report.hard_conflicts:
        raise SchedulerError(
            "Generated timetable failed conflict validation",
            details={"conflicts": [item.model_dump() for item in report.conflicts]},
        )

    runtime_ms = _runtime_ms(started)
    statistics = GenerationStatistics(
        total_slots=len(slots),
        iterations=outcome.iterations,
        subjects_scheduled=total_subjects,
        total_subjects=total_subjects,
        completion_percentage=100.0,
        runtime_ms=runtime_ms,
    )

    if persist:
        try:
            TimetableRepository(db).replace_schedule(scope, slots)
        except PersistenceError:
            record_generation_run(
                db,
                scope=scope,
                status="failed",
                reason="persistence_error",
                slot_count=len(slots),
                iterations=outcome.iterations,
                runtime_ms=_runtime_ms(started),
            )
            db.commit()
            raise
        record_generation_run(
            db,
            scope=scope,
            status="success",
            slot_count=len(slots),
            iterations=outcome.iterations,
            runtime_ms=runtime_ms,
        )
        db.commit()

    logger.info(
        "TIMETABLE GENERATION COMPLETE | academic_year=%s | semester_type=%s | slots=%s | iterations=%s | runtime_ms=%s | persisted=%s",
        scope.academic_year,
        scope.semester_type,
        len(slots),
        outcome.iterations,
        runtime_ms,
        persist,
    )
    return GenerationResult(
        status="success",
        scope=scope,
        slots=slots,
        statistics=statistics,
        persisted=persist,
    )
