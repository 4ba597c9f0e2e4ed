from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from smartcampus.core.config import Settings, get_settings

DAY_ORDER = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

SemesterType = Literal["odd", "even"]
GenerationStatus = Literal["success", "infeasible"]
InfeasibleReason = Literal["resource_exhaustion", "budget_exceeded"]
ResourceClass = Literal["teacher", "room", "group", "calendar", "budget"]


class GenerationScope(BaseModel):
    academic_year: str = Field(min_length=1, max_length=10)
    semester_type: SemesterType = "odd"

    @property
    def key(self) -> tuple[str, str]:
        return (self.academic_year, self.semester_type)


class GenerationConfig(BaseModel):
    # Range checks live in validate_calendar_config so that bad values surface
    # as ConfigurationError rather than pydantic validation errors.
    working_days: list[str] = Field(default_factory=list)
    periods_per_day: int = 0
    lunch_break_period: int | None = None
    max_iterations: int = 100_000
    consecutive_block_size: int = 2
    default_max_periods_per_day: int = 2
    group_ids: list[str] | None = None
    effective_date: date | None = None

    @field_validator("working_days")
    @classmethod
    def strip_days(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item and item.strip()]

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **overrides) -> "GenerationConfig":
        settings = settings or get_settings()
        values = {
            "working_days": list(settings.timetable_working_days),
            "periods_per_day": settings.timetable_periods_per_day,
            "lunch_break_period": settings.timetable_lunch_break_period,
            "max_iterations": settings.timetable_max_iterations,
            "consecutive_block_size": settings.timetable_consecutive_block_size,
            "default_max_periods_per_day": settings.timetable_default_max_periods_per_day,
        }
        values.update(overrides)
        return cls(**values)


class TimetableSlotPayload(BaseModel):
    day: str
    period: int
    teacher_id: str
    teacher_code: str | None = None
    subject_id: str
    subject_code: str | None = None
    course_type: str | None = None
    group_id: str
    group_code: str | None = None
    room_id: str
    room_code: str | None = None
    room_type: str | None = None
    academic_year: str
    semester_type: str

    model_config = {"from_attributes": True}


class GenerationDiagnostic(BaseModel):
    resource: ResourceClass
    message: str
    group_id: str | None = None
    group_code: str | None = None
    subject_id: str | None = None
    subject_code: str | None = None
    teacher_ids: list[str] = Field(default_factory=list)


class InfeasibleReport(BaseModel):
    reason: InfeasibleReason
    message: str
    diagnostics: list[GenerationDiagnostic] = Field(default_factory=list)


class GenerationStatistics(BaseModel):
    total_slots: int = 0
    iterations: int = 0
    subjects_scheduled: int = 0
    total_subjects: int = 0
    completion_percentage: float = 0.0
    runtime_ms: int = 0


class GenerationResult(BaseModel):
    status: GenerationStatus
    scope: GenerationScope
    slots: list[TimetableSlotPayload] = Field(default_factory=list)
    statistics: GenerationStatistics = Field(default_factory=GenerationStatistics)
    infeasible: InfeasibleReport | None = None
    persisted: bool = False

    @property
    def success(self) -> bool:
        return self.status == "success"
