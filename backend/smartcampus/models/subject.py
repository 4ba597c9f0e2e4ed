import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum as SAEnum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from smartcampus.db.base import Base


class CourseType(str, Enum):
    theory = "theory"
    practical = "practical"
    lab = "lab"

    @property
    def requires_lab_room(self) -> bool:
        return self in (CourseType.practical, CourseType.lab)


class Subject(Base):
    __tablename__ = "subjects"
    __table_args__ = (
        CheckConstraint("hours_per_week > 0", name="ck_subjects_hours_per_week_positive"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    subject_code: Mapped[str] = mapped_column(String(10), unique=True, index=True, nullable=False)
    subject_name: Mapped[str] = mapped_column(String(100), nullable=False)
    hours_per_week: Mapped[int] = mapped_column(Integer, nullable=False)
    course_type: Mapped[CourseType] = mapped_column(SAEnum(CourseType, name="course_type"), nullable=False)
    department: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    semester: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    requires_consecutive_periods: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # None falls back to the timetable_default_max_periods_per_day setting
    max_periods_per_day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
