import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from smartcampus.db.base import Base


class TimetableSlot(Base):
    __tablename__ = "timetable_slots"
    __table_args__ = (
        UniqueConstraint(
            "day_of_week", "period_number", "teacher_id", "academic_year", "semester_type",
            name="uq_timetable_slots_teacher_period",
        ),
        UniqueConstraint(
            "day_of_week", "period_number", "group_id", "academic_year", "semester_type",
            name="uq_timetable_slots_group_period",
        ),
        UniqueConstraint(
            "day_of_week", "period_number", "room_id", "academic_year", "semester_type",
            name="uq_timetable_slots_room_period",
        ),
        CheckConstraint("period_number >= 1", name="ck_timetable_slots_period"),
        Index("ix_timetable_slots_scope", "academic_year", "semester_type"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    day_of_week: Mapped[str] = mapped_column(String(20), nullable=False)
    period_number: Mapped[int] = mapped_column(Integer, nullable=False)
    teacher_id: Mapped[str] = mapped_column(String(36), ForeignKey("teachers.id"), nullable=False, index=True)
    subject_id: Mapped[str] = mapped_column(String(36), ForeignKey("subjects.id"), nullable=False)
    group_id: Mapped[str] = mapped_column(String(36), ForeignKey("student_groups.id"), nullable=False, index=True)
    room_id: Mapped[str] = mapped_column(String(36), ForeignKey("rooms.id"), nullable=False, index=True)
    academic_year: Mapped[str] = mapped_column(String(10), nullable=False)
    semester_type: Mapped[str] = mapped_column(String(10), nullable=False, default="odd")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
