import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from smartcampus.db.base import Base


class StudentGroup(Base):
    __tablename__ = "student_groups"
    __table_args__ = (
        CheckConstraint("strength > 0", name="ck_student_groups_strength_positive"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    group_code: Mapped[str] = mapped_column(String(10), unique=True, index=True, nullable=False)
    group_name: Mapped[str] = mapped_column(String(100), nullable=False)
    strength: Mapped[int] = mapped_column(Integer, nullable=False)
    department: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    semester: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    academic_year: Mapped[str | None] = mapped_column(String(10), nullable=True)
    semester_type: Mapped[str | None] = mapped_column(String(10), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
