from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import case, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from smartcampus.core.exceptions import PersistenceError
from smartcampus.models.room import Room
from smartcampus.models.student_group import StudentGroup
from smartcampus.models.subject import Subject
from smartcampus.models.teacher import Teacher
from smartcampus.models.timetable_slot import TimetableSlot
from smartcampus.schemas.generator import DAY_ORDER, GenerationScope, TimetableSlotPayload

logger = logging.getLogger(__name__)


class TimetableRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _scope_filter(self, scope: GenerationScope):
        return (
            TimetableSlot.academic_year == scope.academic_year,
            TimetableSlot.semester_type == scope.semester_type,
        )

    def replace_schedule(self, scope: GenerationScope, slots: Sequence[TimetableSlotPayload]) -> int:
        """Swap the stored schedule for a scope with `slots` in one transaction.

        On any database failure the transaction is rolled back, the previous
        schedule stays in place and PersistenceError is raised.
        """
        try:
            result = self.db.execute(delete(TimetableSlot).where(*self._scope_filter(scope)))
            self.db.add_all(
                [
                    TimetableSlot(
                        day_of_week=slot.day,
                        period_number=slot.period,
                        teacher_id=slot.teacher_id,
                        subject_id=slot.subject_id,
                        group_id=slot.group_id,
                        room_id=slot.room_id,
                        academic_year=scope.academic_year,
                        semester_type=scope.semester_type,
                        is_active=True,
                    )
                    for slot in slots
                ]
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(
                "TIMETABLE PERSIST FAILED | academic_year=%s | semester_type=%s | slots=%s",
                scope.academic_year,
                scope.semester_type,
                len(slots),
            )
            raise PersistenceError(
                "Failed to store the generated timetable; the previous timetable was kept",
                details={"academic_year": scope.academic_year, "semester_type": scope.semester_type},
            ) from exc

        logger.info(
            "TIMETABLE PERSISTED | academic_year=%s | semester_type=%s | deleted=%s | inserted=%s",
            scope.academic_year,
            scope.semester_type,
            result.rowcount,
            len(slots),
        )
        return len(slots)

    def list_schedule(
        self,
        scope: GenerationScope,
        *,
        group_id: str | None = None,
        teacher_id: str | None = None,
    ) -> list[TimetableSlotPayload]:
        day_rank = case(
            {day: index for index, day in enumerate(DAY_ORDER)},
            value=TimetableSlot.day_of_week,
            else_=len(DAY_ORDER),
        )
        query = (
            select(TimetableSlot, Teacher, Subject, StudentGroup, Room)
            .join(Teacher, Teacher.id == TimetableSlot.teacher_id)
            .join(Subject, Subject.id == TimetableSlot.subject_id)
            .join(StudentGroup, StudentGroup.id == TimetableSlot.group_id)
            .join(Room, Room.id == TimetableSlot.room_id)
            .where(*self._scope_filter(scope), TimetableSlot.is_active.is_(True))
            .order_by(day_rank, TimetableSlot.period_number, StudentGroup.group_code)
        )
        if group_id is not None:
            query = query.where(TimetableSlot.group_id == group_id)
        if teacher_id is not None:
            query = query.where(TimetableSlot.teacher_id == teacher_id)

        return [
            TimetableSlotPayload(
                day=slot.day_of_week,
                period=slot.period_number,
                teacher_id=teacher.id,
                teacher_code=teacher.teacher_code,
                subject_id=subject.id,
                subject_code=subject.subject_code,
                course_type=subject.course_type.value,
                group_id=group.id,
                group_code=group.group_code,
                room_id=room.id,
                room_code=room.room_code,
                room_type=room.room_type.value,
                academic_year=slot.academic_year,
                semester_type=slot.semester_type,
            )
            for slot, teacher, subject, group, room in self.db.execute(query).all()
        ]
