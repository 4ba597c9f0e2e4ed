from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from smartcampus.core.exceptions import ResourceNotFoundError
from smartcampus.models.assignments import SubjectGroupAssignment, TeacherSubjectAssignment
from smartcampus.models.room import Room, RoomType
from smartcampus.models.student_group import StudentGroup
from smartcampus.models.subject import CourseType, Subject
from smartcampus.models.teacher import Teacher
from smartcampus.schemas.generator import GenerationConfig, GenerationScope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeacherRecord:
    id: str
    code: str
    name: str = ""
    department: str = ""
    unavailable: frozenset[tuple[str, int]] = frozenset()


@dataclass(frozen=True)
class SubjectRecord:
    id: str
    code: str
    hours_per_week: int
    course_type: CourseType = CourseType.theory
    requires_consecutive_periods: bool = False
    max_periods_per_day: int = 2
    name: str = ""

    @property
    def requires_lab_room(self) -> bool:
        return self.course_type.requires_lab_room


@dataclass(frozen=True)
class RoomRecord:
    id: str
    code: str
    capacity: int
    room_type: RoomType = RoomType.classroom


@dataclass(frozen=True)
class GroupRecord:
    id: str
    code: str
    strength: int


@dataclass(frozen=True)
class Eligibility:
    teacher_id: str
    priority: int = 1


def room_suits(subject: SubjectRecord, group: GroupRecord, room: RoomRecord) -> bool:
    if room.capacity < group.strength:
        return False
    if subject.requires_lab_room:
        return room.room_type == RoomType.lab
    return True


@dataclass(frozen=True)
class DomainCatalog:
    """Read-only snapshot of the entities one generation run works from."""

    teachers: dict[str, TeacherRecord]
    subjects: dict[str, SubjectRecord]
    rooms: dict[str, RoomRecord]
    groups: dict[str, GroupRecord]
    eligibility: dict[str, tuple[Eligibility, ...]]
    # (group_id, subject_id) pairs in declaration order
    requirements: tuple[tuple[str, str], ...]
    _suitable_rooms: dict[tuple[str, str], tuple[RoomRecord, ...]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    @classmethod
    def build(
        cls,
        *,
        teachers: Iterable[TeacherRecord],
        subjects: Iterable[SubjectRecord],
        rooms: Iterable[RoomRecord],
        groups: Iterable[GroupRecord],
        eligibility: Iterable[tuple[str, str, int]],
        requirements: Iterable[tuple[str, str]],
    ) -> "DomainCatalog":
        teacher_map = {item.id: item for item in teachers}
        by_subject: dict[str, list[Eligibility]] = defaultdict(list)
        for teacher_id, subject_id, priority in eligibility:
            if teacher_id not in teacher_map:
                continue
            by_subject[subject_id].append(Eligibility(teacher_id=teacher_id, priority=priority))
        ordered = {
            subject_id: tuple(
                sorted(entries, key=lambda entry: (entry.priority, teacher_map[entry.teacher_id].code))
            )
            for subject_id, entries in by_subject.items()
        }
        seen: set[tuple[str, str]] = set()
        pairs: list[tuple[str, str]] = []
        for pair in requirements:
            if pair in seen:
                continue
            seen.add(pair)
            pairs.append(pair)
        return cls(
            teachers=teacher_map,
            subjects={item.id: item for item in subjects},
            rooms={item.id: item for item in rooms},
            groups={item.id: item for item in groups},
            eligibility=ordered,
            requirements=tuple(pairs),
        )

    def eligible_teachers(self, subject_id: str) -> tuple[TeacherRecord, ...]:
        return tuple(self.teachers[entry.teacher_id] for entry in self.eligibility.get(subject_id, ()))

    def suitable_rooms(self, subject_id: str, group_id: str) -> tuple[RoomRecord, ...]:
        key = (subject_id, group_id)
        cached = self._suitable_rooms.get(key)
        if cached is None:
            subject = self.subjects[subject_id]
            group = self.groups[group_id]
            cached = tuple(
                sorted(
                    (room for room in self.rooms.values() if room_suits(subject, group, room)),
                    key=lambda room: (room.capacity, room.code),
                )
            )
            self._suitable_rooms[key] = cached
        return cached

    def hours_for(self, group_id: str, subject_id: str) -> int:
        if (group_id, subject_id) not in self.requirements:
            return 0
        return self.subjects[subject_id].hours_per_week


def load_catalog(db: Session, scope: GenerationScope, config: GenerationConfig) -> DomainCatalog:
    effective_date = config.effective_date or date.today()
    working_days = set(config.working_days)

    group_query = select(StudentGroup).where(StudentGroup.is_active.is_(True))
    groups = [
        group
        for group in db.execute(group_query).scalars().all()
        if group.academic_year in (None, scope.academic_year)
        and group.semester_type in (None, scope.semester_type)
    ]
    if config.group_ids is not None:
        known = {group.id for group in groups}
        for group_id in config.group_ids:
            if group_id not in known:
                raise ResourceNotFoundError("Student group", group_id)
        wanted = set(config.group_ids)
        groups = [group for group in groups if group.id in wanted]

    subjects = db.execute(select(Subject).where(Subject.is_active.is_(True))).scalars().all()
    rooms = db.execute(select(Room).where(Room.is_active.is_(True))).scalars().all()
    teachers = (
        db.execute(
            select(Teacher).where(Teacher.is_active.is_(True)).options(selectinload(Teacher.unavailability))
        )
        .scalars()
        .all()
    )

    teacher_records = [
        TeacherRecord(
            id=teacher.id,
            code=teacher.teacher_code,
            name=teacher.full_name,
            department=teacher.department,
            unavailable=frozenset(
                (window.day_of_week, window.period_number)
                for window in teacher.unavailability
                if window.day_of_week in working_days and window.applies_on(effective_date)
            ),
        )
        for teacher in teachers
    ]
    subject_records = [
        SubjectRecord(
            id=subject.id,
            code=subject.subject_code,
            name=subject.subject_name,
            hours_per_week=subject.hours_per_week,
            course_type=subject.course_type,
            requires_consecutive_periods=subject.requires_consecutive_periods,
            max_periods_per_day=subject.max_periods_per_day or config.default_max_periods_per_day,
        )
        for subject in subjects
    ]
    subject_ids = {subject.id for subject in subjects}
    group_by_id = {group.id: group for group in groups}
    subject_by_id = {subject.id: subject for subject in subjects}

    eligibility_rows = db.execute(
        select(TeacherSubjectAssignment).where(TeacherSubjectAssignment.is_active.is_(True))
    ).scalars().all()
    requirement_rows = db.execute(
        select(SubjectGroupAssignment).where(SubjectGroupAssignment.is_active.is_(True))
    ).scalars().all()
    requirement_rows = sorted(
        (
            row
            for row in requirement_rows
            if row.group_id in group_by_id and row.subject_id in subject_ids
        ),
        key=lambda row: (group_by_id[row.group_id].group_code, subject_by_id[row.subject_id].subject_code),
    )

    catalog = DomainCatalog.build(
        teachers=teacher_records,
        subjects=subject_records,
        rooms=[
            RoomRecord(id=room.id, code=room.room_code, capacity=room.capacity, room_type=room.room_type)
            for room in rooms
        ],
        groups=[GroupRecord(id=group.id, code=group.group_code, strength=group.strength) for group in groups],
        eligibility=[
            (row.teacher_id, row.subject_id, row.priority)
            for row in eligibility_rows
            if row.subject_id in subject_ids
        ],
        requirements=[(row.group_id, row.subject_id) for row in requirement_rows],
    )
    logger.info(
        "TIMETABLE CATALOG LOADED | academic_year=%s | semester_type=%s | teachers=%s | subjects=%s | rooms=%s | groups=%s | requirements=%s",
        scope.academic_year,
        scope.semester_type,
        len(catalog.teachers),
        len(catalog.subjects),
        len(catalog.rooms),
        len(catalog.groups),
        len(catalog.requirements),
    )
    return catalog
