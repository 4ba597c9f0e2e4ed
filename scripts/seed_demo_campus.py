"""Seed a demo department and generate its weekly timetable.

Run:
  PYTHONPATH=backend python scripts/seed_demo_campus.py
"""

from __future__ import annotations

import os

from sqlalchemy import func, select

from smartcampus.db.bootstrap import ensure_runtime_schema_compatibility
from smartcampus.db.session import SessionLocal
from smartcampus.models.assignments import SubjectGroupAssignment, TeacherSubjectAssignment
from smartcampus.models.room import Room, RoomType
from smartcampus.models.student_group import StudentGroup
from smartcampus.models.subject import CourseType, Subject
from smartcampus.models.teacher import Teacher, TeacherUnavailability
from smartcampus.models.timetable_slot import TimetableSlot
from smartcampus.schemas.generator import GenerationConfig, GenerationScope
from smartcampus.services.persistence import TimetableRepository
from smartcampus.services.timetable_generation import generate_timetable

ACADEMIC_YEAR = os.getenv("SEED_ACADEMIC_YEAR", "2026-27").strip() or "2026-27"
SEMESTER_TYPE = os.getenv("SEED_SEMESTER_TYPE", "odd").strip().lower()
if SEMESTER_TYPE not in {"odd", "even"}:
    SEMESTER_TYPE = "odd"

DEPARTMENT = "CSE"
SEMESTER = 3

TEACHERS = [
    ("CSE01", "Dr. Meera Nair"),
    ("CSE02", "Prof. Arjun Rao"),
    ("CSE03", "Dr. Kavya Iyer"),
    ("CSE04", "Prof. Rahul Menon"),
    ("MAT01", "Dr. Lakshmi Pillai"),
    ("MAT02", "Prof. Vivek Sharma"),
]

# code, name, hours per week, course type, consecutive periods
SUBJECTS = [
    ("CS201", "Data Structures", 4, CourseType.theory, False),
    ("CS202", "Database Systems", 3, CourseType.theory, False),
    ("CS203", "Operating Systems", 3, CourseType.theory, False),
    ("MA201", "Discrete Mathematics", 4, CourseType.theory, False),
    ("CS291", "Data Structures Lab", 2, CourseType.lab, True),
    ("CS292", "Database Systems Lab", 2, CourseType.lab, True),
]

# teacher, subject, priority
ELIGIBILITY = [
    ("CSE01", "CS201", 1),
    ("CSE02", "CS201", 2),
    ("CSE02", "CS202", 1),
    ("CSE03", "CS203", 1),
    ("CSE04", "CS203", 2),
    ("MAT01", "MA201", 1),
    ("MAT02", "MA201", 1),
    ("CSE01", "CS291", 1),
    ("CSE04", "CS291", 2),
    ("CSE02", "CS292", 1),
    ("CSE04", "CS292", 1),
]

ROOMS = [
    ("A101", 60, RoomType.classroom),
    ("A102", 65, RoomType.classroom),
    ("A103", 70, RoomType.classroom),
    ("LAB-1", 70, RoomType.lab),
    ("LAB-2", 70, RoomType.lab),
]

GROUPS = [("CSE-3A", 60), ("CSE-3B", 58)]

# weekly windows the teachers are never free
UNAVAILABILITY = [
    ("CSE01", "Monday", 1, "Department meeting"),
    ("MAT01", "Friday", 7, "Research seminar"),
]


def upsert_teachers(session) -> dict[str, Teacher]:
    by_code: dict[str, Teacher] = {}
    for code, name in TEACHERS:
        teacher = session.execute(select(Teacher).where(Teacher.teacher_code == code)).scalar_one_or_none()
        if teacher is None:
            teacher = Teacher(teacher_code=code, full_name=name, department=DEPARTMENT)
            session.add(teacher)
        else:
            teacher.full_name = name
            teacher.department = DEPARTMENT
            teacher.is_active = True
        session.flush()
        by_code[code] = teacher
    return by_code


def upsert_unavailability(session, teachers: dict[str, Teacher]) -> None:
    for code, day, period, reason in UNAVAILABILITY:
        teacher = teachers[code]
        existing = session.execute(
            select(TeacherUnavailability).where(
                TeacherUnavailability.teacher_id == teacher.id,
                TeacherUnavailability.day_of_week == day,
                TeacherUnavailability.period_number == period,
            )
        ).scalar_one_or_none()
        if existing is None:
            session.add(
                TeacherUnavailability(teacher_id=teacher.id, day_of_week=day, period_number=period, reason=reason)
            )


def upsert_subjects(session) -> dict[str, Subject]:
    by_code: dict[str, Subject] = {}
    for code, name, hours, course_type, consecutive in SUBJECTS:
        subject = session.execute(select(Subject).where(Subject.subject_code == code)).scalar_one_or_none()
        if subject is None:
            subject = Subject(subject_code=code, subject_name=name, department=DEPARTMENT, semester=SEMESTER)
            session.add(subject)
        subject.subject_name = name
        subject.hours_per_week = hours
        subject.course_type = course_type
        subject.requires_consecutive_periods = consecutive
        subject.is_active = True
        session.flush()
        by_code[code] = subject
    return by_code


def upsert_rooms(session) -> None:
    for code, capacity, room_type in ROOMS:
        room = session.execute(select(Room).where(Room.room_code == code)).scalar_one_or_none()
        if room is None:
            room = Room(room_code=code, room_name=f"Room {code}", capacity=capacity, room_type=room_type)
            session.add(room)
        else:
            room.capacity = capacity
            room.room_type = room_type
            room.is_active = True
        room.building = "Academic Block"
        room.has_computer = room_type == RoomType.lab


def upsert_groups(session) -> dict[str, StudentGroup]:
    by_code: dict[str, StudentGroup] = {}
    for code, strength in GROUPS:
        group = session.execute(select(StudentGroup).where(StudentGroup.group_code == code)).scalar_one_or_none()
        if group is None:
            group = StudentGroup(group_code=code, group_name=f"{DEPARTMENT} Semester {SEMESTER} {code[-1]}")
            session.add(group)
        group.strength = strength
        group.department = DEPARTMENT
        group.semester = SEMESTER
        group.academic_year = ACADEMIC_YEAR
        group.semester_type = SEMESTER_TYPE
        group.is_active = True
        session.flush()
        by_code[code] = group
    return by_code


def upsert_assignments(
    session,
    teachers: dict[str, Teacher],
    subjects: dict[str, Subject],
    groups: dict[str, StudentGroup],
) -> None:
    for teacher_code, subject_code, priority in ELIGIBILITY:
        teacher_id = teachers[teacher_code].id
        subject_id = subjects[subject_code].id
        assignment = session.execute(
            select(TeacherSubjectAssignment).where(
                TeacherSubjectAssignment.teacher_id == teacher_id,
                TeacherSubjectAssignment.subject_id == subject_id,
            )
        ).scalar_one_or_none()
        if assignment is None:
            session.add(TeacherSubjectAssignment(teacher_id=teacher_id, subject_id=subject_id, priority=priority))
        else:
            assignment.priority = priority
            assignment.is_active = True

    for group in groups.values():
        for subject in subjects.values():
            existing = session.execute(
                select(SubjectGroupAssignment).where(
                    SubjectGroupAssignment.subject_id == subject.id,
                    SubjectGroupAssignment.group_id == group.id,
                )
            ).scalar_one_or_none()
            if existing is None:
                session.add(SubjectGroupAssignment(subject_id=subject.id, group_id=group.id))


def main() -> None:
    ensure_runtime_schema_compatibility()
    scope = GenerationScope(academic_year=ACADEMIC_YEAR, semester_type=SEMESTER_TYPE)

    with SessionLocal() as session:
        teachers = upsert_teachers(session)
        upsert_unavailability(session, teachers)
        subjects = upsert_subjects(session)
        upsert_rooms(session)
        groups = upsert_groups(session)
        upsert_assignments(session, teachers, subjects, groups)
        session.commit()

        result = generate_timetable(session, scope, GenerationConfig.from_settings())
        slot_count = session.execute(select(func.count(TimetableSlot.id))).scalar_one()
        schedule = TimetableRepository(session).list_schedule(scope) if result.success else []

    print("Demo campus seeded successfully.")
    print("")
    print(f"Scope: {ACADEMIC_YEAR} ({SEMESTER_TYPE})")
    print(f"Teachers: {len(TEACHERS)}  Subjects: {len(SUBJECTS)}  Rooms: {len(ROOMS)}  Groups: {len(GROUPS)}")
    print(f"Generation status: {result.status}  iterations: {result.statistics.iterations}")
    if not result.success:
        print(f"  {result.infeasible.message}")
        for item in result.infeasible.diagnostics:
            print(f"  - [{item.resource}] {item.message}")
        return

    print(f"Stored slots: {slot_count}")
    print("")
    for slot in schedule:
        print(
            f"  {slot.day:<9} P{slot.period}  {slot.group_code:<7} {slot.subject_code:<6} "
            f"{slot.teacher_code:<6} {slot.room_code}"
        )


if __name__ == "__main__":
    main()
