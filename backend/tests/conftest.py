import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from smartcampus.db.base import Base
import smartcampus.models  # noqa: F401
from smartcampus.models.assignments import SubjectGroupAssignment, TeacherSubjectAssignment
from smartcampus.models.room import Room, RoomType
from smartcampus.models.student_group import StudentGroup
from smartcampus.models.subject import CourseType, Subject
from smartcampus.models.teacher import Teacher, TeacherUnavailability
from smartcampus.services.catalog import DomainCatalog, GroupRecord, RoomRecord, SubjectRecord, TeacherRecord
from smartcampus.services.generation_lock import get_scope_lock_registry
from smartcampus.services.slot_calendar import SlotCalendar

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


@pytest.fixture()
def engine():
    engine = create_engine(  # isolated in-memory DB shared across connections
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db(engine):
    get_scope_lock_registry().clear()
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        get_scope_lock_registry().clear()


def build_catalog(
    *,
    teachers=("T1",),
    subjects=(),
    rooms=(),
    groups=(),
    eligibility=(),
    requirements=(),
    unavailable=None,
) -> DomainCatalog:
    """Build a catalog where every id equals its code.

    subjects: (code, hours) or (code, hours, course_type, consecutive[, max_per_day])
    rooms: (code, capacity[, room_type])
    groups: (code, strength)
    eligibility: (teacher, subject[, priority])
    """
    unavailable = unavailable or {}
    subject_records = []
    for item in subjects:
        code, hours, *rest = item
        course_type = CourseType(rest[0]) if len(rest) > 0 else CourseType.theory
        consecutive = rest[1] if len(rest) > 1 else False
        max_per_day = rest[2] if len(rest) > 2 else 2
        subject_records.append(
            SubjectRecord(
                id=code,
                code=code,
                hours_per_week=hours,
                course_type=course_type,
                requires_consecutive_periods=consecutive,
                max_periods_per_day=max_per_day,
            )
        )
    room_records = []
    for item in rooms:
        code, capacity, *rest = item
        room_records.append(
            RoomRecord(id=code, code=code, capacity=capacity, room_type=RoomType(rest[0]) if rest else RoomType.classroom)
        )
    return DomainCatalog.build(
        teachers=[
            TeacherRecord(id=code, code=code, unavailable=frozenset(unavailable.get(code, ())))
            for code in teachers
        ],
        subjects=subject_records,
        rooms=room_records,
        groups=[GroupRecord(id=code, code=code, strength=strength) for code, strength in groups],
        eligibility=[(item[0], item[1], item[2] if len(item) > 2 else 1) for item in eligibility],
        requirements=requirements,
    )


@pytest.fixture()
def catalog_builder():
    return build_catalog


@pytest.fixture()
def weekly_calendar():
    def _calendar(days=5, periods=6, lunch=None) -> SlotCalendar:
        return SlotCalendar(working_days=tuple(WEEKDAYS[:days]), periods_per_day=periods, lunch_break_period=lunch)

    return _calendar


@pytest.fixture()
def seed_campus(db):
    """Insert a small campus into the DB and return the generated ids by code."""

    def _seed(
        *,
        teachers=("T1",),
        subjects=(("CS101", 3),),
        rooms=(("R101", 60),),
        groups=(("CSE-A", 40),),
        eligibility=(("T1", "CS101"),),
        requirements=(("CSE-A", "CS101"),),
        unavailability=(),
        academic_year="2024-25",
        semester_type="odd",
    ) -> dict[str, str]:
        ids: dict[str, str] = {}
        for code in teachers:
            teacher = Teacher(teacher_code=code, full_name=f"Teacher {code}", department="CSE")
            db.add(teacher)
            db.flush()
            ids[code] = teacher.id
        for item in subjects:
            code, hours, *rest = item
            subject = Subject(
                subject_code=code,
                subject_name=f"Subject {code}",
                hours_per_week=hours,
                course_type=CourseType(rest[0]) if rest else CourseType.theory,
                requires_consecutive_periods=rest[1] if len(rest) > 1 else False,
                department="CSE",
                semester=1,
            )
            db.add(subject)
            db.flush()
            ids[code] = subject.id
        for item in rooms:
            code, capacity, *rest = item
            room = Room(
                room_code=code,
                room_name=f"Room {code}",
                capacity=capacity,
                room_type=RoomType(rest[0]) if rest else RoomType.classroom,
            )
            db.add(room)
            db.flush()
            ids[code] = room.id
        for code, strength in groups:
            group = StudentGroup(
                group_code=code,
                group_name=f"Group {code}",
                strength=strength,
                department="CSE",
                semester=1,
                academic_year=academic_year,
                semester_type=semester_type,
            )
            db.add(group)
            db.flush()
            ids[code] = group.id
        for item in eligibility:
            db.add(
                TeacherSubjectAssignment(
                    teacher_id=ids[item[0]],
                    subject_id=ids[item[1]],
                    priority=item[2] if len(item) > 2 else 1,
                )
            )
        for group_code, subject_code in requirements:
            db.add(SubjectGroupAssignment(subject_id=ids[subject_code], group_id=ids[group_code]))
        for window in unavailability:
            db.add(TeacherUnavailability(teacher_id=ids[window["teacher"]], **{k: v for k, v in window.items() if k != "teacher"}))
        db.commit()
        return ids

    return _seed
