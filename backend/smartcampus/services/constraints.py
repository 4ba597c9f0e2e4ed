from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Iterator, Sequence

from smartcampus.schemas.generator import GenerationDiagnostic
from smartcampus.services.catalog import DomainCatalog, SubjectRecord, TeacherRecord
from smartcampus.services.requirements import SessionRequirement
from smartcampus.services.slot_calendar import SlotCalendar


@dataclass(frozen=True)
class Candidate:
    day: str
    start_period: int
    block_size: int
    teacher_id: str
    room_id: str

    @property
    def periods(self) -> range:
        return range(self.start_period, self.start_period + self.block_size)


def daily_cap(subject: SubjectRecord, block_size: int) -> int:
    # A block never splits across days, so the cap is at least one block.
    return max(subject.max_periods_per_day, block_size)


def sole_teacher_id(catalog: DomainCatalog, subject_id: str) -> str | None:
    entries = catalog.eligibility.get(subject_id, ())
    if len(entries) == 1:
        return entries[0].teacher_id
    return None


def available_periods(teacher: TeacherRecord, calendar: SlotCalendar) -> int:
    return sum(1 for slot in calendar.slots if (slot.day, slot.period) not in teacher.unavailable)


class Occupancy:
    """Mutable search state owned by a single solve run."""

    def __init__(
        self,
        catalog: DomainCatalog,
        calendar: SlotCalendar,
        requirements: Sequence[SessionRequirement] = (),
    ) -> None:
        self.catalog = catalog
        self.calendar = calendar
        self.busy_teachers: dict[tuple[str, int], set[str]] = defaultdict(set)
        self.busy_rooms: dict[tuple[str, int], set[str]] = defaultdict(set)
        self.busy_groups: dict[tuple[str, int], set[str]] = defaultdict(set)
        self.subject_day_counts: Counter[tuple[str, str, str]] = Counter()
        self.teacher_free: dict[str, int] = {
            teacher_id: available_periods(teacher, calendar)
            for teacher_id, teacher in catalog.teachers.items()
        }
        self.sole_demand: Counter[str] = Counter()
        for requirement in requirements:
            teacher_id = sole_teacher_id(catalog, requirement.subject_id)
            if teacher_id is not None:
                self.sole_demand[teacher_id] += requirement.block_size

    def teacher_busy(self, teacher_id: str, day: str, period: int) -> bool:
        return teacher_id in self.busy_teachers.get((day, period), ())

    def room_busy(self, room_id: str, day: str, period: int) -> bool:
        return room_id in self.busy_rooms.get((day, period), ())

    def group_busy(self, group_id: str, day: str, period: int) -> bool:
        return group_id in self.busy_groups.get((day, period), ())

    def subject_day_count(self, group_id: str, subject_id: str, day: str) -> int:
        return self.subject_day_counts[(group_id, subject_id, day)]

    def occupy(self, requirement: SessionRequirement, candidate: Candidate) -> None:
        for period in candidate.periods:
            key = (candidate.day, period)
            self.busy_teachers[key].add(candidate.teacher_id)
            self.busy_rooms[key].add(candidate.room_id)
            self.busy_groups[key].add(requirement.group_id)
        self.subject_day_counts[(requirement.group_id, requirement.subject_id, candidate.day)] += candidate.block_size
        self.teacher_free[candidate.teacher_id] -= candidate.block_size
        if sole_teacher_id(self.catalog, requirement.subject_id) is not None:
            self.sole_demand[candidate.teacher_id] -= candidate.block_size

    def release(self, requirement: SessionRequirement, candidate: Candidate) -> None:
        for period in candidate.periods:
            key = (candidate.day, period)
            self.busy_teachers[key].discard(candidate.teacher_id)
            self.busy_rooms[key].discard(candidate.room_id)
            self.busy_groups[key].discard(requirement.group_id)
        self.subject_day_counts[(requirement.group_id, requirement.subject_id, candidate.day)] -= candidate.block_size
        self.teacher_free[candidate.teacher_id] += candidate.block_size
        if sole_teacher_id(self.catalog, requirement.subject_id) is not None:
            self.sole_demand[candidate.teacher_id] += candidate.block_size

    def overloaded_teacher(self) -> str | None:
        """Return a teacher whose remaining sole-teacher demand no longer fits their free periods."""
        for teacher_id, demand in self.sole_demand.items():
            if demand > self.teacher_free.get(teacher_id, 0):
                return teacher_id
        return None


def _iter_candidates(
    requirement: SessionRequirement,
    catalog: DomainCatalog,
    calendar: SlotCalendar,
    occupancy: Occupancy,
) -> Iterator[tuple[tuple, Candidate]]:
    subject = catalog.subjects[requirement.subject_id]
    teachers = catalog.eligible_teachers(requirement.subject_id)
    rooms = catalog.suitable_rooms(requirement.subject_id, requirement.group_id)
    if not teachers or not rooms:
        return
    size = requirement.block_size
    cap = daily_cap(subject, size)
    starts = calendar.block_starts(size)

    for day_index, day in enumerate(calendar.working_days):
        day_count = occupancy.subject_day_count(requirement.group_id, requirement.subject_id, day)
        if day_count + size > cap:
            continue
        for start in starts:
            periods = range(start, start + size)
            if any(occupancy.group_busy(requirement.group_id, day, period) for period in periods):
                continue
            for rank, teacher in enumerate(teachers):
                if any(
                    (day, period) in teacher.unavailable or occupancy.teacher_busy(teacher.id, day, period)
                    for period in periods
                ):
                    continue
                proximity = int((day, start - 1) in teacher.unavailable) + int(
                    (day, start + size) in teacher.unavailable
                )
                for room in rooms:
                    if any(occupancy.room_busy(room.id, day, period) for period in periods):
                        continue
                    key = (day_count, rank, proximity, room.capacity, day_index, start, room.code)
                    yield key, Candidate(
                        day=day,
                        start_period=start,
                        block_size=size,
                        teacher_id=teacher.id,
                        room_id=room.id,
                    )


def candidates_for(
    requirement: SessionRequirement,
    catalog: DomainCatalog,
    calendar: SlotCalendar,
    occupancy: Occupancy,
) -> list[Candidate]:
    """Ordered candidate domain for one requirement under the current occupancy.

    Hard constraints filter; the order prefers days where the subject has not
    been taught yet, then teacher priority, then slots away from the teacher's
    unavailability, then the smallest room that fits.
    """
    scored = sorted(_iter_candidates(requirement, catalog, calendar, occupancy), key=lambda item: item[0])
    return [candidate for _, candidate in scored]


def has_any_candidate(
    requirement: SessionRequirement,
    catalog: DomainCatalog,
    calendar: SlotCalendar,
    occupancy: Occupancy,
) -> bool:
    for _ in _iter_candidates(requirement, catalog, calendar, occupancy):
        return True
    return False


def _describe(catalog: DomainCatalog, group_id: str, subject_id: str) -> dict:
    group = catalog.groups.get(group_id)
    subject = catalog.subjects.get(subject_id)
    return {
        "group_id": group_id,
        "group_code": group.code if group else None,
        "subject_id": subject_id,
        "subject_code": subject.code if subject else None,
    }


def prescreen(
    requirements: Sequence[SessionRequirement],
    catalog: DomainCatalog,
    calendar: SlotCalendar,
) -> list[GenerationDiagnostic]:
    """Capacity checks that prove infeasibility before any search happens."""
    diagnostics: list[GenerationDiagnostic] = []
    slot_count = len(calendar)

    pairs: dict[tuple[str, str], list[SessionRequirement]] = defaultdict(list)
    group_demand: Counter[str] = Counter()
    teacher_demand: Counter[str] = Counter()
    teacher_subjects: dict[str, list[str]] = defaultdict(list)
    for requirement in requirements:
        pairs[(requirement.group_id, requirement.subject_id)].append(requirement)
        group_demand[requirement.group_id] += requirement.block_size
        teacher_id = sole_teacher_id(catalog, requirement.subject_id)
        if teacher_id is not None:
            teacher_demand[teacher_id] += requirement.block_size
            code = catalog.subjects[requirement.subject_id].code
            if code not in teacher_subjects[teacher_id]:
                teacher_subjects[teacher_id].append(code)

    for (group_id, subject_id), items in sorted(
        pairs.items(), key=lambda entry: min(item.declaration_index for item in entry[1])
    ):
        subject = catalog.subjects[subject_id]
        group = catalog.groups[group_id]
        context = _describe(catalog, group_id, subject_id)
        if not catalog.eligible_teachers(subject_id):
            diagnostics.append(
                GenerationDiagnostic(
                    resource="teacher",
                    message=f"No eligible teacher is assigned to subject {subject.code}",
                    **context,
                )
            )
        if not catalog.suitable_rooms(subject_id, group_id):
            kind = "lab room" if subject.requires_lab_room else "room"
            diagnostics.append(
                GenerationDiagnostic(
                    resource="room",
                    message=(
                        f"No {kind} with capacity >= {group.strength} for subject {subject.code} "
                        f"and group {group.code}"
                    ),
                    **context,
                )
            )

        blocks_by_size = Counter(item.block_size for item in items)
        for size, count in sorted(blocks_by_size.items(), reverse=True):
            if not calendar.block_starts(size):
                diagnostics.append(
                    GenerationDiagnostic(
                        resource="calendar",
                        message=(
                            f"No run of {size} consecutive periods avoids the lunch break "
                            f"for subject {subject.code}"
                        ),
                        **context,
                    )
                )
                continue
            per_day = min(calendar.block_count_per_day(size), daily_cap(subject, size) // size)
            allowed = per_day * len(calendar.working_days)
            if count > allowed:
                diagnostics.append(
                    GenerationDiagnostic(
                        resource="calendar",
                        message=(
                            f"Subject {subject.code} needs {count} sessions of {size} period(s) for group "
                            f"{group.code} but the week allows at most {allowed}"
                        ),
                        **context,
                    )
                )

    for group_id, demand in group_demand.items():
        if demand > slot_count:
            group = catalog.groups[group_id]
            diagnostics.append(
                GenerationDiagnostic(
                    resource="group",
                    message=(
                        f"Group {group.code} requires {demand} periods but only {slot_count} "
                        "periods are available per week"
                    ),
                    group_id=group_id,
                    group_code=group.code,
                )
            )

    for teacher_id, demand in teacher_demand.items():
        teacher = catalog.teachers[teacher_id]
        free = available_periods(teacher, calendar)
        if demand > free:
            diagnostics.append(
                GenerationDiagnostic(
                    resource="teacher",
                    message=(
                        f"Teacher {teacher.code} is the only teacher for {', '.join(teacher_subjects[teacher_id])} "
                        f"and needs {demand} periods but has only {free} free periods"
                    ),
                    teacher_ids=[teacher_id],
                )
            )
    return diagnostics


def diagnose(
    requirement: SessionRequirement,
    catalog: DomainCatalog,
    calendar: SlotCalendar,
    occupancy: Occupancy,
) -> GenerationDiagnostic:
    """Best-effort classification of why a requirement has no candidate left."""
    subject = catalog.subjects[requirement.subject_id]
    group = catalog.groups[requirement.group_id]
    context = _describe(catalog, requirement.group_id, requirement.subject_id)
    teachers = catalog.eligible_teachers(requirement.subject_id)
    teacher_ids = [teacher.id for teacher in teachers]

    if not teachers:
        return GenerationDiagnostic(
            resource="teacher",
            message=f"No eligible teacher is assigned to subject {subject.code}",
            **context,
        )
    if not catalog.suitable_rooms(requirement.subject_id, requirement.group_id):
        return GenerationDiagnostic(
            resource="room",
            message=f"No suitable room for subject {subject.code} and group {group.code}",
            **context,
        )
    size = requirement.block_size
    starts = calendar.block_starts(size)
    if not starts:
        return GenerationDiagnostic(
            resource="calendar",
            message=f"No run of {size} consecutive periods avoids the lunch break for subject {subject.code}",
            **context,
        )

    cap = daily_cap(subject, size)
    windows = [
        (day, range(start, start + size))
        for day in calendar.working_days
        if occupancy.subject_day_count(requirement.group_id, requirement.subject_id, day) + size <= cap
        for start in starts
        if not any(occupancy.group_busy(requirement.group_id, day, period) for period in range(start, start + size))
    ]
    if not windows:
        return GenerationDiagnostic(
            resource="group",
            message=f"Group {group.code} has no free {size}-period window left for subject {subject.code}",
            **context,
        )

    teacher_windows = [
        (day, periods)
        for day, periods in windows
        if any(
            all(
                (day, period) not in teacher.unavailable and not occupancy.teacher_busy(teacher.id, day, period)
                for period in periods
            )
            for teacher in teachers
        )
    ]
    if not teacher_windows:
        codes = ", ".join(teacher.code for teacher in teachers)
        return GenerationDiagnostic(
            resource="teacher",
            message=f"No eligible teacher ({codes}) is free when group {group.code} can take {subject.code}",
            teacher_ids=teacher_ids,
            **context,
        )
    return GenerationDiagnostic(
        resource="room",
        message=f"No suitable room is free when group {group.code} can take {subject.code}",
        teacher_ids=teacher_ids,
        **context,
    )
