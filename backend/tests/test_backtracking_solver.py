from collections import Counter

import pytest

from smartcampus.models.room import RoomType
from smartcampus.services.backtracking_solver import BacktrackingSolver
from smartcampus.services.constraints import prescreen
from smartcampus.services.requirements import expand_requirements


def _solve(catalog, calendar, max_iterations=100_000, block_size=2):
    requirements = expand_requirements(catalog, block_size)
    diagnostics = prescreen(requirements, catalog, calendar)
    if diagnostics:
        return None, diagnostics
    return BacktrackingSolver(catalog, calendar, max_iterations).solve(requirements), []


def _slots(outcome):
    # (day, period, teacher, group, room, subject) per scheduled period
    return [
        (
            placement.candidate.day,
            period,
            placement.candidate.teacher_id,
            placement.requirement.group_id,
            placement.candidate.room_id,
            placement.requirement.subject_id,
        )
        for placement in outcome.placements
        for period in placement.candidate.periods
    ]


def _assert_schedule_invariants(catalog, calendar, slots):
    teacher_keys = Counter((day, period, teacher) for day, period, teacher, _, _, _ in slots)
    group_keys = Counter((day, period, group) for day, period, _, group, _, _ in slots)
    room_keys = Counter((day, period, room) for day, period, _, _, room, _ in slots)
    assert max(teacher_keys.values(), default=1) == 1
    assert max(group_keys.values(), default=1) == 1
    assert max(room_keys.values(), default=1) == 1

    for day, period, teacher, group, room, subject in slots:
        assert period != calendar.lunch_break_period
        assert (day, period) not in catalog.teachers[teacher].unavailable
        assert teacher in {item.id for item in catalog.eligible_teachers(subject)}
        assert catalog.rooms[room].capacity >= catalog.groups[group].strength
        if catalog.subjects[subject].requires_lab_room:
            assert catalog.rooms[room].room_type == RoomType.lab

    counts = Counter((group, subject) for _, _, _, group, _, subject in slots)
    for group_id, subject_id in catalog.requirements:
        assert counts[(group_id, subject_id)] == catalog.hours_for(group_id, subject_id)


def test_single_theory_subject_spreads_across_days(catalog_builder, weekly_calendar):
    catalog = catalog_builder(
        subjects=[("CS101", 3)],
        rooms=[("R1", 60), ("R2", 45)],
        groups=[("G1", 40)],
        eligibility=[("T1", "CS101")],
        requirements=[("G1", "CS101")],
    )
    calendar = weekly_calendar(days=5, periods=6)
    outcome, _ = _solve(catalog, calendar)

    assert outcome.success
    slots = _slots(outcome)
    assert len(slots) == 3
    assert len({day for day, *_ in slots}) == 3
    assert {teacher for _, _, teacher, *_ in slots} == {"T1"}
    # tightest room first
    assert {room for _, _, _, _, room, _ in slots} == {"R2"}
    _assert_schedule_invariants(catalog, calendar, slots)


def test_hours_beyond_the_week_are_infeasible(catalog_builder, weekly_calendar):
    catalog = catalog_builder(
        subjects=[("CS101", 40)],
        rooms=[("R1", 60), ("R2", 60)],
        groups=[("G1", 40)],
        eligibility=[("T1", "CS101")],
        requirements=[("G1", "CS101")],
    )
    outcome, diagnostics = _solve(catalog, weekly_calendar(days=5, periods=6))
    assert outcome is None
    assert any(item.resource == "group" and item.group_code == "G1" for item in diagnostics)


def test_lab_blocks_land_before_lunch_on_distinct_days(catalog_builder, weekly_calendar):
    catalog = catalog_builder(
        subjects=[("CS191", 6, "lab", True)],
        rooms=[("LAB1", 60, "lab")],
        groups=[("G1", 40)],
        eligibility=[("T1", "CS191")],
        requirements=[("G1", "CS191")],
    )
    calendar = weekly_calendar(days=5, periods=4, lunch=3)
    outcome, _ = _solve(catalog, calendar)

    assert outcome.success
    assert len(outcome.placements) == 3
    for placement in outcome.placements:
        assert list(placement.candidate.periods) == [1, 2]
    assert len({placement.candidate.day for placement in outcome.placements}) == 3
    _assert_schedule_invariants(catalog, calendar, _slots(outcome))


def test_shared_sole_teacher_overload_names_the_teacher(catalog_builder, weekly_calendar):
    catalog = catalog_builder(
        teachers=["T1"],
        subjects=[("CS101", 4, "theory", False, 3), ("CS102", 4, "theory", False, 3)],
        rooms=[("R1", 60), ("R2", 60)],
        groups=[("G1", 40), ("G2", 40)],
        eligibility=[("T1", "CS101"), ("T1", "CS102")],
        requirements=[("G1", "CS101"), ("G2", "CS102")],
    )
    outcome, diagnostics = _solve(catalog, weekly_calendar(days=2, periods=3))
    assert outcome is None
    teacher_issues = [item for item in diagnostics if item.resource == "teacher"]
    assert teacher_issues and teacher_issues[0].teacher_ids == ["T1"]
    assert "T1" in teacher_issues[0].message


def test_tiny_budget_reports_budget_exceeded(catalog_builder, weekly_calendar):
    catalog = catalog_builder(
        teachers=["T1", "T2"],
        subjects=[("CS101", 3), ("CS102", 3), ("CS191", 2, "lab", True)],
        rooms=[("R1", 60), ("LAB1", 60, "lab")],
        groups=[("G1", 40), ("G2", 40)],
        eligibility=[("T1", "CS101"), ("T2", "CS102"), ("T1", "CS191")],
        requirements=[("G1", "CS101"), ("G1", "CS102"), ("G2", "CS191"), ("G2", "CS101")],
    )
    calendar = weekly_calendar(days=5, periods=6)
    outcome, _ = _solve(catalog, calendar, max_iterations=1)

    assert not outcome.success
    assert outcome.reason == "budget_exceeded"
    assert outcome.iterations == 1
    assert outcome.diagnostics[0].resource == "budget"

    # the same problem is solvable with the default budget
    solved, _ = _solve(catalog, calendar)
    assert solved.success
    _assert_schedule_invariants(catalog, calendar, _slots(solved))


def test_empty_requirements_succeed_immediately(catalog_builder, weekly_calendar):
    outcome = BacktrackingSolver(catalog_builder(), weekly_calendar()).solve([])
    assert outcome.success
    assert outcome.placements == []
    assert outcome.iterations == 0


def test_forward_checking_moves_earlier_session(catalog_builder, weekly_calendar):
    catalog = catalog_builder(
        teachers=["T1", "T2"],
        subjects=[("X", 1), ("Y", 1)],
        rooms=[("R1", 60)],
        groups=[("G1", 40)],
        eligibility=[("T1", "X"), ("T2", "Y")],
        requirements=[("G1", "X"), ("G1", "Y")],
        unavailable={"T2": {("Monday", 2)}},
    )
    calendar = weekly_calendar(days=1, periods=2)
    requirements = expand_requirements(catalog, 2)
    assert [item.subject_id for item in requirements] == ["X", "Y"]

    outcome = BacktrackingSolver(catalog, calendar).solve(requirements)

    assert outcome.success
    placed = {placement.requirement.subject_id: placement.candidate.start_period for placement in outcome.placements}
    assert placed == {"X": 2, "Y": 1}
    # X at period 1 is pruned, X at period 2, then Y at period 1
    assert outcome.iterations == 3


def test_budget_boundary_is_inclusive(catalog_builder, weekly_calendar):
    catalog = catalog_builder(
        teachers=["T1", "T2"],
        subjects=[("X", 1), ("Y", 1)],
        rooms=[("R1", 60)],
        groups=[("G1", 40)],
        eligibility=[("T1", "X"), ("T2", "Y")],
        requirements=[("G1", "X"), ("G1", "Y")],
        unavailable={"T2": {("Monday", 2)}},
    )
    calendar = weekly_calendar(days=1, periods=2)
    requirements = expand_requirements(catalog, 2)

    assert BacktrackingSolver(catalog, calendar, max_iterations=3).solve(requirements).success
    assert BacktrackingSolver(catalog, calendar, max_iterations=2).solve(requirements).reason == "budget_exceeded"


def test_room_exhaustion_is_diagnosed(catalog_builder, weekly_calendar):
    catalog = catalog_builder(
        teachers=["T1", "T2"],
        subjects=[("X", 1), ("Y", 1)],
        rooms=[("R1", 60)],
        groups=[("G1", 40), ("G2", 40)],
        eligibility=[("T1", "X"), ("T2", "Y")],
        requirements=[("G1", "X"), ("G2", "Y")],
    )
    calendar = weekly_calendar(days=1, periods=1)
    requirements = expand_requirements(catalog, 2)
    assert prescreen(requirements, catalog, calendar) == []

    outcome = BacktrackingSolver(catalog, calendar).solve(requirements)

    assert not outcome.success
    assert outcome.reason == "resource_exhaustion"
    assert outcome.diagnostics[0].resource == "room"
    assert outcome.diagnostics[0].subject_code == "Y"


def test_lab_block_never_straddles_lunch(catalog_builder, weekly_calendar):
    catalog = catalog_builder(
        teachers=["T1", "T2"],
        subjects=[("TH", 1, "theory", False, 1), ("LAB", 2, "lab", True)],
        rooms=[("R1", 60), ("LAB1", 60, "lab")],
        groups=[("G1", 40)],
        eligibility=[("T1", "TH"), ("T2", "LAB")],
        requirements=[("G1", "TH"), ("G1", "LAB")],
        # on Monday T2 is only free in periods 2 and 4, which straddle lunch at 3
        unavailable={"T2": {("Monday", 1), ("Monday", 5)}},
    )
    calendar = weekly_calendar(days=2, periods=5, lunch=3)
    outcome, _ = _solve(catalog, calendar)

    assert outcome.success
    lab = next(item for item in outcome.placements if item.requirement.subject_id == "LAB")
    assert lab.candidate.day == "Tuesday"
    assert list(lab.candidate.periods) in ([1, 2], [4, 5])
    _assert_schedule_invariants(catalog, calendar, _slots(outcome))


def test_solver_is_deterministic(catalog_builder, weekly_calendar):
    catalog = catalog_builder(
        teachers=["T1", "T2", "T3"],
        subjects=[("CS101", 4), ("CS102", 3), ("CS103", 2), ("CS191", 4, "lab", True)],
        rooms=[("R1", 60), ("R2", 80), ("LAB1", 60, "lab")],
        groups=[("G1", 50), ("G2", 40), ("G3", 55)],
        eligibility=[
            ("T1", "CS101"),
            ("T2", "CS101", 2),
            ("T2", "CS102"),
            ("T3", "CS103"),
            ("T1", "CS191"),
            ("T3", "CS191", 2),
        ],
        requirements=[
            ("G1", "CS101"),
            ("G1", "CS191"),
            ("G2", "CS102"),
            ("G2", "CS103"),
            ("G3", "CS101"),
            ("G3", "CS191"),
        ],
        unavailable={"T1": {("Monday", 1), ("Tuesday", 2)}},
    )
    calendar = weekly_calendar(days=5, periods=6, lunch=4)
    first, _ = _solve(catalog, calendar)
    second, _ = _solve(catalog, calendar)

    assert first.success
    assert _slots(first) == _slots(second)
    assert first.iterations == second.iterations
    _assert_schedule_invariants(catalog, calendar, _slots(first))


@pytest.mark.parametrize("days,periods,lunch", [(5, 8, 5), (6, 6, None), (5, 7, 4)])
def test_generated_schedules_hold_invariants(catalog_builder, weekly_calendar, days, periods, lunch):
    groups = [(f"G{index}", 30 + index * 5) for index in range(1, 5)]
    catalog = catalog_builder(
        teachers=["T1", "T2", "T3", "T4", "T5"],
        subjects=[
            ("MATH", 4),
            ("PHY", 3),
            ("CHEM", 3),
            ("ENG", 2),
            ("PLAB", 2, "practical", True),
            ("CLAB", 4, "lab", True),
        ],
        rooms=[("R1", 50), ("R2", 60), ("R3", 70), ("LAB1", 60, "lab"), ("LAB2", 70, "lab")],
        groups=groups,
        eligibility=[
            ("T1", "MATH"),
            ("T2", "MATH", 2),
            ("T2", "PHY"),
            ("T3", "CHEM"),
            ("T4", "ENG"),
            ("T5", "PLAB"),
            ("T3", "CLAB"),
            ("T5", "CLAB", 2),
        ],
        requirements=[(code, subject) for code, _ in groups for subject in ("MATH", "PHY", "CHEM", "ENG", "PLAB", "CLAB")],
    )
    calendar = weekly_calendar(days=days, periods=periods, lunch=lunch)
    outcome, diagnostics = _solve(catalog, calendar)

    assert diagnostics == []
    assert outcome.success
    _assert_schedule_invariants(catalog, calendar, _slots(outcome))
