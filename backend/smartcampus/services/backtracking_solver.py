from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Sequence

from smartcampus.schemas.generator import GenerationDiagnostic, InfeasibleReason
from smartcampus.services.catalog import DomainCatalog
from smartcampus.services.constraints import (
    Candidate,
    Occupancy,
    candidates_for,
    diagnose,
    has_any_candidate,
)
from smartcampus.services.requirements import SessionRequirement
from smartcampus.services.slot_calendar import SlotCalendar

logger = logging.getLogger(__name__)

PROGRESS_LOG_EVERY = 1000


@dataclass(frozen=True)
class Placement:
    requirement: SessionRequirement
    candidate: Candidate


@dataclass
class SolveOutcome:
    placements: list[Placement] | None
    iterations: int
    reason: InfeasibleReason | None = None
    diagnostics: list[GenerationDiagnostic] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.placements is not None


@dataclass
class _ChoicePoint:
    requirement: SessionRequirement
    candidates: list[Candidate]
    cursor: int = 0
    placed: Candidate | None = None


class BacktrackingSolver:
    """Depth-first search over session placements with forward checking.

    The search keeps an explicit stack of choice points instead of recursing,
    so the number of requirements is not bounded by the interpreter's
    recursion limit. Every candidate attempt counts against `max_iterations`.
    """

    def __init__(self, catalog: DomainCatalog, calendar: SlotCalendar, max_iterations: int = 100_000) -> None:
        self.catalog = catalog
        self.calendar = calendar
        self.max_iterations = max_iterations
        self.iterations = 0
        self._deepest_failure = -1
        self._failure: GenerationDiagnostic | None = None

    def solve(self, requirements: Sequence[SessionRequirement]) -> SolveOutcome:
        requirements = list(requirements)
        self.iterations = 0
        self._deepest_failure = -1
        self._failure = None
        if not requirements:
            return SolveOutcome(placements=[], iterations=0)

        occupancy = Occupancy(self.catalog, self.calendar, requirements)
        shapes_from = self._remaining_shapes(requirements)

        blocked = self._forward_check(shapes_from[0], occupancy)
        if blocked is not None:
            self._note_failure(0, blocked, occupancy)
            return self._exhausted()

        stack = [self._choice_point(requirements[0], occupancy)]
        while stack:
            frame = stack[-1]
            depth = len(stack) - 1
            if frame.placed is not None:
                occupancy.release(frame.requirement, frame.placed)
                frame.placed = None

            if not frame.candidates:
                self._note_failure(depth, frame.requirement, occupancy)

            while frame.cursor < len(frame.candidates):
                candidate = frame.candidates[frame.cursor]
                frame.cursor += 1
                self.iterations += 1
                if self.iterations > self.max_iterations:
                    logger.warning(
                        "TIMETABLE SOLVER BUDGET EXCEEDED | max_iterations=%s | depth=%s | requirements=%s",
                        self.max_iterations,
                        depth,
                        len(requirements),
                    )
                    return SolveOutcome(
                        placements=None,
                        iterations=self.max_iterations,
                        reason="budget_exceeded",
                        diagnostics=[
                            GenerationDiagnostic(
                                resource="budget",
                                message=(
                                    f"Could not generate a timetable within {self.max_iterations} iterations; "
                                    "raise the iteration budget or relax constraints"
                                ),
                            )
                        ],
                    )
                if self.iterations % PROGRESS_LOG_EVERY == 0:
                    logger.debug(
                        "TIMETABLE SOLVER PROGRESS | iterations=%s | placed=%s | requirements=%s",
                        self.iterations,
                        depth,
                        len(requirements),
                    )

                occupancy.occupy(frame.requirement, candidate)
                next_index = depth + 1
                if next_index < len(requirements):
                    blocked = self._forward_check(shapes_from[next_index], occupancy)
                    if blocked is not None:
                        self._note_failure(next_index, blocked, occupancy)
                        occupancy.release(frame.requirement, candidate)
                        continue
                frame.placed = candidate
                break

            if frame.placed is None:
                stack.pop()
                continue
            if len(stack) == len(requirements):
                return SolveOutcome(
                    placements=[Placement(item.requirement, item.placed) for item in stack],
                    iterations=self.iterations,
                )
            stack.append(self._choice_point(requirements[len(stack)], occupancy, previous=frame))

        return self._exhausted()

    def _choice_point(
        self,
        requirement: SessionRequirement,
        occupancy: Occupancy,
        previous: _ChoicePoint | None = None,
    ) -> _ChoicePoint:
        candidates = candidates_for(requirement, self.catalog, self.calendar, occupancy)
        if previous is not None and previous.placed is not None and previous.requirement.shape == requirement.shape:
            # Sessions of one shape are interchangeable: only place them in slot order.
            floor = (self.calendar.day_index(previous.placed.day), previous.placed.start_period)
            candidates = [
                item for item in candidates if (self.calendar.day_index(item.day), item.start_period) > floor
            ]
        return _ChoicePoint(requirement=requirement, candidates=candidates)

    @staticmethod
    def _remaining_shapes(requirements: list[SessionRequirement]) -> list[tuple[SessionRequirement, ...]]:
        # One representative per (group, subject, block size) for every suffix.
        shapes_from: list[tuple[SessionRequirement, ...]] = [()] * (len(requirements) + 1)
        seen: dict[tuple[str, str, int], SessionRequirement] = {}
        for index in range(len(requirements) - 1, -1, -1):
            requirement = requirements[index]
            if requirement.shape not in seen:
                seen[requirement.shape] = requirement
            shapes_from[index] = tuple(seen.values())
        return shapes_from

    def _forward_check(
        self,
        shapes: tuple[SessionRequirement, ...],
        occupancy: Occupancy,
    ) -> SessionRequirement | str | None:
        """Return whatever became impossible: a requirement without candidates or an overloaded teacher id."""
        teacher_id = occupancy.overloaded_teacher()
        if teacher_id is not None:
            return teacher_id
        for requirement in shapes:
            if not has_any_candidate(requirement, self.catalog, self.calendar, occupancy):
                return requirement
        return None

    def _note_failure(self, depth: int, blocked: SessionRequirement | str, occupancy: Occupancy) -> None:
        if depth <= self._deepest_failure:
            return
        self._deepest_failure = depth
        if isinstance(blocked, SessionRequirement):
            self._failure = diagnose(blocked, self.catalog, self.calendar, occupancy)
            return
        teacher = self.catalog.teachers[blocked]
        self._failure = GenerationDiagnostic(
            resource="teacher",
            message=(
                f"Teacher {teacher.code} has {occupancy.teacher_free.get(blocked, 0)} free periods left "
                f"for {occupancy.sole_demand[blocked]} periods only they can teach"
            ),
            teacher_ids=[blocked],
        )

    def _exhausted(self) -> SolveOutcome:
        diagnostics = [self._failure] if self._failure is not None else []
        return SolveOutcome(
            placements=None,
            iterations=self.iterations,
            reason="resource_exhaustion",
            diagnostics=diagnostics,
        )
