from __future__ import annotations

from dataclasses import dataclass, field

from smartcampus.core.exceptions import ConfigurationError


@dataclass(frozen=True, order=True)
class TimeSlot:
    day: str
    period: int


def build_slot_calendar(
    working_days: list[str] | tuple[str, ...],
    periods_per_day: int,
    lunch_break_period: int | None = None,
) -> tuple[TimeSlot, ...]:
    """Enumerate schedulable (day, period) pairs in day order then period order.

    Degenerate input (no days, no periods) yields an empty tuple.
    """
    if not working_days or periods_per_day <= 0:
        return ()
    return tuple(
        TimeSlot(day=day, period=period)
        for day in working_days
        for period in range(1, periods_per_day + 1)
        if period != lunch_break_period
    )


def validate_calendar_config(
    *,
    working_days: list[str],
    periods_per_day: int,
    lunch_break_period: int | None,
    max_iterations: int,
    consecutive_block_size: int,
) -> None:
    errors: list[str] = []
    if not working_days:
        errors.append("At least one working day is required")
    duplicates = sorted({day for day in working_days if working_days.count(day) > 1})
    if duplicates:
        errors.append(f"Duplicate working days: {', '.join(duplicates)}")
    if periods_per_day <= 0:
        errors.append(f"periods_per_day must be positive, got {periods_per_day}")
    if lunch_break_period is not None and not 1 <= lunch_break_period <= max(periods_per_day, 0):
        errors.append(f"Invalid lunch break period: {lunch_break_period}")
    if max_iterations <= 0:
        errors.append(f"max_iterations must be positive, got {max_iterations}")
    if consecutive_block_size <= 0:
        errors.append(f"consecutive_block_size must be positive, got {consecutive_block_size}")
    if errors:
        raise ConfigurationError("Invalid timetable generation config", details={"errors": errors})


@dataclass(frozen=True)
class SlotCalendar:
    working_days: tuple[str, ...]
    periods_per_day: int
    lunch_break_period: int | None = None
    slots: tuple[TimeSlot, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "slots",
            build_slot_calendar(self.working_days, self.periods_per_day, self.lunch_break_period),
        )

    def __len__(self) -> int:
        return len(self.slots)

    def periods_for(self, day: str) -> list[int]:
        return [slot.period for slot in self.slots if slot.day == day]

    def day_index(self, day: str) -> int:
        return self.working_days.index(day)

    def block_starts(self, block_size: int) -> list[int]:
        """Start periods of runs of `block_size` adjacent periods that never include lunch."""
        starts: list[int] = []
        for start in range(1, self.periods_per_day - block_size + 2):
            periods = range(start, start + block_size)
            if self.lunch_break_period is not None and self.lunch_break_period in periods:
                continue
            starts.append(start)
        return starts

    def block_count_per_day(self, block_size: int) -> int:
        """Maximum number of disjoint blocks that fit into one day."""
        count = 0
        run = 0
        for period in range(1, self.periods_per_day + 1):
            if period == self.lunch_break_period:
                count += run // block_size
                run = 0
                continue
            run += 1
        return count + run // block_size
