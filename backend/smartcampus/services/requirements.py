from __future__ import annotations

from dataclasses import dataclass

from smartcampus.services.catalog import DomainCatalog


@dataclass(frozen=True)
class SessionRequirement:
    group_id: str
    subject_id: str
    sequence_index: int
    block_size: int
    declaration_index: int

    @property
    def shape(self) -> tuple[str, str, int]:
        return (self.group_id, self.subject_id, self.block_size)


def split_hours(hours: int, block_size: int) -> list[int]:
    """Split weekly hours into block lengths; a remainder becomes a shorter trailing block."""
    if block_size <= 1:
        return [1] * hours
    blocks = [block_size] * (hours // block_size)
    remainder = hours % block_size
    if remainder:
        blocks.append(remainder)
    return blocks


def expand_requirements(catalog: DomainCatalog, block_size: int = 2) -> list[SessionRequirement]:
    """Turn every (group, subject) requirement into atomic sessions, most constrained first."""
    requirements: list[SessionRequirement] = []
    for declaration_index, (group_id, subject_id) in enumerate(catalog.requirements):
        subject = catalog.subjects[subject_id]
        size = block_size if subject.requires_consecutive_periods else 1
        for sequence_index, length in enumerate(split_hours(subject.hours_per_week, size)):
            requirements.append(
                SessionRequirement(
                    group_id=group_id,
                    subject_id=subject_id,
                    sequence_index=sequence_index,
                    block_size=length,
                    declaration_index=declaration_index,
                )
            )

    def sort_key(item: SessionRequirement) -> tuple:
        return (
            len(catalog.eligibility.get(item.subject_id, ())),
            len(catalog.suitable_rooms(item.subject_id, item.group_id)),
            -item.block_size,
            item.declaration_index,
            item.sequence_index,
        )

    return sorted(requirements, key=sort_key)
