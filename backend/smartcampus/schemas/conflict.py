from pydantic import BaseModel
from typing import Literal, List

class ConflictDetail(BaseModel):
    id: str
    conflict_type: Literal[
        "teacher_conflict",
        "group_conflict",
        "room_conflict",
        "room_capacity",
        "room_type",
        "lunch_break",
        "teacher_availability",
        "hours_mismatch",
    ]
    description: str
    severity: Literal["hard", "soft"]
    affected_slots: List[str]  # "day:period:group" keys of the slots involved

class ConflictReport(BaseModel):
    conflicts: List[ConflictDetail]

    @property
    def hard_conflicts(self) -> int:
        return sum(1 for item in self.conflicts if item.severity == "hard")
