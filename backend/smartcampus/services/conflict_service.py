from collections import Counter, defaultdict
from typing import List, Optional
from smartcampus.models.room import RoomType
from smartcampus.schemas.conflict import ConflictReport, ConflictDetail
from smartcampus.schemas.generator import TimetableSlotPayload
from smartcampus.services.catalog import DomainCatalog

class ConflictService:
    def __init__(self, slots: List[TimetableSlotPayload], catalog: DomainCatalog, lunch_break_period: Optional[int] = None):
        self.slots = slots
        self.catalog = catalog
        self.lunch_break_period = lunch_break_period

    @staticmethod
    def slot_key(slot: TimetableSlotPayload) -> str:
        return f"{slot.day}:{slot.period}:{slot.group_code or slot.group_id}"

    def detect_conflicts(self) -> ConflictReport:
        conflicts: List[ConflictDetail] = []

        # Slots only clash inside the same period, so bucket by (day, period)
        slots_by_period = defaultdict(list)
        for slot in self.slots:
            slots_by_period[(slot.day, slot.period)].append(slot)

        for (day, period), period_slots in slots_by_period.items():
            n = len(period_slots)
            for i in range(n):
                s1 = period_slots[i]
                key1 = self.slot_key(s1)
                conflicts.extend(self._single_slot_conflicts(s1, key1))

                for j in range(i + 1, n):
                    s2 = period_slots[j]
                    key2 = self.slot_key(s2)
                    if s1.room_id == s2.room_id:
                        conflicts.append(ConflictDetail(
                            id=f"room-{key1}-{key2}",
                            conflict_type="room_conflict",
                            description=f"Room {s1.room_code or s1.room_id} double booked on {day} period {period}",
                            severity="hard",
                            affected_slots=[key1, key2]
                        ))
                    if s1.teacher_id == s2.teacher_id:
                        conflicts.append(ConflictDetail(
                            id=f"teacher-{key1}-{key2}",
                            conflict_type="teacher_conflict",
                            description=f"Teacher {s1.teacher_code or s1.teacher_id} double booked on {day} period {period}",
                            severity="hard",
                            affected_slots=[key1, key2]
                        ))
                    if s1.group_id == s2.group_id:
                        conflicts.append(ConflictDetail(
                            id=f"group-{key1}-{key2}",
                            conflict_type="group_conflict",
                            description=f"Group {s1.group_code or s1.group_id} double booked on {day} period {period}",
                            severity="hard",
                            affected_slots=[key1, key2]
                        ))

        conflicts.extend(self._hours_conflicts())
        return ConflictReport(conflicts=conflicts)

    def _single_slot_conflicts(self, slot: TimetableSlotPayload, key: str) -> List[ConflictDetail]:
        conflicts: List[ConflictDetail] = []
        if self.lunch_break_period is not None and slot.period == self.lunch_break_period:
            conflicts.append(ConflictDetail(
                id=f"lunch-{key}",
                conflict_type="lunch_break",
                description=f"Session scheduled in the lunch period {slot.period}",
                severity="hard",
                affected_slots=[key]
            ))

        teacher = self.catalog.teachers.get(slot.teacher_id)
        if teacher and (slot.day, slot.period) in teacher.unavailable:
            conflicts.append(ConflictDetail(
                id=f"avail-{key}",
                conflict_type="teacher_availability",
                description=f"Teacher {teacher.code} is unavailable on {slot.day} period {slot.period}",
                severity="hard",
                affected_slots=[key]
            ))

        room = self.catalog.rooms.get(slot.room_id)
        group = self.catalog.groups.get(slot.group_id)
        subject = self.catalog.subjects.get(slot.subject_id)
        if room and group and room.capacity < group.strength:
            conflicts.append(ConflictDetail(
                id=f"cap-{key}",
                conflict_type="room_capacity",
                description=f"Room {room.code} capacity ({room.capacity}) < Students ({group.strength})",
                severity="hard",
                affected_slots=[key]
            ))
        if room and subject and subject.requires_lab_room and room.room_type != RoomType.lab:
            conflicts.append(ConflictDetail(
                id=f"type-{key}",
                conflict_type="room_type",
                description=f"{subject.course_type.value.title()} session {subject.code} in non-lab room {room.code}",
                severity="hard",
                affected_slots=[key]
            ))
        return conflicts

    def _hours_conflicts(self) -> List[ConflictDetail]:
        conflicts: List[ConflictDetail] = []
        counts = Counter((slot.group_id, slot.subject_id) for slot in self.slots)
        for group_id, subject_id in self.catalog.requirements:
            expected = self.catalog.hours_for(group_id, subject_id)
            actual = counts.get((group_id, subject_id), 0)
            if actual == expected:
                continue
            group = self.catalog.groups[group_id]
            subject = self.catalog.subjects[subject_id]
            conflicts.append(ConflictDetail(
                id=f"hours-{group.code}-{subject.code}",
                conflict_type="hours_mismatch",
                description=f"Group {group.code} has {actual} of {expected} weekly periods of {subject.code}",
                severity="hard",
                affected_slots=[]
            ))
        return conflicts
