"""
Conflict detection shared by automatic generation, manual entry and verification.

Two slots clash when their (day, hour) cells are equal. Within a clashing cell two
different courses conflict when they share a teacher, a group, or a room (only when
both courses have one).
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Literal

from classgrid.services.availability import AvailabilityModel, EntityKind
from classgrid.services.schedule_state import Assignment, CourseRef, ScheduleState
from classgrid.services.timeslots import TimeSlot

ConflictReason = Literal["double_booking", "unavailable", "skill_mismatch"]


@dataclass(frozen=True)
class Conflict:
    type: EntityKind
    message: str
    slot: TimeSlot
    course: CourseRef
    conflicting_course: CourseRef | None = None
    reason: ConflictReason = "double_booking"

    @property
    def conflicting_course_name(self) -> str | None:
        if self.conflicting_course is None:
            return None
        return self.conflicting_course.name


def _label(name: str | None, fallback: str) -> str:
    return name or fallback


def _describe_subject(course: CourseRef) -> str:
    return course.subject_name or course.name


class ConflictDetector:
    def __init__(self, availability: AvailabilityModel) -> None:
        self.availability = availability

    def is_feasible(self, course: CourseRef, slot: TimeSlot, state: ScheduleState) -> bool:
        """Fail-fast verdict used by the allocator."""
        day, hour = slot.key
        if self.availability.is_unavailable("teacher", course.teacher_id, day, hour):
            return False
        if course.room_id is not None and self.availability.is_unavailable("room", course.room_id, day, hour):
            return False
        if self.availability.is_unavailable("group", course.group_id, day, hour):
            return False
        for other in state.at(slot):
            if other.course.id == course.id:
                continue
            if self._shared_resources(course, other.course):
                return False
        return True

    def find_conflicts(self, course: CourseRef, slot: TimeSlot, state: ScheduleState) -> list[Conflict]:
        """Every reason ``course`` cannot take ``slot``, one entry per violated rule."""
        conflicts = self._unavailability_conflicts(course, slot)
        for other in state.at(slot):
            if other.course.id == course.id:
                continue
            for kind in self._shared_resources(course, other.course):
                conflicts.append(
                    Conflict(
                        type=kind,
                        message=self._double_booking_message(kind, course, other.course, slot),
                        slot=slot,
                        course=course,
                        conflicting_course=other.course,
                    )
                )
        return conflicts

    def audit(
        self,
        assignments: Iterable[Assignment],
        *,
        teacher_skills: Mapping[str, Iterable[str]] | None = None,
    ) -> list[Conflict]:
        """Verify a whole assignment set, committed or merely proposed."""
        conflicts: list[Conflict] = []
        by_slot: dict[tuple[int, int], list[Assignment]] = defaultdict(list)
        for assignment in assignments:
            by_slot[assignment.slot.key].append(assignment)
            conflicts.extend(self._unavailability_conflicts(assignment.course, assignment.slot))
            conflicts.extend(self._skill_conflicts(assignment, teacher_skills or {}))

        for key in sorted(by_slot):
            occupants = by_slot[key]
            for i in range(len(occupants)):
                first = occupants[i]
                for j in range(i + 1, len(occupants)):
                    second = occupants[j]
                    if first.course.id == second.course.id:
                        continue
                    for kind in self._shared_resources(first.course, second.course):
                        conflicts.append(
                            Conflict(
                                type=kind,
                                message=self._overlap_message(kind, first.course, second.course, first.slot),
                                slot=first.slot,
                                course=first.course,
                                conflicting_course=second.course,
                            )
                        )
        return conflicts

    @staticmethod
    def _shared_resources(course: CourseRef, other: CourseRef) -> list[EntityKind]:
        shared: list[EntityKind] = []
        if course.teacher_id == other.teacher_id:
            shared.append("teacher")
        if course.room_id is not None and other.room_id is not None and course.room_id == other.room_id:
            shared.append("room")
        if course.group_id == other.group_id:
            shared.append("group")
        return shared

    def _unavailability_conflicts(self, course: CourseRef, slot: TimeSlot) -> list[Conflict]:
        day, hour = slot.key
        checks: list[tuple[EntityKind, str | None, str]] = [
            ("teacher", course.teacher_id, f"Teacher {_label(course.teacher_name, course.teacher_id)}"),
            ("room", course.room_id, f"Room {_label(course.room_name, course.room_id or '')}"),
            ("group", course.group_id, f"Group {_label(course.group_name, course.group_id)}"),
        ]
        conflicts: list[Conflict] = []
        for kind, entity_id, label in checks:
            if not self.availability.is_unavailable(kind, entity_id, day, hour):
                continue
            window = self.availability.blocking_window(kind, entity_id, day, hour)
            if window is None:
                message = f"{label} has no availability record; {slot} cannot be confirmed"
            else:
                message = f"{label} is unavailable on {window.day_name} {window.time_label}"
            conflicts.append(Conflict(type=kind, message=message, slot=slot, course=course, reason="unavailable"))
        return conflicts

    @staticmethod
    def _skill_conflicts(assignment: Assignment, teacher_skills: Mapping[str, Iterable[str]]) -> list[Conflict]:
        course = assignment.course
        skills = set(teacher_skills.get(course.teacher_id) or ())
        if not skills or course.subject_id is None or course.subject_id in skills:
            return []
        return [
            Conflict(
                type="teacher",
                message=(
                    f"Teacher {_label(course.teacher_name, course.teacher_id)} is not qualified to teach "
                    f"{_describe_subject(course)}"
                ),
                slot=assignment.slot,
                course=course,
                reason="skill_mismatch",
            )
        ]

    @staticmethod
    def _double_booking_message(kind: EntityKind, course: CourseRef, other: CourseRef, slot: TimeSlot) -> str:
        when = f"on {slot.day_name} at {slot.time_label}"
        if kind == "teacher":
            teacher = _label(course.teacher_name, course.teacher_id)
            return f"Teacher {teacher} is already scheduled for {_describe_subject(other)} {when}"
        if kind == "room":
            room = _label(course.room_name, course.room_id or "")
            return f"Room {room} is already booked for {_describe_subject(other)} {when}"
        group = _label(course.group_name, course.group_id)
        return f"Group {group} already has {_describe_subject(other)} scheduled {when}"

    @staticmethod
    def _overlap_message(kind: EntityKind, first: CourseRef, second: CourseRef, slot: TimeSlot) -> str:
        pair = f"{first.name} and {second.name} on {slot.day_name} at {slot.time_label}"
        if kind == "teacher":
            return f"Teacher {_label(first.teacher_name, first.teacher_id)} has overlapping classes: {pair}"
        if kind == "room":
            return f"Room {_label(first.room_name, first.room_id or '')} has overlapping bookings: {pair}"
        return f"Group {_label(first.group_name, first.group_id)} has overlapping classes: {pair}"
