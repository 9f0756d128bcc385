from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from classgrid.services.timeslots import TimeSlot


@dataclass(frozen=True)
class CourseRef:
    """Read-only view of a course as the scheduler needs it."""

    id: str
    name: str
    teacher_id: str
    group_id: str
    weekly_sessions: int = 1
    room_id: str | None = None
    subject_id: str | None = None
    subject_name: str = ""
    teacher_name: str = ""
    group_name: str = ""
    room_name: str | None = None

    def __post_init__(self) -> None:
        if self.weekly_sessions < 1:
            raise ValueError(f"Course {self.name} must have at least one weekly session")


@dataclass(frozen=True)
class Assignment:
    course: CourseRef
    slot: TimeSlot


class ScheduleState:
    """Committed assignments of one planning cycle, indexed by slot."""

    def __init__(self, assignments: Iterable[Assignment] = ()) -> None:
        self._assignments: list[Assignment] = []
        self._by_slot: dict[tuple[int, int], list[Assignment]] = defaultdict(list)
        for assignment in assignments:
            self.add(assignment)

    def add(self, assignment: Assignment) -> None:
        self._assignments.append(assignment)
        self._by_slot[assignment.slot.key].append(assignment)

    def at(self, slot: TimeSlot) -> list[Assignment]:
        return list(self._by_slot.get(slot.key, ()))

    def for_course(self, course_id: str) -> list[Assignment]:
        return [item for item in self._assignments if item.course.id == course_id]

    def days_used_by(self, course_id: str) -> set[int]:
        return {item.slot.day for item in self._assignments if item.course.id == course_id}

    def slots_used_by(self, course_id: str) -> set[tuple[int, int]]:
        return {item.slot.key for item in self._assignments if item.course.id == course_id}

    def remove_courses(self, course_ids: Iterable[str]) -> list[Assignment]:
        doomed = set(course_ids)
        removed = [item for item in self._assignments if item.course.id in doomed]
        if removed:
            self._rebuild([item for item in self._assignments if item.course.id not in doomed])
        return removed

    def replace_course(self, course_id: str, assignments: Iterable[Assignment]) -> list[Assignment]:
        """Delete every assignment of ``course_id`` and insert ``assignments`` in its place."""
        incoming = list(assignments)
        stray = [item for item in incoming if item.course.id != course_id]
        if stray:
            raise ValueError(f"Replacement assignments must all belong to course {course_id}")
        removed = self.remove_courses([course_id])
        for assignment in incoming:
            self.add(assignment)
        return removed

    def without_courses(self, course_ids: Iterable[str]) -> "ScheduleState":
        excluded = set(course_ids)
        return ScheduleState(item for item in self._assignments if item.course.id not in excluded)

    def course_ids(self) -> set[str]:
        return {item.course.id for item in self._assignments}

    def _rebuild(self, assignments: list[Assignment]) -> None:
        self._assignments = []
        self._by_slot = defaultdict(list)
        for assignment in assignments:
            self.add(assignment)

    def __iter__(self) -> Iterator[Assignment]:
        return iter(list(self._assignments))

    def __len__(self) -> int:
        return len(self._assignments)
