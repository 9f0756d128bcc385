"""
Operator-proposed slots for a single course.

``check`` previews every conflict of a proposal without touching the schedule.
``commit`` swaps the course's assignments for the proposal, optionally refusing
when the check is not clean.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from classgrid.core.exceptions import SlotValidationError
from classgrid.services.conflict_detector import Conflict, ConflictDetector
from classgrid.services.schedule_state import Assignment, CourseRef, ScheduleState
from classgrid.services.timeslots import (
    DEFAULT_DURATION_MINUTES,
    SlotGrid,
    TimeSlot,
    day_index,
    parse_hour_label,
)


@dataclass
class ManualCheckResult:
    course: CourseRef
    slots: list[TimeSlot]
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.conflicts


@dataclass
class ManualCommitResult:
    course: CourseRef
    committed: bool
    assignments: list[Assignment] = field(default_factory=list)
    replaced: list[Assignment] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)


def _slot_field(raw: Any, name: str) -> Any:
    if isinstance(raw, Mapping):
        return raw.get(name)
    return getattr(raw, name, None)


def parse_slot(raw: Any, grid: SlotGrid, *, index: int | None = None) -> TimeSlot:
    """Build one on-grid slot from a raw ``{day, time[, duration]}`` item or raise ``SlotValidationError``."""
    day = _slot_field(raw, "day")
    time = _slot_field(raw, "time")
    duration = _slot_field(raw, "duration")
    if day is None or day == "":
        raise SlotValidationError("All time slots must have a day", field="day", index=index)
    if not time:
        raise SlotValidationError("All time slots must have a time", field="time", index=index)
    try:
        day_value = day_index(day)
    except ValueError as exc:
        raise SlotValidationError(str(exc), field="day", index=index) from exc
    try:
        hour = parse_hour_label(str(time))
    except ValueError as exc:
        raise SlotValidationError(str(exc), field="time", index=index) from exc
    try:
        slot = TimeSlot(
            day=day_value,
            hour=hour,
            duration_minutes=DEFAULT_DURATION_MINUTES if duration is None else int(duration),
        )
    except (TypeError, ValueError) as exc:
        raise SlotValidationError(str(exc), field="duration", index=index) from exc
    if slot not in grid:
        raise SlotValidationError(
            f"{slot} is outside the working week ({', '.join(grid.day_names)}, "
            f"{grid.start_hour:02d}:00-{grid.end_hour:02d}:00)",
            field="time" if slot.day in grid.days else "day",
            index=index,
        )
    return slot


class ManualAssignmentValidator:
    def __init__(self, *, grid: SlotGrid, detector: ConflictDetector) -> None:
        self.grid = grid
        self.detector = detector

    def validate_slots(self, raw_slots: Sequence[Any]) -> list[TimeSlot]:
        """Turn raw ``{day, time[, duration]}`` items into slots, rejecting the first malformed one."""
        if raw_slots is None or isinstance(raw_slots, (str, bytes)):
            raise SlotValidationError("Time slots must be a list", field="timeSlots")

        slots: list[TimeSlot] = []
        seen: set[tuple[int, int]] = set()
        for index, raw in enumerate(raw_slots):
            slot = parse_slot(raw, self.grid, index=index)
            if slot.key in seen:
                raise SlotValidationError(f"{slot} is proposed more than once", field="time", index=index)
            seen.add(slot.key)
            slots.append(slot)
        return slots

    def check(self, course: CourseRef, raw_slots: Sequence[Any], state: ScheduleState) -> ManualCheckResult:
        slots = self.validate_slots(raw_slots)
        # The course's own assignments are about to be replaced, so they never count against it.
        baseline = state.without_courses([course.id])
        result = ManualCheckResult(course=course, slots=slots)
        for slot in slots:
            result.conflicts.extend(self.detector.find_conflicts(course, slot, baseline))
        return result

    def commit(
        self,
        course: CourseRef,
        raw_slots: Sequence[Any],
        state: ScheduleState,
        *,
        enforce: bool = True,
    ) -> ManualCommitResult:
        if enforce:
            check = self.check(course, raw_slots, state)
            if not check.ok:
                return ManualCommitResult(course=course, committed=False, conflicts=check.conflicts)
            slots = check.slots
        else:
            slots = self.validate_slots(raw_slots)

        assignments = [Assignment(course=course, slot=slot) for slot in slots]
        replaced = state.replace_course(course.id, assignments)
        return ManualCommitResult(course=course, committed=True, assignments=assignments, replaced=replaced)
