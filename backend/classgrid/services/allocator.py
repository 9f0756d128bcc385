from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from classgrid.services.conflict_detector import ConflictDetector
from classgrid.services.schedule_state import Assignment, CourseRef, ScheduleState
from classgrid.services.timeslots import SlotGrid, TimeSlot

logger = logging.getLogger(__name__)

UnscheduledReason = Literal["no_feasible_slot", "evaluation_cap"]


@dataclass(frozen=True)
class UnscheduledSession:
    course: CourseRef
    session_number: int
    reason: UnscheduledReason


@dataclass
class AllocationResult:
    state: ScheduleState
    courses: list[CourseRef]
    placed: list[Assignment] = field(default_factory=list)
    unscheduled: list[UnscheduledSession] = field(default_factory=list)
    evaluations: int = 0

    @property
    def total_courses(self) -> int:
        return len(self.courses)

    @property
    def total_sessions(self) -> int:
        return sum(course.weekly_sessions for course in self.courses)

    @property
    def scheduled_sessions(self) -> int:
        return len(self.placed)

    @property
    def scheduled_courses(self) -> int:
        incomplete = {item.course.id for item in self.unscheduled}
        return sum(1 for course in self.courses if course.id not in incomplete)


class _EvaluationBudgetExhausted(Exception):
    pass


class GreedyAllocator:
    """Most-constrained-first greedy placement of course sessions.

    At every turn the pending course with the fewest feasible slots goes next. Its
    sessions are placed one at a time, preferring a day the course does not use yet
    and then the earliest hour. A session with no feasible slot is reported and
    skipped.

    Each pending course's feasible set is scanned once over the grid and then only
    narrowed: a placement at slot S can only invalidate S for the other courses, so
    only that cell is re-checked. ``max_evaluations`` bounds the number of
    (course, slot) feasibility checks of one run; once spent, every remaining
    session is reported as skipped.
    """

    def __init__(self, *, grid: SlotGrid, detector: ConflictDetector, max_evaluations: int | None = None) -> None:
        if max_evaluations is not None and max_evaluations < 1:
            raise ValueError("max_evaluations must be positive")
        self.grid = grid
        self.detector = detector
        self.max_evaluations = max_evaluations
        self._evaluations = 0

    def allocate(self, courses: Sequence[CourseRef], state: ScheduleState | None = None) -> AllocationResult:
        seen: set[str] = set()
        for course in courses:
            if course.id in seen:
                raise ValueError(f"Course {course.id} appears more than once in the allocation batch")
            seen.add(course.id)

        working_state = state if state is not None else ScheduleState()
        result = AllocationResult(state=working_state, courses=list(courses))
        self._evaluations = 0
        pending = list(courses)

        try:
            feasible = {course.id: self._feasible_slots(course, working_state) for course in pending}
            while pending:
                # min() keeps the earliest course on ties.
                course = min(pending, key=lambda item: len(feasible[item.id]))
                pending.remove(course)
                options = feasible.pop(course.id)
                for session_number in range(1, course.weekly_sessions + 1):
                    slot = self._pick_slot(course, options, working_state)
                    if slot is None:
                        logger.warning(
                            "SESSION UNSCHEDULED | course_id=%s | course=%s | session=%s/%s | reason=no_feasible_slot",
                            course.id,
                            course.name,
                            session_number,
                            course.weekly_sessions,
                        )
                        result.unscheduled.append(
                            UnscheduledSession(course=course, session_number=session_number, reason="no_feasible_slot")
                        )
                        continue
                    assignment = Assignment(course=course, slot=slot)
                    working_state.add(assignment)
                    result.placed.append(assignment)
                    options = [item for item in options if item.key != slot.key]
                    self._narrow(pending, feasible, slot, working_state)
        except _EvaluationBudgetExhausted:
            processed: dict[str, int] = {}
            for item in [*result.placed, *result.unscheduled]:
                processed[item.course.id] = processed.get(item.course.id, 0) + 1
            for course in result.courses:
                for session_number in range(processed.get(course.id, 0) + 1, course.weekly_sessions + 1):
                    result.unscheduled.append(
                        UnscheduledSession(course=course, session_number=session_number, reason="evaluation_cap")
                    )
            logger.warning(
                "ALLOCATION STOPPED | reason=evaluation_cap | max_evaluations=%s | placed=%s | unscheduled=%s",
                self.max_evaluations,
                len(result.placed),
                len(result.unscheduled),
            )

        result.evaluations = self._evaluations
        return result

    def _check(self, course: CourseRef, slot: TimeSlot, state: ScheduleState) -> bool:
        if self.max_evaluations is not None and self._evaluations >= self.max_evaluations:
            raise _EvaluationBudgetExhausted()
        self._evaluations += 1
        return self.detector.is_feasible(course, slot, state)

    def _feasible_slots(self, course: CourseRef, state: ScheduleState) -> list[TimeSlot]:
        taken = state.slots_used_by(course.id)
        return [slot for slot in self.grid if slot.key not in taken and self._check(course, slot, state)]

    def _narrow(
        self,
        pending: list[CourseRef],
        feasible: dict[str, list[TimeSlot]],
        slot: TimeSlot,
        state: ScheduleState,
    ) -> None:
        for other in pending:
            options = feasible[other.id]
            if slot in options and not self._check(other, slot, state):
                options.remove(slot)

    def _pick_slot(self, course: CourseRef, feasible: list[TimeSlot], state: ScheduleState) -> TimeSlot | None:
        if not feasible:
            return None
        used_days = state.days_used_by(course.id)
        fresh = [slot for slot in feasible if slot.day not in used_days]
        candidates = fresh or feasible
        return min(candidates, key=lambda slot: (slot.hour, self.grid.day_position(slot.day)))
