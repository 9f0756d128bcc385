from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from classgrid.services.schedule_state import Assignment, CourseRef
from classgrid.services.timeslots import SlotGrid

ProjectionView = Literal["teacher", "group", "room", "all"]
PROJECTION_VIEWS: tuple[ProjectionView, ...] = ("teacher", "group", "room", "all")


@dataclass(frozen=True)
class GridCell:
    day: str
    time: str
    courses: tuple[CourseRef, ...] = ()

    @property
    def course(self) -> CourseRef | None:
        return self.courses[0] if self.courses else None


def matches_view(course: CourseRef, view: ProjectionView, entity_id: str | None) -> bool:
    if view == "all":
        return True
    if view == "teacher":
        return course.teacher_id == entity_id
    if view == "group":
        return course.group_id == entity_id
    if view == "room":
        return course.room_id is not None and course.room_id == entity_id
    raise ValueError(f"Invalid schedule view: {view!r}")


def project_schedule(
    assignments: Iterable[Assignment],
    grid: SlotGrid,
    *,
    view: ProjectionView = "all",
    entity_id: str | None = None,
) -> list[GridCell]:
    """Dense day x time grid for one view; every cell is present, empty or not."""
    if view not in PROJECTION_VIEWS:
        raise ValueError(f"Invalid schedule view: {view!r}")
    if view != "all" and not entity_id:
        raise ValueError(f"An id is required for the {view} view")

    occupants: dict[tuple[int, int], dict[str, CourseRef]] = defaultdict(dict)
    for assignment in assignments:
        if assignment.slot not in grid or not matches_view(assignment.course, view, entity_id):
            continue
        occupants[assignment.slot.key].setdefault(assignment.course.id, assignment.course)

    cells: list[GridCell] = []
    for slot in grid:
        courses = sorted(occupants.get(slot.key, {}).values(), key=lambda course: (course.name, course.id))
        cells.append(GridCell(day=slot.day_name, time=slot.time_label, courses=tuple(courses)))
    return cells
