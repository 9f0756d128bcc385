import pytest

from classgrid.services.projection import project_schedule
from classgrid.services.schedule_state import Assignment, CourseRef
from classgrid.services.timeslots import SlotGrid, TimeSlot

ALGEBRA = CourseRef(id="c1", name="Algebra", teacher_id="t1", group_id="g1", room_id="r1")
BIOLOGY = CourseRef(id="c2", name="Biology", teacher_id="t2", group_id="g2")


def test_every_cell_is_returned():
    grid = SlotGrid.from_day_names()
    assignments = [Assignment(ALGEBRA, TimeSlot.from_labels("Tuesday", "10:00-11:00"))]

    cells = project_schedule(assignments, grid, view="teacher", entity_id="t1")

    assert len(cells) == len(grid.days) * len(grid.hours)
    filled = [cell for cell in cells if cell.course is not None]
    assert [(cell.day, cell.time, cell.course.id) for cell in filled] == [("Tuesday", "10:00-11:00", "c1")]
    assert (cells[0].day, cells[0].time) == ("Monday", "08:00-09:00")


def test_views_filter_by_entity():
    grid = SlotGrid.from_day_names(["Monday"], 9, 10)
    slot = TimeSlot.from_labels("Monday", "09:00-10:00")
    assignments = [Assignment(ALGEBRA, slot), Assignment(BIOLOGY, slot)]

    assert project_schedule(assignments, grid, view="teacher", entity_id="t2")[0].course.id == "c2"
    assert project_schedule(assignments, grid, view="group", entity_id="g1")[0].course.id == "c1"
    assert project_schedule(assignments, grid, view="room", entity_id="r1")[0].course.id == "c1"
    assert project_schedule(assignments, grid, view="room", entity_id="r9")[0].course is None


def test_all_view_keeps_every_occupant_sorted_by_name():
    grid = SlotGrid.from_day_names(["Monday"], 9, 10)
    slot = TimeSlot.from_labels("Monday", "09:00-10:00")
    cells = project_schedule([Assignment(BIOLOGY, slot), Assignment(ALGEBRA, slot)], grid)

    assert cells[0].course.name == "Algebra"
    assert [course.name for course in cells[0].courses] == ["Algebra", "Biology"]


def test_assignments_outside_the_grid_are_left_out():
    grid = SlotGrid.from_day_names()
    cells = project_schedule([Assignment(ALGEBRA, TimeSlot.from_labels("Saturday", "09:00-10:00"))], grid)
    assert all(cell.course is None for cell in cells)


def test_view_arguments_are_checked():
    grid = SlotGrid.from_day_names()
    with pytest.raises(ValueError):
        project_schedule([], grid, view="building", entity_id="b1")
    with pytest.raises(ValueError):
        project_schedule([], grid, view="teacher")
