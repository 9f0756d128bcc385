import itertools

import pytest

from classgrid.services.allocator import GreedyAllocator
from classgrid.services.availability import AvailabilityModel
from classgrid.services.conflict_detector import ConflictDetector
from classgrid.services.schedule_state import Assignment, CourseRef, ScheduleState
from classgrid.services.timeslots import SlotGrid, TimeSlot
from conftest import make_settings


def make_allocator(model, grid=None, **kwargs):
    return GreedyAllocator(grid=grid or SlotGrid.from_day_names(), detector=ConflictDetector(model), **kwargs)


def open_model(teachers=(), rooms=(), groups=()):
    return AvailabilityModel.from_records(
        teachers={item: [] for item in teachers},
        rooms={item: [] for item in rooms},
        groups={item: [] for item in groups},
    )


def test_courses_sharing_a_teacher_get_different_slots():
    courses = [
        CourseRef(id="c1", name="Algebra", teacher_id="t1", group_id="g1"),
        CourseRef(id="c2", name="Geometry", teacher_id="t1", group_id="g2"),
    ]
    result = make_allocator(open_model(["t1"], groups=["g1", "g2"])).allocate(courses)

    assert result.unscheduled == []
    first, second = result.placed
    assert first.slot != second.slot


def test_teacher_window_is_never_used():
    model = AvailabilityModel.from_records(
        teachers={"t1": [{"day": "Monday", "time": "08:00-10:00"}]},
        groups={"g1": []},
    )
    course = CourseRef(id="c1", name="Algebra", teacher_id="t1", group_id="g1")
    blocked = {TimeSlot.from_labels("Monday", "08:00-09:00"), TimeSlot.from_labels("Monday", "09:00-10:00")}

    result = make_allocator(model).allocate([course])
    assert result.placed[0].slot not in blocked

    monday_only = make_allocator(model, SlotGrid.from_day_names(["Monday"])).allocate([course])
    assert str(monday_only.placed[0].slot) == "Monday 10:00-11:00"


def test_one_group_with_three_subjects_spreads_over_the_week():
    courses = [
        CourseRef(id=f"c{index}", name=name, teacher_id=f"t{index}", group_id="g1", weekly_sessions=2)
        for index, name in enumerate(["Algebra", "Biology", "Chemistry"], start=1)
    ]
    model = open_model(["t1", "t2", "t3"], groups=["g1"])
    result = make_allocator(model).allocate(courses)

    assert result.scheduled_sessions == 6
    assert result.unscheduled == []
    assert ConflictDetector(model).audit(result.placed) == []
    assert len({item.slot.day for item in result.placed}) >= 3
    for course in courses:
        # Sessions of one course land on different days when the week allows it.
        assert len(result.state.days_used_by(course.id)) == 2


def test_same_course_never_takes_one_slot_twice():
    course = CourseRef(id="c1", name="Algebra", teacher_id="t1", group_id="g1", weekly_sessions=3)
    grid = SlotGrid.from_day_names(["Monday"], 8, 10)
    result = make_allocator(open_model(["t1"], groups=["g1"]), grid).allocate([course])

    assert result.scheduled_sessions == 2
    assert [(item.session_number, item.reason) for item in result.unscheduled] == [(3, "no_feasible_slot")]
    assert result.scheduled_courses == 0


def test_most_constrained_course_goes_first():
    model = AvailabilityModel.from_records(
        teachers={"t1": [], "t2": [{"day": "Monday", "time": "09:00-10:00"}]},
        groups={"g1": []},
    )
    grid = SlotGrid.from_day_names(["Monday"], 8, 10)
    flexible = CourseRef(id="c1", name="Algebra", teacher_id="t1", group_id="g1")
    tight = CourseRef(id="c2", name="Biology", teacher_id="t2", group_id="g1")

    result = make_allocator(model, grid).allocate([flexible, tight])
    assert result.unscheduled == []
    placed = {item.course.id: str(item.slot) for item in result.placed}
    assert placed == {"c2": "Monday 08:00-09:00", "c1": "Monday 09:00-10:00"}


def test_existing_assignments_constrain_the_run():
    fixed = CourseRef(id="fixed", name="Assembly", teacher_id="t9", group_id="g1")
    state = ScheduleState([Assignment(fixed, TimeSlot.from_labels("Monday", "08:00-09:00"))])
    course = CourseRef(id="c1", name="Algebra", teacher_id="t1", group_id="g1")
    grid = SlotGrid.from_day_names(["Monday"], 8, 10)

    result = make_allocator(open_model(["t1", "t9"], groups=["g1"]), grid).allocate([course], state)
    assert str(result.placed[0].slot) == "Monday 09:00-10:00"
    assert len(result.state) == 2


def test_allocation_always_accounts_for_every_session():
    teachers = ["t1", "t2"]
    groups = ["g1", "g2", "g3"]
    courses = [
        CourseRef(
            id=f"c{index}",
            name=f"Course {index}",
            teacher_id=teacher,
            group_id=group,
            room_id="r1" if index % 2 else None,
            weekly_sessions=1 + index % 3,
        )
        for index, (teacher, group) in enumerate(itertools.product(teachers, groups))
    ]
    model = open_model(teachers, ["r1"], groups)
    grid = SlotGrid.from_day_names(["Monday", "Tuesday"], 8, 11)

    result = make_allocator(model, grid).allocate(courses)

    assert result.scheduled_sessions + len(result.unscheduled) == result.total_sessions
    assert ConflictDetector(model).audit(result.placed) == []


def test_evaluation_cap_stops_the_run_and_reports_the_rest():
    courses = [
        CourseRef(id="c1", name="Algebra", teacher_id="t1", group_id="g1", weekly_sessions=2),
        CourseRef(id="c2", name="Biology", teacher_id="t2", group_id="g2"),
    ]
    result = make_allocator(open_model(["t1", "t2"], groups=["g1", "g2"]), max_evaluations=10).allocate(courses)

    assert result.placed == []
    assert result.evaluations == 10
    assert [(item.course.id, item.session_number, item.reason) for item in result.unscheduled] == [
        ("c1", 1, "evaluation_cap"),
        ("c1", 2, "evaluation_cap"),
        ("c2", 1, "evaluation_cap"),
    ]


def test_duplicate_courses_are_rejected():
    course = CourseRef(id="c1", name="Algebra", teacher_id="t1", group_id="g1")
    with pytest.raises(ValueError):
        make_allocator(open_model(["t1"], groups=["g1"])).allocate([course, course])


def test_empty_batch_is_a_noop():
    result = make_allocator(open_model()).allocate([])
    assert result.total_sessions == 0
    assert result.placed == []


def test_mid_size_batch_fits_the_default_evaluation_cap():
    settings = make_settings()
    grid = settings.slot_grid()
    teachers = [f"t{index}" for index in range(40)]
    groups = [f"g{index}" for index in range(20)]
    courses = [
        CourseRef(
            id=f"{group}-c{number}",
            name=f"{group} course {number}",
            teacher_id=teachers[(position * 10 + number) % len(teachers)],
            group_id=group,
            weekly_sessions=2,
        )
        for position, group in enumerate(groups)
        for number in range(10)
    ]
    allocator = make_allocator(open_model(teachers, groups=groups), grid, max_evaluations=settings.allocator_max_evaluations)

    result = allocator.allocate(courses)

    assert result.unscheduled == []
    assert result.scheduled_sessions == 400
    # One grid scan per course plus single-cell rechecks after each placement.
    assert result.evaluations <= len(courses) * len(grid) + result.scheduled_sessions * len(courses)


def test_placements_only_recheck_the_taken_cell():
    grid = SlotGrid.from_day_names()
    courses = [
        CourseRef(id="c1", name="Algebra", teacher_id="t1", group_id="g1"),
        CourseRef(id="c2", name="Biology", teacher_id="t2", group_id="g1"),
    ]
    result = make_allocator(open_model(["t1", "t2"], groups=["g1"]), grid).allocate(courses)

    assert result.unscheduled == []
    # Two full scans, then one recheck of c2 at the cell c1 took.
    assert result.evaluations == 2 * len(grid) + 1
