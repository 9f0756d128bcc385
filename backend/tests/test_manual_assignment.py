import pytest

from classgrid.core.exceptions import SlotValidationError
from classgrid.services.availability import AvailabilityModel
from classgrid.services.conflict_detector import ConflictDetector
from classgrid.services.manual_assignment import ManualAssignmentValidator
from classgrid.services.schedule_state import Assignment, CourseRef, ScheduleState
from classgrid.services.timeslots import SlotGrid, TimeSlot

COURSE_X = CourseRef(id="x", name="Physics", teacher_id="t1", group_id="g1", room_id="r1", room_name="Lab 1")
COURSE_Y = CourseRef(id="y", name="Chemistry", teacher_id="t2", group_id="g2", room_id="r1", room_name="Lab 1")


@pytest.fixture
def validator():
    model = AvailabilityModel.from_records(
        teachers={"t1": [], "t2": []},
        rooms={"r1": []},
        groups={"g1": [], "g2": []},
    )
    return ManualAssignmentValidator(grid=SlotGrid.from_day_names(), detector=ConflictDetector(model))


@pytest.fixture
def state():
    return ScheduleState([Assignment(COURSE_Y, TimeSlot.from_labels("Monday", "09:00-10:00"))])


def test_room_clash_is_reported_against_the_occupant(validator, state):
    result = validator.check(COURSE_X, [{"day": "Monday", "time": "09:00-10:00"}], state)

    assert not result.ok
    assert len(result.conflicts) == 1
    conflict = result.conflicts[0]
    assert conflict.type == "room"
    assert conflict.conflicting_course_name == "Chemistry"
    assert conflict.message == "Room Lab 1 is already booked for Chemistry on Monday at 09:00-10:00"


def test_validated_commit_refuses_and_keeps_state(validator, state):
    result = validator.commit(COURSE_X, [{"day": "Monday", "time": "09:00-10:00"}], state)

    assert not result.committed
    assert len(result.conflicts) == 1
    assert state.for_course("x") == []
    assert len(state) == 1


def test_trusted_commit_writes_despite_conflicts(validator, state):
    result = validator.commit(COURSE_X, [{"day": "Monday", "time": "09:00-10:00"}], state, enforce=False)

    assert result.committed
    assert len(state.for_course("x")) == 1


def test_commit_replaces_previous_slots_of_the_course(validator):
    state = ScheduleState([Assignment(COURSE_X, TimeSlot.from_labels("Monday", "09:00-10:00"))])

    # Re-proposing its own slot is not a conflict with itself.
    assert validator.check(COURSE_X, [{"day": "Monday", "time": "09:00-10:00"}], state).ok

    result = validator.commit(
        COURSE_X,
        [{"day": "Tue", "time": "10:00-11:00"}, {"day": 2, "time": "10:00-11:00", "duration": 90}],
        state,
    )
    assert result.committed
    assert [str(item.slot) for item in result.replaced] == ["Monday 09:00-10:00"]
    assert sorted(str(item.slot) for item in state.for_course("x")) == [
        "Tuesday 10:00-11:00",
        "Wednesday 10:00-11:00",
    ]


def test_duration_does_not_extend_the_clash_window(validator):
    state = ScheduleState(
        [Assignment(COURSE_Y, TimeSlot.from_labels("Monday", "09:00-10:00", 120))]
    )
    assert validator.check(COURSE_X, [{"day": "Monday", "time": "10:00-11:00"}], state).ok


@pytest.mark.parametrize(
    "slots, field, index",
    [
        ([{"time": "09:00-10:00"}], "day", 0),
        ([{"day": "Monday", "time": "09:00-10:00"}, {"day": "Monday"}], "time", 1),
        ([{"day": "Someday", "time": "09:00-10:00"}], "day", 0),
        ([{"day": "Monday", "time": "09:30-10:30"}], "time", 0),
        ([{"day": "Monday", "time": "09:00-10:00", "duration": 50}], "duration", 0),
        ([{"day": "Saturday", "time": "09:00-10:00"}], "day", 0),
        ([{"day": "Monday", "time": "19:00-20:00"}], "time", 0),
        ([{"day": "Monday", "time": "09:00-10:00"}, {"day": "Mon", "time": "09:00-10:00"}], "time", 1),
    ],
)
def test_malformed_slots_are_rejected_before_any_change(validator, state, slots, field, index):
    with pytest.raises(SlotValidationError) as excinfo:
        validator.commit(COURSE_X, slots, state)

    assert excinfo.value.field == field
    assert excinfo.value.index == index
    assert excinfo.value.status_code == 422
    assert len(state) == 1


def test_empty_proposal_clears_the_course(validator):
    state = ScheduleState([Assignment(COURSE_X, TimeSlot.from_labels("Monday", "09:00-10:00"))])
    result = validator.commit(COURSE_X, [], state)
    assert result.committed
    assert state.for_course("x") == []
