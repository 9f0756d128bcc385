import pytest

from classgrid.services.availability import AvailabilityModel, UnavailabilityWindow, parse_windows


def test_window_shapes_parse_to_the_same_window():
    expected = UnavailabilityWindow(day=0, start_minute=8 * 60, end_minute=10 * 60)
    assert UnavailabilityWindow.parse({"day": "Monday", "time": "08:00-10:00"}) == expected
    assert UnavailabilityWindow.parse({"day": 0, "time": "08:00-10:00"}) == expected
    assert UnavailabilityWindow.parse({"day": "Mon", "start_time": "08:00", "end_time": "10:00"}) == expected
    assert UnavailabilityWindow.parse("Monday-08:00-10:00") == expected


@pytest.mark.parametrize(
    "raw",
    [
        {"time": "08:00-10:00"},
        {"day": "Monday"},
        {"day": "Monday", "time": "10:00-08:00"},
        "Someday-08:00-09:00",
        42,
    ],
)
def test_window_parse_rejects_malformed_input(raw):
    with pytest.raises(ValueError):
        UnavailabilityWindow.parse(raw)


def test_window_blocks_every_hour_it_touches():
    window = UnavailabilityWindow.parse({"day": "Monday", "time": "08:00-10:00"})
    assert window.blocks(0, 8)
    assert window.blocks(0, 9)
    assert not window.blocks(0, 10)
    assert not window.blocks(1, 8)

    partial = UnavailabilityWindow.parse({"day": "Tuesday", "time": "09:30-10:15"})
    assert partial.blocks(1, 9)
    assert partial.blocks(1, 10)
    assert not partial.blocks(1, 11)


def test_model_answers_per_entity():
    model = AvailabilityModel.from_records(
        teachers={"t1": [{"day": "Monday", "time": "08:00-10:00"}], "t2": []},
        rooms={"r1": ["Friday-16:00-18:00"]},
        groups={"g1": None},
    )
    assert model.is_unavailable("teacher", "t1", 0, 9)
    assert not model.is_unavailable("teacher", "t1", 0, 10)
    assert not model.is_unavailable("teacher", "t2", 0, 9)
    assert model.is_unavailable("room", "r1", 4, 17)
    assert not model.is_unavailable("group", "g1", 4, 17)
    assert model.blocking_window("teacher", "t1", 0, 8).time_label == "08:00-10:00"


def test_unknown_entity_is_never_free():
    model = AvailabilityModel.from_records(teachers={"t1": []})
    assert model.is_unavailable("teacher", "ghost", 0, 9)
    assert model.is_unavailable("group", "t1", 0, 9)
    assert not model.knows("teacher", "ghost")


def test_missing_room_is_always_available():
    model = AvailabilityModel()
    assert not model.is_unavailable("room", None, 0, 9)


def test_register_rejects_unknown_kind():
    with pytest.raises(ValueError):
        AvailabilityModel().register("building", "b1", parse_windows([]))
