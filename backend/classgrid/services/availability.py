from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from classgrid.services.timeslots import (
    DAY_NAMES,
    day_index,
    minutes_to_time,
    parse_time_band,
    parse_time_to_minutes,
)

EntityKind = Literal["teacher", "room", "group"]
ENTITY_KINDS: tuple[EntityKind, ...] = ("teacher", "room", "group")


@dataclass(frozen=True)
class UnavailabilityWindow:
    day: int
    start_minute: int
    end_minute: int

    def __post_init__(self) -> None:
        if not 0 <= self.day < len(DAY_NAMES):
            raise ValueError(f"Day index must be between 0 and 6, got {self.day}")
        if not 0 <= self.start_minute < self.end_minute <= 24 * 60:
            raise ValueError("Unavailability window end must be after its start")

    @classmethod
    def parse(cls, raw: Any) -> "UnavailabilityWindow":
        """Build a window from any of the stored encodings.

        Accepted shapes:
        - ``{"day": "Monday", "time": "08:00-10:00"}`` (day may also be 0..6)
        - ``{"day": "Monday", "start_time": "08:00", "end_time": "10:00"}``
        - ``"Monday-08:00-10:00"``
        """
        if isinstance(raw, UnavailabilityWindow):
            return raw
        if isinstance(raw, str):
            day_part, _, band = raw.strip().partition("-")
            start, end = parse_time_band(band)
            return cls(day=day_index(day_part), start_minute=start, end_minute=end)
        if isinstance(raw, Mapping):
            if "day" not in raw:
                raise ValueError(f"Unavailability window is missing a day: {raw!r}")
            day = day_index(raw["day"])
            if raw.get("time"):
                start, end = parse_time_band(str(raw["time"]))
            elif raw.get("start_time") and raw.get("end_time"):
                start = parse_time_to_minutes(str(raw["start_time"]))
                end = parse_time_to_minutes(str(raw["end_time"]))
            else:
                raise ValueError(f"Unavailability window is missing a time range: {raw!r}")
            return cls(day=day, start_minute=start, end_minute=end)
        raise ValueError(f"Unsupported unavailability window: {raw!r}")

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day]

    @property
    def time_label(self) -> str:
        return f"{minutes_to_time(self.start_minute)}-{minutes_to_time(self.end_minute)}"

    def blocks(self, day: int, hour: int) -> bool:
        # An hour cell is blocked when any part of it falls inside the window.
        return day == self.day and hour * 60 < self.end_minute and (hour + 1) * 60 > self.start_minute


def parse_windows(raw_windows: Iterable[Any] | None) -> tuple[UnavailabilityWindow, ...]:
    return tuple(UnavailabilityWindow.parse(item) for item in (raw_windows or ()))


class AvailabilityModel:
    """Answers "is this teacher, room or group free at this slot?".

    Only entities that were registered are known. Asking about an unknown entity
    returns unavailable, since a missing record must never read as a free calendar.
    ``None`` as entity id means "no such resource" (a course without a room) and is
    always available.
    """

    def __init__(self) -> None:
        self._windows: dict[tuple[EntityKind, str], tuple[UnavailabilityWindow, ...]] = {}

    @classmethod
    def from_records(
        cls,
        *,
        teachers: Mapping[str, Iterable[Any] | None] | None = None,
        rooms: Mapping[str, Iterable[Any] | None] | None = None,
        groups: Mapping[str, Iterable[Any] | None] | None = None,
    ) -> "AvailabilityModel":
        model = cls()
        for kind, records in (("teacher", teachers), ("room", rooms), ("group", groups)):
            for entity_id, raw_windows in (records or {}).items():
                model.register(kind, entity_id, parse_windows(raw_windows))
        return model

    def register(self, kind: EntityKind, entity_id: str, windows: Iterable[UnavailabilityWindow] = ()) -> None:
        if kind not in ENTITY_KINDS:
            raise ValueError(f"Unknown entity kind: {kind!r}")
        self._windows[(kind, entity_id)] = tuple(windows)

    def knows(self, kind: EntityKind, entity_id: str) -> bool:
        return (kind, entity_id) in self._windows

    def blocking_window(self, kind: EntityKind, entity_id: str, day: int, hour: int) -> UnavailabilityWindow | None:
        for window in self._windows.get((kind, entity_id), ()):
            if window.blocks(day, hour):
                return window
        return None

    def is_unavailable(self, kind: EntityKind, entity_id: str | None, day: int, hour: int) -> bool:
        if entity_id is None:
            return False
        windows = self._windows.get((kind, entity_id))
        if windows is None:
            return True
        return any(window.blocks(day, hour) for window in windows)
