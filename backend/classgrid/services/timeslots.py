from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

DAY_NAMES: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

DAY_SHORT_MAP = {
    "Mon": "Monday",
    "Tue": "Tuesday",
    "Wed": "Wednesday",
    "Thu": "Thursday",
    "Fri": "Friday",
    "Sat": "Saturday",
    "Sun": "Sunday",
}

DEFAULT_WORKING_DAYS: tuple[str, ...] = DAY_NAMES[:5]
DEFAULT_DAY_START_HOUR = 8
DEFAULT_DAY_END_HOUR = 18

ALLOWED_DURATIONS: tuple[int, ...] = (30, 45, 60, 90, 120)
DEFAULT_DURATION_MINUTES = 60

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
TIME_BAND_PATTERN = re.compile(r"^(\d{2}:\d{2})-(\d{2}:\d{2})$")


def parse_time_to_minutes(value: str) -> int:
    # "24:00" is only meaningful as the end of a band
    if value == "24:00":
        return 24 * 60
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def normalize_day(value: str | int) -> str:
    """Return the canonical weekday name for a name, abbreviation or 0-based index (0 = Monday)."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid day value: {value!r}")
    if isinstance(value, int):
        if 0 <= value < len(DAY_NAMES):
            return DAY_NAMES[value]
        raise ValueError(f"Day index must be between 0 and 6, got {value}")
    if not isinstance(value, str):
        raise ValueError(f"Invalid day value: {value!r}")
    cleaned = value.strip()
    if cleaned.isdigit():
        return normalize_day(int(cleaned))
    candidate = DAY_SHORT_MAP.get(cleaned[:1].upper() + cleaned[1:].lower(), cleaned)
    candidate = candidate[:1].upper() + candidate[1:].lower()
    if candidate not in DAY_NAMES:
        raise ValueError(f"Invalid day value: {value!r}")
    return candidate


def day_index(value: str | int) -> int:
    return DAY_NAMES.index(normalize_day(value))


def parse_time_band(value: str) -> tuple[int, int]:
    """Parse "HH:MM-HH:MM" into (start, end) minutes since midnight."""
    match = TIME_BAND_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Time band must look like HH:MM-HH:MM, got {value!r}")
    start = parse_time_to_minutes(match.group(1))
    end = parse_time_to_minutes(match.group(2))
    if end <= start:
        raise ValueError(f"Time band end must be after start: {value!r}")
    return start, end


def hour_label(hour: int) -> str:
    return f"{hour:02d}:00-{hour + 1:02d}:00"


def parse_hour_label(value: str) -> int:
    """Parse a canonical one-hour band such as "09:00-10:00" and return its start hour."""
    start, end = parse_time_band(value)
    if start % 60 != 0 or end - start != 60:
        raise ValueError(f"Time must be a one-hour band aligned to the hour, got {value!r}")
    hour = start // 60
    if value.strip() != hour_label(hour):
        raise ValueError(f"Time must use the canonical HH:00-HH:00 form, got {value!r}")
    return hour


@dataclass(frozen=True, order=True)
class TimeSlot:
    """One cell of the weekly grid.

    Equality, ordering and hashing only look at ``(day, hour)``. Durations are carried
    for bookkeeping; two slots on the same hour collide whatever their durations, and
    a 90 minute slot does not reach into the following hour.
    """

    day: int
    hour: int
    duration_minutes: int = field(default=DEFAULT_DURATION_MINUTES, compare=False)

    def __post_init__(self) -> None:
        if not 0 <= self.day < len(DAY_NAMES):
            raise ValueError(f"Day index must be between 0 and 6, got {self.day}")
        if not 0 <= self.hour <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {self.hour}")
        if self.duration_minutes not in ALLOWED_DURATIONS:
            allowed = ", ".join(str(item) for item in ALLOWED_DURATIONS)
            raise ValueError(f"Duration must be one of {allowed} minutes, got {self.duration_minutes}")

    @classmethod
    def from_labels(
        cls,
        day: str | int,
        time: str,
        duration_minutes: int = DEFAULT_DURATION_MINUTES,
    ) -> "TimeSlot":
        return cls(day=day_index(day), hour=parse_hour_label(time), duration_minutes=duration_minutes)

    @property
    def key(self) -> tuple[int, int]:
        return self.day, self.hour

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day]

    @property
    def time_label(self) -> str:
        return hour_label(self.hour)

    def collides_with(self, other: "TimeSlot") -> bool:
        return self.key == other.key

    def __str__(self) -> str:
        return f"{self.day_name} {self.time_label}"


@dataclass(frozen=True)
class SlotGrid:
    """The finite set of schedulable (day, hour) cells of one week.

    Iterating yields slots day by day in the configured day order, hours ascending.
    The grid is immutable, so it can be iterated any number of times.
    """

    days: tuple[int, ...]
    start_hour: int = DEFAULT_DAY_START_HOUR
    end_hour: int = DEFAULT_DAY_END_HOUR

    def __post_init__(self) -> None:
        if not self.days:
            raise ValueError("At least one working day is required")
        if len(set(self.days)) != len(self.days):
            raise ValueError("Working days must not repeat")
        for day in self.days:
            if not 0 <= day < len(DAY_NAMES):
                raise ValueError(f"Day index must be between 0 and 6, got {day}")
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError(
                f"Working hours must satisfy 0 <= start < end <= 24, got {self.start_hour}-{self.end_hour}"
            )

    @classmethod
    def from_day_names(
        cls,
        days: Iterable[str | int] = DEFAULT_WORKING_DAYS,
        start_hour: int = DEFAULT_DAY_START_HOUR,
        end_hour: int = DEFAULT_DAY_END_HOUR,
    ) -> "SlotGrid":
        return cls(days=tuple(day_index(day) for day in days), start_hour=start_hour, end_hour=end_hour)

    @property
    def hours(self) -> range:
        return range(self.start_hour, self.end_hour)

    @property
    def day_names(self) -> tuple[str, ...]:
        return tuple(DAY_NAMES[day] for day in self.days)

    @property
    def time_labels(self) -> tuple[str, ...]:
        return tuple(hour_label(hour) for hour in self.hours)

    def day_position(self, day: int) -> int:
        return self.days.index(day)

    def __iter__(self) -> Iterator[TimeSlot]:
        for day in self.days:
            for hour in self.hours:
                yield TimeSlot(day=day, hour=hour)

    def __len__(self) -> int:
        return len(self.days) * len(self.hours)

    def __contains__(self, slot: object) -> bool:
        if not isinstance(slot, TimeSlot):
            return False
        return slot.day in self.days and self.start_hour <= slot.hour < self.end_hour
