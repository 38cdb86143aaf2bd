from __future__ import annotations

from datetime import date
from enum import Enum
import re

from pydantic import BaseModel, field_validator, model_validator

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
SLOT_KEY_PATTERN = re.compile(r"^(0\d|1[0-2]):[0-5]\d (AM|PM) - (0\d|1[0-2]):[0-5]\d (AM|PM)$")


class DayOfWeek(str, Enum):
    saturday = "Saturday"
    sunday = "Sunday"
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"


# Week order used for sorting; the working week starts on Saturday.
DAYS_OF_WEEK: list[DayOfWeek] = list(DayOfWeek)

_ISO_WEEKDAY = {
    0: DayOfWeek.monday,
    1: DayOfWeek.tuesday,
    2: DayOfWeek.wednesday,
    3: DayOfWeek.thursday,
    4: DayOfWeek.friday,
    5: DayOfWeek.saturday,
    6: DayOfWeek.sunday,
}


def weekday_of(value: date | str) -> DayOfWeek:
    if isinstance(value, str):
        value = date.fromisoformat(value)
    return _ISO_WEEKDAY[value.weekday()]


def day_index(day: DayOfWeek | str) -> int:
    return DAYS_OF_WEEK.index(DayOfWeek(day))


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_time_12h(value: str) -> str:
    minutes = parse_time_to_minutes(value)
    hours, mins = divmod(minutes, 60)
    suffix = "PM" if hours >= 12 else "AM"
    hours = hours % 12 or 12
    return f"{hours:02d}:{mins:02d} {suffix}"


class SlotKey(str):
    """Canonical identity of a time slot: ``"hh:mm AM - hh:mm PM"``.

    Slot definitions coming from program, room or system-default lists carry
    their own generated ids; those ids are never used for scheduling. Two
    definitions with the same start and end collapse onto one key.
    """

    __slots__ = ()

    def __new__(cls, value: str) -> "SlotKey":
        if isinstance(value, SlotKey):
            return value
        if not SLOT_KEY_PATTERN.match(value):
            raise ValueError(f"Invalid slot key: {value!r}")
        return super().__new__(cls, value)

    @classmethod
    def from_times(cls, start_time: str, end_time: str) -> "SlotKey":
        return cls(f"{format_time_12h(start_time)} - {format_time_12h(end_time)}")

    @property
    def start_minutes(self) -> int:
        return _minutes_from_12h(self.split(" - ")[0])

    @property
    def end_minutes(self) -> int:
        return _minutes_from_12h(self.split(" - ")[1])


def _minutes_from_12h(value: str) -> int:
    clock, suffix = value.split(" ")
    hours, minutes = (int(part) for part in clock.split(":"))
    hours = hours % 12 + (12 if suffix == "PM" else 0)
    return hours * 60 + minutes


class SlotType(str, Enum):
    theory = "Theory"
    lab = "Lab"


class TimeSlotDef(BaseModel):
    type: SlotType
    start_time: str
    end_time: str

    model_config = {"frozen": True}

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_order(self) -> "TimeSlotDef":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def key(self) -> SlotKey:
        return SlotKey.from_times(self.start_time, self.end_time)

    def same_slot(self, other: "TimeSlotDef") -> bool:
        return (self.type, self.start_time, self.end_time) == (other.type, other.start_time, other.end_time)


def slot_key(slot: TimeSlotDef | dict) -> SlotKey:
    if isinstance(slot, dict):
        slot = TimeSlotDef.model_validate(slot)
    return slot.key


def sort_slots_by_type_then_time(slots: list[TimeSlotDef]) -> list[TimeSlotDef]:
    return sorted(slots, key=lambda item: (0 if item.type == SlotType.theory else 1, item.start_time))
