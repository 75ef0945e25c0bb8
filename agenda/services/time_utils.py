"""Helpers for HH:MM times, weekdays and slot generation."""

import re
from datetime import date, time

TIME_FORMAT_RE = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def is_valid_time_format(value: str) -> bool:
    """Check a string is a 24h HH:MM time."""
    return isinstance(value, str) and bool(TIME_FORMAT_RE.match(value))


def time_to_minutes(t: str) -> int:
    """Convert HH:MM string to minutes since midnight."""
    h, m = map(int, t.split(":"))
    return h * 60 + m


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to HH:MM string."""
    h = minutes // 60
    m = minutes % 60
    return f"{h:02d}:{m:02d}"


def parse_hhmm(t: str) -> time:
    h, m = map(int, t.split(":"))
    return time(h, m)


def validate_time_range(start: str, end: str) -> bool:
    """True when start is strictly before end."""
    return time_to_minutes(start) < time_to_minutes(end)


def day_of_week(d: date) -> int:
    """Day of week with 0=Sunday .. 6=Saturday."""
    return d.isoweekday() % 7


def day_name(dow: int) -> str:
    return DAY_NAMES[dow]


def generate_time_slots(start: str, end: str, slot_duration: int, buffer_time: int = 0) -> list[str]:
    """Generate slot start times between start and end.

    Slots step by slot_duration + buffer_time and must finish by end.
    """
    slots = []
    current = time_to_minutes(start)
    end_minutes = time_to_minutes(end)
    step = slot_duration + buffer_time

    while current + slot_duration <= end_minutes:
        slots.append(minutes_to_time(current))
        current += step

    return slots
