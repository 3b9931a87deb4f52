"""Time-of-day and weekday helpers.

All schedule arithmetic works in minutes since midnight. Records arrive as
24-hour ``"HH:MM"`` strings and are converted here, once, at the API boundary.
"""

from __future__ import annotations

import re
from datetime import datetime, time
from enum import IntEnum

MINUTES_PER_DAY = 24 * 60

# A TimeOfDay is a plain int in [0, MINUTES_PER_DAY).
TimeOfDay = int

_HHMM = re.compile(r'^(\d{1,2}):(\d{2})$')


class Weekday(IntEnum):
    """Weekday numbering used on the wire (0=Sunday ... 6=Saturday)."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()


def weekday_of(moment: datetime) -> Weekday:
    """Python counts Monday as 0; the wire format counts Sunday as 0."""
    return Weekday((moment.weekday() + 1) % 7)


def minutes_of(moment) -> TimeOfDay:
    """Minutes since midnight of a ``datetime`` or ``time``."""
    return moment.hour * 60 + moment.minute


def is_valid_minutes(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < MINUTES_PER_DAY


def parse_hhmm(value: str) -> TimeOfDay:
    """Parse ``"HH:MM"`` into minutes. Raises ``ValueError`` on bad input."""
    if not isinstance(value, str):
        raise ValueError(f"Expected an 'HH:MM' string, got {value!r}")
    match = _HHMM.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time {value!r}, expected 'HH:MM'")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Time {value!r} is out of range")
    return hours * 60 + minutes


def format_hhmm(minutes: TimeOfDay) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_12h(minutes: TimeOfDay) -> str:
    """Render minutes as ``"9:05 PM"``, the format shown in admin messages."""
    hours, mins = divmod(minutes, 60)
    period = 'PM' if hours >= 12 else 'AM'
    return f"{hours % 12 or 12}:{mins:02d} {period}"


def to_time(minutes: TimeOfDay) -> time:
    return time(minutes // 60, minutes % 60)
