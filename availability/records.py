"""Decoding of persisted schedule records into engine objects.

Records keep the JSON shape the admin clients send::

    {"enabled": true, "type": "daily" | "custom",
     "startTime": "HH:MM", "endTime": "HH:MM",
     "days": [int], "customDays": [{"day": int, "enabled": bool,
                                    "startTime": "HH:MM", "endTime": "HH:MM"}]}

Anything that cannot be decoded is treated as "no schedule" and logged,
since schedules are optional overlays on otherwise available entries.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Optional

from .schedules import DaySlot, ScheduleMode, SpecialItemBinding, WeeklySchedule, merge_day_windows
from .timeofday import Weekday, minutes_of, parse_hhmm
from .windows import Window

logger = logging.getLogger(__name__)

DEFAULT_START = '09:00'
DEFAULT_END = '22:00'


def window_from_record(record: Mapping) -> Window:
    """Build a window from a ``{startTime, endTime}`` mapping."""
    return Window(parse_hhmm(record.get('startTime')), parse_hhmm(record.get('endTime')))


def window_from_times(start, end) -> Optional[Window]:
    """Build a window from two ``datetime.time`` values, ``None`` if either is missing."""
    if start is None or end is None:
        return None
    try:
        return Window(minutes_of(start), minutes_of(end))
    except ValueError:
        logger.warning(f"Ignoring degenerate window {start}-{end}")
        return None


def normalize_schedule(record: Optional[Mapping]) -> dict:
    """Fill in the defaults the clients expect to read back."""
    record = dict(record or {})
    return {
        'enabled': bool(record.get('enabled', False)),
        'type': record.get('type') or ScheduleMode.UNIFORM.value,
        'startTime': record.get('startTime') or None,
        'endTime': record.get('endTime') or None,
        'days': [int(day) for day in sorted(decode_days(record.get('days')))],
        'customDays': [
            {
                'day': int(slot['day']),
                'enabled': bool(slot.get('enabled', True)),
                'startTime': slot.get('startTime'),
                'endTime': slot.get('endTime'),
            }
            for slot in record.get('customDays') or []
            if isinstance(slot, Mapping) and slot.get('day') is not None
        ],
    }


def decode_schedule(record: Optional[Mapping], label: str = '') -> Optional[WeeklySchedule]:
    """Turn a stored schedule record into a ``WeeklySchedule``.

    Returns ``None`` for a missing, disabled or malformed schedule. A daily
    schedule without times is unconstrained, matching what older records
    saved before times were mandatory.
    """
    if not record or not record.get('enabled'):
        return None
    try:
        return _decode_enabled(record)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning(f"Ignoring malformed schedule {label}: {exc}")
        return None


def _decode_enabled(record):
    schedule_type = record.get('type') or ScheduleMode.UNIFORM.value
    custom_days = record.get('customDays') or []
    legacy_days = record.get('days') or []

    if schedule_type == ScheduleMode.PER_DAY.value and custom_days:
        per_day = {}
        for slot in custom_days:
            day = Weekday(int(slot['day']))
            if slot.get('enabled', True):
                per_day[day] = DaySlot(True, window_from_record(slot))
            else:
                per_day[day] = DaySlot(False)
        return WeeklySchedule(True, ScheduleMode.PER_DAY, per_day=per_day)

    if schedule_type == ScheduleMode.PER_DAY.value and legacy_days:
        # Older clients sent one shared time range plus a list of days
        window = window_from_record(record)
        per_day = {Weekday(int(day)): DaySlot(True, window) for day in legacy_days}
        return WeeklySchedule(True, ScheduleMode.PER_DAY, per_day=per_day)

    if not record.get('startTime') or not record.get('endTime'):
        return None
    return WeeklySchedule(True, ScheduleMode.UNIFORM, uniform_window=window_from_record(record))


def decode_day_windows(day_schedules: Optional[Mapping], label: str = '') -> Dict[Weekday, Window]:
    """Decode a ``{"<day>": {startTime, endTime}}`` map, skipping bad entries."""
    windows = {}
    for key, value in (day_schedules or {}).items():
        try:
            day = Weekday(int(key))
            if value and value.get('startTime') and value.get('endTime'):
                windows[day] = window_from_record(value)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.warning(f"Ignoring malformed day schedule {key!r} {label}: {exc}")
    return windows


def decode_days(days: Optional[Iterable], label: str = ''):
    bound = set()
    for value in days or []:
        try:
            bound.add(Weekday(int(value)))
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid day {value!r} {label}")
    return frozenset(bound)


def decode_special_binding(days, day_schedules, global_windows: Mapping[Weekday, Window],
                           label: str = '') -> SpecialItemBinding:
    item_windows = decode_day_windows(day_schedules, label)
    return SpecialItemBinding(
        days=decode_days(days, label),
        day_windows=merge_day_windows(global_windows, item_windows),
    )
