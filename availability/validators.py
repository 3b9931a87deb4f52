"""Acceptance rules for schedule windows.

Validation happens at the write boundary, on the raw ``"HH:MM"`` record, so a
rejected schedule never reaches the database.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from .timeofday import TimeOfDay, Weekday, format_12h, parse_hhmm

MIN_WINDOW_MINUTES = 15
MIN_OVERNIGHT_GAP_MINUTES = 60


class ScheduleValidationError(ValueError):
    """A proposed schedule was rejected.

    ``messages`` lists every problem found; ``day_errors`` groups the
    day-specific ones by weekday number.
    """

    def __init__(self, messages, day_errors=None):
        self.messages = list(messages)
        self.day_errors: Dict[int, List[str]] = dict(day_errors or {})
        super().__init__('; '.join(self.messages))


def window_errors(start: TimeOfDay, end: TimeOfDay, day: Optional[Weekday] = None) -> List[str]:
    """Problems with the window ``start``-``end``, empty when acceptable."""
    suffix = f" for {Weekday(day).label}" if day is not None else ''

    if start == end:
        if day is None:
            return ["Start time and end time cannot be the same."]
        return [f"Start and end time cannot be the same{suffix}"]

    if end < start and start - end < MIN_OVERNIGHT_GAP_MINUTES:
        # Probably a typo rather than a genuine overnight window
        return [
            f"End time ({format_12h(end)}) cannot be before start time ({format_12h(start)}){suffix}. "
            f"If you want an overnight schedule, make sure there's at least 1 hour gap."
        ]

    if end > start and end - start < MIN_WINDOW_MINUTES:
        if day is None:
            return [f"Schedule must be at least {MIN_WINDOW_MINUTES} minutes long."]
        return [f"Schedule must be at least {MIN_WINDOW_MINUTES} minutes long{suffix}"]

    return []


def validate_window(start: TimeOfDay, end: TimeOfDay, day: Optional[Weekday] = None):
    errors = window_errors(start, end, day)
    if errors:
        raise ScheduleValidationError(errors, {int(day): errors} if day is not None else None)


def _parse_pair(record, day=None):
    suffix = f" for {Weekday(day).label}" if day is not None else ''
    try:
        return parse_hhmm(record.get('startTime')), parse_hhmm(record.get('endTime'))
    except ValueError:
        return None, f"A valid start and end time (HH:MM) is required{suffix}"


def validate_schedule(record: Optional[dict]):
    """Validate a schedule record as sent by the admin clients.

    Disabled schedules are accepted as-is. Raises ``ScheduleValidationError``
    carrying one message per invalid day.
    """
    if not record or not record.get('enabled'):
        return

    messages: List[str] = []
    day_errors: Dict[int, List[str]] = {}

    schedule_type = record.get('type') or 'daily'
    if schedule_type not in ('daily', 'custom'):
        raise ScheduleValidationError([f"Unknown schedule type {schedule_type!r}"])

    if schedule_type == 'custom':
        custom_days = record.get('customDays') or []
        legacy_days = record.get('days') or []

        if custom_days:
            enabled_days = [d for d in custom_days if d.get('enabled', True)]
            if not enabled_days:
                raise ScheduleValidationError(["Please enable at least one day for custom schedule"])
            for slot in enabled_days:
                try:
                    day = Weekday(int(slot.get('day')))
                except (TypeError, ValueError):
                    messages.append(f"Invalid day {slot.get('day')!r}, expected 0 (Sunday) to 6 (Saturday)")
                    continue
                start, end = _parse_pair(slot, day)
                errors = [end] if start is None else window_errors(start, end, day)
                if errors:
                    messages.extend(errors)
                    day_errors.setdefault(int(day), []).extend(errors)
        elif legacy_days:
            for value in legacy_days:
                try:
                    Weekday(int(value))
                except (TypeError, ValueError):
                    messages.append(f"Invalid day {value!r}, expected 0 (Sunday) to 6 (Saturday)")
            start, end = _parse_pair(record)
            messages.extend([end] if start is None else window_errors(start, end))
        else:
            messages.append("Please enable at least one day for custom schedule")
    else:
        start, end = _parse_pair(record)
        messages.extend([end] if start is None else window_errors(start, end))

    if messages:
        raise ScheduleValidationError(messages, day_errors)
