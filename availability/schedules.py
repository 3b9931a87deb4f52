"""Weekly schedules and how they resolve to a window for a given day.

Two rules live here and are deliberately kept apart:

* category schedules (``WeeklySchedule``) are open whenever they are not
  enabled, and a per-day schedule closes any day it does not enable;
* special items (``SpecialItemBinding``) are closed on every weekday they are
  not bound to, and on a bound day follow that day's window.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Mapping, Optional, Union

from .timeofday import TimeOfDay, Weekday
from .windows import Window, is_open


class ScheduleMode(str, Enum):
    UNIFORM = 'daily'
    PER_DAY = 'custom'


class _Disabled:
    """Sentinel: the day is explicitly closed all day."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'DISABLED'

    def __bool__(self):
        return False


DISABLED = _Disabled()

EffectiveWindow = Union[Window, _Disabled, None]


@dataclass(frozen=True)
class DaySlot:
    enabled: bool
    window: Optional[Window] = None

    def __post_init__(self):
        if self.enabled and self.window is None:
            raise ValueError("An enabled day needs a window")


@dataclass(frozen=True)
class WeeklySchedule:
    enabled: bool
    mode: ScheduleMode = ScheduleMode.UNIFORM
    uniform_window: Optional[Window] = None
    per_day: Mapping[Weekday, DaySlot] = field(default_factory=dict)

    def __post_init__(self):
        if not self.enabled:
            return
        if self.mode is ScheduleMode.UNIFORM and self.uniform_window is None:
            raise ValueError("A daily schedule needs a window")
        if self.mode is ScheduleMode.PER_DAY and not self.enabled_days:
            raise ValueError("A custom schedule needs at least one enabled day")

    @property
    def enabled_days(self) -> FrozenSet[Weekday]:
        return frozenset(day for day, slot in self.per_day.items() if slot.enabled)

    def is_open(self, day: Weekday, now: TimeOfDay) -> bool:
        return is_category_open(self, day, now)


def effective_window(schedule: Optional[WeeklySchedule], day: Weekday) -> EffectiveWindow:
    """Resolve ``schedule`` for ``day``.

    Returns ``None`` when the day is unconstrained (always open), the
    ``DISABLED`` sentinel when a per-day schedule does not enable the day, and
    the governing ``Window`` otherwise.
    """
    if schedule is None or not schedule.enabled:
        return None
    if schedule.mode is ScheduleMode.UNIFORM:
        return schedule.uniform_window
    slot = schedule.per_day.get(Weekday(day))
    if slot is None or not slot.enabled:
        return DISABLED
    return slot.window


def is_category_open(schedule: Optional[WeeklySchedule], day: Weekday, now: TimeOfDay) -> bool:
    window = effective_window(schedule, day)
    if window is None:
        return True
    if window is DISABLED:
        return False
    return is_open(window, now)


@dataclass(frozen=True)
class SpecialItemBinding:
    """A special item's weekday binding.

    ``day_windows`` holds the window governing each bound day, usually the
    restaurant-wide window for that weekday. A bound day with no window is
    open all day.
    """

    days: FrozenSet[Weekday]
    day_windows: Mapping[Weekday, Window] = field(default_factory=dict)

    def window_for(self, day: Weekday) -> EffectiveWindow:
        if Weekday(day) not in self.days:
            return DISABLED
        return self.day_windows.get(Weekday(day))

    def is_open(self, day: Weekday, now: TimeOfDay) -> bool:
        return is_special_item_open(self, day, now)


def is_special_item_open(binding: Optional[SpecialItemBinding], day: Weekday, now: TimeOfDay) -> bool:
    if binding is None:
        return False
    window = binding.window_for(day)
    if window is DISABLED:
        return False
    if window is None:
        return True
    return is_open(window, now)


def merge_day_windows(global_windows: Mapping[Weekday, Window],
                      item_windows: Mapping[Weekday, Window]) -> Dict[Weekday, Window]:
    """Per-item windows take precedence over the restaurant-wide ones."""
    merged = dict(global_windows)
    merged.update(item_windows)
    return merged
