from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional

from .timeofday import TimeOfDay


class AvailabilityReason(str, Enum):
    OPEN = 'open'
    SCHEDULE_LOCKED = 'schedule_locked'
    MANUALLY_PAUSED = 'manually_paused'
    SOLD_OUT = 'sold_out'


class Availability(NamedTuple):
    open: bool
    reason: AvailabilityReason


@dataclass(frozen=True)
class SoldOutOverride:
    """Sold out, optionally until ``resume_at`` later the same day."""

    active: bool = False
    resume_at: Optional[TimeOfDay] = None


NOT_SOLD_OUT = SoldOutOverride()


def resolve_open(schedule_open: bool, paused: bool, sold_out: SoldOutOverride) -> Availability:
    """Combine schedule state with the manual overrides.

    Sold out wins over a manual pause, which wins over the schedule. Expiry of
    a timed sold-out is not applied here; see ``check_expiry``.
    """
    if sold_out.active:
        return Availability(False, AvailabilityReason.SOLD_OUT)
    if paused:
        return Availability(False, AvailabilityReason.MANUALLY_PAUSED)
    if not schedule_open:
        return Availability(False, AvailabilityReason.SCHEDULE_LOCKED)
    return Availability(True, AvailabilityReason.OPEN)


def check_expiry(sold_out: SoldOutOverride, now: TimeOfDay) -> bool:
    """True once a timed sold-out override is due to be cleared."""
    return sold_out.active and sold_out.resume_at is not None and now >= sold_out.resume_at
