"""Category availability cascading down to menu items.

A menu item may sit in several categories. It stays orderable as long as any
one of them is open (union, not intersection), so "Dinner" and "Tiffin" being
locked does not hide a dosa that is also listed under an open "South Indian".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Mapping

from .overrides import Availability, AvailabilityReason


class LockKind(str, Enum):
    UNLOCKED = 'unlocked'
    SCHEDULE_LOCKED = 'schedule_locked'
    MANUALLY_PAUSED = 'manually_paused'


@dataclass(frozen=True)
class ItemLock:
    locked: bool
    kind: LockKind
    blocking_categories: List[str] = field(default_factory=list)


UNLOCKED = ItemLock(False, LockKind.UNLOCKED)

_MANUAL_REASONS = (AvailabilityReason.MANUALLY_PAUSED, AvailabilityReason.SOLD_OUT)


def category_state_from_cache(is_paused: bool, is_sold_out: bool, is_manually_paused: bool) -> Availability:
    """Rebuild a category's ``(open, reason)`` from its cached flags.

    The cached ``is_paused`` covers both the schedule and the manual pause, so
    the manual flag is consulted to tell them apart.
    """
    if is_sold_out:
        return Availability(False, AvailabilityReason.SOLD_OUT)
    if is_manually_paused:
        return Availability(False, AvailabilityReason.MANUALLY_PAUSED)
    if is_paused:
        return Availability(False, AvailabilityReason.SCHEDULE_LOCKED)
    return Availability(True, AvailabilityReason.OPEN)


def _state(states, name):
    # Unknown categories carry no schedule and no override, so they count as open
    return states.get(name, Availability(True, AvailabilityReason.OPEN))


def item_has_active_category(categories: Iterable[str], states: Mapping[str, Availability]) -> bool:
    return any(_state(states, name).open for name in categories)


def item_is_fully_unavailable(categories: Iterable[str], states: Mapping[str, Availability]) -> bool:
    categories = list(categories)
    return bool(categories) and not item_has_active_category(categories, states)


def classify(categories: Iterable[str], states: Mapping[str, Availability]) -> ItemLock:
    """Work out the single lock reason to show for an item.

    Schedule locks are reported ahead of manual pauses and sold-out
    categories; ``blocking_categories`` lists the categories of the reported
    kind only.
    """
    categories = list(dict.fromkeys(categories))
    if not categories or item_has_active_category(categories, states):
        return UNLOCKED

    scheduled = [name for name in categories
                 if _state(states, name).reason is AvailabilityReason.SCHEDULE_LOCKED]
    if scheduled:
        return ItemLock(True, LockKind.SCHEDULE_LOCKED, scheduled)

    manual = [name for name in categories if _state(states, name).reason in _MANUAL_REASONS]
    return ItemLock(True, LockKind.MANUALLY_PAUSED, manual)
