"""Catalog-side operations around the availability engine.

Views call these instead of touching availability fields directly: schedule
writes are validated here, and every write is followed by a reconcile pass
over the touched entry so the cached flags never lag an admin action.
"""

import logging
import threading

from django.conf import settings
from django.db.models import F
from django.shortcuts import get_object_or_404
from django.utils import timezone

from availability.cascade import category_state_from_cache, classify
from availability.overrides import Availability, resolve_open
from availability.reconciler import CatalogEntry, Reconciler
from availability.records import decode_special_binding, normalize_schedule, window_from_times
from availability.schedules import is_category_open
from availability.timeofday import Weekday, minutes_of, to_time, weekday_of
from availability.validators import validate_schedule, validate_window

from .models import DaySchedule, FoodCategory, MenuItem, SpecialItem

logger = logging.getLogger(__name__)


def local_now():
    return timezone.localtime()


# =============== ENGINE VIEWS OF CATALOG RECORDS ===============

def global_day_windows():
    windows = {}
    for day_schedule in DaySchedule.objects.all():
        window = window_from_times(day_schedule.start_time, day_schedule.end_time)
        if window is not None:
            windows[Weekday(day_schedule.day)] = window
    return windows


def category_entry(category):
    return CatalogEntry(
        key=f"category:{category.pk}",
        name=category.name,
        schedule=category.weekly_schedule,
        manually_paused=category.is_manually_paused,
        sold_out=category.sold_out_override,
        is_paused=category.is_paused,
        is_sold_out=category.is_sold_out,
        version=category.availability_version,
    )


def special_item_entry(item, day_windows):
    return CatalogEntry(
        key=f"special:{item.pk}",
        name=item.name,
        schedule=decode_special_binding(item.days, item.day_schedules, day_windows,
                                        label=f"for special item {item.name!r}"),
        manually_paused=item.is_manually_paused,
        is_paused=item.is_paused,
        version=item.availability_version,
    )


class DjangoCatalogSource:
    """Feeds categories and special items to the reconciler and persists its updates."""

    def __init__(self, categories=None, special_items=None):
        self.categories = categories if categories is not None else FoodCategory.objects.all()
        self.special_items = special_items if special_items is not None else SpecialItem.objects.all()

    def entries(self, moment):
        for category in self.categories.iterator():
            yield category_entry(category)

        day_windows = global_day_windows()
        for item in self.special_items.iterator():
            yield special_item_entry(item, day_windows)

    def apply(self, entry, update):
        """Write ``update`` unless the row was saved again after ``entry`` was read."""
        kind, pk = entry.key.split(':', 1)
        if kind == 'special':
            rows = SpecialItem.objects.filter(pk=pk, availability_version=entry.version)
            return rows.update(is_paused=update.is_paused) > 0

        fields = {'is_paused': update.is_paused, 'is_sold_out': update.is_sold_out}
        if update.clear_sold_out:
            # Clearing the override is an input change too
            fields.update(sold_out_active=False, sold_out_resume_at=None,
                          availability_version=F('availability_version') + 1)
        rows = FoodCategory.objects.filter(pk=pk, availability_version=entry.version)
        return rows.update(**fields) > 0


# Shared by every reconciler in the process, so admin writes and the loop never interleave
_tick_lock = threading.Lock()


def build_reconciler(interval_seconds=None, **source_kwargs):
    return Reconciler(
        DjangoCatalogSource(**source_kwargs),
        interval_seconds=interval_seconds or settings.AVAILABILITY_RECONCILE_INTERVAL,
        clock=local_now,
        tick_lock=_tick_lock,
    )


def refresh_category(category):
    build_reconciler(categories=FoodCategory.objects.filter(pk=category.pk),
                     special_items=SpecialItem.objects.none()).tick(wait=True)
    category.refresh_from_db()
    return category


def refresh_special_item(item):
    build_reconciler(categories=FoodCategory.objects.none(),
                     special_items=SpecialItem.objects.filter(pk=item.pk)).tick(wait=True)
    item.refresh_from_db()
    return item


# =============== READ ===============

def get_schedule(category_id):
    return get_object_or_404(FoodCategory, pk=category_id).weekly_schedule


def get_overrides(category_id):
    category = get_object_or_404(FoodCategory, pk=category_id)
    return category.is_manually_paused, category.sold_out_override


# =============== WRITE ===============

def set_schedule(category_id, record):
    """Validate and store a schedule record. Raises ``ScheduleValidationError``."""
    validate_schedule(record)
    category = get_object_or_404(FoodCategory, pk=category_id)
    category.schedule = normalize_schedule(record)
    category.save(update_fields=['schedule'])
    logger.info(f"Schedule for {category.name} saved: {category.schedule}")
    return refresh_category(category)


def set_manual_pause(category_id, paused):
    category = get_object_or_404(FoodCategory, pk=category_id)
    category.is_manually_paused = bool(paused)
    category.save(update_fields=['is_manually_paused'])
    return refresh_category(category)


def set_sold_out(category_id, active, resume_at=None):
    """Mark a category sold out, optionally until ``resume_at`` minutes today.

    Toggling without a time clears any pending timed resume.
    """
    category = get_object_or_404(FoodCategory, pk=category_id)
    category.sold_out_active = bool(active)
    category.sold_out_resume_at = to_time(resume_at) if active and resume_at is not None else None
    category.save(update_fields=['sold_out_active', 'sold_out_resume_at'])
    logger.info(f"{category.name} sold out={category.sold_out_active} until {category.sold_out_resume_at}")
    return refresh_category(category)


def set_special_item_pause(item_id, paused):
    item = get_object_or_404(SpecialItem, pk=item_id)
    item.is_manually_paused = bool(paused)
    item.save(update_fields=['is_manually_paused'])
    return refresh_special_item(item)


def set_special_items_pause(item_ids, paused):
    """Pause or resume several special items at once. Returns how many were found."""
    items = SpecialItem.objects.filter(pk__in=item_ids)
    updated_count = items.update(is_manually_paused=bool(paused),
                                 availability_version=F('availability_version') + 1)
    logger.info(f"{updated_count} special items manually paused={bool(paused)}")
    build_reconciler(categories=FoodCategory.objects.none(),
                     special_items=SpecialItem.objects.filter(pk__in=item_ids)).tick(wait=True)
    return updated_count


def set_day_schedule(day, start, end):
    """Set the restaurant-wide special-items window for ``day`` (minutes)."""
    day = Weekday(day)
    validate_window(start, end, day)
    day_schedule, _ = DaySchedule.objects.update_or_create(
        day=int(day), defaults={'start_time': to_time(start), 'end_time': to_time(end)}
    )
    # Every special item bound to that day may change state
    build_reconciler(categories=FoodCategory.objects.none()).tick(wait=True)
    return day_schedule


# =============== QUERY ===============

def category_availability(category, moment):
    schedule_open = is_category_open(category.weekly_schedule, weekday_of(moment), minutes_of(moment))
    return resolve_open(schedule_open, category.is_manually_paused, category.sold_out_override)


def evaluate(category_id, now=None):
    """Live ``(open, reason)`` for a category at ``now`` (defaults to the current local time)."""
    category = get_object_or_404(FoodCategory, pk=category_id)
    return category_availability(category, now or local_now())


def evaluate_special_item(item, now=None, day_windows=None):
    moment = now or local_now()
    entry = special_item_entry(item, day_windows if day_windows is not None else global_day_windows())
    schedule_open = entry.schedule.is_open(weekday_of(moment), minutes_of(moment))
    return resolve_open(schedule_open, item.is_manually_paused, entry.sold_out)


def category_states(now=None, categories=None) -> dict:
    """``{name: Availability}`` for every category.

    Uses the reconciler's cached flags unless ``now`` is given, in which case
    each category is evaluated live at that instant.
    """
    categories = categories if categories is not None else FoodCategory.objects.all()
    if now is None:
        return {
            c.name: category_state_from_cache(c.is_paused, c.is_sold_out, c.is_manually_paused)
            for c in categories
        }
    return {c.name: category_availability(c, now) for c in categories}


def evaluate_item(item_id, now=None):
    item = get_object_or_404(MenuItem.objects.prefetch_related('categories'), pk=item_id)
    return item_lock(item, category_states(now, item.categories.all()))


def item_lock(item, states):
    return classify(item.category_names, states)


def describe(state: Availability):
    return {'open': state.open, 'reason': state.reason.value}
