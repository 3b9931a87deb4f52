"""Periodic re-evaluation of catalog availability.

The cached ``is_paused`` / ``is_sold_out`` flags on categories and special
items are written here and nowhere else. Every tick derives them again from
the stored schedule and overrides, so ticks are idempotent: running one twice,
or two at once, lands on the same state.

Lifecycle: ``start()`` / ``stop()`` run ticks on a background daemon thread;
``tick()`` can be called directly (cron, tests, right after an admin write).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Protocol, Union

from .overrides import NOT_SOLD_OUT, SoldOutOverride, check_expiry, resolve_open
from .schedules import SpecialItemBinding, WeeklySchedule
from .timeofday import TimeOfDay, Weekday, minutes_of, weekday_of

logger = logging.getLogger(__name__)

ScheduleRule = Union[WeeklySchedule, SpecialItemBinding]


@dataclass(frozen=True)
class CatalogEntry:
    """What the reconciler needs to know about one category or special item.

    ``schedule`` is the rule that decides openness by time of day; ``None``
    means the entry is never schedule-locked.
    """

    key: str
    name: str
    schedule: Optional[ScheduleRule] = None
    manually_paused: bool = False
    sold_out: SoldOutOverride = NOT_SOLD_OUT
    is_paused: bool = False
    is_sold_out: bool = False
    # Row version the entry was read at; updates only land on an unchanged row
    version: int = 0


@dataclass(frozen=True)
class EntryUpdate:
    is_paused: bool
    is_sold_out: bool
    clear_sold_out: bool = False

    def differs_from(self, entry: CatalogEntry) -> bool:
        return (
            self.clear_sold_out
            or self.is_paused != entry.is_paused
            or self.is_sold_out != entry.is_sold_out
        )


def schedule_open(entry: CatalogEntry, day: Weekday, now: TimeOfDay) -> bool:
    if entry.schedule is None:
        return True
    return entry.schedule.is_open(day, now)


def reconcile_entry(entry: CatalogEntry, day: Weekday, now: TimeOfDay) -> EntryUpdate:
    """Derive the cached flags for ``entry`` at ``day``/``now``."""
    expired = check_expiry(entry.sold_out, now)
    sold_out = NOT_SOLD_OUT if expired else entry.sold_out
    # is_paused reflects schedule and manual pause only; sold out is cached separately
    state = resolve_open(schedule_open(entry, day, now), entry.manually_paused, NOT_SOLD_OUT)
    return EntryUpdate(
        is_paused=not state.open,
        is_sold_out=sold_out.active,
        clear_sold_out=expired,
    )


class CatalogSource(Protocol):
    """Storage the reconciler reads entries from and writes updates to."""

    def entries(self, moment: datetime) -> Iterable[CatalogEntry]:
        ...

    def apply(self, entry: CatalogEntry, update: EntryUpdate) -> Optional[bool]:
        """Persist ``update``. Returns ``False`` when the stored entry changed since it was read."""
        ...


@dataclass
class ReconcileReport:
    checked_at: datetime
    checked: int = 0
    changed: List[str] = field(default_factory=list)
    expired: List[str] = field(default_factory=list)
    stale: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class Reconciler:
    """Re-evaluates every catalog entry and persists the changed flags."""

    def __init__(
        self,
        source: CatalogSource,
        *,
        interval_seconds: float = 60,
        clock: Optional[Callable[[], datetime]] = None,
        tick_lock: Optional[threading.Lock] = None,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than zero")
        self._source = source
        self._interval_s = interval_seconds
        self._clock = clock or datetime.now

        # Pass a shared lock to serialize ticks across reconcilers in one process
        self._tick_lock = tick_lock or threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self, wait: bool = False) -> Optional[ReconcileReport]:
        """Run one reconciliation pass.

        Returns ``None`` without doing anything when another tick is still in
        progress, unless ``wait`` is set, in which case it runs once that tick
        finishes.
        """
        if not self._tick_lock.acquire(blocking=wait):
            logger.debug("Reconcile tick skipped, previous tick still running")
            return None
        try:
            return self._tick()
        finally:
            self._tick_lock.release()

    def _tick(self):
        # One clock read per pass so schedule and expiry agree on "now"
        moment = self._clock()
        day, now = weekday_of(moment), minutes_of(moment)
        report = ReconcileReport(checked_at=moment)

        for entry in self._source.entries(moment):
            report.checked += 1
            try:
                update = reconcile_entry(entry, day, now)
                if not update.differs_from(entry):
                    continue
                if self._source.apply(entry, update) is False:
                    logger.info(f"{entry.name}: changed since it was read, leaving it to the next tick")
                    report.stale.append(entry.key)
                    continue
            except Exception as exc:
                logger.error(f"Failed to reconcile {entry.key} ({entry.name}): {exc}")
                report.failed.append(entry.key)
                continue

            report.changed.append(entry.key)
            if update.clear_sold_out:
                report.expired.append(entry.key)
                logger.info(f"{entry.name}: sold out period expired at {moment:%H:%M}, resuming")
            if update.is_paused != entry.is_paused:
                logger.info(f"{entry.name}: {'PAUSED' if update.is_paused else 'ACTIVE'} "
                            f"at {moment:%a %H:%M}")

        return report

    def start(self):
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name='availability-reconciler', daemon=True)
        self._thread.start()
        logger.info(f"Reconciler started, checking every {self._interval_s}s")

    def stop(self, timeout: Optional[float] = None):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Reconciler stopped")

    def _run(self):
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("Reconcile tick failed")
            self._stop_event.wait(self._interval_s)
