"""
Unit tests for the availability reconciler, against an in-memory catalog.
"""

import threading
from dataclasses import replace

import pytest

from availability.overrides import NOT_SOLD_OUT, SoldOutOverride
from availability.reconciler import CatalogEntry, EntryUpdate, Reconciler, reconcile_entry
from availability.schedules import ScheduleMode, SpecialItemBinding, WeeklySchedule
from availability.timeofday import Weekday, parse_hhmm
from availability.windows import Window

BREAKFAST = WeeklySchedule(True, ScheduleMode.UNIFORM, uniform_window=Window(parse_hhmm("07:00"), parse_hhmm("11:00")))


class MemorySource:
    """Keeps entries in a dict and applies updates the way the database source does."""

    def __init__(self, *entries):
        self.entries_by_key = {entry.key: entry for entry in entries}
        self.applied = []
        self.fail_keys = set()

    def entries(self, moment):
        return list(self.entries_by_key.values())

    def apply(self, entry, update):
        if entry.key in self.fail_keys:
            raise RuntimeError("database is locked")
        self.applied.append((entry.key, update))
        sold_out = NOT_SOLD_OUT if update.clear_sold_out else entry.sold_out
        self.entries_by_key[entry.key] = replace(
            entry, is_paused=update.is_paused, is_sold_out=update.is_sold_out, sold_out=sold_out,
        )

    def __getitem__(self, key):
        return self.entries_by_key[key]


class Clock:
    def __init__(self, moment):
        self.moment = moment
        self.reads = 0

    def __call__(self):
        self.reads += 1
        return self.moment


class TestReconcileEntry:

    def test_schedule_lock_pauses(self):
        entry = CatalogEntry("category:1", "Breakfast", BREAKFAST)
        assert reconcile_entry(entry, Weekday.MONDAY, parse_hhmm("12:00")) == EntryUpdate(True, False)

    def test_manual_pause_pauses_inside_window(self):
        entry = CatalogEntry("category:1", "Breakfast", BREAKFAST, manually_paused=True)
        assert reconcile_entry(entry, Weekday.MONDAY, parse_hhmm("08:00")).is_paused

    def test_sold_out_is_cached_separately(self):
        entry = CatalogEntry("category:1", "Breakfast", BREAKFAST, sold_out=SoldOutOverride(True, parse_hhmm("10:00")))
        update = reconcile_entry(entry, Weekday.MONDAY, parse_hhmm("08:00"))

        assert update == EntryUpdate(is_paused=False, is_sold_out=True)

    def test_expired_sold_out_is_cleared(self):
        entry = CatalogEntry("category:1", "Breakfast", BREAKFAST, sold_out=SoldOutOverride(True, parse_hhmm("10:00")),
                             is_sold_out=True)
        update = reconcile_entry(entry, Weekday.MONDAY, parse_hhmm("10:00"))

        assert update == EntryUpdate(is_paused=False, is_sold_out=False, clear_sold_out=True)
        assert update.differs_from(entry)

    def test_entry_without_schedule_is_open(self):
        entry = CatalogEntry("category:2", "Beverages")
        assert reconcile_entry(entry, Weekday.SUNDAY, 0) == EntryUpdate(False, False)

    def test_special_item_closed_on_unbound_day(self):
        entry = CatalogEntry("special:1", "Biryani", SpecialItemBinding(frozenset({Weekday.FRIDAY})))
        assert reconcile_entry(entry, Weekday.THURSDAY, parse_hhmm("13:00")).is_paused
        assert not reconcile_entry(entry, Weekday.FRIDAY, parse_hhmm("13:00")).is_paused


class TestReconcilerTick:

    def test_tick_writes_changed_entries_only(self, at):
        source = MemorySource(
            CatalogEntry("category:1", "Breakfast", BREAKFAST),
            CatalogEntry("category:2", "Beverages"),
        )
        report = Reconciler(source, clock=Clock(at(Weekday.MONDAY, "12:00"))).tick()

        assert report.checked == 2
        assert report.changed == ["category:1"]
        assert source["category:1"].is_paused
        assert not source["category:2"].is_paused

    def test_tick_is_idempotent(self, at):
        source = MemorySource(
            CatalogEntry("category:1", "Breakfast", BREAKFAST),
            CatalogEntry("category:3", "Lunch", sold_out=SoldOutOverride(True, parse_hhmm("11:30")), is_sold_out=True),
        )
        reconciler = Reconciler(source, clock=Clock(at(Weekday.MONDAY, "12:00")))

        reconciler.tick()
        first = dict(source.entries_by_key)
        second_report = reconciler.tick()

        assert source.entries_by_key == first
        assert second_report.changed == []

    def test_sold_out_expiry(self, at):
        source = MemorySource(
            CatalogEntry("category:3", "Lunch", sold_out=SoldOutOverride(True, parse_hhmm("14:00")), is_sold_out=True),
        )
        clock = Clock(at(Weekday.MONDAY, "13:59"))
        reconciler = Reconciler(source, clock=clock)

        assert reconciler.tick().changed == []
        assert source["category:3"].sold_out.active

        clock.moment = at(Weekday.MONDAY, "14:00")
        report = reconciler.tick()

        assert report.expired == ["category:3"]
        assert source["category:3"].sold_out == NOT_SOLD_OUT
        assert not source["category:3"].is_sold_out

    def test_one_clock_read_per_tick(self, at):
        source = MemorySource(*[CatalogEntry(f"category:{n}", f"C{n}", BREAKFAST) for n in range(5)])
        clock = Clock(at(Weekday.MONDAY, "08:00"))

        Reconciler(source, clock=clock).tick()

        assert clock.reads == 1

    def test_failed_entry_does_not_stop_the_pass(self, at):
        source = MemorySource(
            CatalogEntry("category:1", "Breakfast", BREAKFAST),
            CatalogEntry("category:2", "Brunch", BREAKFAST),
        )
        source.fail_keys.add("category:1")

        report = Reconciler(source, clock=Clock(at(Weekday.MONDAY, "12:00"))).tick()

        assert report.failed == ["category:1"]
        assert report.changed == ["category:2"]

    def test_overlapping_tick_is_skipped(self, at):
        source = MemorySource(CatalogEntry("category:1", "Breakfast", BREAKFAST))
        reconciler = Reconciler(source, clock=Clock(at(Weekday.MONDAY, "12:00")))

        reconciler._tick_lock.acquire()
        try:
            assert reconciler.tick() is None
        finally:
            reconciler._tick_lock.release()

        assert source.applied == []
        assert reconciler.tick() is not None


class TestReconcilerLifecycle:

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            Reconciler(MemorySource(), interval_seconds=0)

    def test_start_and_stop(self, at):
        ticked = threading.Event()

        class SignallingSource(MemorySource):
            def entries(self, moment):
                ticked.set()
                return super().entries(moment)

        reconciler = Reconciler(SignallingSource(), interval_seconds=0.05, clock=Clock(at(Weekday.MONDAY, "12:00")))
        reconciler.start()
        try:
            assert reconciler.running
            assert ticked.wait(2)
        finally:
            reconciler.stop(timeout=2)

        assert not reconciler.running


class TestConcurrentWrites:

    def test_entry_changed_since_read_is_not_counted(self, at):
        class ChangedUnderneath(MemorySource):
            def apply(self, entry, update):
                super().apply(entry, update)
                return False

        source = ChangedUnderneath(CatalogEntry("category:1", "Breakfast", BREAKFAST))

        report = Reconciler(source, clock=Clock(at(Weekday.MONDAY, "12:00"))).tick()

        assert report.stale == ["category:1"]
        assert report.changed == []

    def test_shared_lock_skips_across_reconcilers(self, at):
        lock = threading.Lock()
        source = MemorySource(CatalogEntry("category:1", "Breakfast", BREAKFAST))
        loop = Reconciler(source, clock=Clock(at(Weekday.MONDAY, "12:00")), tick_lock=lock)
        write_path = Reconciler(source, clock=Clock(at(Weekday.MONDAY, "12:00")), tick_lock=lock)

        with lock:
            assert loop.tick() is None
            assert write_path.tick() is None

        assert source.applied == []

    def test_waiting_tick_runs_once_the_running_one_finishes(self, at):
        lock = threading.Lock()
        source = MemorySource(CatalogEntry("category:1", "Breakfast", BREAKFAST))
        write_path = Reconciler(source, clock=Clock(at(Weekday.MONDAY, "12:00")), tick_lock=lock)
        reports = []

        # Stands in for a loop tick that is still running
        lock.acquire()
        waiter = threading.Thread(target=lambda: reports.append(write_path.tick(wait=True)))
        waiter.start()
        try:
            waiter.join(0.1)
            assert waiter.is_alive()
            assert reports == []
        finally:
            lock.release()
        waiter.join(2)

        (report,) = reports
        assert report.changed == ["category:1"]
