from __future__ import annotations

from dataclasses import dataclass

from .timeofday import TimeOfDay, format_hhmm, is_valid_minutes


@dataclass(frozen=True)
class Window:
    """A daily availability interval ``[start, end)`` in minutes.

    When ``end < start`` the window is overnight and wraps past midnight.
    """

    start: TimeOfDay
    end: TimeOfDay

    def __post_init__(self):
        if not (is_valid_minutes(self.start) and is_valid_minutes(self.end)):
            raise ValueError(f"Window bounds out of range: {self.start!r}-{self.end!r}")
        if self.start == self.end:
            raise ValueError("Window start and end cannot be the same")

    @property
    def is_overnight(self) -> bool:
        return self.end < self.start

    def __str__(self):
        return f"{format_hhmm(self.start)}-{format_hhmm(self.end)}"


def is_open(window: Window, now: TimeOfDay) -> bool:
    """Whether ``now`` falls inside ``window``. The end minute is closed."""
    if window.is_overnight:
        return now >= window.start or now < window.end
    return window.start <= now < window.end
