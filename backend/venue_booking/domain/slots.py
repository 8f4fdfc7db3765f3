from __future__ import annotations

from typing import Iterator, Optional

from .calendar import Window

SLOT_MINUTES = 30


class SlotSequence:
    """Granularity-aligned time-of-day values inside a window.

    Iterating yields values from ``max(window.start, floor)`` while they stay
    strictly below ``window.end``. The sequence is finite and every iteration
    starts over, so one instance can back several renderings.
    """

    def __init__(self, window: Window, *, granularity: int = SLOT_MINUTES, floor: Optional[int] = None) -> None:
        if granularity <= 0:
            raise ValueError("granularity must be positive")
        self.window = window
        self.granularity = granularity
        self.floor = floor

    def __iter__(self) -> Iterator[int]:
        if self.window.closed:
            return
        current = self.window.start if self.floor is None else max(self.window.start, self.floor)
        while current < self.window.end:
            yield current
            current += self.granularity


def start_slots(window: Window, *, granularity: int = SLOT_MINUTES) -> SlotSequence:
    return SlotSequence(window, granularity=granularity)


def end_slots(
    window: Window,
    start: int,
    *,
    min_minutes: int = SLOT_MINUTES,
    max_minutes: Optional[int] = None,
    granularity: int = SLOT_MINUTES,
    limit: Optional[int] = None,
) -> list[int]:
    """End-time candidates for a chosen start.

    Candidates run on the granularity grid from ``start`` and drop anything
    shorter than ``min_minutes`` or longer than ``max_minutes``. ``limit``
    caps the end (defaults to the window end), and the cap itself is offered
    as the last candidate because a booking may run right up to it.
    """
    upper = window.end if limit is None else min(limit, window.end)
    candidates = [
        value
        for value in SlotSequence(window, granularity=granularity, floor=start + granularity)
        if value < upper and value - start >= min_minutes
    ]
    if upper - start >= min_minutes:
        candidates.append(upper)
    if max_minutes is not None:
        candidates = [value for value in candidates if value - start <= max_minutes]
    return candidates
