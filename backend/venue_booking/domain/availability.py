from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Iterable, Optional, Sequence

from ..utils.time import format_time_of_day
from .calendar import Window
from .slots import SLOT_MINUTES, SlotSequence


class DateStatus(StrEnum):
    AVAILABLE = "available"
    PARTIALLY_BOOKED = "partially_booked"
    FULLY_BOOKED = "fully_booked"
    CLOSED = "closed"
    BLOCKED = "blocked"


@dataclass(frozen=True, order=True)
class TimeRange:
    start: int
    end: int

    @property
    def minutes(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "TimeRange") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeRange") -> bool:
        return self.start <= other.start and other.end <= self.end

    def label(self) -> str:
        return f"{format_time_of_day(self.start)} - {format_time_of_day(self.end)}"


@dataclass(frozen=True)
class AvailabilitySnapshot:
    day: date
    status: DateStatus
    window: Optional[Window]
    available: tuple[TimeRange, ...] = ()
    booked: tuple[TimeRange, ...] = ()

    @property
    def bookable(self) -> bool:
        return bool(self.available)

    def range_containing(self, proposed: TimeRange) -> Optional[TimeRange]:
        for candidate in self.available:
            if candidate.contains(proposed):
                return candidate
        return None


def _merge(ranges: Iterable[TimeRange]) -> list[TimeRange]:
    merged: list[TimeRange] = []
    for current in sorted(ranges):
        if merged and current.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = TimeRange(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def partition_window(window: Window, reserved: Iterable[TimeRange]) -> tuple[list[TimeRange], list[TimeRange]]:
    """Split a window into (available, booked) sub-ranges.

    Walks reservations in start order with a cursor; gaps before each
    reservation are available, the reservation itself (clipped to the window)
    is booked. Overlapping or touching reservations collapse into one booked
    range, so the two lists always tile the window exactly.
    """
    available: list[TimeRange] = []
    booked: list[TimeRange] = []
    cursor = window.start
    for interval in sorted(reserved):
        if interval.end <= window.start or interval.start >= window.end:
            continue
        start = max(interval.start, window.start)
        end = min(interval.end, window.end)
        if start > cursor:
            available.append(TimeRange(cursor, start))
        if end > cursor:
            booked.append(TimeRange(max(start, cursor), end))
            cursor = end
    if cursor < window.end:
        available.append(TimeRange(cursor, window.end))
    return available, _merge(booked)


def build_snapshot(
    day: date,
    window: Optional[Window],
    reserved: Iterable[TimeRange],
    *,
    blocked: bool = False,
) -> AvailabilitySnapshot:
    if blocked:
        # Host override wins over whatever the schedule says.
        return AvailabilitySnapshot(day=day, status=DateStatus.BLOCKED, window=window)
    if window is None or window.closed:
        return AvailabilitySnapshot(day=day, status=DateStatus.CLOSED, window=window)

    available, booked = partition_window(window, reserved)
    if not booked:
        status = DateStatus.AVAILABLE
    elif not available:
        status = DateStatus.FULLY_BOOKED
    else:
        status = DateStatus.PARTIALLY_BOOKED
    return AvailabilitySnapshot(
        day=day,
        status=status,
        window=window,
        available=tuple(available),
        booked=tuple(booked),
    )


def coalesce(ranges: Sequence[TimeRange]) -> list[TimeRange]:
    """Join ranges that touch end-to-start into single display ranges."""
    return _merge(ranges)


def display_labels(ranges: Sequence[TimeRange]) -> list[str]:
    return [item.label() for item in coalesce(ranges)]


def available_start_slots(
    snapshot: AvailabilitySnapshot,
    *,
    granularity: int = SLOT_MINUTES,
    not_before: Optional[int] = None,
) -> list[int]:
    """Grid start times that fall inside a free range of the snapshot."""
    if snapshot.window is None or not snapshot.available:
        return []
    return [
        value
        for value in SlotSequence(snapshot.window, granularity=granularity)
        if (not_before is None or value >= not_before)
        and any(free.start <= value < free.end for free in snapshot.available)
    ]
