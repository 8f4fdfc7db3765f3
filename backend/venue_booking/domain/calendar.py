from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from ..models import OperatingHours
from ..utils.time import MINUTES_PER_DAY

DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class DaySchedule:
    closed: bool = False
    is_24_hours: bool = False
    start: int = 0
    end: int = 0

    @classmethod
    def closed_day(cls) -> "DaySchedule":
        return cls(closed=True)

    @classmethod
    def all_day(cls) -> "DaySchedule":
        return cls(is_24_hours=True, start=0, end=MINUTES_PER_DAY)

    @classmethod
    def hours(cls, start: int, end: int) -> "DaySchedule":
        return cls(start=start, end=end)


@dataclass(frozen=True)
class Window:
    """Bookable time-of-day range for one date, end exclusive."""

    start: int
    end: int
    closed: bool = False
    is_24_hours: bool = False

    @classmethod
    def closed_window(cls) -> "Window":
        return cls(start=0, end=0, closed=True)

    @property
    def minutes(self) -> int:
        return 0 if self.closed else self.end - self.start


@dataclass(frozen=True)
class WeeklySchedule:
    """Seven fixed entries indexed by weekday number, 0 = Sunday."""

    days: tuple[DaySchedule, ...]

    def __post_init__(self) -> None:
        if len(self.days) != DAYS_PER_WEEK:
            raise ValueError("weekly schedule needs exactly 7 entries")

    def for_weekday(self, index: int) -> DaySchedule:
        return self.days[index]

    @classmethod
    def from_rows(cls, rows: Iterable[OperatingHours]) -> Optional["WeeklySchedule"]:
        """Build from stored rows; weekdays without a row are closed.

        Returns None when the venue has never published hours at all.
        """
        days = [DaySchedule.closed_day()] * DAYS_PER_WEEK
        seen = False
        for row in rows:
            seen = True
            if row.is_closed:
                entry = DaySchedule.closed_day()
            elif row.is_24_hours:
                entry = DaySchedule.all_day()
            elif row.open_minute is None or row.close_minute is None or row.open_minute >= row.close_minute:
                # Unusable hours are treated as closed rather than guessed at.
                entry = DaySchedule.closed_day()
            else:
                entry = DaySchedule.hours(row.open_minute, row.close_minute)
            days[row.day_of_week] = entry
        if not seen:
            return None
        return cls(days=tuple(days))


def weekday_index(day: date) -> int:
    """Sunday-based weekday number (Sunday=0 ... Saturday=6)."""
    return (day.weekday() + 1) % DAYS_PER_WEEK


def resolve_window(schedule: Optional[WeeklySchedule], day: date) -> Optional[Window]:
    if schedule is None:
        return None
    entry = schedule.for_weekday(weekday_index(day))
    if entry.closed:
        return Window.closed_window()
    if entry.is_24_hours:
        return Window(start=0, end=MINUTES_PER_DAY, is_24_hours=True)
    return Window(start=entry.start, end=entry.end)
