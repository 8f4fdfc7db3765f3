from datetime import date

from venue_booking.domain.calendar import DaySchedule, WeeklySchedule, Window, resolve_window, weekday_index
from venue_booking.models import OperatingHours

SUNDAY = date(2025, 1, 5)
MONDAY = date(2025, 1, 6)


def _hours(day_of_week: int, **kwargs: object) -> OperatingHours:
    return OperatingHours(venue_id=1, day_of_week=day_of_week, **kwargs)


def test_weekday_index_is_sunday_based() -> None:
    assert weekday_index(SUNDAY) == 0
    assert weekday_index(MONDAY) == 1
    assert weekday_index(date(2025, 1, 11)) == 6


def test_no_schedule_resolves_to_none() -> None:
    assert WeeklySchedule.from_rows([]) is None
    assert resolve_window(None, MONDAY) is None


def test_missing_weekday_is_closed() -> None:
    schedule = WeeklySchedule.from_rows([_hours(1, open_minute=9 * 60, close_minute=17 * 60)])
    assert schedule is not None
    assert resolve_window(schedule, MONDAY) == Window(start=540, end=1020)
    window = resolve_window(schedule, SUNDAY)
    assert window is not None and window.closed
    assert window.minutes == 0


def test_24_hour_day_covers_whole_day() -> None:
    schedule = WeeklySchedule.from_rows([_hours(1, is_24_hours=True)])
    window = resolve_window(schedule, MONDAY)
    assert window == Window(start=0, end=1440, is_24_hours=True)


def test_closed_flag_wins_over_hours() -> None:
    schedule = WeeklySchedule.from_rows([_hours(1, is_closed=True, open_minute=540, close_minute=1020)])
    window = resolve_window(schedule, MONDAY)
    assert window is not None and window.closed


def test_inverted_hours_are_treated_as_closed() -> None:
    schedule = WeeklySchedule.from_rows([_hours(1, open_minute=1020, close_minute=540)])
    window = resolve_window(schedule, MONDAY)
    assert window is not None and window.closed


def test_same_weekday_resolves_the_same_window_every_week() -> None:
    days = tuple(DaySchedule.hours(600, 1200) for _ in range(7))
    schedule = WeeklySchedule(days=days)
    assert resolve_window(schedule, MONDAY) == resolve_window(schedule, date(2025, 1, 13))
