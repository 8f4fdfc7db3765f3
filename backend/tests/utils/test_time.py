from datetime import date, datetime, timezone

import pytest
from venue_booking.utils.time import (
    format_time_of_day,
    iter_dates,
    local_bounds,
    local_now,
    month_range,
    parse_time_of_day,
    to_utc_naive,
)


def test_parse_and_format_round_trip_edges() -> None:
    assert parse_time_of_day("00:00") == 0
    assert parse_time_of_day("23:30") == 1410
    assert parse_time_of_day("24:00", allow_end_of_day=True) == 1440
    assert format_time_of_day(1440) == "24:00"
    assert format_time_of_day(570) == "09:30"


@pytest.mark.parametrize("value", ["24:00", "9:00", "12:60", "noon", "25:00"])
def test_parse_rejects_invalid(value: str) -> None:
    with pytest.raises(ValueError):
        parse_time_of_day(value)


def test_month_range_spans_months() -> None:
    assert month_range("2030-02") == (date(2030, 2, 1), date(2030, 2, 28))
    assert month_range("2030-11", 3) == (date(2030, 11, 1), date(2031, 1, 31))
    with pytest.raises(ValueError):
        month_range("2030-13")


def test_iter_dates_is_inclusive() -> None:
    assert list(iter_dates(date(2030, 3, 30), date(2030, 4, 1))) == [
        date(2030, 3, 30),
        date(2030, 3, 31),
        date(2030, 4, 1),
    ]


def test_local_bounds_use_venue_timezone() -> None:
    start, end = local_bounds(date(2030, 3, 4), 600, 1440, "Asia/Tokyo")
    assert start.isoformat() == "2030-03-04T10:00:00+09:00"
    assert end.isoformat() == "2030-03-05T00:00:00+09:00"
    assert to_utc_naive(start) == datetime(2030, 3, 4, 1, 0)


def test_local_now_converts_reference_time() -> None:
    now = datetime(2030, 3, 4, 20, 0, tzinfo=timezone.utc)
    assert local_now("Asia/Tokyo", now).date() == date(2030, 3, 5)


def test_to_utc_naive_requires_aware() -> None:
    with pytest.raises(ValueError):
        to_utc_naive(datetime(2030, 3, 4))
