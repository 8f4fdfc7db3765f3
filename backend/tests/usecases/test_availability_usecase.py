from datetime import date, datetime, timezone

import pytest
from fake_repos import FakeReservationRepo, FakeStore, FakeVenueRepo, make_venue
from venue_booking.domain.availability import DateStatus, TimeRange
from venue_booking.domain.errors import ResourceNotFoundError
from venue_booking.models import ReservationStatus
from venue_booking.usecases import availability as uc

DAY = date(2030, 3, 4)


def _setup(**venue_kwargs: object) -> tuple[FakeStore, FakeVenueRepo, FakeReservationRepo]:
    store = FakeStore(make_venue(**venue_kwargs))  # type: ignore[arg-type]
    store.yield_on_read = False
    return store, FakeVenueRepo(store), FakeReservationRepo(store)


@pytest.mark.asyncio
async def test_availability_covers_every_date_in_range() -> None:
    store, venue_repo, res_repo = _setup()
    store.add_reservation(venue_id=1, holder_id=5, booking_date=DAY, start_minute=600, end_minute=720)
    store.add_reservation(
        venue_id=1,
        holder_id=5,
        booking_date=DAY,
        start_minute=780,
        end_minute=840,
        status=ReservationStatus.CANCELLED,
    )
    await venue_repo.block_date(1, date(2030, 3, 5), "maintenance")

    result = await uc.get_availability(venue_repo, res_repo, venue_id=1, start=date(2030, 3, 3), end=date(2030, 3, 6))

    assert list(result) == [date(2030, 3, 3), DAY, date(2030, 3, 5), date(2030, 3, 6)]
    assert result[date(2030, 3, 3)].status is DateStatus.AVAILABLE
    assert result[DAY].status is DateStatus.PARTIALLY_BOOKED
    # Cancelled reservations do not occupy time.
    assert result[DAY].booked == (TimeRange(600, 720),)
    assert result[date(2030, 3, 5)].status is DateStatus.BLOCKED


@pytest.mark.asyncio
async def test_unknown_venue_raises() -> None:
    _, venue_repo, res_repo = _setup()
    with pytest.raises(ResourceNotFoundError):
        await uc.get_availability(venue_repo, res_repo, venue_id=99, start=DAY, end=DAY)


@pytest.mark.asyncio
async def test_start_slots_skip_booked_time() -> None:
    store, venue_repo, res_repo = _setup(open_minute=540, close_minute=720)
    store.add_reservation(venue_id=1, holder_id=5, booking_date=DAY, start_minute=600, end_minute=660)
    now = datetime(2030, 3, 1, tzinfo=timezone.utc)
    slots = await uc.list_start_slots(venue_repo, res_repo, venue_id=1, day=DAY, now=now)
    assert slots == [540, 570, 660, 690]


@pytest.mark.asyncio
async def test_start_slots_today_drop_passed_times() -> None:
    _, venue_repo, res_repo = _setup(open_minute=540, close_minute=720)
    now = datetime(2030, 3, 4, 10, 0, tzinfo=timezone.utc)
    slots = await uc.list_start_slots(venue_repo, res_repo, venue_id=1, day=DAY, now=now)
    assert slots == [630, 660, 690]


@pytest.mark.asyncio
async def test_start_slots_empty_for_past_day() -> None:
    _, venue_repo, res_repo = _setup()
    now = datetime(2030, 3, 5, tzinfo=timezone.utc)
    assert await uc.list_start_slots(venue_repo, res_repo, venue_id=1, day=DAY, now=now) == []


@pytest.mark.asyncio
async def test_24_hour_venue_offers_48_start_slots() -> None:
    _, venue_repo, res_repo = _setup(is_24_hours=True)
    now = datetime(2030, 3, 1, tzinfo=timezone.utc)
    slots = await uc.list_start_slots(venue_repo, res_repo, venue_id=1, day=DAY, now=now)
    assert len(slots) == 48
    assert slots[-1] == 23 * 60 + 30


@pytest.mark.asyncio
async def test_end_slots_stop_at_next_reservation() -> None:
    store, venue_repo, res_repo = _setup()
    store.add_reservation(venue_id=1, holder_id=5, booking_date=DAY, start_minute=780, end_minute=840)
    ends = await uc.list_end_slots(venue_repo, res_repo, venue_id=1, day=DAY, start=600)
    assert ends == [660, 690, 720, 750, 780]


@pytest.mark.asyncio
async def test_end_slots_empty_for_booked_start() -> None:
    store, venue_repo, res_repo = _setup()
    store.add_reservation(venue_id=1, holder_id=5, booking_date=DAY, start_minute=600, end_minute=720)
    assert await uc.list_end_slots(venue_repo, res_repo, venue_id=1, day=DAY, start=630) == []
