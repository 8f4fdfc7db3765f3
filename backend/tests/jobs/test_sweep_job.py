from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from venue_booking import jobs
from venue_booking.models import Reservation, ReservationStatus
from venue_booking.usecases.reservations import BookingPolicy
from venue_booking.utils.events import EventPublisher, ReservationEvent
from venue_booking.utils.time import utc_now_naive

NOW = datetime(2030, 3, 10, 6, 0, tzinfo=timezone.utc)


def _reservation(booking_date: date, start: int, end: int, status: ReservationStatus) -> Reservation:
    now = utc_now_naive()
    return Reservation(
        venue_id=1,
        holder_id=42,
        booking_date=booking_date,
        start_minute=start,
        end_minute=end,
        guest_count=2,
        base_price=Decimal("1000.00"),
        extra_guest_fee=Decimal("0.00"),
        service_fee=Decimal("0.00"),
        tax=Decimal("0.00"),
        cleaning_fee=Decimal("0.00"),
        total_price=Decimal("1000.00"),
        status=status,
        version=1,
        created_at=now,
        updated_at=now,
    )


@pytest.mark.asyncio
async def test_sweep_settles_elapsed_reservations(
    session_factory: async_sessionmaker[AsyncSession],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async with session_factory() as session:
        session.add_all(
            [
                _reservation(date(2030, 3, 9), 600, 720, ReservationStatus.CONFIRMED),
                _reservation(date(2030, 3, 9), 780, 840, ReservationStatus.PENDING),
                # Still in progress at 15:00 JST.
                _reservation(date(2030, 3, 10), 840, 960, ReservationStatus.CONFIRMED),
                _reservation(date(2030, 3, 12), 600, 720, ReservationStatus.PENDING),
            ]
        )
        await session.commit()

    audits: list[dict[str, Any]] = []
    monkeypatch.setattr(jobs, "emit_audit_log", lambda **kwargs: audits.append(kwargs))

    publisher = EventPublisher()
    events: list[ReservationEvent] = []

    async def collect(event: ReservationEvent) -> None:
        events.append(event)

    publisher.subscribe(collect)
    results = await jobs.run_lifecycle_sweep(session_factory, policy=BookingPolicy(), now=NOW, publisher=publisher)
    await publisher.drain()

    assert len(results) == 2
    assert sorted(item["action"] for item in audits) == ["reservation.completed", "reservation.expired"]
    assert all(item["initiator"] == "system" for item in audits)
    assert sorted(event.name for event in events) == ["reservation.cancelled", "reservation.completed"]

    async with session_factory() as session:
        rows = (await session.scalars(select(Reservation).order_by(Reservation.id))).all()
        assert [row.status for row in rows] == [
            ReservationStatus.COMPLETED,
            ReservationStatus.CANCELLED,
            ReservationStatus.CONFIRMED,
            ReservationStatus.PENDING,
        ]
        assert rows[0].version == 2
