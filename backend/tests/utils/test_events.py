import logging

import pytest
from venue_booking.utils.events import EventPublisher, ReservationEvent, log_event


def _event() -> ReservationEvent:
    return ReservationEvent(
        name="reservation.created",
        reservation_id=1,
        venue_id=2,
        holder_id=3,
        status="pending",
    )


@pytest.mark.asyncio
async def test_publish_delivers_to_every_subscriber() -> None:
    publisher = EventPublisher()
    received: list[tuple[str, int]] = []

    async def first(event: ReservationEvent) -> None:
        received.append(("first", event.reservation_id))

    async def second(event: ReservationEvent) -> None:
        received.append(("second", event.reservation_id))

    publisher.subscribe(first)
    publisher.subscribe(second)
    publisher.subscribe(first)
    publisher.publish(_event())
    await publisher.drain()

    assert sorted(received) == [("first", 1), ("second", 1)]


@pytest.mark.asyncio
async def test_failing_handler_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    publisher = EventPublisher()
    delivered: list[int] = []

    async def broken(event: ReservationEvent) -> None:
        raise RuntimeError("boom")

    async def healthy(event: ReservationEvent) -> None:
        delivered.append(event.reservation_id)

    publisher.subscribe(broken)
    publisher.subscribe(healthy)
    with caplog.at_level(logging.ERROR, logger="venue_booking.utils.events"):
        publisher.publish(_event())
        await publisher.drain()

    assert delivered == [1]
    assert any("failed" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_log_event_writes_info(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="venue_booking.utils.events"):
        await log_event(_event())
    assert "reservation.created reservation=1" in caplog.text
