"""Periodic maintenance entry point (``venue-booking-sweep``).

Meant to be run from cron or a scheduler every few minutes; each run
completes confirmed reservations that have ended and expires pending
ones whose start passed without a host decision.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional, cast

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .domain.lifecycle import EVENT_FOR_STATUS
from .infrastructure.repositories import SqlAlchemyReservationRepository
from .usecases import reservations as reservation_usecase
from .usecases.reservations import BookingPolicy, TransitionResult
from .utils.audit_log import AuditAction, emit_audit_log
from .utils.events import EventName, EventPublisher, ReservationEvent, log_event

logger = logging.getLogger(__name__)


async def run_lifecycle_sweep(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    policy: BookingPolicy,
    now: Optional[datetime] = None,
    publisher: Optional[EventPublisher] = None,
) -> list[TransitionResult]:
    async with session_factory() as session:
        res_repo = SqlAlchemyReservationRepository(session)
        results = await reservation_usecase.settle_elapsed_reservations(
            res_repo,
            transaction=session.begin,
            policy=policy,
            now=now,
        )
    for result in results:
        reservation = result.reservation
        emit_audit_log(
            action=cast(AuditAction, result.audit_action),
            initiator="system",
            venue_id=reservation.venue_id,
            reservation_id=reservation.id,
            holder_id=reservation.holder_id,
            booking_date=reservation.booking_date.isoformat(),
            status_from=result.status_from,
            status_to=reservation.status,
            version=reservation.version,
        )
        if publisher is not None:
            publisher.publish(
                ReservationEvent(
                    name=cast(EventName, EVENT_FOR_STATUS[reservation.status]),
                    reservation_id=reservation.id,
                    venue_id=reservation.venue_id,
                    holder_id=reservation.holder_id,
                    status=reservation.status.value,
                    payload={"initiator": "system"},
                )
            )
    return results


async def _sweep(
    session_factory: async_sessionmaker[AsyncSession], policy: BookingPolicy
) -> list[TransitionResult]:
    publisher = EventPublisher()
    publisher.subscribe(log_event)
    results = await run_lifecycle_sweep(session_factory, policy=policy, publisher=publisher)
    await publisher.drain()
    return results


def main() -> None:
    from .config import get_settings
    from .database import async_session

    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")
    results = asyncio.run(_sweep(async_session, BookingPolicy.from_settings(settings)))
    logger.info("sweep finished, %d reservations settled", len(results))


if __name__ == "__main__":
    main()
