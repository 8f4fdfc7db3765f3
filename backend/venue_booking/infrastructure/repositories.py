from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Tuple, cast

from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..domain.pricing import PriceBreakdown
from ..domain.repositories import ReservationRepository, VenueRepository
from ..models import ACTIVE_STATUSES, BlockedDate, Reservation, ReservationStatus, Venue
from ..utils.time import utc_now_naive


class SqlAlchemyVenueRepository(VenueRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _venue_stmt(self, venue_id: int) -> Select[Tuple[Venue]]:
        return select(Venue).options(selectinload(Venue.operating_hours)).where(Venue.id == venue_id)

    async def get(self, venue_id: int) -> Venue | None:
        return await self.session.scalar(self._venue_stmt(venue_id))

    async def get_for_update(self, venue_id: int) -> Venue | None:
        # Row lock on the venue serialises commits for it across processes.
        result = await self.session.scalar(self._venue_stmt(venue_id).with_for_update())
        return result if isinstance(result, Venue) else None

    async def list_blocked_dates(self, venue_id: int, start: date, end: date) -> list[date]:
        stmt = select(BlockedDate.blocked_on).where(
            BlockedDate.venue_id == venue_id,
            BlockedDate.blocked_on >= start,
            BlockedDate.blocked_on <= end,
        )
        rows = await self.session.scalars(stmt)
        return list(rows.all())

    async def block_date(self, venue_id: int, day: date, reason: str | None) -> BlockedDate:
        blocked = BlockedDate(venue_id=venue_id, blocked_on=day, reason=reason, created_at=utc_now_naive())
        self.session.add(blocked)
        await self.session.flush()
        return blocked

    async def unblock_date(self, venue_id: int, day: date) -> bool:
        result = await self.session.execute(
            delete(BlockedDate).where(BlockedDate.venue_id == venue_id, BlockedDate.blocked_on == day)
        )
        return bool(result.rowcount)


class SqlAlchemyReservationRepository(ReservationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_active(self, venue_id: int, start: date, end: date) -> list[Reservation]:
        stmt = (
            select(Reservation)
            .where(
                Reservation.venue_id == venue_id,
                Reservation.booking_date >= start,
                Reservation.booking_date <= end,
                Reservation.status.in_(ACTIVE_STATUSES),
            )
            .order_by(Reservation.booking_date, Reservation.start_minute)
        )
        rows = await self.session.scalars(stmt)
        return list(rows.all())

    async def count_recent_pending(self, holder_id: int, since: datetime) -> int:
        stmt = select(func.count(Reservation.id)).where(
            Reservation.holder_id == holder_id,
            Reservation.status == ReservationStatus.PENDING,
            Reservation.created_at > since,
        )
        return int(await self.session.scalar(stmt) or 0)

    async def create(
        self,
        *,
        venue_id: int,
        holder_id: int,
        booking_date: date,
        start_minute: int,
        end_minute: int,
        guest_count: int,
        price: PriceBreakdown,
        status: ReservationStatus,
    ) -> Reservation:
        now = utc_now_naive()
        reservation = Reservation(
            venue_id=venue_id,
            holder_id=holder_id,
            booking_date=booking_date,
            start_minute=start_minute,
            end_minute=end_minute,
            guest_count=guest_count,
            base_price=price.base_price,
            extra_guest_fee=price.extra_guest_fee,
            service_fee=price.service_fee,
            tax=price.tax,
            cleaning_fee=price.cleaning_fee,
            total_price=price.total,
            status=status,
            version=1,
            created_at=now,
            updated_at=now,
        )
        self.session.add(reservation)
        await self.session.flush()
        return reservation

    def _with_venue(self) -> Select[Tuple[Reservation, Venue]]:
        return select(Reservation, Venue).join(Venue, Reservation.venue_id == Venue.id)

    async def get(self, reservation_id: int) -> Optional[Tuple[Reservation, Venue]]:
        row = (await self.session.execute(self._with_venue().where(Reservation.id == reservation_id))).first()
        return cast(Optional[Tuple[Reservation, Venue]], row)

    async def get_for_update(self, reservation_id: int) -> Optional[Tuple[Reservation, Venue]]:
        stmt = self._with_venue().where(Reservation.id == reservation_id).with_for_update(of=Reservation)
        row = (await self.session.execute(stmt)).first()
        return cast(Optional[Tuple[Reservation, Venue]], row)

    async def list_by_holder(
        self,
        holder_id: int,
        status: ReservationStatus | None = None,
    ) -> List[Tuple[Reservation, Venue]]:
        stmt = self._with_venue().where(Reservation.holder_id == holder_id)
        if status is not None:
            stmt = stmt.where(Reservation.status == status)
        stmt = stmt.order_by(Reservation.booking_date.desc(), Reservation.start_minute)
        rows = await self.session.execute(stmt)
        return cast(List[Tuple[Reservation, Venue]], list(rows.all()))

    async def list_unsettled(self, until: date) -> List[Tuple[Reservation, Venue]]:
        stmt = (
            self._with_venue()
            .where(Reservation.status.in_(ACTIVE_STATUSES), Reservation.booking_date <= until)
            .order_by(Reservation.booking_date, Reservation.start_minute)
            .with_for_update(of=Reservation, skip_locked=True)
        )
        rows = await self.session.execute(stmt)
        return cast(List[Tuple[Reservation, Venue]], list(rows.all()))

    async def save(self, reservation: Reservation) -> Reservation:
        self.session.add(reservation)
        await self.session.flush()
        return reservation
