from __future__ import annotations

from datetime import date, datetime
from typing import Protocol

from ..models import BlockedDate, Reservation, ReservationStatus, Venue
from .pricing import PriceBreakdown


class VenueRepository(Protocol):
    async def get(self, venue_id: int) -> Venue | None: ...

    async def get_for_update(self, venue_id: int) -> Venue | None: ...

    async def list_blocked_dates(self, venue_id: int, start: date, end: date) -> list[date]: ...

    async def block_date(self, venue_id: int, day: date, reason: str | None) -> BlockedDate: ...

    async def unblock_date(self, venue_id: int, day: date) -> bool: ...


class ReservationRepository(Protocol):
    async def list_active(self, venue_id: int, start: date, end: date) -> list[Reservation]: ...

    async def count_recent_pending(self, holder_id: int, since: datetime) -> int: ...

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
    ) -> Reservation: ...

    async def get(self, reservation_id: int) -> tuple[Reservation, Venue] | None: ...

    async def get_for_update(self, reservation_id: int) -> tuple[Reservation, Venue] | None: ...

    async def list_by_holder(
        self,
        holder_id: int,
        status: ReservationStatus | None = None,
    ) -> list[tuple[Reservation, Venue]]: ...

    async def list_unsettled(self, until: date) -> list[tuple[Reservation, Venue]]: ...

    async def save(self, reservation: Reservation) -> Reservation: ...
