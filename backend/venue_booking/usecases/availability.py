from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from typing import Iterable

from ..domain.availability import AvailabilitySnapshot, TimeRange, available_start_slots
from ..domain.errors import ResourceNotFoundError
from ..domain.repositories import ReservationRepository, VenueRepository
from ..domain.services import VenueRules, snapshot_for
from ..domain.slots import SLOT_MINUTES, end_slots
from ..models import Reservation
from ..utils.time import iter_dates, local_now


async def load_rules(venue_repo: VenueRepository, venue_id: int) -> VenueRules:
    venue = await venue_repo.get(venue_id)
    if venue is None:
        raise ResourceNotFoundError("venue not found")
    return VenueRules.from_db(venue)


def reserved_by_date(reservations: Iterable[Reservation]) -> dict[date, list[TimeRange]]:
    grouped: dict[date, list[TimeRange]] = defaultdict(list)
    for reservation in reservations:
        grouped[reservation.booking_date].append(TimeRange(reservation.start_minute, reservation.end_minute))
    return grouped


async def get_availability(
    venue_repo: VenueRepository,
    res_repo: ReservationRepository,
    *,
    venue_id: int,
    start: date,
    end: date,
) -> dict[date, AvailabilitySnapshot]:
    if end < start:
        raise ValueError("end must not be earlier than start")
    rules = await load_rules(venue_repo, venue_id)
    blocked = set(await venue_repo.list_blocked_dates(venue_id, start, end))
    reserved = reserved_by_date(await res_repo.list_active(venue_id, start, end))
    return {
        day: snapshot_for(rules, day, reserved.get(day, ()), blocked=day in blocked)
        for day in iter_dates(start, end)
    }


async def snapshot_on(
    venue_repo: VenueRepository,
    res_repo: ReservationRepository,
    rules: VenueRules,
    day: date,
) -> AvailabilitySnapshot:
    """Read blocked state and active reservations for one date and classify it."""
    blocked = bool(await venue_repo.list_blocked_dates(rules.venue_id, day, day))
    reserved = reserved_by_date(await res_repo.list_active(rules.venue_id, day, day))
    return snapshot_for(rules, day, reserved.get(day, ()), blocked=blocked)


async def get_day_snapshot(
    venue_repo: VenueRepository,
    res_repo: ReservationRepository,
    *,
    venue_id: int,
    day: date,
) -> tuple[VenueRules, AvailabilitySnapshot]:
    rules = await load_rules(venue_repo, venue_id)
    return rules, await snapshot_on(venue_repo, res_repo, rules, day)


async def list_start_slots(
    venue_repo: VenueRepository,
    res_repo: ReservationRepository,
    *,
    venue_id: int,
    day: date,
    granularity: int = SLOT_MINUTES,
    now: datetime | None = None,
) -> list[int]:
    rules, snapshot = await get_day_snapshot(venue_repo, res_repo, venue_id=venue_id, day=day)
    local = local_now(rules.timezone, now)
    if day < local.date():
        return []
    not_before = None
    if day == local.date():
        # Only start times strictly after the current local minute.
        not_before = local.hour * 60 + local.minute + 1
    return available_start_slots(snapshot, granularity=granularity, not_before=not_before)


async def list_end_slots(
    venue_repo: VenueRepository,
    res_repo: ReservationRepository,
    *,
    venue_id: int,
    day: date,
    start: int,
    granularity: int = SLOT_MINUTES,
) -> list[int]:
    rules, snapshot = await get_day_snapshot(venue_repo, res_repo, venue_id=venue_id, day=day)
    if snapshot.window is None:
        return []
    free = next((item for item in snapshot.available if item.start <= start < item.end), None)
    if free is None:
        return []
    return end_slots(
        snapshot.window,
        start,
        min_minutes=rules.min_minutes,
        max_minutes=rules.max_minutes,
        granularity=granularity,
        limit=free.end,
    )
