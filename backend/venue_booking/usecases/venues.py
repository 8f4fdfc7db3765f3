from __future__ import annotations

from datetime import date
from typing import Optional

from ..domain.errors import DateAlreadyBlockedError, ForbiddenActionError, ResourceNotFoundError
from ..domain.repositories import VenueRepository
from ..models import BlockedDate, Venue


async def _owned_venue(venue_repo: VenueRepository, venue_id: int, user_id: int) -> Venue:
    venue = await venue_repo.get_for_update(venue_id)
    if venue is None:
        raise ResourceNotFoundError("venue not found")
    if venue.host_id != user_id:
        raise ForbiddenActionError("only the host can manage blocked dates")
    return venue


async def block_date(
    venue_repo: VenueRepository,
    *,
    venue_id: int,
    user_id: int,
    day: date,
    reason: Optional[str] = None,
) -> BlockedDate:
    """Mark a whole date unavailable. Existing reservations on it are kept."""
    await _owned_venue(venue_repo, venue_id, user_id)
    existing = await venue_repo.list_blocked_dates(venue_id, day, day)
    if existing:
        raise DateAlreadyBlockedError(f"{day.isoformat()} is already blocked")
    return await venue_repo.block_date(venue_id, day, reason)


async def unblock_date(
    venue_repo: VenueRepository,
    *,
    venue_id: int,
    user_id: int,
    day: date,
) -> bool:
    await _owned_venue(venue_repo, venue_id, user_id)
    return await venue_repo.unblock_date(venue_id, day)
