from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ..models import Venue
from .availability import AvailabilitySnapshot, DateStatus, TimeRange, build_snapshot
from .calendar import WeeklySchedule, resolve_window
from .errors import (
    InvalidCapacityError,
    InvalidDurationError,
    PastDateError,
    SlotConflictError,
    UnavailableDateError,
)
from .pricing import NO_FEES, FeePolicy, PriceBreakdown, PricingTerms, price_reservation


def hours_to_minutes(hours: Decimal | int) -> int:
    return int(Decimal(hours) * 60)


@dataclass(frozen=True)
class VenueRules:
    venue_id: int
    host_id: int
    timezone: str
    schedule: Optional[WeeklySchedule]
    min_capacity: int
    max_capacity: int
    min_minutes: int
    max_minutes: int
    pricing: PricingTerms

    @classmethod
    def from_db(
        cls,
        venue: Venue,
        *,
        fees: FeePolicy = NO_FEES,
    ) -> "VenueRules":
        return cls(
            venue_id=venue.id,
            host_id=venue.host_id,
            timezone=venue.timezone,
            schedule=WeeklySchedule.from_rows(venue.operating_hours),
            min_capacity=venue.min_capacity,
            max_capacity=venue.max_capacity,
            min_minutes=hours_to_minutes(venue.min_hours),
            max_minutes=hours_to_minutes(venue.max_hours),
            pricing=PricingTerms(
                hourly_rate=venue.hourly_rate,
                included_guests=venue.included_guests,
                extra_guest_rate=venue.extra_guest_rate,
                cleaning_fee=venue.cleaning_fee,
                service_fee_rate=fees.service_fee_rate,
                tax_rate=fees.tax_rate,
            ),
        )


@dataclass(frozen=True)
class Proposal:
    day: date
    start: int
    end: int
    guest_count: int

    @property
    def interval(self) -> TimeRange:
        return TimeRange(self.start, self.end)


def snapshot_for(
    rules: VenueRules,
    day: date,
    reserved: Iterable[TimeRange],
    *,
    blocked: bool = False,
) -> AvailabilitySnapshot:
    return build_snapshot(day, resolve_window(rules.schedule, day), reserved, blocked=blocked)


def validate_reservation(
    rules: VenueRules,
    proposal: Proposal,
    *,
    today: date,
    snapshot: AvailabilitySnapshot,
) -> PriceBreakdown:
    """
    Pure validation against duration, capacity and the given availability
    snapshot, checked in that fixed order. Returns the price breakdown if OK.
    Raises domain errors otherwise.
    """
    if proposal.day < today:
        raise PastDateError("date is in the past")
    if snapshot.status in (DateStatus.CLOSED, DateStatus.BLOCKED):
        raise UnavailableDateError(f"venue is {snapshot.status.value} on {proposal.day.isoformat()}")

    duration = proposal.end - proposal.start
    if duration <= 0:
        raise InvalidDurationError("end time must be after start time")
    if duration < rules.min_minutes:
        raise InvalidDurationError(f"minimum booking is {rules.min_minutes} minutes")
    if duration > rules.max_minutes:
        raise InvalidDurationError(f"maximum booking is {rules.max_minutes} minutes")

    if proposal.guest_count < rules.min_capacity:
        raise InvalidCapacityError(f"minimum {rules.min_capacity} guests required")
    if proposal.guest_count > rules.max_capacity:
        raise InvalidCapacityError(f"maximum capacity is {rules.max_capacity} guests")

    if snapshot.range_containing(proposal.interval) is None:
        raise SlotConflictError("requested time is not available")

    return price_reservation(rules.pricing, duration_minutes=duration, guest_count=proposal.guest_count)
