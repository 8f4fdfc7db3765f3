from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, AsyncContextManager, Callable, Optional

from ..config import Settings
from ..domain.errors import (
    ForbiddenActionError,
    PendingLimitError,
    ReservationNotFoundError,
    ResourceNotFoundError,
    VersionConflictError,
)
from ..domain.lifecycle import Actor, ReservationAction, ensure_actor, is_replay, next_status
from ..domain.pricing import NO_FEES, FeePolicy, PriceBreakdown
from ..domain.repositories import ReservationRepository, VenueRepository
from ..domain.services import Proposal, VenueRules, validate_reservation
from ..infrastructure.locks import KeyedLockRegistry, commit_key, holder_key
from ..models import Reservation, ReservationStatus, Venue
from ..utils.time import local_bounds, local_now, to_utc_naive, utc_now
from .availability import snapshot_on

logger = logging.getLogger(__name__)

Transaction = Callable[[], AsyncContextManager[Any]]


@dataclass(frozen=True)
class BookingPolicy:
    fees: FeePolicy = NO_FEES
    max_pending_per_holder: int = 3
    pending_window: timedelta = timedelta(minutes=15)
    cancellation_cutoff: timedelta = timedelta(hours=24)

    @classmethod
    def from_settings(cls, settings: Settings) -> "BookingPolicy":
        return cls(
            fees=FeePolicy(service_fee_rate=settings.service_fee_rate, tax_rate=settings.tax_rate),
            max_pending_per_holder=settings.max_pending_per_holder,
            pending_window=timedelta(minutes=settings.pending_window_minutes),
            cancellation_cutoff=timedelta(hours=settings.cancellation_cutoff_hours),
        )


_AUDIT_ACTIONS: dict[ReservationAction, str] = {
    ReservationAction.CONFIRM: "reservation.confirmed",
    ReservationAction.REJECT: "reservation.rejected",
    ReservationAction.CANCEL: "reservation.cancelled",
    ReservationAction.COMPLETE: "reservation.completed",
}


@dataclass
class TransitionResult:
    reservation: Reservation
    venue: Venue
    action: ReservationAction
    actor: Actor
    status_from: ReservationStatus
    changed: bool = True
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def audit_action(self) -> str:
        if self.extra.get("expired"):
            return "reservation.expired"
        return _AUDIT_ACTIONS[self.action]


async def validate_and_price(
    venue_repo: VenueRepository,
    res_repo: ReservationRepository,
    *,
    venue_id: int,
    proposal: Proposal,
    policy: BookingPolicy,
    now: Optional[datetime] = None,
) -> PriceBreakdown:
    """Quote a proposal against current availability without reserving it."""
    venue = await venue_repo.get(venue_id)
    if venue is None:
        raise ResourceNotFoundError("venue not found")
    rules = VenueRules.from_db(venue, fees=policy.fees)
    snapshot = await snapshot_on(venue_repo, res_repo, rules, proposal.day)
    today = local_now(rules.timezone, now).date()
    return validate_reservation(rules, proposal, today=today, snapshot=snapshot)


async def commit_reservation(
    venue_repo: VenueRepository,
    res_repo: ReservationRepository,
    *,
    locks: KeyedLockRegistry,
    transaction: Transaction,
    venue_id: int,
    holder_id: int,
    proposal: Proposal,
    policy: BookingPolicy,
    now: Optional[datetime] = None,
) -> tuple[Reservation, Venue, PriceBreakdown]:
    """Validate and insert a PENDING reservation as one atomic step.

    Commits for the same venue and date are serialised by the in-process
    lock; the venue row lock taken inside the transaction does the same
    across processes. Availability is re-read after both are held, so two
    overlapping proposals can never both pass validation.

    The holder lock is always taken first and keeps the pending-limit count
    exact for one holder booking several venues or dates at once. It is
    per process only; across processes the limit is best-effort.
    """
    current = now or utc_now()
    async with locks.hold(holder_key(holder_id)), locks.hold(commit_key(venue_id, proposal.day)):
        async with transaction():
            venue = await venue_repo.get_for_update(venue_id)
            if venue is None:
                raise ResourceNotFoundError("venue not found")
            if venue.host_id == holder_id:
                raise ForbiddenActionError("hosts cannot book their own venue")

            since = to_utc_naive(current) - policy.pending_window
            pending = await res_repo.count_recent_pending(holder_id, since)
            if pending >= policy.max_pending_per_holder:
                raise PendingLimitError(
                    f"at most {policy.max_pending_per_holder} pending reservations "
                    f"per {int(policy.pending_window.total_seconds() // 60)} minutes"
                )

            rules = VenueRules.from_db(venue, fees=policy.fees)
            snapshot = await snapshot_on(venue_repo, res_repo, rules, proposal.day)
            today = local_now(rules.timezone, current).date()
            price = validate_reservation(rules, proposal, today=today, snapshot=snapshot)

            reservation = await res_repo.create(
                venue_id=venue.id,
                holder_id=holder_id,
                booking_date=proposal.day,
                start_minute=proposal.start,
                end_minute=proposal.end,
                guest_count=proposal.guest_count,
                price=price,
                status=ReservationStatus.PENDING,
            )
    logger.info(
        "reservation %s committed venue=%s date=%s %s-%s",
        reservation.id,
        venue_id,
        proposal.day.isoformat(),
        proposal.start,
        proposal.end,
    )
    return reservation, venue, price


def _actor_for(reservation: Reservation, venue: Venue, user_id: int) -> Optional[Actor]:
    if user_id == venue.host_id:
        return Actor.HOST
    if user_id == reservation.holder_id:
        return Actor.HOLDER
    return None


def _apply(
    reservation: Reservation,
    venue: Venue,
    action: ReservationAction,
    *,
    actor: Actor,
    now: datetime,
    policy: BookingPolicy,
) -> ReservationStatus:
    starts_at, ends_at = local_bounds(
        reservation.booking_date, reservation.start_minute, reservation.end_minute, venue.timezone
    )
    previous = reservation.status
    reservation.status = next_status(
        previous,
        action,
        actor=actor,
        starts_at=starts_at,
        ends_at=ends_at,
        now=now,
        cancellation_cutoff=policy.cancellation_cutoff,
    )
    reservation.version += 1
    reservation.updated_at = to_utc_naive(now)
    return previous


async def transition_reservation(
    res_repo: ReservationRepository,
    *,
    transaction: Transaction,
    reservation_id: int,
    user_id: int,
    action: ReservationAction,
    version: Optional[int],
    policy: BookingPolicy,
    now: Optional[datetime] = None,
) -> TransitionResult:
    current = now or utc_now()
    async with transaction():
        row = await res_repo.get_for_update(reservation_id)
        if row is None:
            raise ReservationNotFoundError("reservation not found")
        reservation, venue = row
        actor = _actor_for(reservation, venue, user_id)
        if actor is None:
            # Other people's reservations are reported as missing.
            raise ReservationNotFoundError("reservation not found")
        ensure_actor(action, actor)

        # Idempotent: repeating the last action returns as-is
        if is_replay(reservation.status, action):
            return TransitionResult(
                reservation=reservation,
                venue=venue,
                action=action,
                actor=actor,
                status_from=reservation.status,
                changed=False,
            )
        # Version check after idempotent guard
        if version is not None and reservation.version != version:
            raise VersionConflictError("version mismatch")

        previous = _apply(reservation, venue, action, actor=actor, now=current, policy=policy)
        await res_repo.save(reservation)
    return TransitionResult(
        reservation=reservation,
        venue=venue,
        action=action,
        actor=actor,
        status_from=previous,
    )


async def settle_elapsed_reservations(
    res_repo: ReservationRepository,
    *,
    transaction: Transaction,
    policy: BookingPolicy,
    now: Optional[datetime] = None,
) -> list[TransitionResult]:
    """Complete confirmed reservations that have ended and expire pending
    ones whose start passed without a host decision."""
    current = now or utc_now()
    # Local dates can run up to a day ahead of UTC.
    until = current.date() + timedelta(days=1)
    settled: list[TransitionResult] = []
    async with transaction():
        for reservation, venue in await res_repo.list_unsettled(until):
            starts_at, ends_at = local_bounds(
                reservation.booking_date, reservation.start_minute, reservation.end_minute, venue.timezone
            )
            if reservation.status == ReservationStatus.CONFIRMED and current >= ends_at:
                action = ReservationAction.COMPLETE
            elif reservation.status == ReservationStatus.PENDING and current >= starts_at:
                action = ReservationAction.CANCEL
            else:
                continue
            previous = _apply(reservation, venue, action, actor=Actor.SYSTEM, now=current, policy=policy)
            await res_repo.save(reservation)
            settled.append(
                TransitionResult(
                    reservation=reservation,
                    venue=venue,
                    action=action,
                    actor=Actor.SYSTEM,
                    status_from=previous,
                    extra={"expired": action is ReservationAction.CANCEL},
                )
            )
    if settled:
        logger.info("lifecycle sweep settled %d reservations", len(settled))
    return settled


async def list_user_reservations(
    res_repo: ReservationRepository,
    *,
    user_id: int,
    status: Optional[ReservationStatus] = None,
) -> list[tuple[Reservation, Venue]]:
    return await res_repo.list_by_holder(user_id, status)


async def get_user_reservation(
    res_repo: ReservationRepository,
    *,
    reservation_id: int,
    user_id: int,
) -> tuple[Reservation, Venue] | None:
    row = await res_repo.get(reservation_id)
    if row is None:
        return None
    reservation, venue = row
    if _actor_for(reservation, venue, user_id) is None:
        return None
    return reservation, venue
