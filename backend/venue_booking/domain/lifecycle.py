from __future__ import annotations

from datetime import datetime, timedelta
from enum import StrEnum

from ..models import ReservationStatus
from .errors import CancellationCutoffError, ForbiddenActionError, LifecycleViolationError


class ReservationAction(StrEnum):
    CONFIRM = "confirm"
    REJECT = "reject"
    CANCEL = "cancel"
    COMPLETE = "complete"


class Actor(StrEnum):
    HOLDER = "holder"
    HOST = "host"
    SYSTEM = "system"


_TRANSITIONS: dict[tuple[ReservationStatus, ReservationAction], ReservationStatus] = {
    (ReservationStatus.PENDING, ReservationAction.CONFIRM): ReservationStatus.CONFIRMED,
    (ReservationStatus.PENDING, ReservationAction.REJECT): ReservationStatus.CANCELLED,
    (ReservationStatus.PENDING, ReservationAction.CANCEL): ReservationStatus.CANCELLED,
    (ReservationStatus.CONFIRMED, ReservationAction.CANCEL): ReservationStatus.CANCELLED,
    (ReservationStatus.CONFIRMED, ReservationAction.COMPLETE): ReservationStatus.COMPLETED,
}

# Repeating the action that produced the current state is a no-op.
_REPLAYS: set[tuple[ReservationStatus, ReservationAction]] = {
    (ReservationStatus.CONFIRMED, ReservationAction.CONFIRM),
    (ReservationStatus.CANCELLED, ReservationAction.CANCEL),
    (ReservationStatus.CANCELLED, ReservationAction.REJECT),
}

_ALLOWED_ACTORS: dict[ReservationAction, frozenset[Actor]] = {
    ReservationAction.CONFIRM: frozenset({Actor.HOST}),
    ReservationAction.REJECT: frozenset({Actor.HOST}),
    ReservationAction.CANCEL: frozenset({Actor.HOLDER, Actor.HOST, Actor.SYSTEM}),
    ReservationAction.COMPLETE: frozenset({Actor.SYSTEM}),
}

EVENT_FOR_STATUS: dict[ReservationStatus, str] = {
    ReservationStatus.PENDING: "reservation.created",
    ReservationStatus.CONFIRMED: "reservation.confirmed",
    ReservationStatus.CANCELLED: "reservation.cancelled",
    ReservationStatus.COMPLETED: "reservation.completed",
}


def ensure_actor(action: ReservationAction, actor: Actor) -> None:
    if actor not in _ALLOWED_ACTORS[action]:
        raise ForbiddenActionError(f"{actor.value} may not {action.value} a reservation")


def is_replay(current: ReservationStatus, action: ReservationAction) -> bool:
    return (current, action) in _REPLAYS


def next_status(
    current: ReservationStatus,
    action: ReservationAction,
    *,
    actor: Actor,
    starts_at: datetime,
    ends_at: datetime,
    now: datetime,
    cancellation_cutoff: timedelta,
) -> ReservationStatus:
    """Resolve the target state of ``action`` or raise why it is not allowed.

    A confirmed reservation can be cancelled by people only until
    ``cancellation_cutoff`` before it starts; a pending one until it starts.
    The system may cancel at any time and is the only actor that completes,
    which requires the reservation to have ended.
    """
    ensure_actor(action, actor)

    target = _TRANSITIONS.get((current, action))
    if target is None:
        raise LifecycleViolationError(f"cannot {action.value} a {current.value} reservation")

    if action is ReservationAction.COMPLETE and now < ends_at:
        raise LifecycleViolationError("reservation has not ended yet")

    if action is ReservationAction.CANCEL and actor is not Actor.SYSTEM:
        deadline = starts_at - cancellation_cutoff if current is ReservationStatus.CONFIRMED else starts_at
        if now >= deadline:
            raise CancellationCutoffError("cancellation window closed")

    return target
