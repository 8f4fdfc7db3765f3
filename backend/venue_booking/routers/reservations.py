import re
from typing import List, Optional, cast

from fastapi import APIRouter, Depends, Header, HTTPException, Path, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_booking_policy, get_current_user_id, get_event_publisher, get_lock_registry, get_session
from ..domain.errors import ReservationError, StorageError
from ..domain.lifecycle import EVENT_FOR_STATUS, ReservationAction
from ..infrastructure.locks import KeyedLockRegistry
from ..infrastructure.repositories import SqlAlchemyReservationRepository, SqlAlchemyVenueRepository
from ..models import Reservation, ReservationStatus, Venue
from ..schemas import PriceBreakdownRead, ReservationProposal, ReservationRead, ReservationTransition
from ..usecases import reservations as reservation_usecase
from ..usecases.reservations import BookingPolicy, TransitionResult
from ..utils.audit_log import AuditAction, AuditInitiator, emit_audit_log
from ..utils.events import EventName, EventPublisher, ReservationEvent
from .errors import to_http_exception

router = APIRouter(prefix="", tags=["reservations"])

_ETAG = re.compile(r'^(?:W/)?"(\d+)"$')


def _extract_version(if_match: Optional[str], payload: Optional[ReservationTransition]) -> Optional[int]:
    """Expected version from If-Match (preferred) or the body; None when neither is given."""
    if if_match is not None:
        match = _ETAG.match(if_match.strip())
        if match is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid If-Match header")
        version = int(match.group(1))
    elif payload is not None and payload.version is not None:
        version = payload.version
    else:
        return None
    if version < 1:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="version must be >= 1")
    return version


def _publish(publisher: EventPublisher, reservation: Reservation, payload: Optional[dict] = None) -> None:
    publisher.publish(
        ReservationEvent(
            name=cast(EventName, EVENT_FOR_STATUS[reservation.status]),
            reservation_id=reservation.id,
            venue_id=reservation.venue_id,
            holder_id=reservation.holder_id,
            status=reservation.status.value,
            payload=payload or {},
        )
    )


def _audit_transition(result: TransitionResult, message: Optional[str] = None) -> None:
    reservation = result.reservation
    try:
        emit_audit_log(
            action=cast(AuditAction, result.audit_action),
            initiator=cast(AuditInitiator, result.actor.value),
            venue_id=reservation.venue_id,
            reservation_id=reservation.id,
            holder_id=reservation.holder_id,
            booking_date=reservation.booking_date.isoformat(),
            guest_count=reservation.guest_count,
            status_from=result.status_from,
            status_to=reservation.status,
            version=reservation.version,
            message=message,
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc


@router.post("/reservations/quote", response_model=PriceBreakdownRead)
async def quote_reservation(
    payload: ReservationProposal,
    session: AsyncSession = Depends(get_session),
    policy: BookingPolicy = Depends(get_booking_policy),
) -> PriceBreakdownRead:
    venue_repo = SqlAlchemyVenueRepository(session)
    res_repo = SqlAlchemyReservationRepository(session)
    try:
        price = await reservation_usecase.validate_and_price(
            venue_repo,
            res_repo,
            venue_id=payload.venue_id,
            proposal=payload.to_proposal(),
            policy=policy,
        )
    except ReservationError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise to_http_exception(StorageError("availability could not be read")) from exc
    return PriceBreakdownRead.from_breakdown(price)


@router.post("/reservations", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: ReservationProposal,
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
    locks: KeyedLockRegistry = Depends(get_lock_registry),
    publisher: EventPublisher = Depends(get_event_publisher),
    policy: BookingPolicy = Depends(get_booking_policy),
) -> ReservationRead:
    venue_repo = SqlAlchemyVenueRepository(session)
    res_repo = SqlAlchemyReservationRepository(session)
    try:
        reservation, venue, price = await reservation_usecase.commit_reservation(
            venue_repo,
            res_repo,
            locks=locks,
            transaction=session.begin,
            venue_id=payload.venue_id,
            holder_id=user_id,
            proposal=payload.to_proposal(),
            policy=policy,
        )
    except ReservationError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise to_http_exception(StorageError("reservation could not be saved")) from exc

    try:
        emit_audit_log(
            action="reservation.created",
            initiator="holder",
            venue_id=venue.id,
            reservation_id=reservation.id,
            holder_id=reservation.holder_id,
            booking_date=reservation.booking_date.isoformat(),
            guest_count=reservation.guest_count,
            status_to=reservation.status,
            version=reservation.version,
            extra={"total_price": f"{price.total:.2f}"},
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc
    _publish(publisher, reservation, price.to_dict())
    return ReservationRead.from_db(reservation=reservation, venue=venue)


@router.post("/reservations/{reservation_id}/transitions", response_model=ReservationRead)
async def transition_reservation(
    payload: ReservationTransition,
    reservation_id: int = Path(..., ge=1),
    if_match: Optional[str] = Header(default=None, alias="If-Match"),
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
    publisher: EventPublisher = Depends(get_event_publisher),
    policy: BookingPolicy = Depends(get_booking_policy),
) -> ReservationRead:
    version = _extract_version(if_match, payload)
    res_repo = SqlAlchemyReservationRepository(session)
    try:
        result = await reservation_usecase.transition_reservation(
            res_repo,
            transaction=session.begin,
            reservation_id=reservation_id,
            user_id=user_id,
            action=ReservationAction(payload.action),
            version=version,
            policy=policy,
        )
    except ReservationError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise to_http_exception(StorageError("reservation could not be updated")) from exc

    if result.changed:
        _audit_transition(result, payload.reason)
        _publish(publisher, result.reservation)
    return ReservationRead.from_db(reservation=result.reservation, venue=result.venue)


@router.get("/me/reservations", response_model=List[ReservationRead])
async def list_my_reservations(
    status_filter: Optional[ReservationStatus] = Query(default=None, alias="status"),
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
) -> list[ReservationRead]:
    res_repo = SqlAlchemyReservationRepository(session)
    rows = await reservation_usecase.list_user_reservations(res_repo, user_id=user_id, status=status_filter)
    return [ReservationRead.from_db(reservation=res, venue=venue) for res, venue in rows]


@router.get("/me/reservations/{reservation_id}", response_model=ReservationRead)
async def get_my_reservation(
    reservation_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
) -> ReservationRead:
    res_repo = SqlAlchemyReservationRepository(session)
    row: Optional[tuple[Reservation, Venue]] = await reservation_usecase.get_user_reservation(
        res_repo, reservation_id=reservation_id, user_id=user_id
    )
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "RESERVATION_NOT_FOUND", "message": "reservation not found"},
        )
    reservation, venue = row
    return ReservationRead.from_db(reservation=reservation, venue=venue)
