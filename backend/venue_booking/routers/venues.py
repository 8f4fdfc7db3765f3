from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_current_user_id, get_session
from ..domain.errors import DateAlreadyBlockedError, ReservationError, StorageError
from ..infrastructure.repositories import SqlAlchemyVenueRepository
from ..schemas import BlockedDateCreate, BlockedDateRead
from ..usecases import venues as venue_usecase
from ..utils.audit_log import emit_audit_log
from .errors import to_http_exception

router = APIRouter(prefix="/venues", tags=["venues"], dependencies=[Depends(get_current_user_id)])


@router.post(
    "/{venue_id}/blocked-dates",
    response_model=BlockedDateRead,
    status_code=status.HTTP_201_CREATED,
)
async def block_date(
    payload: BlockedDateCreate,
    venue_id: int = Path(..., ge=1),
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
) -> BlockedDateRead:
    venue_repo = SqlAlchemyVenueRepository(session)
    try:
        async with session.begin():
            blocked = await venue_usecase.block_date(
                venue_repo,
                venue_id=venue_id,
                user_id=user_id,
                day=payload.date,
                reason=payload.reason,
            )
    except ReservationError as exc:
        raise to_http_exception(exc) from exc
    except IntegrityError as exc:
        raise to_http_exception(DateAlreadyBlockedError(f"{payload.date.isoformat()} is already blocked")) from exc
    except SQLAlchemyError as exc:
        raise to_http_exception(StorageError("blocked date could not be saved")) from exc

    try:
        emit_audit_log(
            action="venue.date_blocked",
            initiator="host",
            venue_id=venue_id,
            booking_date=payload.date.isoformat(),
            message=payload.reason,
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc
    return BlockedDateRead.from_db(blocked)


@router.delete("/{venue_id}/blocked-dates/{day}", status_code=status.HTTP_204_NO_CONTENT)
async def unblock_date(
    venue_id: int = Path(..., ge=1),
    day: date = Path(...),
    session: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id),
) -> Response:
    venue_repo = SqlAlchemyVenueRepository(session)
    try:
        async with session.begin():
            removed = await venue_usecase.unblock_date(venue_repo, venue_id=venue_id, user_id=user_id, day=day)
    except ReservationError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise to_http_exception(StorageError("blocked date could not be removed")) from exc
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="date is not blocked")

    try:
        emit_audit_log(
            action="venue.date_unblocked",
            initiator="host",
            venue_id=venue_id,
            booking_date=day.isoformat(),
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
