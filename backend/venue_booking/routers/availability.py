from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..deps import get_session
from ..domain.errors import ReservationError, StorageError
from ..infrastructure.repositories import SqlAlchemyReservationRepository, SqlAlchemyVenueRepository
from ..schemas import AvailabilityRead, DayAvailabilityRead, SlotListRead
from ..usecases import availability as availability_usecase
from ..utils.time import format_time_of_day, local_now, month_range, parse_time_of_day
from .errors import to_http_exception

router = APIRouter(prefix="/venues", tags=["availability"])


@router.get("/{venue_id}/availability", response_model=AvailabilityRead)
async def get_availability(
    venue_id: int = Path(..., ge=1),
    month: Optional[str] = Query(default=None, description="YYYY-MM, defaults to the current month"),
    months: int = Query(default=1, ge=1),
    session: AsyncSession = Depends(get_session),
) -> AvailabilityRead:
    settings = get_settings()
    if months > settings.max_availability_months:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"months must be <= {settings.max_availability_months}",
        )
    if month is None:
        month = local_now(settings.default_timezone).strftime("%Y-%m")
    try:
        start, end = month_range(month, months)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    venue_repo = SqlAlchemyVenueRepository(session)
    res_repo = SqlAlchemyReservationRepository(session)
    try:
        snapshots = await availability_usecase.get_availability(
            venue_repo,
            res_repo,
            venue_id=venue_id,
            start=start,
            end=end,
        )
    except ReservationError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise to_http_exception(StorageError("availability could not be read")) from exc

    return AvailabilityRead(
        venue_id=venue_id,
        start=start,
        end=end,
        days=[DayAvailabilityRead.from_snapshot(snapshot) for snapshot in snapshots.values()],
    )


@router.get("/{venue_id}/availability/{day}", response_model=DayAvailabilityRead)
async def get_day_availability(
    venue_id: int = Path(..., ge=1),
    day: date = Path(...),
    session: AsyncSession = Depends(get_session),
) -> DayAvailabilityRead:
    venue_repo = SqlAlchemyVenueRepository(session)
    res_repo = SqlAlchemyReservationRepository(session)
    try:
        _, snapshot = await availability_usecase.get_day_snapshot(venue_repo, res_repo, venue_id=venue_id, day=day)
    except ReservationError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise to_http_exception(StorageError("availability could not be read")) from exc
    return DayAvailabilityRead.from_snapshot(snapshot)


@router.get("/{venue_id}/availability/{day}/slots", response_model=SlotListRead)
async def list_slots(
    venue_id: int = Path(..., ge=1),
    day: date = Path(...),
    start: Optional[str] = Query(default=None, description="HH:MM; when given, end candidates are returned"),
    session: AsyncSession = Depends(get_session),
) -> SlotListRead:
    granularity = get_settings().slot_granularity_minutes
    start_minute: Optional[int] = None
    if start is not None:
        try:
            start_minute = parse_time_of_day(start)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    venue_repo = SqlAlchemyVenueRepository(session)
    res_repo = SqlAlchemyReservationRepository(session)
    try:
        if start_minute is None:
            values = await availability_usecase.list_start_slots(
                venue_repo, res_repo, venue_id=venue_id, day=day, granularity=granularity
            )
        else:
            values = await availability_usecase.list_end_slots(
                venue_repo, res_repo, venue_id=venue_id, day=day, start=start_minute, granularity=granularity
            )
    except ReservationError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise to_http_exception(StorageError("availability could not be read")) from exc

    return SlotListRead(
        venue_id=venue_id,
        date=day,
        kind="start" if start_minute is None else "end",
        start_time=start,
        slots=[format_time_of_day(value) for value in values],
    )
