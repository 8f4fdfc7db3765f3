from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

from .domain.availability import AvailabilitySnapshot, DateStatus, TimeRange, display_labels
from .domain.pricing import PriceBreakdown
from .domain.services import Proposal
from .models import BlockedDate, Reservation, ReservationStatus, Venue
from .utils.time import format_time_of_day, local_bounds, parse_time_of_day


class ReservationProposal(BaseModel):
    venue_id: int = Field(ge=1)
    date: date
    start_time: str = Field(description="HH:MM, venue local time")
    end_time: str = Field(description="HH:MM, venue local time; 24:00 closes the day")
    guest_count: int = Field(ge=1)

    @field_validator("start_time")
    @classmethod
    def _check_start(cls, value: str) -> str:
        parse_time_of_day(value)
        return value

    @field_validator("end_time")
    @classmethod
    def _check_end(cls, value: str) -> str:
        parse_time_of_day(value, allow_end_of_day=True)
        return value

    def to_proposal(self) -> Proposal:
        return Proposal(
            day=self.date,
            start=parse_time_of_day(self.start_time),
            end=parse_time_of_day(self.end_time, allow_end_of_day=True),
            guest_count=self.guest_count,
        )


class ReservationTransition(BaseModel):
    action: Literal["confirm", "reject", "cancel"]
    version: Optional[int] = Field(default=None, ge=1)
    reason: Optional[str] = Field(default=None, max_length=500)


class PriceBreakdownRead(BaseModel):
    duration_minutes: int
    duration_hours: Decimal
    hourly_rate: Decimal
    base_price: Decimal
    extra_guests: int
    extra_guest_fee: Decimal
    service_fee: Decimal
    tax: Decimal
    cleaning_fee: Decimal
    total: Decimal

    @field_serializer(
        "duration_hours",
        "hourly_rate",
        "base_price",
        "extra_guest_fee",
        "service_fee",
        "tax",
        "cleaning_fee",
        "total",
    )
    def _ser_money(self, value: Decimal) -> str:
        return f"{value:.2f}"

    @classmethod
    def from_breakdown(cls, price: PriceBreakdown) -> "PriceBreakdownRead":
        return cls(
            duration_minutes=price.duration_minutes,
            duration_hours=price.duration_hours,
            hourly_rate=price.hourly_rate,
            base_price=price.base_price,
            extra_guests=price.extra_guests,
            extra_guest_fee=price.extra_guest_fee,
            service_fee=price.service_fee,
            tax=price.tax,
            cleaning_fee=price.cleaning_fee,
            total=price.total,
        )


class ReservationRead(BaseModel):
    reservation_id: int
    venue_id: int
    holder_id: int
    date: date
    start_time: str
    end_time: str
    starts_at: datetime
    ends_at: datetime
    guest_count: int
    status: ReservationStatus
    version: int
    base_price: Decimal
    extra_guest_fee: Decimal
    service_fee: Decimal
    tax: Decimal
    cleaning_fee: Decimal
    total_price: Decimal

    @field_serializer("starts_at", "ends_at")
    def _ser_datetime(self, dt: datetime) -> str:
        return dt.isoformat()

    @field_serializer("base_price", "extra_guest_fee", "service_fee", "tax", "cleaning_fee", "total_price")
    def _ser_money(self, value: Decimal) -> str:
        return f"{value:.2f}"

    @classmethod
    def from_db(cls, *, reservation: Reservation, venue: Venue) -> "ReservationRead":
        starts_at, ends_at = local_bounds(
            reservation.booking_date, reservation.start_minute, reservation.end_minute, venue.timezone
        )
        return cls(
            reservation_id=reservation.id,
            venue_id=reservation.venue_id,
            holder_id=reservation.holder_id,
            date=reservation.booking_date,
            start_time=format_time_of_day(reservation.start_minute),
            end_time=format_time_of_day(reservation.end_minute),
            starts_at=starts_at,
            ends_at=ends_at,
            guest_count=reservation.guest_count,
            status=reservation.status,
            version=reservation.version,
            base_price=reservation.base_price,
            extra_guest_fee=reservation.extra_guest_fee,
            service_fee=reservation.service_fee,
            tax=reservation.tax,
            cleaning_fee=reservation.cleaning_fee,
            total_price=reservation.total_price,
        )


class TimeRangeRead(BaseModel):
    start: str
    end: str

    @classmethod
    def from_range(cls, item: TimeRange) -> "TimeRangeRead":
        return cls(start=format_time_of_day(item.start), end=format_time_of_day(item.end))


class DayAvailabilityRead(BaseModel):
    date: date
    status: DateStatus
    is_24_hours: bool = False
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    available: list[TimeRangeRead] = []
    booked: list[TimeRangeRead] = []
    available_labels: list[str] = []
    booked_labels: list[str] = []

    @classmethod
    def from_snapshot(cls, snapshot: AvailabilitySnapshot) -> "DayAvailabilityRead":
        window = snapshot.window
        is_open = window is not None and not window.closed
        return cls(
            date=snapshot.day,
            status=snapshot.status,
            is_24_hours=bool(window and window.is_24_hours),
            open_time=format_time_of_day(window.start) if is_open and window else None,
            close_time=format_time_of_day(window.end) if is_open and window else None,
            available=[TimeRangeRead.from_range(item) for item in snapshot.available],
            booked=[TimeRangeRead.from_range(item) for item in snapshot.booked],
            available_labels=display_labels(snapshot.available),
            booked_labels=display_labels(snapshot.booked),
        )


class AvailabilityRead(BaseModel):
    venue_id: int
    start: date
    end: date
    days: list[DayAvailabilityRead]


class SlotListRead(BaseModel):
    venue_id: int
    date: date
    kind: Literal["start", "end"]
    start_time: Optional[str] = None
    slots: list[str]


class BlockedDateCreate(BaseModel):
    date: date
    reason: Optional[str] = Field(default=None, max_length=255)


class BlockedDateRead(BaseModel):
    venue_id: int
    date: date
    reason: Optional[str] = None

    @classmethod
    def from_db(cls, blocked: BlockedDate) -> "BlockedDateRead":
        return cls(venue_id=blocked.venue_id, date=blocked.blocked_on, reason=blocked.reason)
