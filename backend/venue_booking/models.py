from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Enum, ForeignKey, Index, Numeric, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql.sqltypes import BigInteger, Date, DateTime, Integer, SmallInteger, String

MONEY = Numeric(12, 2)
# SQLite only autoincrements INTEGER PRIMARY KEY.
PK_TYPE = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass


class ReservationStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Reservations in these states occupy their interval.
ACTIVE_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


class Venue(Base):
    __tablename__ = "venues"
    __table_args__ = (
        CheckConstraint("min_capacity >= 1", name="chk_venues_min_capacity"),
        CheckConstraint("max_capacity >= min_capacity", name="chk_venues_capacity"),
        CheckConstraint("min_hours > 0", name="chk_venues_min_hours"),
        CheckConstraint("max_hours >= min_hours", name="chk_venues_hours"),
        Index("idx_venues_host", "host_id"),
    )

    id: Mapped[int] = mapped_column(PK_TYPE, primary_key=True, autoincrement=True)
    host_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="Asia/Tokyo")
    min_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    min_hours: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("1"))
    max_hours: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("24"))
    hourly_rate: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    included_guests: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    extra_guest_rate: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    cleaning_fee: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    operating_hours: Mapped[list["OperatingHours"]] = relationship(
        back_populates="venue", order_by="OperatingHours.day_of_week"
    )
    blocked_dates: Mapped[list["BlockedDate"]] = relationship(back_populates="venue")
    reservations: Mapped[list["Reservation"]] = relationship(back_populates="venue")


class OperatingHours(Base):
    """One row per weekday; day_of_week 0 is Sunday."""

    __tablename__ = "operating_hours"
    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="chk_hours_day"),
        UniqueConstraint("venue_id", "day_of_week", name="uq_hours_venue_day"),
    )

    id: Mapped[int] = mapped_column(PK_TYPE, primary_key=True, autoincrement=True)
    venue_id: Mapped[int] = mapped_column(ForeignKey("venues.id"), nullable=False)
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    is_closed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_24_hours: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Minutes since midnight; unused when closed or open 24 hours.
    open_minute: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    close_minute: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    venue: Mapped["Venue"] = relationship(back_populates="operating_hours")


class BlockedDate(Base):
    __tablename__ = "blocked_dates"
    __table_args__ = (UniqueConstraint("venue_id", "blocked_on", name="uq_blocked_venue_date"),)

    id: Mapped[int] = mapped_column(PK_TYPE, primary_key=True, autoincrement=True)
    venue_id: Mapped[int] = mapped_column(ForeignKey("venues.id"), nullable=False)
    blocked_on: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    venue: Mapped["Venue"] = relationship(back_populates="blocked_dates")


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("start_minute >= 0", name="chk_res_start"),
        CheckConstraint("end_minute <= 1440", name="chk_res_end"),
        CheckConstraint("start_minute < end_minute", name="chk_res_time"),
        CheckConstraint("guest_count >= 1", name="chk_res_guest_count"),
        Index("idx_res_venue_date", "venue_id", "booking_date"),
        Index("idx_res_holder", "holder_id"),
    )

    id: Mapped[int] = mapped_column(PK_TYPE, primary_key=True, autoincrement=True)
    venue_id: Mapped[int] = mapped_column(ForeignKey("venues.id"), nullable=False)
    holder_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_minute: Mapped[int] = mapped_column(Integer, nullable=False)
    end_minute: Mapped[int] = mapped_column(Integer, nullable=False)
    guest_count: Mapped[int] = mapped_column(Integer, nullable=False)
    base_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    extra_guest_fee: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    service_fee: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    tax: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    cleaning_fee: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    total_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(
            ReservationStatus,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
        default=ReservationStatus.PENDING,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    venue: Mapped["Venue"] = relationship(back_populates="reservations")
