"""Deterministic price breakdown for a proposed reservation."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

MONEY_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")
MINUTES_PER_HOUR = Decimal(60)


@dataclass(frozen=True)
class FeePolicy:
    service_fee_rate: Decimal = ZERO
    tax_rate: Decimal = ZERO


NO_FEES = FeePolicy()


@dataclass(frozen=True)
class PricingTerms:
    """Venue pricing parameters plus the platform fee policy."""

    hourly_rate: Decimal
    included_guests: int
    extra_guest_rate: Decimal
    cleaning_fee: Decimal = ZERO
    service_fee_rate: Decimal = ZERO
    tax_rate: Decimal = ZERO


@dataclass(frozen=True)
class PriceBreakdown:
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

    @property
    def fees(self) -> Decimal:
        return self.service_fee + self.tax + self.cleaning_fee

    def to_dict(self) -> dict[str, Any]:
        return {
            "duration_minutes": self.duration_minutes,
            "duration_hours": str(self.duration_hours),
            "hourly_rate": _to_str(self.hourly_rate),
            "base_price": _to_str(self.base_price),
            "extra_guests": self.extra_guests,
            "extra_guest_fee": _to_str(self.extra_guest_fee),
            "service_fee": _to_str(self.service_fee),
            "tax": _to_str(self.tax),
            "cleaning_fee": _to_str(self.cleaning_fee),
            "total": _to_str(self.total),
        }


def to_money(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def _to_str(value: Decimal) -> str:
    return f"{to_money(value):.2f}"


def price_reservation(terms: PricingTerms, *, duration_minutes: int, guest_count: int) -> PriceBreakdown:
    """Price a reservation of ``duration_minutes`` for ``guest_count`` guests.

    Base is hours times the hourly rate; each guest over the included count
    adds the flat extra-guest rate once. Service fee and tax are percentages
    of base plus surcharge, the cleaning fee is flat. Every component is
    rounded to cents on its own and the total is their exact sum.
    """
    if duration_minutes <= 0:
        raise ValueError("duration must be positive")
    hours = Decimal(duration_minutes) / MINUTES_PER_HOUR
    base_price = to_money(Decimal(terms.hourly_rate) * Decimal(duration_minutes) / MINUTES_PER_HOUR)
    extra_guests = max(0, guest_count - terms.included_guests)
    extra_guest_fee = to_money(Decimal(terms.extra_guest_rate) * extra_guests)
    subtotal = base_price + extra_guest_fee
    service_fee = to_money(subtotal * Decimal(terms.service_fee_rate))
    tax = to_money(subtotal * Decimal(terms.tax_rate))
    cleaning_fee = to_money(terms.cleaning_fee)
    total = subtotal + service_fee + tax + cleaning_fee
    return PriceBreakdown(
        duration_minutes=duration_minutes,
        duration_hours=hours.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP),
        hourly_rate=to_money(terms.hourly_rate),
        base_price=base_price,
        extra_guests=extra_guests,
        extra_guest_fee=extra_guest_fee,
        service_fee=service_fee,
        tax=tax,
        cleaning_fee=cleaning_fee,
        total=to_money(total),
    )
