from decimal import Decimal

import pytest
from venue_booking.domain.pricing import PricingTerms, price_reservation


def _terms(**overrides: object) -> PricingTerms:
    values: dict[str, object] = {
        "hourly_rate": Decimal("500"),
        "included_guests": 10,
        "extra_guest_rate": Decimal("50"),
    }
    values.update(overrides)
    return PricingTerms(**values)  # type: ignore[arg-type]


def test_two_hours_at_500_costs_1000() -> None:
    price = price_reservation(_terms(), duration_minutes=120, guest_count=10)
    assert price.base_price == Decimal("1000.00")
    assert price.extra_guest_fee == Decimal("0.00")
    assert price.total == Decimal("1000.00")
    assert price.duration_hours == Decimal("2.00")


def test_extra_guests_add_flat_surcharge() -> None:
    price = price_reservation(_terms(), duration_minutes=120, guest_count=13)
    assert price.extra_guests == 3
    assert price.extra_guest_fee == Decimal("150.00")
    assert price.total == Decimal("1150.00")


def test_partial_hours_are_prorated() -> None:
    price = price_reservation(_terms(hourly_rate=Decimal("333")), duration_minutes=90, guest_count=1)
    assert price.base_price == Decimal("499.50")


def test_fees_apply_to_subtotal() -> None:
    terms = _terms(
        service_fee_rate=Decimal("0.10"),
        tax_rate=Decimal("0.05"),
        cleaning_fee=Decimal("30"),
    )
    price = price_reservation(terms, duration_minutes=120, guest_count=12)
    assert price.service_fee == Decimal("110.00")
    assert price.tax == Decimal("55.00")
    assert price.cleaning_fee == Decimal("30.00")
    assert price.total == Decimal("1295.00")
    assert price.fees == Decimal("195.00")


def test_pricing_is_deterministic() -> None:
    first = price_reservation(_terms(), duration_minutes=150, guest_count=11)
    second = price_reservation(_terms(), duration_minutes=150, guest_count=11)
    assert first == second
    assert first.to_dict()["total"] == "1300.00"


def test_rejects_non_positive_duration() -> None:
    with pytest.raises(ValueError):
        price_reservation(_terms(), duration_minutes=0, guest_count=1)
