from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from venue_booking.routers.reservations import _extract_version
from venue_booking.schemas import ReservationTransition


def test_if_match_preferred_over_body() -> None:
    payload = ReservationTransition(action="cancel", version=5)
    assert _extract_version('W/"10"', payload) == 10


def test_body_used_when_no_header() -> None:
    payload = ReservationTransition(action="cancel", version=7)
    assert _extract_version(None, payload) == 7


def test_missing_version_is_allowed() -> None:
    assert _extract_version(None, ReservationTransition(action="confirm")) is None
    assert _extract_version(None, None) is None


def test_invalid_header_raises_400() -> None:
    with pytest.raises(HTTPException) as excinfo:
        _extract_version("invalid", None)
    assert excinfo.value.status_code == 400


def test_header_zero_raises_400() -> None:
    with pytest.raises(HTTPException) as excinfo:
        _extract_version('"0"', None)
    assert excinfo.value.status_code == 400


def test_body_zero_raises_400() -> None:
    payload = SimpleNamespace(version=0)  # bypass Pydantic validation to hit router validation
    with pytest.raises(HTTPException) as excinfo:
        _extract_version(None, payload)  # type: ignore[arg-type]
    assert excinfo.value.status_code == 400
