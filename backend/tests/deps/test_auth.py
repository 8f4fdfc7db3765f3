from datetime import timedelta

import pytest
from fastapi import HTTPException
from venue_booking.config import Settings, get_settings
from venue_booking.deps import get_booking_policy, get_current_user_id, get_event_publisher, get_lock_registry
from venue_booking.utils.auth import create_access_token


@pytest.fixture(autouse=True)
def _set_auth_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTH_SECRET", "testsecret")
    get_settings.cache_clear()


@pytest.mark.asyncio
async def test_get_current_user_id_accepts_valid_token() -> None:
    settings = Settings(auth_secret="testsecret")
    token = create_access_token(user_id=123, secret=settings.auth_secret, algorithm=settings.auth_algorithm)
    result = await get_current_user_id(authorization=f"Bearer {token}")
    assert result == 123


@pytest.mark.asyncio
async def test_get_current_user_id_rejects_missing_header() -> None:
    with pytest.raises(HTTPException) as excinfo:
        await get_current_user_id(authorization=None)
    assert excinfo.value.status_code == 401
    assert excinfo.value.headers == {"WWW-Authenticate": "Bearer"}


@pytest.mark.asyncio
async def test_get_current_user_id_rejects_other_scheme() -> None:
    with pytest.raises(HTTPException) as excinfo:
        await get_current_user_id(authorization="Basic dXNlcjpwYXNz")
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_get_current_user_id_rejects_expired_token() -> None:
    settings = Settings(auth_secret="testsecret")
    token = create_access_token(
        user_id=1,
        secret=settings.auth_secret,
        algorithm=settings.auth_algorithm,
        expires_delta=timedelta(seconds=-1),
    )
    with pytest.raises(HTTPException) as excinfo:
        await get_current_user_id(authorization=f"Bearer {token}")
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_get_current_user_id_rejects_wrong_secret() -> None:
    token = create_access_token(user_id=5, secret="another-secret")
    with pytest.raises(HTTPException) as excinfo:
        await get_current_user_id(authorization=f"Bearer {token}")
    assert excinfo.value.status_code == 401


def test_shared_dependencies_are_singletons() -> None:
    assert get_lock_registry() is get_lock_registry()
    assert get_event_publisher() is get_event_publisher()


def test_booking_policy_reads_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAX_PENDING_PER_HOLDER", "7")
    get_settings.cache_clear()
    assert get_booking_policy().max_pending_per_holder == 7
    get_settings.cache_clear()
