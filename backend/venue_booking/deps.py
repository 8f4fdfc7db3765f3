from functools import lru_cache
from typing import AsyncIterator

from fastapi import Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import async_session
from .infrastructure.locks import KeyedLockRegistry
from .usecases.reservations import BookingPolicy
from .utils.auth import decode_access_token, parse_bearer
from .utils.events import EventPublisher


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(authorization: str | None = Header(default=None)) -> int:
    token = parse_bearer(authorization)
    if token is None:
        raise _unauthorized("bearer token required")
    settings = get_settings()
    try:
        return decode_access_token(token, secret=settings.auth_secret, algorithms=[settings.auth_algorithm])
    except ValueError as exc:
        raise _unauthorized("invalid token") from exc


@lru_cache
def get_lock_registry() -> KeyedLockRegistry:
    return KeyedLockRegistry()


@lru_cache
def get_event_publisher() -> EventPublisher:
    return EventPublisher()


def get_booking_policy() -> BookingPolicy:
    return BookingPolicy.from_settings(get_settings())
