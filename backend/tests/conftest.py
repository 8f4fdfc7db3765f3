"""Shared fixtures: a temporary SQLite database seeded with one venue."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from datetime import timedelta
from decimal import Decimal

import pytest
import pytest_asyncio

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("AUTH_SECRET", "testsecret")

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from venue_booking.config import get_settings
from venue_booking.database import build_engine, build_sessionmaker
from venue_booking.models import Base, OperatingHours, Venue
from venue_booking.utils.auth import create_access_token
from venue_booking.utils.time import utc_now_naive

HOST_ID = 7


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    db_path = tmp_path_factory.mktemp("db") / "venue_booking.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def session_factory(db_url: str) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Fresh schema per test with one venue open 09:00-22:00 every day."""
    engine = build_engine(db_url)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)

    factory = build_sessionmaker(engine)
    async with factory() as session:
        now = utc_now_naive()
        venue = Venue(
            host_id=HOST_ID,
            name="Riverside Loft",
            timezone="Asia/Tokyo",
            min_capacity=1,
            max_capacity=20,
            min_hours=Decimal("1"),
            max_hours=Decimal("8"),
            hourly_rate=Decimal("500"),
            included_guests=10,
            extra_guest_rate=Decimal("50"),
            cleaning_fee=Decimal("0"),
            created_at=now,
            updated_at=now,
        )
        venue.operating_hours = [
            OperatingHours(day_of_week=day, is_closed=False, is_24_hours=False, open_minute=540, close_minute=1320)
            for day in range(7)
        ]
        session.add(venue)
        await session.commit()

    yield factory
    await engine.dispose()


@pytest.fixture()
def token_for():
    def _make(user_id: int) -> dict[str, str]:
        settings = get_settings()
        token = create_access_token(
            user_id=user_id,
            secret=settings.auth_secret,
            algorithm=settings.auth_algorithm,
            expires_delta=timedelta(minutes=30),
        )
        return {"Authorization": f"Bearer {token}"}

    return _make
