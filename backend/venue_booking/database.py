from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import get_settings


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    options: dict[str, object] = {"echo": echo, "pool_pre_ping": True}
    if database_url.startswith("mysql"):
        options["pool_recycle"] = 3600
    return create_async_engine(database_url, **options)


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, expire_on_commit=False, class_=AsyncSession)


settings = get_settings()

engine = build_engine(settings.database_url, echo=settings.echo_sql)

async_session = build_sessionmaker(engine)
