from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from recruitchat.config import get_settings

settings = get_settings()


def to_async_url(url: str) -> str:
    """Convert a plain sqlite:/// URL to the aiosqlite driver."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def create_session_factory(url: str) -> async_sessionmaker:
    engine = create_async_engine(to_async_url(url), echo=False)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async_session = create_session_factory(settings.database_url)
engine = async_session.kw["bind"]


class Base(DeclarativeBase):
    pass


async def init_db(session_factory: async_sessionmaker = async_session):
    # Register all tables on Base.metadata before create_all
    import recruitchat.models  # noqa: F401

    db_engine = session_factory.kw["bind"]
    database = db_engine.url.database
    if db_engine.url.get_backend_name() == "sqlite" and database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
