# homeland/db/session.py
from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from homeland.core.config import settings  # NOTE: instance import, NOT class


def use_immediate_transactions(async_engine: AsyncEngine) -> None:
    """
    SQLite only: open every transaction with BEGIN IMMEDIATE so it holds the
    database write lock from its first statement. The driver would otherwise
    defer BEGIN to the first INSERT, letting two bookings both pass the
    availability check. Stands in for SELECT ... FOR UPDATE, which SQLite drops.
    """
    if async_engine.dialect.name != "sqlite":
        return

    @event.listens_for(async_engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(async_engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


# Create engine using instance settings (NOT Settings.DATABASE_URL)
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    future=True,
)
use_immediate_transactions(engine)

# Session factory
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# FastAPI dependency
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
