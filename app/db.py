import argparse
import asyncio
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app import models  # noqa: F401
from app.config import settings
from app.models.base import Base
from app.utils.logger import setup_logger

logger = setup_logger("db")


def _engine_options() -> dict:
    if settings.is_postgres:
        return {
            "pool_pre_ping": True,
            "pool_size": 20,
            "max_overflow": 30,
            "pool_timeout": 60,
            "pool_recycle": 300,
            "connect_args": {"timeout": 30},
        }
    if settings.app_database_url.startswith("sqlite+aiosqlite://"):
        # aiosqlite connections are bound to the loop that opened them
        return {"poolclass": NullPool}
    raise ValueError(
        f"Unsupported TASK_TRACKER_DATABASE_URL prefix: {settings.app_database_url}"
    )


logger.debug(f"Application DB URL: {settings.app_database_url}")
app_engine = create_async_engine(
    settings.app_database_url, echo=False, **_engine_options()
)

AppAsyncSessionLocal = async_sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=app_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# --- Dependency for FastAPI (Application DB) ---
async def get_app_db() -> AsyncGenerator[AsyncSession, None]:
    async with AppAsyncSessionLocal() as session:
        if settings.is_postgres and settings.schema_name:
            await session.execute(
                text(f"SET search_path TO {settings.schema_name}, public")
            )
        yield session


async def init_db():
    """Create the schema (Postgres only) and all tables that do not exist yet."""
    if not Base.metadata.tables:
        logger.warning("Base.metadata.tables is EMPTY! No tables will be created.")
    else:
        logger.debug(
            f"Tables registered in Base.metadata: {list(Base.metadata.tables.keys())}"
        )

    async with app_engine.begin() as conn:
        if settings.is_postgres and settings.schema_name:
            await conn.execute(
                text(f"CREATE SCHEMA IF NOT EXISTS {settings.schema_name}")
            )
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database schema initialized.")


async def reset_db():
    """Drop and recreate every application table. All data is lost."""
    logger.warning("Resetting application database: dropping all tables.")
    async with app_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Application database reset complete.")


async def close_db():
    """Closes database connections."""
    logger.info("Closing database connections.")
    await app_engine.dispose()
    logger.info("Database connections closed.")


async def check_db_connection(engine_to_check=None, db_name="Application DB"):
    """Run a trivial query to confirm the database is reachable."""
    engine = engine_to_check or app_engine
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info(f"{db_name} connection successful.")
        return True
    except Exception as e:
        logger.error(f"{db_name} connection failed: {e}", exc_info=True)
        return False


async def _main(args: argparse.Namespace):
    try:
        if args.reset:
            await reset_db()
        else:
            await init_db()
        if args.check:
            await check_db_connection()
    finally:
        await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Task tracker database utilities")
    parser.add_argument(
        "--reset", action="store_true", help="Drop and recreate all tables"
    )
    parser.add_argument(
        "--check", action="store_true", help="Check database connectivity"
    )
    asyncio.run(_main(parser.parse_args()))
