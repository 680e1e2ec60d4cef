"""
Create the PostgreSQL test database and its tables.

The default test run uses SQLite; run this before pointing TEST_DATABASE_URL
at PostgreSQL (needed for the concurrent registration test).
"""
import asyncio
import asyncpg
import os
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine
from app.db.session import Base
from app.core.logging import logger
import app.db.models  # noqa: F401

DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = int(os.getenv("DB_PORT", "5432"))
DB_NAME = os.getenv("TEST_DB_NAME", "eventease_test")


async def create_database() -> bool:
    """Create the test database if it does not exist yet."""
    try:
        conn = await asyncpg.connect(
            user=DB_USER,
            password=DB_PASSWORD,
            host=DB_HOST,
            port=DB_PORT,
            database='postgres'
        )
        try:
            exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", DB_NAME)
            if not exists:
                await conn.execute(f'CREATE DATABASE "{DB_NAME}"')
                logger.info(f"Database '{DB_NAME}' created")
            else:
                logger.info(f"Database '{DB_NAME}' already exists")
        finally:
            await conn.close()
    except (OSError, asyncpg.PostgresError) as e:
        logger.error(f"Could not create database '{DB_NAME}': {e}")
        return False
    return True


async def create_tables() -> bool:
    engine = create_async_engine(
        f"postgresql+asyncpg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
        echo=False
    )
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except (OSError, SQLAlchemyError) as e:
        logger.error(f"Could not create tables: {e}")
        return False
    finally:
        await engine.dispose()
    logger.info("Tables created")
    return True


async def main():
    if not await create_database():
        return
    if not await create_tables():
        return
    logger.info(
        f"Test database ready. Run: TEST_DATABASE_URL=postgresql+asyncpg://{DB_USER}:***@{DB_HOST}:{DB_PORT}/{DB_NAME} pytest"
    )


if __name__ == "__main__":
    asyncio.run(main())
