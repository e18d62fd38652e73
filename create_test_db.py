"""
Provision a PostgreSQL database for running the test suite against Postgres.

The suite uses SQLite by default; run this once, then export
TEST_DATABASE_URL=postgresql+asyncpg://... before invoking pytest.
"""
import asyncio
import asyncpg
import os
from devevent.db.session import DatabaseConnector
from devevent.core.logging import logger

DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = int(os.getenv("DB_PORT", "5432"))
DB_NAME = os.getenv("TEST_DB_NAME", "devevent_test")

async def create_database() -> bool:
    """Create the test database if it doesn't exist."""
    try:
        conn = await asyncpg.connect(
            user=DB_USER,
            password=DB_PASSWORD,
            host=DB_HOST,
            port=DB_PORT,
            database='postgres'
        )
        try:
            exists = await conn.fetchval(
                "SELECT 1 FROM pg_database WHERE datname = $1",
                DB_NAME
            )
            if not exists:
                await conn.execute(f'CREATE DATABASE "{DB_NAME}"')
                logger.info(f"Database '{DB_NAME}' created")
            else:
                logger.info(f"Database '{DB_NAME}' already exists")
        finally:
            await conn.close()
    except Exception as e:
        logger.error(f"Error creating database: {e}")
        return False
    return True

async def create_tables() -> bool:
    """Create all tables in the test database through the app's connector."""
    connector = DatabaseConnector(
        f"postgresql+asyncpg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
    )
    try:
        await connector.connect()
        logger.info("Tables created")
    except Exception as e:
        logger.error(f"Error creating tables: {e}")
        return False
    finally:
        await connector.dispose()
    return True

async def main():
    if not await create_database():
        return
    if not await create_tables():
        return
    logger.info(
        f"Test database ready: export TEST_DATABASE_URL=postgresql+asyncpg://"
        f"{DB_USER}:***@{DB_HOST}:{DB_PORT}/{DB_NAME}"
    )

if __name__ == "__main__":
    asyncio.run(main())
