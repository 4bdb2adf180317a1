#!/usr/bin/env python
"""
Database migration script for the business manager backend.

Creates every table of the relational schema (users, reset tokens, people,
dynamic fields, interactions, tags) on the configured DATABASE_URL.

Usage:
    python -m scripts.migrate [migrate|rollback|check]
"""

from __future__ import annotations

import asyncio
import logging
import sys

from sqlalchemy import func, inspect, select

from bizmanager.core.config import settings
from bizmanager.core.database import database_manager
from bizmanager.storage.tables import Base

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def run_migrations() -> None:
    """Create all missing tables."""
    logger.info("Starting database migrations on %s", settings.DATABASE_URL.split("@")[-1])

    try:
        await database_manager.create_all()
        logger.info("✓ Database migrations completed successfully!")
    except Exception as e:
        logger.error(f"Migration failed: {e}")
        raise
    finally:
        await database_manager.close()


async def rollback_migrations() -> None:
    """Drop every table (use with caution!)."""
    logger.warning("Rolling back migrations - this will drop all tables and their data!")

    response = input("Are you sure? This cannot be undone! (yes/no): ")
    if response.lower() != "yes":
        logger.info("Rollback cancelled.")
        return

    try:
        await database_manager.drop_all()
        logger.info("✓ Rollback completed.")
    finally:
        await database_manager.close()


async def check_schema() -> None:
    """Report which tables exist and how many rows they hold."""
    logger.info("Checking database schema...")

    await database_manager.initialize()
    assert database_manager.engine is not None

    try:
        async with database_manager.engine.connect() as connection:
            existing = await connection.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))

        logger.info("=== TABLES ===")
        async with database_manager.session() as session:
            for table in Base.metadata.sorted_tables:
                if table.name not in existing:
                    logger.warning(f"  {table.name}: missing")
                    continue
                count = await session.scalar(select(func.count()).select_from(table))
                logger.info(f"  {table.name}: {count} rows")
    finally:
        await database_manager.close()


def main() -> None:
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Business Manager Database Migration Tool")
    parser.add_argument(
        "command",
        nargs="?",
        default="migrate",
        choices=["migrate", "rollback", "check"],
        help="Command to execute (default: migrate)"
    )

    args = parser.parse_args()

    try:
        if args.command == "migrate":
            asyncio.run(run_migrations())
        elif args.command == "rollback":
            asyncio.run(rollback_migrations())
        elif args.command == "check":
            asyncio.run(check_schema())
    except KeyboardInterrupt:
        logger.info("Operation cancelled by user.")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Operation failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
