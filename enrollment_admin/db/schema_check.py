"""
Create any missing tables (students, courses, enrollments) with their
constraints and indexes. Idempotent; run with:

  python -m enrollment_admin.db.schema_check
"""
import asyncio
import logging
from typing import List

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

import enrollment_admin.core.models  # noqa: F401  registers tables on Base.metadata
from enrollment_admin.db.session import Base, engine

logger = logging.getLogger(__name__)

# dependency order: enrollments references students and courses
REQUIRED_TABLES: List[str] = ["students", "courses", "enrollments"]


async def ensure_tables(db_engine: AsyncEngine) -> List[str]:
    """Create missing tables and return their names."""
    async with db_engine.begin() as conn:
        existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
        missing = [t for t in REQUIRED_TABLES if t not in existing]
        await conn.run_sync(Base.metadata.create_all)

    if missing:
        logger.info("Created missing tables: %s", ", ".join(missing))
    else:
        logger.info("All required tables already exist in the database.")
    return missing


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    await ensure_tables(engine)
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
