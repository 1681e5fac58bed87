import asyncio
from typing import List

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

# Imported for their side effect of registering tables on Base.metadata
import permit_office.auth.models  # noqa: F401
import permit_office.core.models  # noqa: F401
from permit_office.db.session import Base, engine


async def ensure_tables(db_engine: AsyncEngine) -> List[str]:
    """
    Create every mapped table that does not exist yet. Existing tables are left
    untouched. Returns the names of the tables that were created.
    """
    async with db_engine.begin() as conn:
        existing = set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))
        missing = [t.name for t in Base.metadata.sorted_tables if t.name not in existing]
        await conn.run_sync(Base.metadata.create_all)

    if missing:
        print("Created missing tables: " + ", ".join(missing))
    else:
        print("All required tables already exist in the database.")
    return missing


async def main() -> None:
    await ensure_tables(engine)


if __name__ == "__main__":
    asyncio.run(main())
