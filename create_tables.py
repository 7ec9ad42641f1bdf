"""
create_tables.py
----------------
Create (or, with --reset, drop and recreate) the tenants, users,
visa_applications and tenant_settings tables on DATABASE_URL.
For production schema changes use Alembic instead.

Usage:
    python create_tables.py
    python create_tables.py --reset     # wipes every table first
"""

import argparse
import asyncio

from visa_dashboard.core.config import settings
from visa_dashboard.core.logging import configure_logging, get_logger
from visa_dashboard.db.session import engine
from visa_dashboard.models import Base  # registers every table on Base.metadata

logger = get_logger(__name__)


async def create_all_tables(reset: bool = False) -> None:
    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
            logger.warning("Dropped all tables", database=engine.url.render_as_string())
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    logger.info("Tables ready", tables=sorted(Base.metadata.tables), env=settings.APP_ENV)


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the visa dashboard tables.")
    parser.add_argument("--reset", action="store_true", help="drop every table before creating")
    args = parser.parse_args()

    configure_logging()
    asyncio.run(create_all_tables(reset=args.reset))


if __name__ == "__main__":
    main()
