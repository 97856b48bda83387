from __future__ import annotations

import argparse
import asyncio
import logging

import asyncpg
from sqlalchemy.engine import URL, make_url

from tattmap_api.observability.logging import configure_logging
from tattmap_api.settings import get_settings

logger = logging.getLogger("tattmap_api.scripts.ensure_database")


def _quote_identifier(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _plain_dsn(url: URL, database: str) -> str:
    driver = "postgresql" if url.drivername.startswith("postgresql+") else url.drivername
    return url.set(database=database, drivername=driver).render_as_string(hide_password=False)


async def ensure_database(database_url: str) -> None:
    """Create the target database if missing and enable PostGIS in it."""
    url = make_url(database_url)
    target = url.database or "tattmap"
    if target in {"postgres", ""}:
        return

    admin = await asyncpg.connect(_plain_dsn(url, "postgres"))
    try:
        exists = await admin.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", target)
        if not exists:
            await admin.execute(f"CREATE DATABASE {_quote_identifier(target)}")
            logger.info("Created database", extra={"database": target})
    finally:
        await admin.close()

    conn = await asyncpg.connect(_plain_dsn(url, target))
    try:
        await conn.execute("CREATE EXTENSION IF NOT EXISTS postgis")
    finally:
        await conn.close()


async def main(include_test: bool) -> None:
    database_url = get_settings().database_url
    await ensure_database(database_url)
    if include_test:
        url = make_url(database_url)
        test_url = url.set(database=f"{url.database}_test").render_as_string(hide_password=False)
        await ensure_database(test_url)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the tattmap database(s) if missing.")
    parser.add_argument("--test", action="store_true", help="also create the <name>_test database")
    args = parser.parse_args()
    configure_logging()
    asyncio.run(main(args.test))
