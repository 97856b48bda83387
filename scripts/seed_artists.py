from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from tattmap_api.auth.users import GoogleProfile, validate_or_create_user
from tattmap_api.db.session import create_sessionmaker
from tattmap_api.domain.artist_profiles import upsert_for_current_user
from tattmap_api.observability.logging import configure_logging
from tattmap_api.settings import get_settings

logger = logging.getLogger("tattmap_api.scripts.seed_artists")

DEFAULT_SEED_PATH = Path(__file__).resolve().parent / "data" / "artists.json"


def load_rows(path: Path) -> list[dict[str, Any]]:
    rows = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(rows, list):
        raise ValueError(f"Seed file must contain a JSON list: {path}")
    return rows


async def seed(path: Path) -> int:
    settings = get_settings()
    sessionmaker = create_sessionmaker(settings.database_url)
    rows = load_rows(path)

    async with sessionmaker() as db:
        for row in rows:
            signed_in = await validate_or_create_user(
                db,
                GoogleProfile(
                    google_id=row["google_id"],
                    email=row["email"],
                    name=row.get("name"),
                    avatar=row.get("avatar"),
                ),
                settings,
            )
            await upsert_for_current_user(db, signed_in.user.id, row["artist"])

    logger.info("Seeded artists", extra={"count": len(rows), "source": str(path)})
    return len(rows)


def main() -> None:
    parser = argparse.ArgumentParser(description="Upsert demo users and artist profiles.")
    parser.add_argument("--file", type=Path, default=DEFAULT_SEED_PATH)
    args = parser.parse_args()
    configure_logging()
    asyncio.run(seed(args.file))


if __name__ == "__main__":
    main()
