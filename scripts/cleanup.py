"""Run the expired-post sweep once, for system cron.

    */15 * * * * cd /srv/snip && python scripts/cleanup.py
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Delete expired posts and their images")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


async def run_cleanup() -> dict:
    from app.database import AsyncSessionLocal, create_tables, engine
    from app.services.posts import sweep_expired_posts
    from app.storage import get_blob_store

    await create_tables()
    try:
        async with AsyncSessionLocal() as db:
            result = await sweep_expired_posts(db, get_blob_store())
    finally:
        await engine.dispose()
    return {
        "message": "Cleanup completed",
        "postsDeleted": result.posts_deleted,
        "imagesDeleted": result.images_deleted,
    }


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")
    sys.path.insert(0, str(BACKEND_ROOT))
    from app.errors import SnipError

    try:
        summary = asyncio.run(run_cleanup())
    except SnipError as exc:
        print(json.dumps({"error": exc.message, **exc.extra}))
        return 1
    print(json.dumps(summary))
    return 0


if __name__ == "__main__":
    sys.exit(main())
