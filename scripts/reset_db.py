import asyncio
import sys
from pathlib import Path


def ensure_dirs(backend_root: Path):
    sys.path.insert(0, str(backend_root))
    from app.config import settings  # type: ignore
    upload_dir = Path(settings.UPLOAD_DIR)
    if not upload_dir.is_absolute():
        upload_dir = backend_root / upload_dir
    upload_dir.mkdir(parents=True, exist_ok=True)


async def recreate_db():
    # Drop and recreate every table registered on the metadata
    from app.database import create_tables, drop_tables, engine  # type: ignore
    await drop_tables()
    await create_tables()
    await engine.dispose()


if __name__ == '__main__':
    backend_root = Path(__file__).resolve().parents[1]
    ensure_dirs(backend_root)
    asyncio.run(recreate_db())
    print('Database recreated and upload directory ensured.')
