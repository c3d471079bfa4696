import asyncio
import logging
from datetime import datetime, timedelta

from sqlalchemy import delete

from app.config import settings
from app.database import AsyncSessionLocal
from app.utils import clock
from models.post import Post

logger = logging.getLogger("snip.ttl")


async def evict_expired(now: datetime | None = None) -> int:
    # 兜底淘汰：只删记录，图片由清理任务在宽限期内删除
    now = now or clock.utcnow()
    cutoff = now - timedelta(seconds=max(settings.TTL_EVICTION_GRACE_SECONDS, 0))
    async with AsyncSessionLocal() as db:
        res = await db.execute(delete(Post).where(Post.expires_at <= cutoff))
        await db.commit()
        return res.rowcount or 0


async def run_ttl_evictor(interval_seconds: float) -> None:
    while True:
        try:
            evicted = await evict_expired()
            if evicted:
                logger.warning("TTL_EVICTED posts=%d grace_seconds=%d", evicted, settings.TTL_EVICTION_GRACE_SECONDS)
        except Exception:
            logger.exception("TTL_EVICTION_FAILED")
        await asyncio.sleep(interval_seconds)


def start_ttl_evictor(interval_seconds: float) -> asyncio.Task | None:
    if interval_seconds <= 0:
        return None
    loop = asyncio.get_running_loop()
    return loop.create_task(run_ttl_evictor(interval_seconds))
