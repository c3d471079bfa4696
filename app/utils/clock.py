from datetime import datetime, timedelta, timezone

from app.config import settings


def utcnow() -> datetime:
    # SQLite 不保存时区，统一使用 naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def post_ttl() -> timedelta:
    return timedelta(hours=settings.POST_TTL_HOURS)
