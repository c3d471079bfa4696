import mimetypes
import os
import re
import uuid
from datetime import datetime
from urllib.parse import urlsplit

from fastapi.concurrency import run_in_threadpool

from app.config import settings
from app.utils import clock

_SEGMENT_RE = re.compile(r"[^a-zA-Z0-9_-]")
_EXT_RE = re.compile(r"\.[a-z0-9]{1,8}")


def is_configured() -> bool:
    return all([
        settings.OSS_ACCESS_KEY_ID,
        settings.OSS_ACCESS_KEY_SECRET,
        settings.OSS_ENDPOINT,
        settings.OSS_BUCKET,
    ])


def _normalize_endpoint(endpoint: str) -> str:
    endpoint = (endpoint or "").strip()
    if not endpoint:
        return ""
    if endpoint.startswith("http://") or endpoint.startswith("https://"):
        return endpoint
    return f"https://{endpoint}"


def get_bucket():
    if not is_configured():
        return None
    import oss2
    auth = oss2.Auth(settings.OSS_ACCESS_KEY_ID, settings.OSS_ACCESS_KEY_SECRET)
    endpoint = _normalize_endpoint(settings.OSS_ENDPOINT)
    return oss2.Bucket(auth, endpoint, settings.OSS_BUCKET)


def get_base_url() -> str:
    if settings.OSS_BASE_URL:
        return settings.OSS_BASE_URL.rstrip("/")
    endpoint = (settings.OSS_ENDPOINT or "").strip()
    bucket = (settings.OSS_BUCKET or "").strip()
    if not endpoint or not bucket:
        return ""
    scheme = "https"
    host = endpoint
    if endpoint.startswith("http://"):
        scheme = "http"
        host = endpoint[len("http://"):]
    elif endpoint.startswith("https://"):
        host = endpoint[len("https://"):]
    if host.startswith(f"{bucket}."):
        return f"{scheme}://{host}".rstrip("/")
    return f"{scheme}://{bucket}.{host}".rstrip("/")


def get_public_url(object_key: str) -> str:
    base = get_base_url()
    if not base:
        return ""
    return f"{base}/{object_key.lstrip('/')}"


def extract_object_key(url_or_key: str | None) -> str:
    if not url_or_key:
        return ""
    candidate = url_or_key.strip()
    if not candidate:
        return ""
    base = get_base_url()
    if base and candidate.startswith(base):
        return candidate[len(base):].lstrip("/")
    parts = urlsplit(candidate)
    if parts.scheme and parts.netloc:
        return parts.path.lstrip("/")
    return candidate.lstrip("/")


def sanitize_segment(value: str, default: str = "") -> str:
    cleaned = _SEGMENT_RE.sub("", value or "")
    return cleaned or default


def build_object_key(category: str, filename: str | None, *, prefix: str | None = None, dt: datetime | None = None) -> str:
    parts: list[str] = []
    prefix = (prefix or "").strip("/")
    if prefix:
        parts.append(prefix)
    parts.append(sanitize_segment(category, "misc"))
    dt = dt or clock.utcnow()
    parts.append(dt.strftime("%Y"))
    parts.append(dt.strftime("%m"))
    ext = os.path.splitext(filename or "")[1].lower()
    if not _EXT_RE.fullmatch(ext):
        ext = ""
    parts.append(f"{uuid.uuid4().hex}{ext}")
    return "/".join(parts)


def guess_content_type(filename: str | None, provided: str | None = None) -> str:
    if provided:
        return provided
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or "application/octet-stream"


class OssBlobStore:
    def __init__(self, bucket=None):
        self.bucket = bucket or get_bucket()
        if self.bucket is None:
            raise RuntimeError("OSS not configured")

    async def put(self, name: str, data: bytes, content_type: str | None = None) -> str:
        key = build_object_key("posts", name, prefix=settings.OSS_PREFIX)
        headers = {"Content-Type": guess_content_type(name, content_type)}
        await run_in_threadpool(self.bucket.put_object, key, data, headers=headers)
        return get_public_url(key)

    async def delete(self, url: str) -> None:
        key = extract_object_key(url)
        if not key:
            raise ValueError(f"Not an object URL: {url!r}")
        await run_in_threadpool(self.bucket.delete_object, key)
