import os
from pathlib import Path

from app.config import settings
from app.storage.oss import build_object_key

STATIC_URL_PREFIX = "/static/"


class LocalBlobStore:
    def __init__(self, upload_dir: str | None = None, static_dir: str | None = None, base_url: str | None = None):
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)
        self.static_dir = Path(static_dir or settings.STATIC_DIR)
        self.base_url = (settings.UPLOAD_BASE_URL if base_url is None else base_url).rstrip("/")

    def _url_for(self, path: Path) -> str:
        relative = path.resolve().relative_to(self.static_dir.resolve()).as_posix()
        return f"{self.base_url}{STATIC_URL_PREFIX}{relative}"

    def _path_for(self, url: str) -> Path:
        candidate = (url or "").strip()
        if self.base_url and candidate.startswith(self.base_url):
            candidate = candidate[len(self.base_url):]
        if not candidate.startswith(STATIC_URL_PREFIX):
            raise ValueError(f"Not a local upload URL: {url!r}")
        path = (self.static_dir / candidate[len(STATIC_URL_PREFIX):]).resolve()
        if not path.is_relative_to(self.upload_dir.resolve()):
            raise ValueError(f"Not a local upload URL: {url!r}")
        return path

    async def put(self, name: str, data: bytes, content_type: str | None = None) -> str:
        path = self.upload_dir / build_object_key("posts", name)
        os.makedirs(path.parent, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
        return self._url_for(path)

    async def delete(self, url: str) -> None:
        self._path_for(url).unlink(missing_ok=True)
