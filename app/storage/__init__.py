from typing import Protocol

from app.storage import oss
from app.storage.local import LocalBlobStore
from app.storage.oss import OssBlobStore


class BlobStore(Protocol):
    async def put(self, name: str, data: bytes, content_type: str | None = None) -> str:
        ...

    async def delete(self, url: str) -> None:
        ...


def get_blob_store() -> BlobStore:
    if oss.is_configured():
        return OssBlobStore()
    return LocalBlobStore()
