import asyncio
import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="snip-test-")
os.environ["DATABASE_PATH"] = os.path.join(_TMP, "snip-test.db")
os.environ["STATIC_DIR"] = os.path.join(_TMP, "static")
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "static", "uploads")
os.environ["TTL_EVICTION_INTERVAL_SECONDS"] = "0"
for key in ("OSS_ACCESS_KEY_ID", "OSS_ACCESS_KEY_SECRET", "OSS_ENDPOINT", "OSS_BUCKET", "DATABASE_URL"):
    os.environ[key] = ""

import pytest
from fastapi.testclient import TestClient

from app.database import drop_tables, engine
from app.main import app
from app.storage import get_blob_store


class FakeBlobStore:
    """In-memory blob store; URLs look like real public object URLs."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.put_calls: list[str] = []
        self.delete_calls: list[str] = []
        self.fail_put_on: set[int] = set()
        self.fail_delete_urls: set[str] = set()

    async def put(self, name, data, content_type=None):
        index = len(self.put_calls)
        self.put_calls.append(name)
        if index in self.fail_put_on:
            raise ConnectionError("blob store unavailable")
        url = f"https://blobs.example.com/posts/{index}-{name}"
        self.objects[url] = data
        return url

    async def delete(self, url):
        self.delete_calls.append(url)
        if url in self.fail_delete_urls:
            raise ConnectionError("blob store unavailable")
        self.objects.pop(url, None)


async def _reset_db():
    await drop_tables()
    await engine.dispose()


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def client(blob_store):
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    asyncio.run(_reset_db())


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def image_file(name="photo.png", content_type="image/png", data=PNG_BYTES):
    return ("images", (name, data, content_type))
