"""Tests for the blob store backends."""

import asyncio
import re
from datetime import datetime

import pytest

from app.config import settings
from app.storage import get_blob_store
from app.storage import oss
from app.storage.local import LocalBlobStore
from app.storage.oss import OssBlobStore, build_object_key, extract_object_key, get_base_url, get_public_url


@pytest.fixture
def oss_settings(monkeypatch):
    monkeypatch.setattr(settings, "OSS_ACCESS_KEY_ID", "key")
    monkeypatch.setattr(settings, "OSS_ACCESS_KEY_SECRET", "secret")
    monkeypatch.setattr(settings, "OSS_ENDPOINT", "oss-cn-hangzhou.aliyuncs.com")
    monkeypatch.setattr(settings, "OSS_BUCKET", "snip")
    monkeypatch.setattr(settings, "OSS_BASE_URL", "")
    monkeypatch.setattr(settings, "OSS_PREFIX", "")


class FakeBucket:
    def __init__(self):
        self.objects = {}

    def put_object(self, key, data, headers=None):
        self.objects[key] = (data, headers)

    def delete_object(self, key):
        self.objects.pop(key, None)


# ---------------------------------------------------------------------------
# Object keys and URLs
# ---------------------------------------------------------------------------

def test_build_object_key_layout():
    key = build_object_key("posts", "Holiday Photo.PNG", prefix="/snip/", dt=datetime(2026, 3, 5))
    assert re.fullmatch(r"snip/posts/2026/03/[0-9a-f]{32}\.png", key)


def test_build_object_key_drops_odd_extension():
    key = build_object_key("posts", "weird.p/n?g", dt=datetime(2026, 3, 5))
    assert re.fullmatch(r"posts/2026/03/[0-9a-f]{32}", key)


def test_base_url_from_endpoint(oss_settings):
    assert get_base_url() == "https://snip.oss-cn-hangzhou.aliyuncs.com"
    assert get_public_url("/posts/a.png") == "https://snip.oss-cn-hangzhou.aliyuncs.com/posts/a.png"


def test_base_url_override(oss_settings, monkeypatch):
    monkeypatch.setattr(settings, "OSS_BASE_URL", "https://cdn.example.com/")
    assert get_public_url("posts/a.png") == "https://cdn.example.com/posts/a.png"
    assert extract_object_key("https://cdn.example.com/posts/a.png") == "posts/a.png"


def test_extract_object_key_from_foreign_url(oss_settings):
    assert extract_object_key("https://other.example.com/x/y.png?v=1") == "x/y.png"
    assert extract_object_key("") == ""


def test_get_blob_store_picks_backend(oss_settings, monkeypatch):
    monkeypatch.setattr(oss, "get_bucket", lambda: FakeBucket())
    assert isinstance(get_blob_store(), OssBlobStore)
    monkeypatch.setattr(settings, "OSS_BUCKET", "")
    assert isinstance(get_blob_store(), LocalBlobStore)


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------

def test_oss_store_put_and_delete(oss_settings):
    bucket = FakeBucket()
    store = OssBlobStore(bucket)

    url = asyncio.run(store.put("cat.gif", b"GIF89a", "image/gif"))
    assert url.startswith("https://snip.oss-cn-hangzhou.aliyuncs.com/posts/")
    key = extract_object_key(url)
    assert bucket.objects[key] == (b"GIF89a", {"Content-Type": "image/gif"})

    asyncio.run(store.delete(url))
    assert bucket.objects == {}


def test_local_store_put_and_delete(tmp_path):
    static_dir = tmp_path / "static"
    store = LocalBlobStore(str(static_dir / "uploads"), str(static_dir), "http://localhost:8098")

    url = asyncio.run(store.put("cat.png", b"png-bytes"))
    assert url.startswith("http://localhost:8098/static/uploads/posts/")
    path = static_dir / url.split("/static/", 1)[1]
    assert path.read_bytes() == b"png-bytes"

    asyncio.run(store.delete(url))
    assert not path.exists()
    # deleting again is a no-op
    asyncio.run(store.delete(url))


def test_local_store_rejects_foreign_urls(tmp_path):
    static_dir = tmp_path / "static"
    store = LocalBlobStore(str(static_dir / "uploads"), str(static_dir), "")
    with pytest.raises(ValueError):
        asyncio.run(store.delete("https://elsewhere.example.com/a.png"))
    with pytest.raises(ValueError):
        asyncio.run(store.delete("/static/../../etc/passwd"))
