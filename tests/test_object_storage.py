"""Tests for object storage clients"""

import json

import httpx
import pytest

from creative_cache.config import Settings
from creative_cache.services.object_storage import (
    HttpObjectStorage,
    LocalObjectStorage,
    ObjectStorageError,
    create_object_storage,
)


class TestNamespace:
    def test_owns(self, object_storage):
        assert object_storage.owns("https://cdn.example.com/storage/campaign-assets/c1/a.png")
        assert object_storage.owns("https://x.supabase.co/storage/v1/object/public/campaign-assets/c1/a.png")
        assert not object_storage.owns("https://cdn.example.com/other-bucket/c1/a.png")
        assert not object_storage.owns(None)
        assert not object_storage.owns("")

    def test_object_path(self, object_storage):
        url = "https://x.supabase.co/storage/v1/object/public/campaign-assets/c1/a.png?v=2"
        assert object_storage.object_path(url) == "c1/a.png"

    def test_object_path_is_unquoted(self, object_storage):
        url = object_storage.public_url("c1/my image é.png")
        assert object_storage.object_path(url) == "c1/my image é.png"


class TestLocalObjectStorage:
    def test_upload_and_delete(self, object_storage, stored):
        url = object_storage.upload("c1/a.png", b"data")
        assert url == "https://cdn.example.com/storage/campaign-assets/c1/a.png"
        assert stored("c1/a.png")

        object_storage.delete("c1/a.png")
        assert not stored("c1/a.png")

    def test_delete_missing(self, object_storage):
        with pytest.raises(ObjectStorageError):
            object_storage.delete("c1/missing.png")

    def test_path_escape_rejected(self, object_storage):
        with pytest.raises(ObjectStorageError):
            object_storage.delete("../../etc/passwd")


class TestHttpObjectStorage:
    def storage(self, handler):
        return HttpObjectStorage(
            base_url="https://x.supabase.co/storage/v1",
            bucket="campaign-assets",
            api_key="service-key",
            transport=httpx.MockTransport(handler),
        )

    def test_delete(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json=[{"name": "c1/a.png"}])

        self.storage(handler).delete("c1/a.png")

        assert seen == {
            "method": "DELETE",
            "url": "https://x.supabase.co/storage/v1/object/campaign-assets",
            "body": {"prefixes": ["c1/a.png"]},
            "auth": "Bearer service-key",
        }

    def test_delete_nothing_removed(self):
        storage = self.storage(lambda request: httpx.Response(200, json=[]))
        with pytest.raises(ObjectStorageError):
            storage.delete("c1/a.png")

    def test_delete_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ObjectStorageError, match="Timed out"):
            self.storage(handler).delete("c1/a.png")

    def test_delete_error_status(self):
        storage = self.storage(lambda request: httpx.Response(500, json={"error": "boom"}))
        with pytest.raises(ObjectStorageError):
            storage.delete("c1/a.png")

    def test_public_url(self):
        storage = self.storage(lambda request: httpx.Response(200))
        assert storage.public_url("c1/a.png") == (
            "https://x.supabase.co/storage/v1/object/public/campaign-assets/c1/a.png"
        )


def test_factory(tmp_path):
    local = create_object_storage(Settings(storage_root=tmp_path, public_base_url="https://app.example.com"))
    assert isinstance(local, LocalObjectStorage)
    assert local.public_url("c/a.png") == "https://app.example.com/storage/campaign-assets/c/a.png"

    remote = create_object_storage(Settings(storage_backend="http", storage_url="https://x.supabase.co/storage/v1"))
    assert isinstance(remote, HttpObjectStorage)
    remote.close()
