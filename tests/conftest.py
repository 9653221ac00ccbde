"""Shared fixtures for the cache and session tests."""

from datetime import datetime, timedelta, timezone

import pytest

from creative_cache.models import AssetRecord
from creative_cache.services.cache import AssetCache, CampaignStorage
from creative_cache.services.object_storage import LocalObjectStorage
from creative_cache.services.sessions import FingerprintLookup, SessionBroker, SessionStorage


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "db" / "creative_cache.db"


@pytest.fixture
def campaign_storage(db_path):
    return CampaignStorage(db_path)


@pytest.fixture
def object_storage(tmp_path):
    return LocalObjectStorage(
        root=tmp_path / "storage",
        bucket="campaign-assets",
        base_url="https://cdn.example.com/storage",
    )


@pytest.fixture
def stored(tmp_path):
    """Check whether an object is present in the local bucket."""

    def _stored(path: str) -> bool:
        return (tmp_path / "storage" / "campaign-assets" / path).exists()

    return _stored


@pytest.fixture
def asset_cache(campaign_storage, object_storage, clock):
    return AssetCache(
        storage=campaign_storage,
        object_storage=object_storage,
        similarity_threshold=0.8,
        clock=clock,
    )


@pytest.fixture
def lookup():
    return FingerprintLookup()


@pytest.fixture
def session_storage(db_path):
    return SessionStorage(db_path)


@pytest.fixture
def broker(session_storage, lookup, clock):
    return SessionBroker(
        storage=session_storage,
        lookup=lookup,
        ttl_seconds=3600,
        public_base_url="https://share.example.com",
        clock=clock,
    )


@pytest.fixture
def bundle():
    return {
        "generated_images": [
            {"prompt": "blue running shoes on white background", "url": "https://cdn.example.com/a.png"},
            {"prompt": "blue running shoes outdoor shot", "url": "https://cdn.example.com/b.png"},
        ],
        "uploadedImageUrl": "https://cdn.example.com/upload.jpg",
        "video_scripts": [{"platform": "tiktok", "script": "Run further."}],
        "email_copy": {"subject": "New shoes", "body": "Meet the new runner."},
        "banner_ads": [{"headline": "Run", "cta": "Shop now"}],
        "landing_page_concept": {"hero_text": "Run", "sub_text": "Faster", "cta": "Buy"},
    }


@pytest.fixture
def make_image(object_storage):
    """Upload a placeholder binary and return the AssetRecord pointing at it."""

    def _make(path: str, prompt: str) -> AssetRecord:
        url = object_storage.upload(path, b"\x89PNG fake")
        return AssetRecord(prompt=prompt, url=url)

    return _make
