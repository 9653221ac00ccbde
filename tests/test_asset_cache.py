"""Tests for the asset cache manager

Run with pytest from project root:
    pytest tests/test_asset_cache.py -v
"""

from datetime import timedelta
from unittest.mock import patch

import pytest

from creative_cache.errors import InvalidInputError, NotFoundError
from creative_cache.models import AssetMapping, AssetRecord
from creative_cache.services.object_storage import ObjectStorageError


SHOES = "blue running shoes on white background"


class TestFindSimilar:
    """Tests for similarity lookup"""

    def test_scenario_shoes_match_coat_does_not(self, asset_cache, campaign_storage):
        campaign = campaign_storage.create_campaign(
            generated_images=[AssetRecord(prompt=SHOES, url="https://cdn.example.com/shoes.png")]
        )

        matches = asset_cache.find_similar(
            ["blue running shoes outdoor shot", "red winter coat"], threshold=0.3
        )

        assert len(matches) == 1
        match = matches[0]
        assert match.original_prompt == "blue running shoes outdoor shot"
        assert match.similar_prompt == SHOES
        assert match.similarity_score > 0.3
        assert match.source_campaign == campaign.id
        assert match.asset_url == "https://cdn.example.com/shoes.png"
        assert match.created_at == campaign.created_at

    def test_all_qualifying_pairs_returned(self, asset_cache, campaign_storage):
        campaign_storage.create_campaign(
            generated_images=[
                AssetRecord(prompt=SHOES, url="https://cdn.example.com/1.png"),
                AssetRecord(prompt="blue running shoes studio", url="https://cdn.example.com/2.png"),
            ]
        )
        campaign_storage.create_campaign(
            generated_images=[AssetRecord(prompt=SHOES, url="https://cdn.example.com/3.png")]
        )

        matches = asset_cache.find_similar(["blue running shoes"], threshold=0.3)

        assert {m.asset_url for m in matches} == {
            "https://cdn.example.com/1.png",
            "https://cdn.example.com/2.png",
            "https://cdn.example.com/3.png",
        }

    def test_assets_without_url_or_prompt_are_ignored(self, asset_cache, campaign_storage):
        campaign = campaign_storage.create_campaign()
        campaign_storage.set_images(
            campaign.id,
            [AssetRecord(prompt=SHOES, url=None), AssetRecord(prompt=None, url="https://cdn.example.com/x.png")],
        )

        assert asset_cache.find_similar([SHOES], threshold=0.0) == []

    def test_threshold_monotonicity(self, asset_cache, campaign_storage):
        campaign_storage.create_campaign(
            generated_images=[
                AssetRecord(prompt=SHOES, url="https://cdn.example.com/1.png"),
                AssetRecord(prompt="blue running shoes", url="https://cdn.example.com/2.png"),
                AssetRecord(prompt="leather wallet closeup", url="https://cdn.example.com/3.png"),
            ]
        )
        prompts = ["blue running shoes outdoor shot", "leather wallet studio"]

        counts = [len(asset_cache.find_similar(prompts, threshold=t)) for t in (0.0, 0.3, 0.5, 0.7, 0.9, 1.0)]

        assert counts == sorted(counts, reverse=True)

    def test_default_threshold(self, asset_cache, campaign_storage):
        campaign_storage.create_campaign(
            generated_images=[AssetRecord(prompt=SHOES, url="https://cdn.example.com/1.png")]
        )
        assert asset_cache.find_similar(["blue running shoes outdoor shot"]) == []
        assert len(asset_cache.find_similar([SHOES])) == 1

    def test_read_only(self, asset_cache, campaign_storage):
        campaign = campaign_storage.create_campaign(
            generated_images=[AssetRecord(prompt=SHOES, url="https://cdn.example.com/1.png")]
        )
        asset_cache.find_similar([SHOES], threshold=0.1)
        assert campaign_storage.get(campaign.id) == campaign

    @pytest.mark.parametrize("prompts", [None, [], "blue shoes", [1, 2]])
    def test_invalid_prompts(self, asset_cache, prompts):
        with pytest.raises(InvalidInputError):
            asset_cache.find_similar(prompts)

    def test_invalid_threshold(self, asset_cache):
        with pytest.raises(InvalidInputError):
            asset_cache.find_similar([SHOES], threshold=1.5)


class TestReuseAssets:
    """Tests for reuse recording"""

    def mapping(self, prompt="blue running shoes outdoor", url="https://cdn.example.com/1.png"):
        return {
            "new_prompt": prompt,
            "existing_url": url,
            "source_campaign": "old-campaign",
            "similarity_score": 0.75,
        }

    def test_replace_overwrites(self, asset_cache, campaign_storage):
        campaign = campaign_storage.create_campaign(
            generated_images=[AssetRecord(prompt="something else entirely", url="https://cdn.example.com/0.png")]
        )

        reused = asset_cache.reuse_assets(campaign.id, [self.mapping()])

        assert len(reused) == 1
        stored = campaign_storage.get(campaign.id).generated_images
        assert len(stored) == 1
        assert stored[0].url == "https://cdn.example.com/1.png"
        assert stored[0].reused is True
        assert stored[0].source_campaign == "old-campaign"
        assert stored[0].similarity_score == 0.75

    def test_replace_is_idempotent(self, asset_cache, campaign_storage):
        campaign = campaign_storage.create_campaign()
        asset_cache.reuse_assets(campaign.id, [self.mapping()])
        first = campaign_storage.get(campaign.id)
        asset_cache.reuse_assets(campaign.id, [self.mapping()])
        assert campaign_storage.get(campaign.id) == first

    def test_merge_keeps_unrelated_assets(self, asset_cache, campaign_storage):
        campaign = campaign_storage.create_campaign(
            generated_images=[
                AssetRecord(prompt="leather wallet", url="https://cdn.example.com/w.png"),
                AssetRecord(prompt="blue running shoes outdoor", url="https://cdn.example.com/old.png"),
            ]
        )

        asset_cache.reuse_assets(campaign.id, [AssetMapping(**self.mapping())], mode="merge")

        stored = campaign_storage.get(campaign.id).generated_images
        assert [img.url for img in stored] == [
            "https://cdn.example.com/w.png",
            "https://cdn.example.com/1.png",
        ]

    def test_unknown_campaign(self, asset_cache):
        with pytest.raises(NotFoundError):
            asset_cache.reuse_assets("missing", [self.mapping()])
        with pytest.raises(NotFoundError):
            asset_cache.reuse_assets("missing", [self.mapping()], mode="merge")

    def test_invalid_mapping(self, asset_cache, campaign_storage):
        campaign = campaign_storage.create_campaign()
        with pytest.raises(InvalidInputError):
            asset_cache.reuse_assets(campaign.id, [{"new_prompt": "x", "existing_url": ""}])
        with pytest.raises(InvalidInputError):
            asset_cache.reuse_assets(campaign.id, [self.mapping()], mode="append")
        with pytest.raises(InvalidInputError):
            asset_cache.reuse_assets("", [self.mapping()])


class TestCleanupUnused:
    """Tests for the age-based cleanup sweep"""

    def old_campaign(self, campaign_storage, clock, images, days=45):
        return campaign_storage.create_campaign(
            generated_images=images, created_at=clock() - timedelta(days=days)
        )

    def test_deletes_old_managed_assets(self, asset_cache, campaign_storage, object_storage, clock, make_image, stored):
        old = self.old_campaign(
            campaign_storage,
            clock,
            [make_image("c1/a.png", "shoes"), AssetRecord(prompt="hosted", url="https://other.example.com/x.png")],
        )
        recent = campaign_storage.create_campaign(
            generated_images=[make_image("c2/b.png", "wallet")], created_at=clock() - timedelta(days=2)
        )

        result = asset_cache.cleanup_unused(retention_days=30)

        assert result.deleted_count == 1
        assert result.deleted_assets == ["c1/a.png"]
        assert not stored("c1/a.png")
        assert stored("c2/b.png")
        assert [img.url for img in campaign_storage.get(old.id).generated_images] == [
            "https://other.example.com/x.png"
        ]
        assert len(campaign_storage.get(recent.id).generated_images) == 1

    def test_idempotent(self, asset_cache, campaign_storage, clock, make_image):
        self.old_campaign(campaign_storage, clock, [make_image("c1/a.png", "a"), make_image("c1/b.png", "b")])

        first = asset_cache.cleanup_unused()
        second = asset_cache.cleanup_unused()

        assert first.deleted_count == 2
        assert second.deleted_count == 0

    def test_deletes_assets_with_quoted_names(self, asset_cache, campaign_storage, clock, make_image, stored):
        image = make_image("c1/my image.png", "shoes")
        assert "my%20image.png" in image.url
        self.old_campaign(campaign_storage, clock, [image])

        result = asset_cache.cleanup_unused(retention_days=30)

        assert result.deleted_count == 1
        assert result.deleted_assets == ["c1/my image.png"]
        assert result.failed_assets == []
        assert not stored("c1/my image.png")

    def test_failures_are_skipped(self, asset_cache, campaign_storage, object_storage, clock, make_image, stored):
        self.old_campaign(
            campaign_storage,
            clock,
            [make_image("c1/a.png", "a"), make_image("c1/b.png", "b"), make_image("c1/c.png", "c")],
        )
        real_delete = object_storage.delete

        def flaky_delete(path):
            if path == "c1/b.png":
                raise ObjectStorageError("Timed out deleting c1/b.png")
            real_delete(path)

        with patch.object(object_storage, "delete", side_effect=flaky_delete):
            result = asset_cache.cleanup_unused()

        assert result.deleted_count == 2
        assert result.deleted_assets == ["c1/a.png", "c1/c.png"]
        assert result.failed_assets == ["c1/b.png"]
        assert stored("c1/b.png")

    def test_missing_object_not_counted(self, asset_cache, campaign_storage, object_storage, clock, make_image):
        image = make_image("c1/a.png", "a")
        object_storage.delete("c1/a.png")
        self.old_campaign(campaign_storage, clock, [image])

        assert asset_cache.cleanup_unused().deleted_count == 0

    def test_negative_retention(self, asset_cache):
        with pytest.raises(InvalidInputError):
            asset_cache.cleanup_unused(retention_days=-1)


class TestGetStats:
    """Tests for statistics"""

    def test_empty_store(self, asset_cache):
        stats = asset_cache.get_stats()
        assert stats.total_campaigns == 0
        assert stats.total_images == 0
        assert stats.avg_images_per_campaign == 0
        assert stats.storage_usage_mb == 0

    def test_aggregates(self, asset_cache, campaign_storage):
        campaign_storage.create_campaign(
            generated_images=[
                AssetRecord(prompt="a", url="https://cdn.example.com/1.png"),
                AssetRecord(prompt="b", url="https://cdn.example.com/2.png"),
            ],
            generated_video_url="https://cdn.example.com/v.mp4",
        )
        campaign_storage.create_campaign(
            generated_images=[AssetRecord(prompt="c", url="https://cdn.example.com/3.png")]
        )
        campaign_storage.create_campaign()

        stats = asset_cache.get_stats()

        assert stats.total_campaigns == 3
        assert stats.total_images == 3
        assert stats.total_videos == 1
        assert stats.avg_images_per_campaign == 1.0
        assert stats.storage_usage_mb == 12  # 3 * 0.5 + 10, rounded
