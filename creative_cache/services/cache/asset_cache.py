"""
Asset cache manager: similarity lookup, reuse recording, cleanup and stats.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Literal, Optional

from pydantic import ValidationError

from creative_cache.constants import ESTIMATED_IMAGE_MB, ESTIMATED_VIDEO_MB
from creative_cache.errors import InvalidInputError, NotFoundError
from creative_cache.models import (
    AssetMapping,
    AssetRecord,
    AssetStats,
    CleanupResult,
    SimilarityMatch,
)
from creative_cache.services.cache.similarity import SimilarityMatcher
from creative_cache.services.cache.storage import CampaignStorage
from creative_cache.services.logger_service import log_performance
from creative_cache.services.object_storage import ObjectStorage
from creative_cache.utils.batch import failures, run_isolated, successes
from creative_cache.utils.timeutil import utcnow

logger = logging.getLogger(__name__)

ReuseMode = Literal["replace", "merge"]


class AssetCache:
    """
    Deduplication cache over previously generated campaign assets.

    Supports:
    - Similarity lookup of candidate prompts against stored assets
    - Recording reused assets on a campaign (replace or merge)
    - Age-based cleanup of stored binaries
    - Usage statistics
    """

    def __init__(
        self,
        storage: CampaignStorage,
        object_storage: ObjectStorage,
        similarity_threshold: float = 0.8,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize asset cache.

        Args:
            storage: Campaign datastore
            object_storage: Managed asset bucket
            similarity_threshold: Default threshold for find_similar (0-1)
            clock: Returns the current UTC time
        """
        self.storage = storage
        self.object_storage = object_storage
        self.similarity = SimilarityMatcher(threshold=similarity_threshold)
        self.clock = clock

    def find_similar(
        self, prompts: Iterable[str], threshold: Optional[float] = None
    ) -> List[SimilarityMatch]:
        """
        Match candidate prompts against every stored asset.

        Every (asset, prompt) pair scoring at or above the threshold is
        returned, in store order. Several matches per prompt are possible;
        callers wanting the best one filter by similarity_score.

        Args:
            prompts: Candidate generation prompts
            threshold: Acceptance threshold (defaults to the cache's)

        Returns:
            List of SimilarityMatch
        """
        if prompts is None or isinstance(prompts, str):
            raise InvalidInputError("prompts must be a list of strings")
        prompts = list(prompts)
        if not prompts:
            raise InvalidInputError("prompts must not be empty")
        if not all(isinstance(p, str) for p in prompts):
            raise InvalidInputError("prompts must be a list of strings")

        limit = self.similarity.threshold if threshold is None else threshold
        if not 0.0 <= limit <= 1.0:
            raise InvalidInputError(f"similarity_threshold must be between 0 and 1, got {limit}")

        logger.info(f"Finding similar assets for {len(prompts)} prompts (threshold={limit})")

        matches = []
        for campaign in self.storage.list_with_images():
            for image in campaign.generated_images:
                if not image.is_usable:
                    continue

                for prompt in prompts:
                    score = self.similarity.score(prompt, image.prompt)
                    if score >= limit:
                        matches.append(
                            SimilarityMatch(
                                original_prompt=prompt,
                                similar_prompt=image.prompt,
                                similarity_score=score,
                                asset_url=image.url,
                                source_campaign=campaign.id,
                                created_at=campaign.created_at,
                            )
                        )

        logger.info(f"Found {len(matches)} reusable assets")
        return matches

    def reuse_assets(
        self,
        campaign_id: str,
        mappings: Iterable[AssetMapping | Dict[str, Any]],
        mode: ReuseMode = "replace",
    ) -> List[AssetRecord]:
        """
        Record reused assets on a campaign.

        ``replace`` overwrites the campaign's image list with the mapped
        assets. ``merge`` keeps existing images whose prompt is not being
        remapped and appends the mapped ones.

        Args:
            campaign_id: Campaign receiving the assets
            mappings: AssetMapping objects or equivalent dicts
            mode: "replace" or "merge"

        Returns:
            The AssetRecords written for the mappings

        Raises:
            InvalidInputError: Missing campaign ID, bad mappings or mode
            NotFoundError: Campaign does not exist
        """
        if not campaign_id:
            raise InvalidInputError("campaignId is required")
        if mode not in ("replace", "merge"):
            raise InvalidInputError(f"Unknown reuse mode: {mode}")
        if mappings is None:
            raise InvalidInputError("mappings are required")

        try:
            parsed = [
                m if isinstance(m, AssetMapping) else AssetMapping.model_validate(m)
                for m in mappings
            ]
        except (ValidationError, TypeError) as e:
            raise InvalidInputError(f"Invalid asset mappings: {e}") from e

        logger.info(f"Reusing {len(parsed)} assets for campaign {campaign_id} ({mode})")

        reused = [
            AssetRecord(
                prompt=m.new_prompt,
                url=m.existing_url,
                reused=True,
                source_campaign=m.source_campaign,
                similarity_score=m.similarity_score,
            )
            for m in parsed
        ]

        if mode == "merge":
            campaign = self.storage.get(campaign_id)
            if campaign is None:
                raise NotFoundError(f"Campaign not found: {campaign_id}")
            remapped = {r.prompt for r in reused}
            images = [img for img in campaign.generated_images if img.prompt not in remapped] + reused
        else:
            images = reused

        if not self.storage.set_images(campaign_id, images):
            raise NotFoundError(f"Campaign not found: {campaign_id}")

        return reused

    def cleanup_unused(self, retention_days: int = 30) -> CleanupResult:
        """
        Delete stored binaries of campaigns older than the retention window.

        Only assets inside the managed bucket are touched. Each deletion is
        isolated: failures and timeouts are logged, skipped and not counted.
        Deleted assets are dropped from their campaign, so an immediate second
        sweep deletes nothing.

        Args:
            retention_days: Age in days beyond which campaigns are swept

        Returns:
            CleanupResult with the paths actually deleted
        """
        if retention_days < 0:
            raise InvalidInputError("retention_days must not be negative")

        cutoff = self.clock() - timedelta(days=retention_days)
        logger.info(f"Starting asset cleanup (created before {cutoff.isoformat()})")

        targets = []
        for campaign in self.storage.list_older_than(cutoff):
            for image in campaign.generated_images:
                if self.object_storage.owns(image.url):
                    targets.append((campaign.id, image.url, self.object_storage.object_path(image.url)))

        with log_performance("Asset cleanup", logger):
            outcomes = run_isolated(
                targets,
                lambda target: self.object_storage.delete(target[2]),
                describe=lambda target: f"asset {target[2]}",
            )

        deleted = [o.item for o in successes(outcomes)]
        result = CleanupResult(
            deleted_count=len(deleted),
            deleted_assets=[path for _, _, path in deleted],
            failed_assets=[o.item[2] for o in failures(outcomes)],
        )

        deleted_by_campaign: Dict[str, List[str]] = {}
        for campaign_id, url, _ in deleted:
            deleted_by_campaign.setdefault(campaign_id, []).append(url)

        for campaign_id, urls in deleted_by_campaign.items():
            self.storage.remove_assets(campaign_id, urls)

        logger.info(
            f"Cleaned up {result.deleted_count} unused assets "
            f"({len(result.failed_assets)} skipped)"
        )
        return result

    def get_stats(self) -> AssetStats:
        """
        Get asset usage statistics.

        Returns:
            AssetStats aggregated over all campaigns
        """
        campaigns = self.storage.list_all()

        total_campaigns = len(campaigns)
        total_images = sum(len(c.generated_images) for c in campaigns)
        total_videos = sum(1 for c in campaigns if c.generated_video_url)

        return AssetStats(
            total_campaigns=total_campaigns,
            total_images=total_images,
            total_videos=total_videos,
            avg_images_per_campaign=(
                round(total_images / total_campaigns, 2) if total_campaigns > 0 else 0
            ),
            storage_usage_mb=round(
                total_images * ESTIMATED_IMAGE_MB + total_videos * ESTIMATED_VIDEO_MB
            ),
        )
