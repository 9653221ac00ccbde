"""
SQLite storage backend for campaign rows and their generated assets.
"""

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from creative_cache.models import AssetRecord, CampaignRecord
from creative_cache.services.database import connect, ensure_parent
from creative_cache.utils.timeutil import parse_iso, to_iso, utcnow

logger = logging.getLogger(__name__)


class CampaignStorage:
    """SQLite-based storage for campaigns. Sole owner of AssetRecords."""

    def __init__(self, db_path: Path):
        """
        Initialize campaign storage.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = ensure_parent(db_path)
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS campaign_results (
                    id TEXT PRIMARY KEY,
                    campaign_prompt TEXT,
                    generated_images TEXT,
                    generated_video_url TEXT,
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_campaign_created_at
                ON campaign_results(created_at)
            """)

    def create_campaign(
        self,
        campaign_prompt: str | None = None,
        generated_images: Iterable[AssetRecord] = (),
        generated_video_url: str | None = None,
        campaign_id: str | None = None,
        created_at: datetime | None = None,
    ) -> CampaignRecord:
        """
        Insert a new campaign row.

        Images without a URL are failed generations and are not stored.

        Returns:
            The stored campaign
        """
        record = CampaignRecord(
            id=campaign_id or str(uuid.uuid4()),
            campaign_prompt=campaign_prompt,
            generated_images=[img for img in generated_images if img.url],
            generated_video_url=generated_video_url,
            created_at=created_at or utcnow(),
        )

        with connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO campaign_results
                (id, campaign_prompt, generated_images, generated_video_url, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.campaign_prompt,
                    self._dump_images(record.generated_images),
                    record.generated_video_url,
                    to_iso(record.created_at),
                ),
            )

        logger.debug(f"Stored campaign {record.id} with {len(record.generated_images)} images")
        return record

    def record_asset(self, campaign_id: str, prompt: str, url: str) -> bool:
        """
        Append a successfully generated image to a campaign.

        Returns:
            False if the campaign does not exist
        """
        if not url:
            raise ValueError("Only successfully generated assets (with a URL) can be recorded")

        campaign = self.get(campaign_id)
        if campaign is None:
            return False

        images = campaign.generated_images + [AssetRecord(prompt=prompt, url=url)]
        return self.set_images(campaign_id, images)

    def get(self, campaign_id: str) -> Optional[CampaignRecord]:
        """
        Get a campaign by ID.

        Args:
            campaign_id: Campaign ID

        Returns:
            CampaignRecord or None if not found
        """
        with connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM campaign_results WHERE id = ?", (campaign_id,)
            ).fetchone()
            return self._to_record(row) if row else None

    def list_with_images(self) -> List[CampaignRecord]:
        """
        Get all campaigns that have a generated image list.

        Returns:
            Campaigns ordered by creation time
        """
        with connect(self.db_path) as conn:
            cursor = conn.execute(
                """
                SELECT * FROM campaign_results
                WHERE generated_images IS NOT NULL
                ORDER BY created_at, id
                """
            )
            return [self._to_record(row) for row in cursor.fetchall()]

    def list_all(self) -> List[CampaignRecord]:
        with connect(self.db_path) as conn:
            cursor = conn.execute("SELECT * FROM campaign_results ORDER BY created_at, id")
            return [self._to_record(row) for row in cursor.fetchall()]

    def list_older_than(self, cutoff: datetime) -> List[CampaignRecord]:
        """
        Get campaigns created before a cutoff.

        Args:
            cutoff: Campaigns with created_at strictly before this are returned
        """
        with connect(self.db_path) as conn:
            cursor = conn.execute(
                """
                SELECT * FROM campaign_results
                WHERE created_at < ?
                ORDER BY created_at, id
                """,
                (to_iso(cutoff),),
            )
            return [self._to_record(row) for row in cursor.fetchall()]

    def set_images(self, campaign_id: str, images: Iterable[AssetRecord]) -> bool:
        """
        Overwrite a campaign's image list.

        Returns:
            False if the campaign does not exist
        """
        with connect(self.db_path) as conn:
            cursor = conn.execute(
                "UPDATE campaign_results SET generated_images = ? WHERE id = ?",
                (self._dump_images(images), campaign_id),
            )
            return cursor.rowcount > 0

    def remove_assets(self, campaign_id: str, urls: Iterable[str]) -> int:
        """
        Drop images whose URL is in ``urls`` from a campaign.

        Returns:
            Number of image records removed
        """
        drop = set(urls)
        if not drop:
            return 0

        campaign = self.get(campaign_id)
        if campaign is None:
            return 0

        kept = [img for img in campaign.generated_images if img.url not in drop]
        removed = len(campaign.generated_images) - len(kept)
        if removed:
            self.set_images(campaign_id, kept)
        return removed

    def _dump_images(self, images: Iterable[AssetRecord]) -> str:
        return json.dumps([img.model_dump(exclude_none=True) for img in images])

    def _to_record(self, row) -> CampaignRecord:
        raw_images = json.loads(row["generated_images"]) if row["generated_images"] else []
        if not isinstance(raw_images, list):
            raw_images = []

        return CampaignRecord(
            id=row["id"],
            campaign_prompt=row["campaign_prompt"],
            generated_images=[AssetRecord.model_validate(img) for img in raw_images if isinstance(img, dict)],
            generated_video_url=row["generated_video_url"],
            created_at=parse_iso(row["created_at"]),
        )
