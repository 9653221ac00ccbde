"""
Asset deduplication cache.

Avoids paying for redundant image generation by matching new prompts
against the prompts of previously generated assets:
- Dice-coefficient prompt similarity
- SQLite campaign storage
- Reuse recording (replace or merge)
- Age-based cleanup of stored binaries
"""

from .asset_cache import AssetCache
from .similarity import SimilarityMatcher
from .storage import CampaignStorage

__all__ = ["AssetCache", "CampaignStorage", "SimilarityMatcher"]
