"""Utility modules for common functionality."""

from creative_cache.utils.batch import Outcome, failures, run_isolated, successes
from creative_cache.utils.retry import download_retry
from creative_cache.utils.timeutil import parse_iso, to_iso, utcnow

__all__ = ["Outcome", "run_isolated", "successes", "failures", "download_retry", "utcnow", "to_iso", "parse_iso"]
