"""
Similarity matching for prompt deduplication.

Uses a cheap lexical comparison to find earlier prompts whose generated
assets are likely good enough to reuse instead of generating new ones.
Callers pick their own acceptance threshold.
"""

from creative_cache.constants import MIN_TOKEN_LENGTH


class SimilarityMatcher:
    """Dice-coefficient matcher over length-filtered prompt tokens."""

    def __init__(self, threshold: float = 0.8):
        """
        Initialize similarity matcher.

        Args:
            threshold: Similarity threshold (0-1) for considering a match
        """
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be between 0 and 1, got {threshold}")
        self.threshold = threshold

    def score(self, text_a: str, text_b: str) -> float:
        """
        Score two prompts for likely-duplicate generation work.

        Args:
            text_a: First prompt
            text_b: Second prompt

        Returns:
            Similarity score (0-1), 0 if either prompt has no meaningful tokens
        """
        tokens_a = self._tokenize(text_a)
        tokens_b = self._tokenize(text_b)

        if not tokens_a or not tokens_b:
            return 0.0

        common = len(tokens_a & tokens_b)
        return min(2 * common / (len(tokens_a) + len(tokens_b)), 1.0)

    def _tokenize(self, text: str) -> set[str]:
        # str.lower() is locale independent
        return {token for token in text.lower().split() if len(token) >= MIN_TOKEN_LENGTH}
