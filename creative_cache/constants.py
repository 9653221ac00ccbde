"""Application-wide constants and magic numbers.

Centralizes configuration values and magic numbers for easier maintenance.
"""

# Similarity matching
MIN_TOKEN_LENGTH = 4  # Tokens of 3 chars or fewer are dropped as stop words

# Storage usage estimate (MB)
ESTIMATED_IMAGE_MB = 0.5
ESTIMATED_VIDEO_MB = 10

# Session tokens
TOKEN_PART_LENGTH = 13  # Length of each random base-36 token half
BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"

# FNV-1a 64-bit parameters
FNV64_OFFSET_BASIS = 0xCBF29CE484222325
FNV64_PRIME = 0x100000001B3
FNV64_MASK = 0xFFFFFFFFFFFFFFFF

# Archive filenames
ARCHIVE_FILENAME = "campaign-content.zip"
UPLOADED_IMAGE_FILENAME = "original-image.jpg"

__all__ = [
    # Similarity
    "MIN_TOKEN_LENGTH",
    # Stats
    "ESTIMATED_IMAGE_MB",
    "ESTIMATED_VIDEO_MB",
    # Tokens
    "TOKEN_PART_LENGTH",
    "BASE36_ALPHABET",
    # Hashing
    "FNV64_OFFSET_BASIS",
    "FNV64_PRIME",
    "FNV64_MASK",
    # Archive
    "ARCHIVE_FILENAME",
    "UPLOADED_IMAGE_FILENAME",
]
