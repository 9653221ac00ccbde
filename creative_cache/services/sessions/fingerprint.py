"""Fingerprinting utilities for download-session cache keys.

A fingerprint identifies a bundle's content. It is only a cache key: it is
never stored and never handed to clients.
"""

import json
from typing import Any, Mapping

from creative_cache.constants import (
    BASE36_ALPHABET,
    FNV64_MASK,
    FNV64_OFFSET_BASIS,
    FNV64_PRIME,
)
from creative_cache.models import CampaignBundle


def fnv1a_64(data: bytes) -> int:
    """
    64-bit FNV-1a hash.

    Args:
        data: Bytes to hash

    Returns:
        Unsigned 64-bit hash value
    """
    value = FNV64_OFFSET_BASIS
    for byte in data:
        value ^= byte
        value = (value * FNV64_PRIME) & FNV64_MASK
    return value


def to_base36(value: int) -> str:
    """Encode a non-negative integer in lowercase base 36."""
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"

    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def canonicalize(bundle: CampaignBundle | Mapping[str, Any]) -> str:
    """
    Serialize the fingerprinted fields of a bundle in a fixed order.

    Generated image URLs are sorted; every nested object is encoded with
    sorted keys, so neither list order of images nor dict insertion order
    affects the result.

    Args:
        bundle: CampaignBundle or an equivalent mapping

    Returns:
        Canonical JSON string
    """
    if not isinstance(bundle, CampaignBundle):
        bundle = CampaignBundle.model_validate(bundle)

    fields = [
        ("generated_images", sorted(img.url or "" for img in bundle.generated_images)),
        ("uploaded_image_url", bundle.uploaded_image_url),
        ("video_scripts", [s.model_dump() for s in bundle.video_scripts]),
        ("email_copy", bundle.email_copy.model_dump() if bundle.email_copy else None),
        ("banner_ads", [ad.model_dump() for ad in bundle.banner_ads]),
        (
            "landing_page_concept",
            bundle.landing_page_concept.model_dump() if bundle.landing_page_concept else None,
        ),
    ]

    return json.dumps(fields, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def compute_fingerprint(bundle: CampaignBundle | Mapping[str, Any]) -> str:
    """
    Compute a stable fingerprint for a campaign bundle.

    Returns:
        FNV-1a 64-bit digest of the canonical form, base-36 encoded
    """
    # Lone surrogates from JSON escapes still need stable bytes
    return to_base36(fnv1a_64(canonicalize(bundle).encode("utf-8", "surrogatepass")))
