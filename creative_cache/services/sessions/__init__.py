"""
Download session broker.

Provides short-lived, content-addressed download sessions:
- FNV-1a content fingerprints as cache keys
- Process-wide fingerprint -> token lookup, re-verified before use
- SQLite session table with TTL-based liveness
"""

from .broker import SessionBroker, generate_token
from .fingerprint import compute_fingerprint
from .lookup import FingerprintLookup
from .storage import SessionStorage

__all__ = [
    "SessionBroker",
    "SessionStorage",
    "FingerprintLookup",
    "compute_fingerprint",
    "generate_token",
]
