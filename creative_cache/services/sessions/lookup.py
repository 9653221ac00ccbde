"""
In-process fingerprint -> session token lookup.

Best-effort accelerator only: entries may be stale or missing, and every
hit must be re-verified against the session store before it is trusted.
"""

import threading
from typing import Dict, Optional


class FingerprintLookup:
    """Thread-safe fingerprint -> token map, one instance per process."""

    def __init__(self, max_entries: int = 10_000):
        """
        Args:
            max_entries: Oldest entries are dropped beyond this size
        """
        self.max_entries = max_entries
        self._entries: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, fingerprint: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(fingerprint)

    def put(self, fingerprint: str, token: str) -> None:
        with self._lock:
            self._entries.pop(fingerprint, None)
            self._entries[fingerprint] = token
            while len(self._entries) > self.max_entries:
                # dicts keep insertion order, first key is the oldest
                del self._entries[next(iter(self._entries))]

    def evict(self, fingerprint: str, token: Optional[str] = None) -> None:
        """
        Drop an entry.

        If ``token`` is given, the entry is only dropped while it still maps
        to that token, so a concurrent refresh is not lost.
        """
        with self._lock:
            if token is None or self._entries.get(fingerprint) == token:
                self._entries.pop(fingerprint, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
