"""
Download session broker.

Issues short-lived tokens that let a second device fetch an assembled
campaign bundle. Identical bundles reuse a live session instead of
minting a new one.
"""

import json
import logging
import secrets
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Mapping
from urllib.parse import urlencode

from pydantic import ValidationError

from creative_cache.constants import BASE36_ALPHABET, TOKEN_PART_LENGTH
from creative_cache.errors import InvalidInputError, NotFoundError
from creative_cache.models import CampaignBundle
from creative_cache.services.sessions.fingerprint import compute_fingerprint
from creative_cache.services.sessions.lookup import FingerprintLookup
from creative_cache.services.sessions.storage import SessionStorage
from creative_cache.utils.timeutil import utcnow

logger = logging.getLogger(__name__)

SESSION_NOT_FOUND = "Invalid or expired session"


def generate_token() -> str:
    """Two independent random base-36 strings, concatenated."""
    return "".join(
        "".join(secrets.choice(BASE36_ALPHABET) for _ in range(TOKEN_PART_LENGTH))
        for _ in range(2)
    )


class SessionBroker:
    """Creates and resolves download sessions."""

    def __init__(
        self,
        storage: SessionStorage,
        lookup: FingerprintLookup,
        ttl_seconds: int = 3600,
        public_base_url: str = "http://localhost:8000",
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize session broker.

        Args:
            storage: Durable session table
            lookup: Process-wide fingerprint -> token cache
            ttl_seconds: Session lifetime
            public_base_url: Base URL for download links
            clock: Returns the current UTC time
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        self.storage = storage
        self.lookup = lookup
        self.ttl = timedelta(seconds=ttl_seconds)
        self.public_base_url = public_base_url.rstrip("/")
        self.clock = clock

        # Stats, shared by concurrent request handlers
        self.stats = {"hits": 0, "misses": 0, "stale": 0}
        self._stats_lock = threading.Lock()

    def create_or_get(self, bundle: CampaignBundle | Mapping[str, Any]) -> str:
        """
        Return a live session token for a bundle, creating one if needed.

        A cached token is only returned after its row has been read back
        from the store and found live.

        Args:
            bundle: CampaignBundle or equivalent mapping

        Returns:
            Session token

        Raises:
            InvalidInputError: Bundle is malformed
            UpstreamError: Session could not be persisted
        """
        bundle = self._parse_bundle(bundle)
        payload = self._payload(bundle)
        fingerprint = compute_fingerprint(bundle)

        cached_token = self.lookup.get(fingerprint)
        if cached_token:
            session = self.storage.get(cached_token)
            if session and session.is_live(self.clock()):
                self._count("hits")
                logger.debug(f"Session cache HIT ({cached_token[:6]}...)")
                return cached_token

            # Row missing or expired, stale entry
            self._count("stale")
            self.lookup.evict(fingerprint, cached_token)

        self._count("misses")
        now = self.clock()
        token = generate_token()

        # Write errors propagate: an unpersisted token is useless to another device
        self.storage.insert(
            session_token=token,
            campaign_data=payload,
            created_at=now,
            expires_at=now + self.ttl,
        )
        self.lookup.put(fingerprint, token)

        logger.info(f"Created download session {token[:6]}... (expires in {int(self.ttl.total_seconds())}s)")
        return token

    def get(self, session_token: str) -> Dict[str, Any]:
        """
        Resolve a token to its bundle payload.

        Args:
            session_token: Token from a download link

        Returns:
            Bundle payload as stored

        Raises:
            InvalidInputError: Token is empty
            NotFoundError: No live session for the token (missing or expired)
        """
        if not session_token:
            raise InvalidInputError("Missing session token")

        session = self.storage.get_live(session_token, self.clock())
        if session is None:
            raise NotFoundError(SESSION_NOT_FOUND)
        return session.campaign_data

    def build_download_url(self, session_token: str) -> str:
        """Link for QR codes and direct downloads."""
        return f"{self.public_base_url}/download-zip?{urlencode({'session': session_token})}"

    def purge_expired(self) -> int:
        """
        Delete expired session rows.

        Returns:
            Number of rows deleted
        """
        deleted = self.storage.delete_expired(self.clock())
        if deleted:
            logger.info(f"Purged {deleted} expired download sessions")
        return deleted

    def _count(self, key: str) -> None:
        with self._stats_lock:
            self.stats[key] += 1

    def _parse_bundle(self, bundle: CampaignBundle | Mapping[str, Any]) -> CampaignBundle:
        if isinstance(bundle, CampaignBundle):
            return bundle
        if not isinstance(bundle, Mapping):
            raise InvalidInputError("Campaign bundle must be an object")
        try:
            return CampaignBundle.model_validate(dict(bundle))
        except ValidationError as e:
            raise InvalidInputError(f"Invalid campaign bundle: {e}") from e

    def _payload(self, bundle: CampaignBundle) -> Dict[str, Any]:
        """JSON form of a bundle, which must be encodable as UTF-8 to be served back."""
        try:
            payload = bundle.model_dump(mode="json")
            json.dumps(payload, ensure_ascii=False).encode("utf-8")
        except ValueError as e:
            raise InvalidInputError("Campaign bundle contains text that is not valid Unicode") from e
        return payload
