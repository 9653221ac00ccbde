"""
SQLite storage backend for download sessions.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from creative_cache.models import DownloadSession
from creative_cache.services.database import connect, ensure_parent
from creative_cache.utils.timeutil import parse_iso, to_iso


class SessionStorage:
    """SQLite-based storage for download sessions, keyed by token."""

    def __init__(self, db_path: Path):
        """
        Initialize session storage.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = ensure_parent(db_path)
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS download_sessions (
                    session_token TEXT PRIMARY KEY,
                    campaign_data TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL,
                    CHECK (expires_at > created_at)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_sessions_expires_at
                ON download_sessions(expires_at)
            """)

    def insert(
        self,
        session_token: str,
        campaign_data: Dict[str, Any],
        created_at: datetime,
        expires_at: datetime,
    ) -> DownloadSession:
        """
        Insert a new session row.

        Raises:
            UpstreamError: If the row could not be written (including a
                token collision)
        """
        session = DownloadSession(
            session_token=session_token,
            campaign_data=campaign_data,
            created_at=created_at,
            expires_at=expires_at,
        )

        with connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO download_sessions
                (session_token, campaign_data, created_at, expires_at)
                VALUES (?, ?, ?, ?)
                """,
                (
                    session.session_token,
                    json.dumps(session.campaign_data),
                    to_iso(session.created_at),
                    to_iso(session.expires_at),
                ),
            )
        return session

    def get(self, session_token: str) -> Optional[DownloadSession]:
        """Get a session row regardless of expiry."""
        with connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM download_sessions WHERE session_token = ?",
                (session_token,),
            ).fetchone()
            return self._to_session(row) if row else None

    def get_live(self, session_token: str, now: datetime) -> Optional[DownloadSession]:
        """
        Get a session row only if it has not expired.

        Args:
            session_token: Token to look up
            now: Current time; rows with expires_at <= now are ignored
        """
        with connect(self.db_path) as conn:
            row = conn.execute(
                """
                SELECT * FROM download_sessions
                WHERE session_token = ? AND expires_at > ?
                """,
                (session_token, to_iso(now)),
            ).fetchone()
            return self._to_session(row) if row else None

    def delete_expired(self, now: datetime) -> int:
        """
        Delete sessions that expired at or before ``now``.

        Returns:
            Number of rows deleted
        """
        with connect(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM download_sessions WHERE expires_at <= ?",
                (to_iso(now),),
            )
            return cursor.rowcount

    def count(self) -> int:
        with connect(self.db_path) as conn:
            return conn.execute("SELECT COUNT(*) FROM download_sessions").fetchone()[0]

    def _to_session(self, row) -> DownloadSession:
        return DownloadSession(
            session_token=row["session_token"],
            campaign_data=json.loads(row["campaign_data"]),
            created_at=parse_iso(row["created_at"]),
            expires_at=parse_iso(row["expires_at"]),
        )
