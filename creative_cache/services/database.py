"""
SQLite connection handling shared by the campaign and session stores.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from creative_cache.errors import UpstreamError

logger = logging.getLogger(__name__)


@contextmanager
def connect(db_path: Path, timeout: float = 10.0) -> Generator[sqlite3.Connection, None, None]:
    """
    Open a connection for one unit of work.

    Commits on success, rolls back on error and always closes. Datastore
    failures surface as UpstreamError.

    Args:
        db_path: Path to SQLite database file
        timeout: Seconds to wait on a locked database
    """
    try:
        conn = sqlite3.connect(db_path, timeout=timeout)
    except sqlite3.Error as e:
        raise UpstreamError(f"Datastore unavailable: {e}") from e

    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        logger.error(f"Datastore error on {db_path}: {e}")
        raise UpstreamError(f"Datastore operation failed: {e}") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def ensure_parent(db_path: Path) -> Path:
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path
