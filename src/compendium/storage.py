"""
Local persistence for Compendium.

Key/value storage in SQLite with JSON-encoded text values. Every
operation fails closed: errors are logged and turned into False or
the caller's default, never raised.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from pydantic import ValidationError

from compendium.config import get_storage_path
from compendium.models import Snapshot

logger = logging.getLogger(__name__)

# Key holding the whole domain snapshot
STORAGE_KEY = "compendium_data"

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class LocalStorage:
    """SQLite-backed key/value store."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = Path(db_path) if db_path else get_storage_path()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        try:
            conn.executescript(SCHEMA)
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def save(self, key: str, value: Any) -> bool:
        """Store value under key. Returns False on failure."""
        try:
            text = json.dumps(value)
            with self._connect() as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
                    (key, text),
                )
            return True
        except (sqlite3.Error, OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save '{key}' to local storage: {e}")
            return False

    def load(self, key: str, default: Any = None) -> Any:
        """Load the value under key, or default if missing or unreadable."""
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
            if not row or not row[0]:
                return default
            return json.loads(row[0])
        except (sqlite3.Error, OSError, ValueError) as e:
            logger.error(f"Failed to load '{key}' from local storage: {e}")
            return default

    def remove(self, key: str) -> bool:
        """Delete key. Removing a missing key still succeeds."""
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            return True
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to remove '{key}' from local storage: {e}")
            return False

    def exists(self, key: str) -> bool:
        """Check whether key holds a value."""
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT 1 FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
            return row is not None
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to check '{key}' in local storage: {e}")
            return False

    def clear(self) -> bool:
        """Delete every key."""
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM kv_store")
            return True
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to clear local storage: {e}")
            return False

    # Snapshot shortcuts

    def save_snapshot(self, snapshot: Snapshot) -> bool:
        return self.save(STORAGE_KEY, snapshot.to_dict())

    def load_snapshot(self) -> Snapshot:
        """Load the cached snapshot. Empty snapshot if missing or malformed."""
        data = self.load(STORAGE_KEY, None)
        if data is None:
            return Snapshot.empty()
        try:
            return Snapshot.model_validate(data)
        except ValidationError as e:
            logger.error(f"Cached snapshot is malformed, ignoring it: {e}")
            return Snapshot.empty()

    def clear_snapshot(self) -> bool:
        return self.remove(STORAGE_KEY)
