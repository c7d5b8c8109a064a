"""
Key-value storage for StudyMap
A small string-to-string store with an optional size quota, in two flavours:
an in-memory mapping (tests, Streamlit session state) and SQLite (on disk).
"""

import sqlite3
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import List, MutableMapping, Optional, Union

from backend.errors import StorageQuotaExceeded

logger = logging.getLogger(__name__)


def item_size(key: str, value: Optional[str]) -> int:
    """Bytes an entry occupies against the quota (UTF-8 key plus value)"""
    if value is None:
        return 0
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class KeyValueStore:
    """Interface shared by every store. Values are always strings."""

    quota_bytes: Optional[int] = None

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str):
        raise NotImplementedError

    def remove_item(self, key: str):
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError

    def used_bytes(self) -> int:
        return sum(item_size(key, self.get_item(key)) for key in self.keys())

    def _check_value(self, key: str, value: str):
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError(f"Store keys and values must be strings, got {type(key).__name__}/{type(value).__name__}")

    def _check_quota(self, key: str, value: str, used: int, existing: Optional[str]):
        if self.quota_bytes is None:
            return
        projected = used - item_size(key, existing) + item_size(key, value)
        if projected > self.quota_bytes:
            logger.warning(f"Write of '{key}' rejected: {projected} bytes would exceed quota of {self.quota_bytes}")
            raise StorageQuotaExceeded(
                f"Storage is full: writing '{key}' needs {projected} bytes, quota is {self.quota_bytes}"
            )


class MappingStore(KeyValueStore):
    """Store backed by any mutable mapping, e.g. a dict or st.session_state"""

    def __init__(self, mapping: Optional[MutableMapping] = None, quota_bytes: Optional[int] = None):
        self._data = mapping if mapping is not None else {}
        self.quota_bytes = quota_bytes

    def get_item(self, key: str) -> Optional[str]:
        value = self._data.get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str):
        self._check_value(key, value)
        self._check_quota(key, value, self.used_bytes(), self.get_item(key))
        self._data[key] = value

    def remove_item(self, key: str):
        if key in self._data:
            del self._data[key]

    def keys(self) -> List[str]:
        return [key for key, value in list(self._data.items()) if isinstance(key, str) and isinstance(value, str)]


class SqliteStore(KeyValueStore):
    """Persistent store: one kv_item table in a SQLite file"""

    def __init__(self, db_path: Union[str, Path], quota_bytes: Optional[int] = None):
        self.db_path = Path(db_path)
        self.quota_bytes = quota_bytes
        self.init_database()

    def ensure_db_directory(self):
        """Ensure the database directory exists with proper permissions"""
        db_dir = self.db_path.parent
        db_dir.mkdir(parents=True, exist_ok=True)
        db_dir.chmod(0o700)

    @contextmanager
    def get_db_connection(self):
        """Context manager for database connections"""
        self.ensure_db_directory()
        try:
            conn = sqlite3.connect(str(self.db_path))
            conn.row_factory = sqlite3.Row
            try:
                yield conn
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Error in get_db_connection: {type(e).__name__}: {str(e)}")
            raise

    def init_database(self):
        """Initialize the database with the schema"""
        schema = """
        CREATE TABLE IF NOT EXISTS kv_item (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """
        with self.get_db_connection() as conn:
            conn.executescript(schema)
            conn.commit()

    def get_item(self, key: str) -> Optional[str]:
        with self.get_db_connection() as conn:
            row = conn.execute("SELECT value FROM kv_item WHERE key = ?", (key,)).fetchone()
            return row["value"] if row else None

    def set_item(self, key: str, value: str):
        self._check_value(key, value)
        with self.get_db_connection() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")
                if self.quota_bytes is not None:
                    used = self._used_bytes(conn)
                    row = conn.execute("SELECT value FROM kv_item WHERE key = ?", (key,)).fetchone()
                    try:
                        self._check_quota(key, value, used, row["value"] if row else None)
                    except StorageQuotaExceeded:
                        conn.rollback()
                        raise
                conn.execute("""
                    INSERT INTO kv_item (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
                """, (key, value))
                conn.commit()
            except (sqlite3.OperationalError, sqlite3.DataError) as e:
                conn.rollback()
                message = str(e).lower()
                if "full" in message or "too big" in message:
                    raise StorageQuotaExceeded(f"Storage is full: {str(e)}") from e
                raise

    def remove_item(self, key: str):
        with self.get_db_connection() as conn:
            conn.execute("DELETE FROM kv_item WHERE key = ?", (key,))
            conn.commit()

    def keys(self) -> List[str]:
        with self.get_db_connection() as conn:
            return [row["key"] for row in conn.execute("SELECT key FROM kv_item ORDER BY key")]

    def used_bytes(self) -> int:
        with self.get_db_connection() as conn:
            return self._used_bytes(conn)

    @staticmethod
    def _used_bytes(conn) -> int:
        row = conn.execute("""
            SELECT COALESCE(SUM(LENGTH(CAST(key AS BLOB)) + LENGTH(CAST(value AS BLOB))), 0)
            FROM kv_item
        """).fetchone()
        return int(row[0])
