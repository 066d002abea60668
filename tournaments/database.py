"""SQLite-backed object store for tournament collections."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from .exceptions import StoreError
from .store import ObjectStore, Record

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS records (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    tournament_id TEXT,
    data TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (collection, id)
)
"""

INDEX = """
CREATE INDEX IF NOT EXISTS idx_records_tournament
ON records (collection, tournament_id)
"""


class SQLiteObjectStore(ObjectStore):
    """Stores every collection as JSON documents in one SQLite table."""

    def __init__(self, db_path: str = "tournaments.db"):
        super().__init__()
        self.db_path = Path(db_path)
        self._init_database()

    def _init_database(self) -> None:
        """Create the records table if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(SCHEMA)
            cursor.execute(INDEX)
            conn.commit()
            logger.info(f"Tournament database initialized at {self.db_path}")

    @contextmanager
    def _get_connection(self):
        """Get a database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(
                self.db_path,
                detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
            )
            conn.row_factory = sqlite3.Row  # Enable column access by name
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            logger.error(f"Tournament database error: {e}")
            raise StoreError(f"Tournament database error: {e}") from e
        finally:
            if conn:
                conn.close()

    def get(self, collection: str, record_id: str) -> Record | None:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT data FROM records WHERE collection = ? AND id = ?",
                (collection, record_id),
            )
            row = cursor.fetchone()

            if not row:
                return None

            return json.loads(row["data"])

    def query(self, collection: str, **equals: Any) -> list[Record]:
        # tournament_id has its own column; other fields are filtered in Python
        with self._get_connection() as conn:
            cursor = conn.cursor()

            if "tournament_id" in equals:
                cursor.execute(
                    """
                    SELECT data FROM records
                    WHERE collection = ? AND tournament_id IS ?
                    ORDER BY rowid
                    """,
                    (collection, equals["tournament_id"]),
                )
            else:
                cursor.execute(
                    "SELECT data FROM records WHERE collection = ? ORDER BY rowid",
                    (collection,),
                )

            rows = cursor.fetchall()

        records = [json.loads(row["data"]) for row in rows]
        return [record for record in records if self._matches(record, equals)]

    def _insert(self, collection: str, record_id: str, record: Record) -> None:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO records (collection, id, tournament_id, data)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (collection, id) DO UPDATE SET
                    tournament_id = excluded.tournament_id,
                    data = excluded.data,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (
                    collection,
                    record_id,
                    record.get("tournament_id"),
                    json.dumps(record, default=str),
                ),
            )
            conn.commit()
            logger.debug(f"Wrote {collection}/{record_id}")

    def _remove(self, collection: str, record_id: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM records WHERE collection = ? AND id = ?",
                (collection, record_id),
            )
            deleted = cursor.rowcount > 0
            conn.commit()

            if deleted:
                logger.info(f"Deleted {collection}/{record_id}")

            return deleted
