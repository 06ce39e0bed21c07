"""Database connection helper and Postgres-backed key-value store."""

from __future__ import annotations

import logging

import psycopg
from psycopg.rows import dict_row

from warranty_tracker.config import get_data_path, get_database_url
from warranty_tracker.errors import StorageUnavailable
from warranty_tracker.store import JsonFileStore, KeyValueStore

logger = logging.getLogger(__name__)

_CREATE_TABLE = """\
CREATE TABLE IF NOT EXISTS warranty_kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
)"""

_SELECT_VALUE = "SELECT value FROM warranty_kv WHERE key = %s"

_UPSERT_VALUE = """\
INSERT INTO warranty_kv (key, value) VALUES (%s, %s)
ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = now()"""


def get_connection() -> psycopg.Connection[dict[str, object]]:
    """Create and return a new database connection."""
    url = get_database_url()
    if not url:
        msg = "DATABASE_URL environment variable is required"
        raise ValueError(msg)
    return psycopg.connect(url, row_factory=dict_row)


class PostgresKeyValueStore:
    """KeyValueStore backed by a single Postgres table."""

    def __init__(self, conn: psycopg.Connection[dict[str, object]]) -> None:
        self.conn = conn

    def ensure_schema(self) -> None:
        """Create the backing table if it does not exist yet."""
        self.conn.execute(_CREATE_TABLE)
        self.conn.commit()

    def load(self, key: str) -> str | None:
        row = self.conn.execute(_SELECT_VALUE, (key,)).fetchone()
        if row is None:
            return None
        return str(row["value"])

    def save(self, key: str, value: str) -> None:
        self.conn.execute(_UPSERT_VALUE, (key, value))
        self.conn.commit()


def open_key_value_store() -> KeyValueStore:
    """Return the configured store: Postgres if DATABASE_URL is set, else JSON files.

    Raises StorageUnavailable when the database cannot be reached.
    """
    if get_database_url():
        try:
            store = PostgresKeyValueStore(get_connection())
            store.ensure_schema()
        except psycopg.Error as exc:
            logger.warning("Could not open the product database", exc_info=True)
            msg = f"Could not open the product database: {exc}"
            raise StorageUnavailable(msg) from exc
        return store
    return JsonFileStore(get_data_path())
