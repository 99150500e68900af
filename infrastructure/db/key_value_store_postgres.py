from __future__ import annotations

from typing import Optional

import psycopg2

from domain.repositories import KeyValueStore


class PostgresKeyValueStore(KeyValueStore):
    """
    Postgres-backed implementation of `KeyValueStore`.

    Lets several bot processes share persisted chat sessions through one
    `client_state` table.
    """

    def __init__(self, db_params: dict) -> None:
        self._db_params = db_params
        self._ensure_table()

    def _get_connection(self):
        return psycopg2.connect(**self._db_params)

    def _ensure_table(self) -> None:
        """
        Ensure that the `client_state` table exists.

        Schema (minimal):
          - key TEXT PRIMARY KEY
          - value TEXT
        """

        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS client_state (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                    """
                )
                conn.commit()

    def get(self, key: str) -> Optional[str]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT value FROM client_state WHERE key = %s", (key,))
                row = cur.fetchone()
                if not row:
                    return None
                return str(row[0])

    def set(self, key: str, value: str) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO client_state (key, value)
                    VALUES (%s, %s)
                    ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value
                    """,
                    (key, value),
                )
                conn.commit()

    def delete(self, key: str) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM client_state WHERE key = %s", (key,))
                conn.commit()
