from __future__ import annotations

from typing import Any

import psycopg2
from psycopg2.extras import Json

from core.config import settings

DDL = """
create table if not exists kv_store (
    key text primary key,
    value jsonb not null,
    updated_at timestamptz not null default now()
)
"""


def pg_conn(url: str | None = None):
    """One-liner Postgres connection (caller must close)."""
    return psycopg2.connect(url or settings.DATABASE_URL)


class PostgresKeyValueStore:
    def __init__(self, url: str | None = None, ensure_schema: bool = True):
        self.url = url or settings.DATABASE_URL
        if ensure_schema:
            self._execute(DDL)

    def _execute(self, sql: str, params: tuple = ()) -> tuple[Any, int]:
        conn = pg_conn(self.url)
        try:
            cur = conn.cursor()
            cur.execute(sql, params)
            row = cur.fetchone() if cur.description else None
            rowcount = cur.rowcount
            conn.commit()
            cur.close()
            return row, rowcount
        finally:
            conn.close()

    def get(self, key: str) -> Any | None:
        row, _ = self._execute("select value from kv_store where key=%s", (key,))
        return None if row is None else row[0]

    def put(self, key: str, value: Any) -> None:
        self._execute(
            """
            insert into kv_store (key, value) values (%s, %s)
            on conflict (key) do update set value = excluded.value, updated_at = now()
            """,
            (key, Json(value)),
        )

    def replace(self, key: str, value: dict[str, Any], expected_version: int) -> bool:
        _, rowcount = self._execute(
            """
            update kv_store set value=%s, updated_at=now()
            where key=%s and coalesce((value->>'version')::int, 0) = %s
            """,
            (Json(value), key, expected_version),
        )
        return rowcount == 1

    def append(self, key: str, item: Any) -> None:
        # the row lock taken by the upsert serialises concurrent appends
        self._execute(
            """
            insert into kv_store (key, value) values (%s, %s)
            on conflict (key) do update set value = kv_store.value || excluded.value,
                updated_at = now()
            """,
            (key, Json([item])),
        )

    def delete(self, key: str) -> None:
        self._execute("delete from kv_store where key=%s", (key,))
