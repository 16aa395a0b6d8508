"""SQLite-backed item store.

Conditional writes use `UPDATE ... WHERE status = ? AND scheduled_at_utc = ?`;
zero affected rows means another writer got there first.

Storage failures surface as domain errors: a locked database as
`TimeoutError`, anything else as `LookupFailedError` on reads and
`MutationError` on writes.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import UTC, datetime
from typing import Any

from content_auditor.domain.entities import ItemStatus, ScheduledItem
from content_auditor.domain.errors import LookupFailedError, MutationError, StaleItemError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS scheduled_items (
    id TEXT PRIMARY KEY,
    scheduled_at_utc TEXT NOT NULL,
    status TEXT NOT NULL,
    type_tag TEXT NOT NULL DEFAULT 'post',
    author_id TEXT NOT NULL DEFAULT '',
    title TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_scheduled_items_status_time
    ON scheduled_items (status, scheduled_at_utc);
"""


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _to_db_time(dt: datetime) -> str:
    # Fixed offset keeps lexical order equal to time order
    return dt.astimezone(UTC).isoformat()


def _row_to_item(row: dict[str, Any]) -> ScheduledItem:
    return ScheduledItem(
        id=row["id"],
        scheduled_at_utc=datetime.fromisoformat(row["scheduled_at_utc"]),
        status=row["status"],
        type_tag=row["type_tag"],
        author_id=row["author_id"],
        title=row["title"],
    )


def _is_locked(e: sqlite3.Error) -> bool:
    return isinstance(e, sqlite3.OperationalError) and "locked" in str(e)


class SQLiteItemRepo:
    def __init__(self, db_path: str, timeout: float = 5.0):
        self.db_path = db_path
        self.timeout = timeout

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = dict_factory
        return conn

    def _read(self, sql: str, params: tuple[Any, ...]) -> list[dict[str, Any]]:
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            logger.error("Cannot open item store %s: %s", self.db_path, e)
            raise LookupFailedError(f"Cannot open item store: {e}") from e
        try:
            return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            if _is_locked(e):
                logger.warning("Item store %s is locked", self.db_path)
                raise TimeoutError(f"Item store is locked: {e}") from e
            logger.error("Read from item store failed: %s", e)
            raise LookupFailedError(f"Item store read failed: {e}") from e
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            conn.close()

    def save(self, item: ScheduledItem) -> ScheduledItem:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO scheduled_items (
                    id, scheduled_at_utc, status, type_tag, author_id, title
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    scheduled_at_utc=excluded.scheduled_at_utc,
                    status=excluded.status,
                    type_tag=excluded.type_tag,
                    author_id=excluded.author_id,
                    title=excluded.title
            """,
                (
                    item.id,
                    _to_db_time(item.scheduled_at_utc),
                    item.status,
                    item.type_tag,
                    item.author_id,
                    item.title,
                ),
            )
            conn.commit()
            return item
        finally:
            conn.close()

    def get(self, item_id: str) -> ScheduledItem | None:
        rows = self._read("SELECT * FROM scheduled_items WHERE id = ?", (item_id,))
        return _row_to_item(rows[0]) if rows else None

    def list_scheduled(
        self,
        max_count: int = 200,
        type_tags: tuple[str, ...] = (),
    ) -> list[ScheduledItem]:
        sql = "SELECT * FROM scheduled_items WHERE status = 'scheduled'"
        params: list[Any] = []
        if type_tags:
            sql += f" AND type_tag IN ({', '.join('?' for _ in type_tags)})"
            params.extend(type_tags)
        sql += " ORDER BY scheduled_at_utc ASC, rowid ASC LIMIT ?"
        params.append(max_count)
        return [_row_to_item(r) for r in self._read(sql, tuple(params))]

    def apply(
        self,
        item_id: str,
        *,
        expected: ScheduledItem,
        new_status: ItemStatus | None = None,
        new_scheduled_at_utc: datetime | None = None,
    ) -> None:
        assignments: list[str] = []
        params: list[Any] = []
        if new_status is not None:
            assignments.append("status = ?")
            params.append(new_status)
        if new_scheduled_at_utc is not None:
            assignments.append("scheduled_at_utc = ?")
            params.append(_to_db_time(new_scheduled_at_utc))
        if not assignments:
            raise MutationError("Nothing to update")

        params.extend(
            [item_id, expected.status, _to_db_time(expected.scheduled_at_utc)]
        )
        sql = (
            f"UPDATE scheduled_items SET {', '.join(assignments)} "
            "WHERE id = ? AND status = ? AND scheduled_at_utc = ?"
        )

        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            logger.error("Cannot open item store %s: %s", self.db_path, e)
            raise MutationError(f"Cannot open item store: {e}") from e
        try:
            updated = conn.execute(sql, params).rowcount
            conn.commit()
        except sqlite3.Error as e:
            if _is_locked(e):
                logger.warning(
                    "Item store %s is locked; update of %s abandoned", self.db_path, item_id
                )
                raise TimeoutError(f"Item store is locked: {e}") from e
            logger.error("Update of item %s failed: %s", item_id, e)
            raise MutationError(f"Storage rejected update: {e}") from e
        finally:
            conn.close()

        if updated == 0:
            raise StaleItemError(f"Item {item_id} changed since it was read")
