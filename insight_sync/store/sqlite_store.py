"""Persist records and source metadata in SQLite."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from threading import Lock

from ..core import Record, SourceDescriptor
from ..errors import PersistenceError
from ..infra.storage import SQLiteManager
from .base import RECENT_LIMIT, BaseStore

_RECORD_COLUMNS = "id, source, author, title, link, content, published_at"


def _row_to_record(row: sqlite3.Row) -> Record:
    return Record(
        id=row["id"],
        source=row["source"],
        author=row["author"],
        title=row["title"],
        link=row["link"],
        content=row["content"],
        published_at=row["published_at"],
    )


class SQLiteStore(BaseStore):
    """SQLite implementation of the storage contract."""

    def __init__(self, manager: SQLiteManager, db_path: Path) -> None:
        self.manager = manager
        self.db_path = db_path
        self._lock = Lock()
        self._conn = self.manager.connect(db_path)

    def record_exists(self, record_id: str) -> bool:
        with self._lock:
            try:
                cur = self._conn.execute("SELECT 1 FROM records WHERE id = ?", (record_id,))
                return cur.fetchone() is not None
            except sqlite3.Error as exc:
                raise PersistenceError(f"failed to look up record {record_id}: {exc}") from exc

    def record_save(self, record: Record) -> bool:
        with self._lock:
            try:
                cur = self._conn.execute(
                    f"INSERT OR IGNORE INTO records({_RECORD_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        record.id,
                        record.source,
                        record.author,
                        record.title,
                        record.link,
                        record.content,
                        record.published_at,
                    ),
                )
                self._conn.commit()
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise PersistenceError(f"failed to save record {record.id}: {exc}") from exc
            return cur.rowcount > 0

    def meta_save(self, descriptor: SourceDescriptor) -> None:
        with self._lock:
            try:
                self._conn.execute(
                    """
                    INSERT INTO metas(source, name, home_page) VALUES (?, ?, ?)
                    ON CONFLICT(source) DO UPDATE SET name = excluded.name, home_page = excluded.home_page
                    """,
                    (descriptor.source, descriptor.name, descriptor.home_page),
                )
                self._conn.commit()
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise PersistenceError(f"failed to save meta {descriptor.source}: {exc}") from exc

    def meta_info(self, source: str) -> SourceDescriptor | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT source, name, home_page FROM metas WHERE source = ?", (source,)
            ).fetchone()
        if row is None:
            return None
        return SourceDescriptor(source=row["source"], name=row["name"], home_page=row["home_page"])

    def recent_records(self, limit: int = RECENT_LIMIT) -> list[Record]:
        with self._lock:
            rows = self._conn.execute(
                f"SELECT {_RECORD_COLUMNS} FROM records ORDER BY published_at DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [_row_to_record(row) for row in rows]

    def recent_records_by_source(self, source: str, limit: int = RECENT_LIMIT) -> list[Record]:
        with self._lock:
            rows = self._conn.execute(
                f"SELECT {_RECORD_COLUMNS} FROM records WHERE source = ? ORDER BY published_at DESC LIMIT ?",
                (source, limit),
            ).fetchall()
        return [_row_to_record(row) for row in rows]

    def record_sources(self) -> list[str]:
        with self._lock:
            rows = self._conn.execute("SELECT DISTINCT source FROM records ORDER BY source").fetchall()
        return [row["source"] for row in rows]

    def close(self) -> None:
        self.manager.close_all()


__all__ = ["SQLiteStore"]
